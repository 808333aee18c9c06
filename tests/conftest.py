import base64
import json
import os
import sys

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.system_program import TransferParams, transfer

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from backend.core.jito_core.config import BundleSettings  # noqa: E402
from backend.core.jito_core.errors import BundleRejectedError  # noqa: E402
from backend.core.jito_core.transactions import build_signed_transaction  # noqa: E402

TIP_ACCOUNTS = [
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
    "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY",
]


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    """Records requests and replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)


class FakeRelay:
    def __init__(self, tip_accounts=None, bundle_id="bundle-123", reject=None):
        self.tip_accounts = list(TIP_ACCOUNTS if tip_accounts is None else tip_accounts)
        self.bundle_id = bundle_id
        self.reject = reject
        self.sent = []
        self.status_requests = []

    def get_tip_accounts(self):
        return list(self.tip_accounts)

    def send_bundle(self, encoded):
        self.sent.append(list(encoded))
        if self.reject:
            raise BundleRejectedError(self.reject)
        return self.bundle_id

    def get_bundle_statuses(self, bundle_ids):
        self.status_requests.append(list(bundle_ids))
        return [{"bundle_id": bundle_ids[0], "confirmation_status": "confirmed"}]


class FakeLedger:
    def __init__(self):
        self.blockhash = Hash.new_unique()
        self.blockhash_calls = 0
        self.sent_raw = []
        self.confirmed = []

    def latest_blockhash(self):
        self.blockhash_calls += 1
        return self.blockhash

    def send_raw_transaction(self, raw):
        self.sent_raw.append(raw)
        return "sig-from-rpc"

    def confirm(self, signature):
        self.confirmed.append(signature)


def signed_user_tx(user=None, lamports=1):
    """A real base64 v0 transaction signed by ``user``."""

    user = user or Keypair()
    ix = transfer(TransferParams(from_pubkey=user.pubkey(), to_pubkey=Keypair().pubkey(), lamports=lamports))
    tx = build_signed_transaction(user, [ix], Hash.new_unique())
    return base64.b64encode(bytes(tx)).decode("ascii"), tx


@pytest.fixture
def server_keypair():
    return Keypair()


@pytest.fixture
def settings(server_keypair):
    return BundleSettings(
        block_engine_url="https://block-engine.test",
        auth_keypair=json.dumps(list(bytes(server_keypair))),
        rpc_url="https://rpc.test",
    )


@pytest.fixture
def relay():
    return FakeRelay()


@pytest.fixture
def ledger():
    return FakeLedger()
