import base64
import random
import struct

import pytest
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from backend.core.jito_core.config import BundleSettings
from backend.core.jito_core.errors import (
    BundleLimitError,
    BundleRejectedError,
    ConfigurationError,
    CredentialError,
    TipAccountError,
    TransactionDecodeError,
)
from backend.core.jito_core.listeners import RecordingBundleListener
from backend.core.jito_core.services import BundleService
from conftest import TIP_ACCOUNTS, FakeRelay, signed_user_tx

SYSTEM_PROGRAM = Pubkey.from_string("11111111111111111111111111111111")


def _service(settings, relay, ledger, listener=None):
    return BundleService(
        settings,
        relay=relay,
        ledger=ledger,
        signer=settings.signer(),
        listener=listener or RecordingBundleListener(),
        rng=random.Random(7),
    )


def _decode(b64):
    return VersionedTransaction.from_bytes(base64.b64decode(b64))


def _system_transfer(tx):
    """(recipient, lamports) of a single-instruction system transfer."""

    msg = tx.message
    ix = msg.instructions[0]
    keys = msg.account_keys
    assert keys[ix.program_id_index] == SYSTEM_PROGRAM
    tag, lamports = struct.unpack("<IQ", bytes(ix.data))
    assert tag == 2
    return keys[ix.accounts[1]], lamports


def test_order_bundle_end_to_end(settings, relay, ledger):
    listener = RecordingBundleListener()
    svc = _service(settings, relay, ledger, listener)
    user_b64, user_tx = signed_user_tx()

    receipt = svc.submit_order_bundle(
        user_b64,
        "O1",
        making_amount=50_000_000,
        input_mint="So11111111111111111111111111111111111111112",
    )

    assert receipt.bundle_id == "bundle-123"
    assert receipt.signature == str(user_tx.signatures[0])
    assert len(relay.sent) == 1
    sent = relay.sent[0]
    assert len(sent) == 3
    assert sent[0] == user_b64

    fee_tx, tip_tx = _decode(sent[1]), _decode(sent[2])
    assert _system_transfer(fee_tx) == (Pubkey.from_string(settings.fee_wallet), 500_000)
    tip_to, tip_lamports = _system_transfer(tip_tx)
    assert str(tip_to) in TIP_ACCOUNTS
    assert tip_lamports == 1000
    assert str(tip_to) == receipt.tip_account

    # one shared blockhash, signed by the server key
    assert ledger.blockhash_calls == 1
    assert fee_tx.message.recent_blockhash == tip_tx.message.recent_blockhash == ledger.blockhash
    server = settings.signer().pubkey()
    assert fee_tx.message.account_keys[0] == server
    assert tip_tx.message.account_keys[0] == server
    assert listener.sent == [receipt]


def test_order_bundle_defaults_to_native_mint_and_default_amount(settings, relay, ledger):
    svc = _service(settings, relay, ledger)
    user_b64, _ = signed_user_tx()

    svc.submit_order_bundle(user_b64, "O2")

    fee_tx = _decode(relay.sent[0][1])
    assert _system_transfer(fee_tx)[1] == settings.default_making_amount // 100


def test_cancel_bundle_has_k_plus_one_entries_tip_last(settings, relay, ledger):
    svc = _service(settings, relay, ledger)
    blobs, txs = zip(*(signed_user_tx() for _ in range(3)))

    receipt = svc.submit_cancel_bundle(list(blobs), ["A", "B", "C"])

    sent = relay.sent[0]
    assert len(sent) == 4
    assert sent[:3] == list(blobs)
    tip_to, tip_lamports = _system_transfer(_decode(sent[-1]))
    assert str(tip_to) in TIP_ACCOUNTS and tip_lamports == 1000
    assert receipt.signatures == [str(tx.signatures[0]) for tx in txs]
    assert receipt.fee_signature is None


def test_cancel_bundle_over_limit_is_rejected_before_submission(relay, ledger, settings):
    small = BundleSettings(**{**settings.__dict__, "bundle_transaction_limit": 3})
    svc = _service(small, relay, ledger)
    blobs = [signed_user_tx()[0] for _ in range(3)]

    with pytest.raises(BundleLimitError):
        svc.submit_cancel_bundle(blobs, ["A"])
    assert relay.sent == []


def test_cancel_bundle_requires_transactions(settings, relay, ledger):
    with pytest.raises(TransactionDecodeError):
        _service(settings, relay, ledger).submit_cancel_bundle([], [])


def test_no_tip_accounts_fails_without_submitting(settings, ledger):
    relay = FakeRelay(tip_accounts=[])
    svc = _service(settings, relay, ledger)

    with pytest.raises(TipAccountError):
        svc.submit_order_bundle(signed_user_tx()[0], "O1")
    assert relay.sent == []
    assert ledger.blockhash_calls == 0


def test_tip_account_is_drawn_from_relay_set(settings, relay, ledger):
    svc = _service(settings, relay, ledger)
    picks = {str(svc.resolve_tip_account()) for _ in range(40)}
    assert picks <= set(TIP_ACCOUNTS)
    assert len(picks) > 1


def test_relay_rejection_surfaces_message_and_notifies_listener(settings, ledger):
    relay = FakeRelay(reject="bundle dropped: simulation failure")
    listener = RecordingBundleListener()
    svc = _service(settings, relay, ledger, listener)

    with pytest.raises(BundleRejectedError) as exc:
        svc.submit_order_bundle(signed_user_tx()[0], "O1")

    assert "bundle dropped: simulation failure" in str(exc.value)
    assert listener.failed[0][1] == ["O1"]
    assert listener.sent == []


def test_malformed_user_transaction(settings, relay, ledger):
    svc = _service(settings, relay, ledger)
    with pytest.raises(TransactionDecodeError):
        svc.submit_order_bundle("bm90IGEgdHJhbnNhY3Rpb24=", "O1")
    assert relay.sent == []


def test_from_settings_fails_fast_without_network(monkeypatch):
    def _boom(*args, **kwargs):
        raise AssertionError("network client must not be built")

    monkeypatch.setattr("backend.core.jito_core.services.bundle_service.BlockEngineClient", _boom)
    monkeypatch.setattr("backend.core.jito_core.services.bundle_service.LedgerClient", _boom)

    with pytest.raises(ConfigurationError):
        BundleService.from_settings(BundleSettings())
    with pytest.raises(CredentialError):
        BundleService.from_settings(
            BundleSettings(block_engine_url="be", auth_keypair="oops", rpc_url="https://rpc.test")
        )


def test_bundle_status_notifies_listener(settings, relay, ledger):
    listener = RecordingBundleListener()
    svc = _service(settings, relay, ledger, listener)

    status = svc.bundle_status("b-1")

    assert status["confirmation_status"] == "confirmed"
    assert relay.status_requests == [["b-1"]]
    assert listener.statuses == [("b-1", status)]


def test_invalid_fee_wallet_is_a_configuration_error(settings, relay, ledger):
    broken = BundleSettings(**{**settings.__dict__, "fee_wallet": "not-a-wallet"})
    svc = _service(broken, relay, ledger)

    with pytest.raises(ConfigurationError) as exc:
        svc.submit_order_bundle(signed_user_tx()[0], "O1")

    assert exc.value.invalid == ["FEE_WALLET"]
    assert relay.sent == []


def test_from_settings_reports_malformed_values(settings):
    broken = BundleSettings(**{**settings.__dict__, "invalid": ("FEE_BPS",)})
    with pytest.raises(ConfigurationError) as exc:
        BundleService.from_settings(broken)
    assert "FEE_BPS" in str(exc.value)
