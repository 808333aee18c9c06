from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from solana.rpc.api import Client as SolClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TokenAccountOpts, TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from spl.token.constants import TOKEN_PROGRAM_ID

from ..config import NATIVE_MINT, redacted
from ..errors import InvalidWalletError, UpstreamAPIError

log = logging.getLogger(__name__)


def _owner(address: str) -> Pubkey:
    try:
        return Pubkey.from_string(address)
    except ValueError as exc:
        raise InvalidWalletError(address) from exc


class LedgerClient:
    """Thin wrapper over the Solana JSON-RPC client."""

    def __init__(self, rpc_url: str, client: Optional[SolClient] = None) -> None:
        self.rpc_url = rpc_url
        self.client = client or SolClient(rpc_url, commitment=Confirmed)

    def __repr__(self) -> str:
        return f"LedgerClient({redacted(self.rpc_url)})"

    # ---------- blockhash / send ----------
    def latest_blockhash(self) -> Hash:
        try:
            return self.client.get_latest_blockhash(commitment=Confirmed).value.blockhash
        except Exception as exc:
            raise UpstreamAPIError(f"getLatestBlockhash failed: {exc}") from exc

    def send_raw_transaction(self, raw: bytes) -> str:
        try:
            resp = self.client.send_raw_transaction(
                raw, opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed)
            )
        except Exception as exc:
            raise UpstreamAPIError(f"Transaction failed: {exc}") from exc
        return str(resp.value)

    def confirm(self, signature: str) -> None:
        """Block until ``signature`` is confirmed; raise if it landed with an error."""

        try:
            resp = self.client.confirm_transaction(Signature.from_string(signature), commitment=Confirmed)
        except Exception as exc:
            raise UpstreamAPIError(f"Transaction failed: {exc}") from exc
        status = resp.value[0] if resp.value else None
        if status is not None and status.err is not None:
            raise UpstreamAPIError(f"Transaction failed: {status.err}")

    # ---------- balances ----------
    def get_balance(self, owner: str) -> int:
        owner_pub = _owner(owner)
        try:
            return int(self.client.get_balance(owner_pub).value)
        except Exception as exc:
            raise UpstreamAPIError(f"getBalance failed: {exc}") from exc

    def token_holdings(self, owner: str) -> List[Dict[str, Any]]:
        """Token accounts of ``owner`` with a positive balance, plus native SOL first."""

        owner_pub = _owner(owner)
        lamports = self.get_balance(owner)
        holdings: List[Dict[str, Any]] = [
            {
                "mint": NATIVE_MINT,
                "symbol": "SOL",
                "decimals": 9,
                "balance": lamports,
                "uiAmount": lamports / 1_000_000_000,
            }
        ]
        try:
            resp = self.client.get_token_accounts_by_owner_json_parsed(
                owner_pub, TokenAccountOpts(program_id=TOKEN_PROGRAM_ID)
            )
        except Exception as exc:
            raise UpstreamAPIError(f"getTokenAccountsByOwner failed: {exc}") from exc

        for keyed in resp.value:
            try:
                info = keyed.account.data.parsed["info"]
                amount = info["tokenAmount"]
            except (AttributeError, KeyError, TypeError) as exc:
                log.warning("skipping unparsable token account %s: %s", keyed.pubkey, exc)
                continue
            if not amount.get("uiAmount"):
                continue
            holdings.append(
                {
                    "mint": info["mint"],
                    "account": str(keyed.pubkey),
                    "decimals": int(amount["decimals"]),
                    "balance": int(amount["amount"]),
                    "uiAmount": amount["uiAmount"],
                }
            )
        return holdings
