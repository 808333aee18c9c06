from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from ..clients import BlockEngineClient, LedgerClient
from ..config import BundleSettings
from ..errors import BundleError, TipAccountError, TransactionDecodeError
from ..fees import build_fee_instruction, build_tip_instruction, compute_fee
from ..listeners import BundleResultListener, LoggingBundleListener
from ..models import Bundle, BundleReceipt
from ..transactions import build_signed_transaction, decode_transaction, decode_transactions, signature_of

log = logging.getLogger(__name__)


class BundleService:
    """Assembles caller transactions with fee and tip transactions and submits them as a Jito bundle.

    Every network call in one submission runs in sequence: tip account
    lookup, one blockhash fetch shared by all service-signed transactions,
    then the relay submission. Any failure aborts the request.
    """

    def __init__(
        self,
        settings: BundleSettings,
        relay: BlockEngineClient,
        ledger: LedgerClient,
        signer: Keypair,
        listener: Optional[BundleResultListener] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings
        self.relay = relay
        self.ledger = ledger
        self.signer = signer
        self.listener = listener or LoggingBundleListener()
        self.rng = rng or random.SystemRandom()

    @classmethod
    def from_settings(
        cls,
        settings: BundleSettings,
        listener: Optional[BundleResultListener] = None,
        rng: Optional[random.Random] = None,
    ) -> "BundleService":
        """Validate settings and credentials, then wire the network clients.

        Raises ``ConfigurationError`` / ``CredentialError`` before any client
        is created, so a misconfigured server never touches the network.
        """

        settings.require("block_engine_url", "auth_keypair", "rpc_url")
        signer = settings.signer()
        log.info("bundle signer loaded: %s", signer.pubkey())
        return cls(
            settings,
            relay=BlockEngineClient(settings.block_engine_url or ""),
            ledger=LedgerClient(settings.rpc_url or ""),
            signer=signer,
            listener=listener,
            rng=rng,
        )

    # ------------------------
    # Building blocks
    # ------------------------
    def resolve_tip_account(self) -> Pubkey:
        """Pick one of the relay's tip accounts uniformly at random."""

        accounts = self.relay.get_tip_accounts()
        if not accounts:
            raise TipAccountError("Failed to get tip accounts: relay reported no tip accounts")
        choice = self.rng.choice(accounts)
        try:
            return Pubkey.from_string(choice)
        except ValueError as exc:
            raise TipAccountError(f"Invalid tip account returned by relay: {choice}") from exc

    def _tip_transaction(self, tip_account: Pubkey, blockhash) -> VersionedTransaction:
        ix = build_tip_instruction(self.signer.pubkey(), tip_account, self.settings.tip_lamports)
        return build_signed_transaction(self.signer, [ix], blockhash)

    def _fee_transaction(self, input_mint: str, making_amount: int, blockhash) -> VersionedTransaction:
        fee = compute_fee(making_amount, self.settings.fee_bps)
        log.info("fee: %s bps of %s base units = %s (mint %s)", self.settings.fee_bps, making_amount, fee, input_mint)
        ix = build_fee_instruction(
            self.signer.pubkey(),
            self.settings.fee_wallet_pubkey(),
            input_mint,
            fee,
            self.settings.fee_fallback_mode,
        )
        return build_signed_transaction(self.signer, [ix], blockhash)

    def _send(self, bundle: Bundle, order_ids: List[str]) -> str:
        try:
            return self.relay.send_bundle(bundle.encoded())
        except BundleError as exc:
            self.listener.on_bundle_failed(exc, order_ids)
            raise

    # ------------------------
    # Submission paths
    # ------------------------
    def submit_order_bundle(
        self,
        signed_transaction: str,
        order_id: str,
        making_amount: Optional[int] = None,
        input_mint: Optional[str] = None,
    ) -> BundleReceipt:
        """Bundle ``[caller tx, fee tx, tip tx]`` for a newly created order."""

        input_mint = input_mint or self.settings.native_mint
        making_amount = self.settings.default_making_amount if making_amount is None else int(making_amount)

        tip_account = self.resolve_tip_account()
        log.info("order %s: tip account %s", order_id, tip_account)
        user_tx = decode_transaction(signed_transaction)

        blockhash = self.ledger.latest_blockhash()
        fee_tx = self._fee_transaction(input_mint, making_amount, blockhash)
        tip_tx = self._tip_transaction(tip_account, blockhash)

        bundle = Bundle(self.settings.bundle_transaction_limit)
        bundle.add_transactions(user_tx, fee_tx, tip_tx)
        bundle_id = self._send(bundle, [order_id])

        receipt = BundleReceipt(
            bundle_id=bundle_id,
            signatures=[signature_of(user_tx)],
            tip_account=str(tip_account),
            tip_signature=signature_of(tip_tx),
            order_ids=[order_id],
            fee_signature=signature_of(fee_tx),
        )
        self.listener.on_bundle_sent(receipt)
        return receipt

    def submit_cancel_bundle(self, signed_transactions: List[str], order_ids: List[str]) -> BundleReceipt:
        """Bundle ``[*cancel txs, tip tx]``. No fee on this path."""

        if not signed_transactions:
            raise TransactionDecodeError("No signed transactions supplied")

        tip_account = self.resolve_tip_account()
        log.info("cancel %s: tip account %s", order_ids, tip_account)
        user_txs = decode_transactions(signed_transactions)

        blockhash = self.ledger.latest_blockhash()
        tip_tx = self._tip_transaction(tip_account, blockhash)

        bundle = Bundle(self.settings.bundle_transaction_limit)
        bundle.add_transactions(*user_txs, tip_tx)
        bundle_id = self._send(bundle, list(order_ids))

        receipt = BundleReceipt(
            bundle_id=bundle_id,
            signatures=[signature_of(tx) for tx in user_txs],
            tip_account=str(tip_account),
            tip_signature=signature_of(tip_tx),
            order_ids=list(order_ids),
        )
        self.listener.on_bundle_sent(receipt)
        return receipt

    def bundle_status(self, bundle_id: str) -> Optional[Dict[str, Any]]:
        statuses = self.relay.get_bundle_statuses([bundle_id])
        status = statuses[0] if statuses else None
        self.listener.on_bundle_status(bundle_id, status)
        return status
