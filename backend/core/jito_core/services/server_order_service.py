from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from solders.keypair import Keypair

from backend.core.jupiter_core.services import LimitOrderService

from ..clients import LedgerClient
from ..config import BundleSettings
from ..transactions import decode_transaction, sign_as, signature_of

log = logging.getLogger(__name__)


@dataclass
class ServerOrderResult:
    order_id: str
    signature: str


class ServerOrderService:
    """Creates a limit order with the server key as payer and sends it straight to the ledger RPC.

    This path skips the relay: the order transaction is partially signed by
    the server and broadcast with preflight, then confirmed.
    """

    def __init__(self, orders: LimitOrderService, ledger: LedgerClient, signer: Keypair) -> None:
        self.orders = orders
        self.ledger = ledger
        self.signer = signer

    @classmethod
    def from_settings(cls, settings: BundleSettings, orders: Optional[LimitOrderService] = None) -> "ServerOrderService":
        settings.require("auth_keypair", "rpc_url")
        signer = settings.signer()
        return cls(orders or LimitOrderService(), LedgerClient(settings.rpc_url or ""), signer)

    def create_and_send(
        self,
        *,
        input_mint: str,
        output_mint: str,
        maker: str,
        making_amount: int | str,
        taking_amount: int | str,
    ) -> ServerOrderResult:
        payer = str(self.signer.pubkey())
        log.info("creating order for maker %s, payer %s: %s -> %s", maker, payer, making_amount, taking_amount)
        created = self.orders.create_order(
            input_mint=input_mint,
            output_mint=output_mint,
            maker=maker,
            payer=payer,
            making_amount=making_amount,
            taking_amount=taking_amount,
        )
        tx = sign_as(decode_transaction(created.tx_b64), self.signer)
        sent = self.ledger.send_raw_transaction(bytes(tx))
        log.info("order %s sent, signature %s", created.order_id, sent)
        self.ledger.confirm(sent)
        return ServerOrderResult(order_id=created.order_id, signature=sent or signature_of(tx))
