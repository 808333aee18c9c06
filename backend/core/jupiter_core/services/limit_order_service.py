from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from ..clients import JupLimitClient
from ..config import JupiterConfig, get_config
from ..errors import JupiterResponseError
from ..models import CancellationOutcome, CancelOrdersResult, CreateOrderResult, LimitOrder

log = logging.getLogger(__name__)

WSOL_MINT = "So11111111111111111111111111111111111111112"


class LimitOrderService:
    """Facade over the Jupiter Limit Order API."""

    def __init__(
        self,
        cfg: Optional[JupiterConfig] = None,
        session: Optional[requests.Session] = None,
        client: Optional[JupLimitClient] = None,
    ) -> None:
        self.cfg = cfg or get_config()
        self.client = client or JupLimitClient(self.cfg, session=session)

    def describe(self) -> Dict[str, Any]:
        return {
            "limit_base": self.cfg.limit_base,
            "api_key_set": bool(self.cfg.api_key),
            "cancel_poll_attempts": self.cfg.cancel_poll_attempts,
            "cancel_poll_interval_s": self.cfg.cancel_poll_interval_s,
            "invalid": list(self.cfg.invalid),
        }

    # ----------
    # Reads
    # ----------
    def open_orders(self, wallet: str) -> List[LimitOrder]:
        records = self.client.open_orders(wallet)
        orders = [LimitOrder.from_api(r) for r in records or []]
        log.info("found %d open orders for wallet %s", len(orders), wallet)
        return orders

    def order_history(self, wallet: str, page: int = 1) -> List[LimitOrder]:
        """Filled and cancelled orders for ``wallet``, one page at a time."""

        raw = self.client.order_history(wallet, page=page)
        records = raw.get("orders") if isinstance(raw, dict) else raw
        return [LimitOrder.from_api(r) for r in records or []]

    # ----------
    # Writes (return unsigned transactions)
    # ----------
    def create_order(
        self,
        *,
        input_mint: str,
        output_mint: str,
        maker: str,
        making_amount: int | str,
        taking_amount: int | str,
        payer: Optional[str] = None,
        expired_at: Optional[int] = None,
    ) -> CreateOrderResult:
        params: Dict[str, Any] = {
            "makingAmount": str(making_amount),
            "takingAmount": str(taking_amount),
        }
        if expired_at is not None:
            params["expiredAt"] = str(expired_at)
        payload = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "maker": maker,
            "payer": payer or maker,
            "params": params,
            "computeUnitPrice": "auto",
            "wrapAndUnwrapSol": WSOL_MINT in (input_mint, output_mint),
        }
        raw = self.client.create_order(payload)
        order_id, tx_b64 = raw.get("order"), raw.get("tx")
        if not order_id or not tx_b64:
            raise JupiterResponseError(f"Jupiter returned no order/tx: {raw}")
        log.info("created order %s for maker %s", order_id, maker)
        return CreateOrderResult(order_id=str(order_id), tx_b64=str(tx_b64), raw=raw)

    def cancel_orders(self, *, maker: str, order_ids: Optional[Iterable[str]] = None) -> CancelOrdersResult:
        """Cancellation transactions for ``order_ids``, or for every open order when omitted."""

        payload: Dict[str, Any] = {"maker": maker, "computeUnitPrice": "auto"}
        if order_ids:
            payload["orders"] = list(order_ids)
        raw = self.client.cancel_orders(payload)
        txs = list(raw.get("txs") or [])
        if not txs:
            raise JupiterResponseError("No transactions returned from Jupiter API")
        return CancelOrdersResult(txs=txs, raw=raw)

    # ----------
    # Polling
    # ----------
    def wait_for_cancellation(
        self,
        wallet: str,
        order_ids: Iterable[str],
        *,
        max_attempts: Optional[int] = None,
        interval_s: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> CancellationOutcome:
        """Poll open orders until none of ``order_ids`` is listed.

        A failed poll counts as "still open". After ``max_attempts`` polls the
        wait ends with ``confirmed=False``; it never raises for a timeout.
        """

        wanted = list(order_ids)
        attempts_max = self.cfg.cancel_poll_attempts if max_attempts is None else max_attempts
        interval = self.cfg.cancel_poll_interval_s if interval_s is None else interval_s
        remaining = wanted

        for attempt in range(1, attempts_max + 1):
            try:
                current = {o.order_id for o in self.open_orders(wallet)}
                remaining = [oid for oid in wanted if oid in current]
            except Exception as exc:
                log.warning("cancellation poll %d/%d failed: %s", attempt, attempts_max, exc)
            else:
                if not remaining:
                    log.info("orders %s gone after %d polls", wanted, attempt)
                    return CancellationOutcome(confirmed=True, attempts=attempt)
            if attempt < attempts_max:
                sleep(interval)

        log.warning("gave up waiting for %s after %d polls", remaining, attempts_max)
        return CancellationOutcome(confirmed=False, attempts=attempts_max, remaining=list(remaining))
