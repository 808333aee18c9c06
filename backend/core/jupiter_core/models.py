from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass
class LimitOrder:
    order_id: str
    maker: str
    input_mint: str
    output_mint: str
    making_amount: int
    taking_amount: int
    created_at: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "LimitOrder":
        """Build from an ``openOrders`` record: ``{"publicKey": ..., "account": {...}}``."""

        account = record.get("account") or {}
        return cls(
            order_id=str(record.get("publicKey") or ""),
            maker=str(account.get("maker") or ""),
            input_mint=str(account.get("inputMint") or ""),
            output_mint=str(account.get("outputMint") or ""),
            making_amount=_as_int(account.get("makingAmount")),
            taking_amount=_as_int(account.get("takingAmount")),
            created_at=str(account.get("createdAt") or ""),
            raw=record,
        )


@dataclass
class CreateOrderResult:
    order_id: str
    tx_b64: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class CancelOrdersResult:
    txs: List[str]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class CancellationOutcome:
    """Result of polling for cancelled orders to disappear.

    ``confirmed`` is False when the poller gave up after its attempt bound;
    the orders may still be cancelled later.
    """

    confirmed: bool
    attempts: int
    remaining: List[str] = field(default_factory=list)
