from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from solders.transaction import VersionedTransaction

from .errors import BundleLimitError


class Bundle:
    """Ordered group of signed transactions submitted to the relay as one unit."""

    def __init__(self, transaction_limit: int, transactions: Optional[List[VersionedTransaction]] = None) -> None:
        if transaction_limit < 1:
            raise BundleLimitError(f"Bundle transaction limit must be positive, got {transaction_limit}")
        self.transaction_limit = transaction_limit
        self._transactions: List[VersionedTransaction] = []
        if transactions:
            self.add_transactions(*transactions)

    def add_transactions(self, *transactions: VersionedTransaction) -> "Bundle":
        total = len(self._transactions) + len(transactions)
        if total > self.transaction_limit:
            raise BundleLimitError(
                f"Bundle of {total} transactions exceeds limit of {self.transaction_limit}"
            )
        self._transactions.extend(transactions)
        return self

    @property
    def transactions(self) -> List[VersionedTransaction]:
        return list(self._transactions)

    def encoded(self) -> List[str]:
        """Base64 wire form, in bundle order."""

        return [base64.b64encode(bytes(tx)).decode("ascii") for tx in self._transactions]

    def __len__(self) -> int:
        return len(self._transactions)


@dataclass
class BundleReceipt:
    bundle_id: str
    signatures: List[str]
    tip_account: str
    tip_signature: str
    order_ids: List[str] = field(default_factory=list)
    fee_signature: Optional[str] = None

    @property
    def signature(self) -> str:
        """Signature of the first caller transaction."""

        return self.signatures[0] if self.signatures else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bundleId": self.bundle_id,
            "signatures": list(self.signatures),
            "tipAccount": self.tip_account,
            "tipSignature": self.tip_signature,
            "feeSignature": self.fee_signature,
            "orderIds": list(self.order_ids),
        }
