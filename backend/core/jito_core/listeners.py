"""Callbacks for bundle outcomes.

The relay reports final bundle results asynchronously. The service does not
wait for them; it hands what it knows to a listener right after submission
and whenever a status is looked up.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol

from .errors import BundleError
from .models import BundleReceipt

log = logging.getLogger(__name__)


class BundleResultListener(Protocol):
    def on_bundle_sent(self, receipt: BundleReceipt) -> None: ...

    def on_bundle_failed(self, error: BundleError, order_ids: List[str]) -> None: ...

    def on_bundle_status(self, bundle_id: str, status: Dict[str, Any] | None) -> None: ...


class LoggingBundleListener:
    """Default listener: log and move on."""

    def on_bundle_sent(self, receipt: BundleReceipt) -> None:
        log.info(
            "bundle %s sent (orders=%s, signatures=%s, tip=%s)",
            receipt.bundle_id,
            receipt.order_ids,
            receipt.signatures,
            receipt.tip_signature,
        )

    def on_bundle_failed(self, error: BundleError, order_ids: List[str]) -> None:
        log.error("bundle for orders %s failed: %s", order_ids, error)

    def on_bundle_status(self, bundle_id: str, status: Dict[str, Any] | None) -> None:
        log.info("bundle %s status: %s", bundle_id, status or "unknown")


class RecordingBundleListener:
    """Keeps every callback in memory; handy for the console and tests."""

    def __init__(self) -> None:
        self.sent: List[BundleReceipt] = []
        self.failed: List[tuple[BundleError, List[str]]] = []
        self.statuses: List[tuple[str, Dict[str, Any] | None]] = []

    def on_bundle_sent(self, receipt: BundleReceipt) -> None:
        self.sent.append(receipt)

    def on_bundle_failed(self, error: BundleError, order_ids: List[str]) -> None:
        self.failed.append((error, list(order_ids)))

    def on_bundle_status(self, bundle_id: str, status: Dict[str, Any] | None) -> None:
        self.statuses.append((bundle_id, status))
