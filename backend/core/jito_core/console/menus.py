from __future__ import annotations

from typing import Optional

from backend.core.jupiter_core.services import LimitOrderService

from ..clients import BlockEngineClient
from ..config import BundleSettings
from ..services import BundleService
from .views import kv_table, panel, rows_table


def _prompt(msg: str, default: Optional[str] = None) -> str:
    hint = f" [{default}]" if default is not None else ""
    val = input(f"{msg}{hint}: ").strip()
    return val or (default or "")


def show_config(settings: BundleSettings, orders: LimitOrderService) -> None:
    data = {**settings.describe(), **orders.describe()}
    try:
        data["server_pubkey"] = str(settings.signer().pubkey())
    except Exception as exc:
        data["server_pubkey"] = f"<{type(exc).__name__}: {exc}>"
    kv_table("🧭 Bundle Config", data)


def menu_tip_accounts(settings: BundleSettings) -> None:
    settings.require("block_engine_url")
    accounts = BlockEngineClient(settings.block_engine_url or "").get_tip_accounts()
    rows_table("💰 Tip Accounts", ["#", "account"], enumerate(accounts, 1))


def menu_open_orders(orders: LimitOrderService) -> None:
    wallet = _prompt("Wallet")
    if not wallet:
        panel("Open Orders", "wallet is required")
        return
    found = orders.open_orders(wallet)
    rows = [
        (o.order_id, o.input_mint[:6], o.output_mint[:6], o.making_amount, o.taking_amount, o.created_at)
        for o in found
    ]
    rows_table(
        f"📒 Open Orders ({len(found)})",
        ["order", "in", "out", "making", "taking", "created"],
        rows,
    )


def menu_watch_cancellation(orders: LimitOrderService) -> None:
    wallet = _prompt("Wallet")
    ids = [s.strip() for s in _prompt("Order ids (comma separated)").split(",") if s.strip()]
    if not wallet or not ids:
        panel("Watch Cancellation", "wallet and at least one order id are required")
        return
    attempts = int(_prompt("Max attempts", str(orders.cfg.cancel_poll_attempts)))
    outcome = orders.wait_for_cancellation(wallet, ids, max_attempts=attempts)
    if outcome.confirmed:
        panel("✅ Cancelled", f"{', '.join(ids)} gone after {outcome.attempts} polls")
    else:
        # the bound was hit; the orders may still disappear later
        panel(
            "⌛ Gave Up",
            f"still listed after {outcome.attempts} polls: {', '.join(outcome.remaining) or '(unknown)'}",
        )


def menu_bundle_status(settings: BundleSettings) -> None:
    bundle_id = _prompt("Bundle id")
    if not bundle_id:
        return
    status = BundleService.from_settings(settings).bundle_status(bundle_id)
    if status is None:
        panel("📦 Bundle Status", f"{bundle_id}: not found (yet)")
        return
    kv_table(f"📦 Bundle {bundle_id}", status)


def menu_order_history(orders: LimitOrderService) -> None:
    wallet = _prompt("Wallet")
    if not wallet:
        panel("Order History", "wallet is required")
        return
    page = int(_prompt("Page", "1"))
    found = orders.order_history(wallet, page=page)
    rows_table(
        f"🗂 Order History (page {page})",
        ["order", "in", "out", "making", "taking", "created"],
        [(o.order_id, o.input_mint[:6], o.output_mint[:6], o.making_amount, o.taking_amount, o.created_at) for o in found],
    )


def menu_build_cancel_txs(orders: LimitOrderService) -> None:
    """Fetch unsigned cancellation transactions; the maker signs them before a cancel bundle is sent."""

    maker = _prompt("Maker wallet")
    if not maker:
        panel("Build Cancel Txs", "maker wallet is required")
        return
    ids = [s.strip() for s in _prompt("Order ids (blank = all open orders)").split(",") if s.strip()]
    result = orders.cancel_orders(maker=maker, order_ids=ids or None)
    rows_table(
        f"🧾 Cancel Transactions ({len(result.txs)})",
        ["#", "b64 length", "preview"],
        [(i, len(tx), f"{tx[:24]}…") for i, tx in enumerate(result.txs, 1)],
    )
