from __future__ import annotations

import logging
import sys
from typing import Callable, Dict

from backend.core.jupiter_core.services import LimitOrderService

from ..config import BundleSettings, load_settings
from . import menus
from .views import panel


def _menu(settings: BundleSettings, orders: LimitOrderService) -> None:
    actions: Dict[str, tuple[str, Callable[[], None]]] = {
        "1": ("Preflight / Config", lambda: menus.show_config(settings, orders)),
        "2": ("Relay: Tip Accounts", lambda: menus.menu_tip_accounts(settings)),
        "3": ("Orders: List Open", lambda: menus.menu_open_orders(orders)),
        "4": ("Orders: Watch Cancellation", lambda: menus.menu_watch_cancellation(orders)),
        "5": ("Orders: History", lambda: menus.menu_order_history(orders)),
        "6": ("Orders: Build Cancel Txs", lambda: menus.menu_build_cancel_txs(orders)),
        "7": ("Bundle: Status", lambda: menus.menu_bundle_status(settings)),
        "0": ("Exit", lambda: sys.exit(0)),
    }
    while True:
        print("\n══════════════════════════════════════════════════════════════")
        print(" 📦 Jito Bundle Console")
        print("══════════════════════════════════════════════════════════════")
        for k in sorted(actions.keys(), key=lambda x: int(x) if x.isdigit() else 999):
            print(f" {k}. {actions[k][0]}")
        choice = input("\n→ Select: ").strip()
        action = actions.get(choice)
        if not action:
            panel("Invalid", f"Unknown choice: {choice}")
            continue
        try:
            action[1]()
        except SystemExit:
            raise
        except Exception as exc:  # pragma: no cover - runtime feedback
            panel("💥 Exception", f"{type(exc).__name__}: {exc}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    settings = load_settings()
    orders = LimitOrderService()
    menus.show_config(settings, orders)
    _menu(settings, orders)


if __name__ == "__main__":
    main()
