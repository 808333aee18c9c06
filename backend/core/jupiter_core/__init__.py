"""Jupiter Core.

Helpers for the Jupiter Limit Order v2 API: building order creation and
cancellation transactions, listing open orders and waiting for cancelled
orders to disappear.
"""

__all__ = ["config", "errors", "models"]
