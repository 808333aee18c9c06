"""Jito Core.

Assembles caller-signed transactions with a fee transfer and a relay tip
into an ordered bundle and submits it to a Jito block engine, keeping the
order transaction out of the public mempool.

Run the operator console with ``python -m backend.core.jito_core.console``.
"""

__all__ = ["config", "errors", "fees", "models", "transactions"]
