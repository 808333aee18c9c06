"""Network clients used by the bundle service."""

from .block_engine_client import BlockEngineClient
from .ledger_client import LedgerClient

__all__ = ["BlockEngineClient", "LedgerClient"]
