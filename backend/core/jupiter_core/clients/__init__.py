"""Client wrappers for Jupiter APIs."""

from .jup_limit_client import JupLimitClient

__all__ = ["JupLimitClient"]
