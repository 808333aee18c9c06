"""Service layer for Jupiter helpers."""

from .limit_order_service import LimitOrderService

__all__ = ["LimitOrderService"]
