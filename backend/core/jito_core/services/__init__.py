"""Service layer for bundle submission."""

from .bundle_service import BundleService
from .server_order_service import ServerOrderResult, ServerOrderService

__all__ = ["BundleService", "ServerOrderResult", "ServerOrderService"]
