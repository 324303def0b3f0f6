from .base import TimestampMixin, UUIDMixin, TenantMixin
from .master import Tenant, AppUser
from .product import Product
from .lead import Lead, LeadBatch
from .order import Order, OrderStatus
from .cost import TenantCostConfig, OrderCost
from .audit import AuditLog

__all__ = [
    # Base
    "TimestampMixin", "UUIDMixin", "TenantMixin",
    # Master
    "Tenant", "AppUser",
    # Product
    "Product",
    # Lead
    "Lead", "LeadBatch",
    # Order
    "Order", "OrderStatus",
    # Cost
    "TenantCostConfig", "OrderCost",
    # Audit
    "AuditLog",
]
