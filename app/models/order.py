"""
Order Model
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from app.core import Base
from .base import UUIDMixin, TimestampMixin, TenantMixin


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class Order(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Customer Order"""
    __tablename__ = "order_header"
    
    product_id = Column(UUID(as_uuid=True), ForeignKey("product.id"), nullable=False)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("lead.id"))
    user_id = Column(UUID(as_uuid=True), ForeignKey("app_user.id"))  # Creator / seller
    
    # Customer
    customer_name = Column(String(200))
    customer_phone = Column(String(30))
    customer_address = Column(String(500))
    
    # Status
    status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False, index=True)
    
    # Amounts: total = price x quantity - discount
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Numeric(12, 2), default=0)
    discount = Column(Numeric(12, 2), default=0)
    total = Column(Numeric(12, 2), default=0, nullable=False)
    
    # Relationships
    tenant = relationship("Tenant", back_populates="orders")
    product = relationship("Product", back_populates="orders")
    lead = relationship("Lead", back_populates="orders")
    user = relationship("AppUser", back_populates="orders")
    costs = relationship("OrderCost", back_populates="order", uselist=False, cascade="all, delete-orphan")
    
    __table_args__ = (
        Index("ix_order_tenant_created", "tenant_id", "created_at"),
    )
