"""
Cost Models: tenant cost defaults and per-order cost record
"""
from sqlalchemy import Column, Numeric, Integer, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core import Base
from .base import UUIDMixin, TimestampMixin

class TenantCostConfig(Base, UUIDMixin, TimestampMixin):
    """Default operational costs per tenant (created on first admin write)"""
    __tablename__ = "tenant_cost_config"
    
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenant.id"), unique=True, nullable=False)
    default_packaging_cost = Column(Numeric(18, 8), default=0, nullable=False)
    default_printing_cost = Column(Numeric(18, 8), default=0, nullable=False)
    default_return_cost = Column(Numeric(18, 8), default=0, nullable=False)
    
    # Relationships
    tenant = relationship("Tenant", back_populates="cost_config")

class OrderCost(Base):
    """Order Cost & Profit record (1:1 with order)"""
    __tablename__ = "order_cost"
    
    order_id = Column(UUID(as_uuid=True), ForeignKey("order_header.id"), primary_key=True)
    
    # Cost components
    product_cost = Column(Numeric(18, 8), default=0, nullable=False)
    lead_cost = Column(Numeric(18, 8), default=0, nullable=False)
    packaging_cost = Column(Numeric(18, 8), default=0, nullable=False)
    printing_cost = Column(Numeric(18, 8), default=0, nullable=False)
    return_cost = Column(Numeric(18, 8), default=0, nullable=False)
    
    # Derived snapshot, rewritten on every recalculation
    total_costs = Column(Numeric(18, 8), default=0, nullable=False)
    gross_profit = Column(Numeric(18, 8), default=0, nullable=False)
    net_profit = Column(Numeric(18, 8), default=0, nullable=False)
    profit_margin = Column(Numeric(18, 8), default=0, nullable=False)
    
    # Optimistic lock: concurrent conflicting writes raise StaleDataError
    version = Column(Integer, nullable=False)
    calculated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    # Relationships
    order = relationship("Order", back_populates="costs")
    
    __mapper_args__ = {"version_id_col": version}
