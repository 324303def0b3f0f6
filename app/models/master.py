"""
Master Tables: Tenant, AppUser
"""
from sqlalchemy import Column, String, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.core import Base
from .base import UUIDMixin, TimestampMixin

class Tenant(Base, UUIDMixin, TimestampMixin):
    """Tenant/Organization - all business data is isolated per tenant"""
    __tablename__ = "tenant"
    
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    currency_code = Column(String(3), default="USD")
    
    # Relationships
    users = relationship("AppUser", back_populates="tenant")
    orders = relationship("Order", back_populates="tenant")
    cost_config = relationship("TenantCostConfig", back_populates="tenant", uselist=False)

class AppUser(Base, UUIDMixin, TimestampMixin):
    """Application User (order creator, lead assignee, batch importer)"""
    __tablename__ = "app_user"
    
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenant.id"), nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False)
    full_name = Column(String(200))
    role = Column(String(20), default="SELLER")  # ADMIN, SELLER, TEAM_MEMBER
    is_active = Column(Boolean, default=True)
    
    # Relationships
    tenant = relationship("Tenant", back_populates="users")
    assigned_leads = relationship("Lead", back_populates="assignee")
    orders = relationship("Order", back_populates="user")
