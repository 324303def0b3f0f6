"""
Lead & Lead Batch Models
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.core import Base
from .base import UUIDMixin, TimestampMixin, TenantMixin

class LeadBatch(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Imported group of leads sharing one acquisition cost"""
    __tablename__ = "lead_batch"
    
    total_cost = Column(Numeric(18, 8), default=0, nullable=False)
    lead_count = Column(Integer, nullable=False)
    # Stored once at import so later lead changes never rewrite historical cost
    cost_per_lead = Column(Numeric(18, 8), default=0, nullable=False)
    imported_by = Column(UUID(as_uuid=True), ForeignKey("app_user.id"))
    
    # Relationships
    leads = relationship("Lead", back_populates="batch")
    importer = relationship("AppUser", foreign_keys=[imported_by])

class Lead(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Lead / prospective customer"""
    __tablename__ = "lead"
    
    # Weak reference: the batch is only used for cost lookup
    batch_id = Column(UUID(as_uuid=True), ForeignKey("lead_batch.id", ondelete="SET NULL"), index=True)
    assigned_to = Column(UUID(as_uuid=True), ForeignKey("app_user.id"), index=True)
    
    name = Column(String(200))
    phone = Column(String(30))
    status = Column(String(20), default="PENDING")  # PENDING, ASSIGNED, CONFIRMED, CANCELLED
    notes = Column(Text)
    
    # Relationships
    batch = relationship("LeadBatch", back_populates="leads")
    assignee = relationship("AppUser", back_populates="assigned_leads")
    orders = relationship("Order", back_populates="lead")
