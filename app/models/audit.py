"""
Audit Log Model
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.core import Base
from .base import UUIDMixin, TenantMixin

class AuditLog(Base, UUIDMixin, TenantMixin):
    """Audit Log for order status changes and manual cost edits"""
    __tablename__ = "audit_log"
    
    table_name = Column(String(100), nullable=False, index=True)
    record_id = Column(String(50), nullable=False, index=True)
    
    action = Column(String(20), nullable=False)  # STATUS_CHANGE, COST_UPDATE
    
    performed_by = Column(UUID(as_uuid=True), ForeignKey("app_user.id"))
    performed_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    
    # Before/After data
    before_data = Column(JSON)
    after_data = Column(JSON)
