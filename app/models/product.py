"""
Product Model
"""
from sqlalchemy import Column, String, Numeric, Boolean, Integer, Text
from sqlalchemy.orm import relationship
from app.core import Base
from .base import UUIDMixin, TimestampMixin, TenantMixin

class Product(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Product Master"""
    __tablename__ = "product"
    
    code = Column(String(100), index=True)
    name = Column(String(300), nullable=False)
    description = Column(Text)
    price = Column(Numeric(12, 2), default=0, nullable=False)  # Selling price per unit
    cost_price = Column(Numeric(12, 2), default=0, nullable=False)  # Cost of goods per unit
    quantity = Column(Integer, default=0)  # Stock on hand
    is_active = Column(Boolean, default=True)
    
    # Relationships
    orders = relationship("Order", back_populates="product")
