"""
Order Schemas
"""
from pydantic import BaseModel, Field
from typing import Any, Optional
from decimal import Decimal
from uuid import UUID

from app.models.order import OrderStatus

class OrderCreate(BaseModel):
    product_id: UUID
    lead_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    
    quantity: int = Field(1, ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0)  # Defaults to product price
    discount: Decimal = Field(Decimal("0"), ge=0)

class StatusChangeRequest(BaseModel):
    status: OrderStatus
    # Raw value, validated by the cost rules so every bad field is reported together
    return_cost: Optional[Any] = None
