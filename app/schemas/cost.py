"""
Cost Configuration & Lead Batch Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from .common import Money


class DefaultCosts(BaseModel):
    packaging_cost: Money = Decimal("0")
    printing_cost: Money = Decimal("0")
    return_cost: Money = Decimal("0")


class TenantCostConfigResponse(BaseModel):
    tenant_id: UUID
    default_packaging_cost: Money
    default_printing_cost: Money
    default_return_cost: Money
    is_configured: bool = True


class OrderCostUpdate(BaseModel):
    """Validated manual cost edit; omitted fields stay unchanged"""
    packaging_cost: Optional[Decimal] = None
    printing_cost: Optional[Decimal] = None
    return_cost: Optional[Decimal] = None


class LeadBatchCreate(BaseModel):
    total_cost: Any
    lead_ids: List[UUID] = Field(default_factory=list)


class LeadBatchUpdate(BaseModel):
    total_cost: Any


class LeadBatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    total_cost: Money
    lead_count: int
    cost_per_lead: Money
    imported_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
