"""
Lead Batch API
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from uuid import UUID

from app.schemas.cost import LeadBatchCreate, LeadBatchResponse, LeadBatchUpdate
from app.services import LeadBatchService
from app.api.deps import get_lead_batch_service, get_tenant_id, get_user_id

router = APIRouter(prefix="/leads", tags=["Lead Batches"])


@router.get("/batch", response_model=List[LeadBatchResponse])
def list_lead_batches(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    tenant_id: UUID = Depends(get_tenant_id),
    service: LeadBatchService = Depends(get_lead_batch_service)
):
    return service.list_lead_batches(tenant_id, limit=limit, offset=offset)


@router.post("/batch", response_model=LeadBatchResponse, status_code=201)
def create_lead_batch(
    data: LeadBatchCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    user_id: Optional[UUID] = Depends(get_user_id),
    service: LeadBatchService = Depends(get_lead_batch_service)
):
    return service.create_lead_batch(tenant_id, data.total_cost, data.lead_ids, imported_by=user_id)


@router.get("/batch/{batch_id}", response_model=LeadBatchResponse)
def get_lead_batch(
    batch_id: UUID,
    tenant_id: UUID = Depends(get_tenant_id),
    service: LeadBatchService = Depends(get_lead_batch_service)
):
    return service.get_lead_batch(batch_id, tenant_id)


@router.patch("/batch/{batch_id}", response_model=LeadBatchResponse)
def update_lead_batch(
    batch_id: UUID,
    data: LeadBatchUpdate,
    tenant_id: UUID = Depends(get_tenant_id),
    service: LeadBatchService = Depends(get_lead_batch_service)
):
    return service.update_lead_batch_cost(batch_id, tenant_id, data.total_cost)
