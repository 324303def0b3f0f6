"""
Tenant Cost Configuration API
"""
from fastapi import APIRouter, Depends
from typing import Any, Dict
from uuid import UUID

from app.schemas.cost import TenantCostConfigResponse
from app.services import CostConfigService
from app.api.deps import get_cost_config_service, get_tenant_id

router = APIRouter(prefix="/tenant", tags=["Cost Configuration"])


@router.get("/cost-config", response_model=TenantCostConfigResponse)
def get_cost_config(
    tenant_id: UUID = Depends(get_tenant_id),
    service: CostConfigService = Depends(get_cost_config_service)
):
    return service.get_config_response(tenant_id)


@router.put("/cost-config", response_model=TenantCostConfigResponse)
def update_cost_config(
    data: Dict[str, Any],
    tenant_id: UUID = Depends(get_tenant_id),
    service: CostConfigService = Depends(get_cost_config_service)
):
    """Partial update; omitted defaults keep their value"""
    return service.update_tenant_cost_config(tenant_id, data)
