"""
Order Profit API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
from uuid import UUID

from app.core import get_db
from app.schemas.order import OrderCreate, StatusChangeRequest
from app.schemas.profit import ProfitBreakdown
from app.services import OrderService, ProfitCalculationService, RecalculationTrigger
from app.api.deps import get_calculator, get_tenant_id, get_trigger, get_user_id

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("")
def list_orders(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    tenant_id: UUID = Depends(get_tenant_id),
    db: Session = Depends(get_db)
):
    orders, total = OrderService.get_orders(db, tenant_id, status, page, per_page)
    return {
        "orders": [
            {
                "id": str(o.id),
                "status": o.status,
                "customer_name": o.customer_name,
                "quantity": o.quantity,
                "total": float(o.total or 0),
                "created_at": o.created_at.isoformat() if o.created_at else None,
            }
            for o in orders
        ],
        "total": total,
        "page": page,
        "per_page": per_page
    }


@router.post("", status_code=201)
def create_order(
    data: OrderCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    user_id: Optional[UUID] = Depends(get_user_id),
    db: Session = Depends(get_db)
):
    order = OrderService.create_order(db, data, tenant_id, created_by=user_id)
    return {"id": str(order.id), "status": order.status, "total": float(order.total or 0)}


@router.get("/{order_id}/profit", response_model=ProfitBreakdown)
def get_order_profit(
    order_id: UUID,
    tenant_id: UUID = Depends(get_tenant_id),
    calculator: ProfitCalculationService = Depends(get_calculator)
):
    return calculator.calculate_order_profit(order_id, tenant_id)


@router.patch("/{order_id}/costs", response_model=ProfitBreakdown)
def update_order_costs(
    order_id: UUID,
    data: Dict[str, Any],
    tenant_id: UUID = Depends(get_tenant_id),
    user_id: Optional[UUID] = Depends(get_user_id),
    calculator: ProfitCalculationService = Depends(get_calculator)
):
    """Manual packaging/printing/return cost edit; every invalid field is reported"""
    return calculator.update_order_costs_manually(order_id, tenant_id, data, performed_by=user_id)


@router.post("/{order_id}/status", response_model=ProfitBreakdown)
def change_order_status(
    order_id: UUID,
    data: StatusChangeRequest,
    tenant_id: UUID = Depends(get_tenant_id),
    user_id: Optional[UUID] = Depends(get_user_id),
    trigger: RecalculationTrigger = Depends(get_trigger)
):
    return trigger.change_status(
        order_id,
        tenant_id,
        data.status,
        return_cost=data.return_cost,
        performed_by=user_id,
    )
