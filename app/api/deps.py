"""
Shared API dependencies: tenant scoping and per-request services
"""
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.core import get_db
from app.services import (
    CostConfigService, LeadBatchService, PeriodReportService,
    ProfitCalculationService, ProfitExportService, RecalculationTrigger,
)


def _parse_uuid(value: str, header: str) -> UUID:
    try:
        return UUID(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid {header} header")


def get_tenant_id(x_tenant_id: str = Header(..., alias="X-Tenant-ID")) -> UUID:
    return _parse_uuid(x_tenant_id, "X-Tenant-ID")


def get_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> Optional[UUID]:
    """Acting user for audit rows, when the caller sends one"""
    if not x_user_id:
        return None
    return _parse_uuid(x_user_id, "X-User-ID")


def get_calculator(db: Session = Depends(get_db)) -> ProfitCalculationService:
    return ProfitCalculationService(db)


def get_trigger(calculator: ProfitCalculationService = Depends(get_calculator)) -> RecalculationTrigger:
    return RecalculationTrigger(calculator.db, calculator=calculator)


def get_cost_config_service(db: Session = Depends(get_db)) -> CostConfigService:
    return CostConfigService(db)


def get_lead_batch_service(db: Session = Depends(get_db)) -> LeadBatchService:
    return LeadBatchService(db)


def get_report_service(calculator: ProfitCalculationService = Depends(get_calculator)) -> PeriodReportService:
    return PeriodReportService(calculator.db, calculator=calculator)


def get_export_service(reports: PeriodReportService = Depends(get_report_service)) -> ProfitExportService:
    return ProfitExportService(reports.db, reports=reports)
