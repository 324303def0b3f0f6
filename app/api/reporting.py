from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from datetime import date
from typing import Optional
from uuid import UUID
import urllib.parse

from app.schemas.profit import PeriodProfitReport, ProfitDashboardSummary
from app.services import PeriodReportService, ProfitExportService
from app.services.export_service import render_csv
from app.api.deps import get_export_service, get_report_service, get_tenant_id

router = APIRouter(prefix="/reports", tags=["Reporting"])


def _filter_params(period, start_date, end_date, product_id, user_id, status) -> dict:
    return {
        "period": period,
        "start_date": start_date,
        "end_date": end_date,
        "product_id": product_id,
        "user_id": user_id,
        "status": status,
    }


@router.get("/profit", response_model=PeriodProfitReport)
def get_profit_report(
    period: str = Query("monthly", description="daily, weekly, monthly or custom"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    product_id: Optional[UUID] = None,
    user_id: Optional[UUID] = Query(None, description="Lead assignee"),
    status: Optional[str] = None,
    tenant_id: UUID = Depends(get_tenant_id),
    service: PeriodReportService = Depends(get_report_service)
):
    """
    Profit summary, cost breakdown and trend series for a period.

    Trend buckets follow the period: per day, per week (keyed by Monday) or
    per month for monthly and custom ranges.
    """
    params = _filter_params(period, start_date, end_date, product_id, user_id, status)
    return service.calculate_period_profit(params, tenant_id)


@router.get("/profit/summary", response_model=ProfitDashboardSummary)
def get_profit_summary(
    period: str = Query("daily", description="daily, weekly or monthly rolling window"),
    tenant_id: UUID = Depends(get_tenant_id),
    service: PeriodReportService = Depends(get_report_service)
):
    """Profit headline with order counts and the trend against the previous window"""
    return service.summarize_profit(period, tenant_id)


@router.get("/profit/export")
def export_profit_report(
    format: str = Query("csv", description="csv or excel"),
    period: str = Query("custom"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    product_id: Optional[UUID] = None,
    user_id: Optional[UUID] = None,
    status: Optional[str] = None,
    tenant_id: UUID = Depends(get_tenant_id),
    service: ProfitExportService = Depends(get_export_service)
):
    """
    Export per-order profit rows, newest first.

    csv returns a download; excel returns the sheet model as JSON for the
    spreadsheet writer.
    """
    params = _filter_params(period, start_date, end_date, product_id, user_id, status)
    export = service.export(params, tenant_id, format)

    if export.format == "excel":
        return export.model_dump(mode="json", by_alias=True)

    response = StreamingResponse(
        iter([render_csv(export.rows)]),
        media_type="text/csv; charset=utf-8"
    )

    encoded_filename = urllib.parse.quote(f"{export.filename}.csv")
    response.headers["Content-Disposition"] = f"attachment; filename*=UTF-8''{encoded_filename}"
    return response
