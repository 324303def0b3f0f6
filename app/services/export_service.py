"""
Profit Export Service

Flattens per-order breakdowns into the export column set and renders them as
CSV text or as a sheet model for a spreadsheet writer.
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from uuid import UUID
import csv
import io
import logging

from sqlalchemy.orm import Session

from app.core import settings
from app.core.exceptions import ReportParameterError
from app.models import Order
from app.schemas.common import round_money, to_decimal
from app.schemas.export import ExportSummary, OrderExportMetadata, OrderExportRow, ProfitExport
from app.schemas.profit import PeriodProfitFilter, ProfitBreakdown
from .period_report_service import PeriodReportService, ProfitAccumulator

logger = logging.getLogger(__name__)

NO_DATA = "No data available"
EXPORT_FORMATS = ("csv", "excel")
UNASSIGNED = "Unassigned"

# (row key, header, spreadsheet column width, value type)
EXPORT_COLUMNS: List[Tuple[str, str, int, str]] = [
    ("order_id", "Order ID", 38, "text"),
    ("order_date", "Order Date", 12, "date"),
    ("customer_name", "Customer Name", 20, "text"),
    ("customer_phone", "Customer Phone", 15, "text"),
    ("product_name", "Product Name", 25, "text"),
    ("quantity", "Quantity", 10, "int"),
    ("selling_price", "Selling Price", 14, "money"),
    ("discount", "Discount", 12, "money"),
    ("revenue", "Revenue", 14, "money"),
    ("product_cost", "Product Cost", 14, "money"),
    ("lead_cost", "Lead Cost", 12, "money"),
    ("packaging_cost", "Packaging Cost", 14, "money"),
    ("printing_cost", "Printing Cost", 14, "money"),
    ("return_cost", "Return Cost", 12, "money"),
    ("total_costs", "Total Costs", 14, "money"),
    ("gross_profit", "Gross Profit", 14, "money"),
    ("net_profit", "Net Profit", 14, "money"),
    ("profit_margin", "Profit Margin (%)", 16, "percent"),
    ("status", "Status", 12, "text"),
    ("assigned_to", "Assigned To", 20, "text"),
    ("is_return", "Is Return", 10, "bool"),
]

EXPORT_HEADERS = [header for _, header, _, _ in EXPORT_COLUMNS]


# ===================== ROWS =====================

def metadata_from_order(order: Order) -> OrderExportMetadata:
    """Display fields of a loaded order"""
    assignee = None
    if order.lead is not None and order.lead.assignee is not None:
        assignee = order.lead.assignee.full_name or order.lead.assignee.username
    elif order.user is not None:
        assignee = order.user.full_name or order.user.username

    created = order.created_at or datetime.now()
    return OrderExportMetadata(
        order_date=created.date() if isinstance(created, datetime) else created,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        product_name=order.product.name if order.product is not None else None,
        quantity=order.quantity or 0,
        selling_price=to_decimal(order.unit_price),
        discount=to_decimal(order.discount),
        status=order.status,
        assigned_to=assignee or UNASSIGNED,
    )


def build_export_rows(
    breakdowns: Sequence[ProfitBreakdown],
    order_metadata: Mapping[Any, OrderExportMetadata],
) -> List[OrderExportRow]:
    """
    One row per breakdown, in input order.

    Breakdowns without metadata are skipped with a warning.
    """
    rows = []
    for breakdown in breakdowns:
        meta = order_metadata.get(breakdown.order_id)
        if meta is None:
            meta = order_metadata.get(str(breakdown.order_id))
        if meta is None:
            logger.warning(f"No display data for order {breakdown.order_id}, left out of export")
            continue

        costs = breakdown.costs
        rows.append(OrderExportRow(
            order_id=breakdown.order_id,
            order_date=meta.order_date,
            customer_name=meta.customer_name,
            customer_phone=meta.customer_phone,
            product_name=meta.product_name,
            quantity=meta.quantity,
            selling_price=meta.selling_price,
            discount=meta.discount,
            revenue=breakdown.revenue,
            product_cost=costs.product,
            lead_cost=costs.lead,
            packaging_cost=costs.packaging,
            printing_cost=costs.printing,
            return_cost=costs.return_,
            total_costs=costs.total,
            gross_profit=breakdown.gross_profit,
            net_profit=breakdown.net_profit,
            profit_margin=breakdown.profit_margin,
            status=meta.status,
            assigned_to=meta.assigned_to or UNASSIGNED,
            is_return=breakdown.is_return,
        ))
    return rows


def build_export_summary(breakdowns: Iterable[ProfitBreakdown]) -> ExportSummary:
    """Totals over the exported breakdowns, folded the same way as period reports"""
    totals = ProfitAccumulator()
    for breakdown in breakdowns:
        totals.add(breakdown)

    return ExportSummary(
        total_orders=totals.order_count,
        total_revenue=totals.revenue,
        total_costs=totals.costs,
        net_profit=totals.net_profit,
        profit_margin=totals.profit_margin,
        return_count=totals.return_count,
        product_costs=totals.product_costs,
        lead_costs=totals.lead_costs,
        packaging_costs=totals.packaging_costs,
        printing_costs=totals.printing_costs,
        return_costs=totals.return_costs,
    )


def build_export(
    breakdowns: Sequence[ProfitBreakdown],
    order_metadata: Mapping[Any, OrderExportMetadata],
) -> Tuple[List[OrderExportRow], ExportSummary]:
    """Rows plus a summary over exactly the breakdowns that made it into a row"""
    rows = build_export_rows(breakdowns, order_metadata)
    exported = {row.order_id for row in rows}
    summary = build_export_summary(b for b in breakdowns if b.order_id in exported)
    return rows, summary


# ===================== RENDERING =====================

def format_cell(value: Any, kind: str) -> str:
    if kind in ("money", "percent"):
        return f"{round_money(value):.2f}"
    if kind == "bool":
        return "Yes" if value else "No"
    if kind == "date":
        return value.isoformat() if isinstance(value, (date, datetime)) else str(value)
    if value is None:
        return ""
    return str(value)


def _row_values(row: OrderExportRow) -> List[str]:
    return [format_cell(getattr(row, key), kind) for key, _, _, kind in EXPORT_COLUMNS]


def summary_rows(summary: ExportSummary) -> List[List[str]]:
    return [
        ["Metric", "Value"],
        ["Total Orders", str(summary.total_orders)],
        ["Total Revenue", format_cell(summary.total_revenue, "money")],
        ["Total Costs", format_cell(summary.total_costs, "money")],
        ["Net Profit", format_cell(summary.net_profit, "money")],
        ["Profit Margin (%)", format_cell(summary.profit_margin, "percent")],
        ["Return Count", str(summary.return_count)],
        ["Product Costs", format_cell(summary.product_costs, "money")],
        ["Lead Costs", format_cell(summary.lead_costs, "money")],
        ["Packaging Costs", format_cell(summary.packaging_costs, "money")],
        ["Printing Costs", format_cell(summary.printing_costs, "money")],
        ["Return Costs", format_cell(summary.return_costs, "money")],
    ]


def render_csv(rows: Sequence[OrderExportRow]) -> str:
    """CSV text with a UTF-8 BOM so spreadsheet apps pick the right encoding"""
    output = io.StringIO()
    writer = csv.writer(output)

    if not rows:
        writer.writerow([NO_DATA])
    else:
        writer.writerow(EXPORT_HEADERS)
        for row in rows:
            writer.writerow(_row_values(row))

    bom = '\ufeff'
    return bom + output.getvalue()


def build_sheets(rows: Sequence[OrderExportRow], summary: ExportSummary) -> Dict[str, List[List[Any]]]:
    """Sheet name -> rows, consumed by a binary spreadsheet writer"""
    if not rows:
        return {
            "Profit Data": [[NO_DATA]],
            "Summary": [[NO_DATA]],
        }
    return {
        "Profit Data": [EXPORT_HEADERS] + [_row_values(row) for row in rows],
        "Summary": summary_rows(summary),
    }


def column_widths() -> Dict[str, int]:
    return {header: width for _, header, width, _ in EXPORT_COLUMNS}


# ===================== PARAMETERS =====================

def validate_export_params(
    start_date: Union[date, datetime, None],
    end_date: Union[date, datetime, None],
    export_format: str = "csv",
    max_range_days: Optional[int] = None,
) -> str:
    """Check format and date range; returns the normalized format"""
    fmt = (export_format or "csv").lower()
    if fmt not in EXPORT_FORMATS:
        raise ReportParameterError(
            f"Invalid format '{export_format}'. Must be one of: {', '.join(EXPORT_FORMATS)}",
            "format",
        )

    if start_date is not None and end_date is not None:
        start = start_date.date() if isinstance(start_date, datetime) else start_date
        end = end_date.date() if isinstance(end_date, datetime) else end_date
        if start > end:
            raise ReportParameterError("Start date must be before end date.", "start_date")

        max_days = max_range_days if max_range_days is not None else settings.EXPORT_MAX_RANGE_DAYS
        if (end - start).days > max_days:
            raise ReportParameterError(f"Date range cannot exceed {max_days} days.", "end_date")

    return fmt


def generate_filename(start: Union[date, datetime], end: Union[date, datetime]) -> str:
    start = start.date() if isinstance(start, datetime) else start
    end = end.date() if isinstance(end, datetime) else end
    return f"profit-report-{start.isoformat()}-to-{end.isoformat()}"


# ===================== SERVICE =====================

class ProfitExportService:
    """Exports the orders of a period report, newest first"""

    def __init__(self, db: Session, reports: Optional[PeriodReportService] = None):
        self.db = db
        self.reports = reports or PeriodReportService(db)

    def export(
        self,
        params: Union[PeriodProfitFilter, Mapping[str, Any]],
        tenant_id: UUID,
        export_format: str = "csv",
    ) -> ProfitExport:
        params = self.reports.parse_filter(params)
        fmt = validate_export_params(params.start_date, params.end_date, export_format)
        start, end = self.reports.resolve_window(params)

        breakdowns: List[ProfitBreakdown] = []
        metadata: Dict[UUID, OrderExportMetadata] = {}
        for order, breakdown in self.reports.iter_breakdowns(
            params, tenant_id, newest_first=True, window=(start, end)
        ):
            breakdowns.append(breakdown)
            metadata[order.id] = metadata_from_order(order)

        rows, summary = build_export(breakdowns, metadata)

        logger.info(f"Profit export for tenant {tenant_id} ({fmt}): {len(rows)} rows")

        return ProfitExport(
            filename=generate_filename(start, end),
            format=fmt,
            has_data=bool(rows),
            rows=rows,
            summary=summary,
            sheets=build_sheets(rows, summary) if fmt == "excel" else None,
        )
