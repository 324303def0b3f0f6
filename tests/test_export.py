import csv
import io
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.exceptions import ReportParameterError
from app.models import OrderStatus
from app.schemas.export import OrderExportMetadata
from app.services import ProfitExportService
from app.services.export_service import (
    EXPORT_COLUMNS, EXPORT_HEADERS, NO_DATA, build_export, build_export_rows, build_export_summary,
    build_sheets, generate_filename, render_csv, validate_export_params,
)
from app.services.profit_service import ResolvedCosts, calculate_profit


def _breakdown(revenue="100", product="40", return_="0", is_return=False):
    costs = ResolvedCosts(
        product=Decimal(product),
        lead=Decimal("8"),
        packaging=Decimal("5"),
        printing=Decimal("3"),
        return_=Decimal(return_),
    )
    return calculate_profit(uuid4(), Decimal(revenue), costs, is_return=is_return)


def _meta(**kwargs):
    data = {"order_date": date(2026, 9, 1), "status": "DELIVERED", "product_name": "Face Cream", "quantity": 1}
    data.update(kwargs)
    return OrderExportMetadata(**data)


def test_column_set_and_order():
    assert len(EXPORT_COLUMNS) == 21
    assert [key for key, _, _, _ in EXPORT_COLUMNS] == [
        "order_id", "order_date", "customer_name", "customer_phone", "product_name",
        "quantity", "selling_price", "discount", "revenue", "product_cost", "lead_cost",
        "packaging_cost", "printing_cost", "return_cost", "total_costs", "gross_profit",
        "net_profit", "profit_margin", "status", "assigned_to", "is_return",
    ]


def test_empty_input_gives_no_data_sentinel():
    assert render_csv([]) == "\ufeff" + NO_DATA + "\r\n"

    sheets = build_sheets([], build_export_summary([]))
    assert sheets == {"Profit Data": [[NO_DATA]], "Summary": [[NO_DATA]]}


def test_rows_keep_input_order():
    breakdowns = [_breakdown(revenue="100"), _breakdown(revenue="50"), _breakdown(revenue="75")]
    metadata = {b.order_id: _meta() for b in breakdowns}

    rows = build_export_rows(breakdowns, metadata)

    assert [row.order_id for row in rows] == [b.order_id for b in breakdowns]
    assert rows[0].net_profit == Decimal("44")
    assert rows[0].assigned_to == "Unassigned"


def test_rows_without_metadata_are_left_out():
    breakdowns = [_breakdown(), _breakdown()]
    rows = build_export_rows(breakdowns, {breakdowns[1].order_id: _meta()})

    assert [row.order_id for row in rows] == [breakdowns[1].order_id]


def test_summary_only_counts_exported_rows():
    breakdowns = [_breakdown(revenue="100"), _breakdown(revenue="50")]

    rows, summary = build_export(breakdowns, {breakdowns[1].order_id: _meta()})

    assert len(rows) == 1
    assert summary.total_orders == 1
    assert summary.total_revenue == Decimal("50")
    assert summary.net_profit == rows[0].net_profit


def test_csv_formatting():
    breakdown = _breakdown(revenue="100", return_="20", is_return=True)
    rows = build_export_rows([breakdown], {breakdown.order_id: _meta(status="RETURNED", assigned_to="Sam")})

    text = render_csv(rows)
    assert text.startswith("\ufeff")

    lines = list(csv.reader(io.StringIO(text.lstrip("\ufeff"))))
    assert lines[0] == EXPORT_HEADERS
    record = dict(zip(EXPORT_HEADERS, lines[1]))
    assert record["Revenue"] == "100.00"
    assert record["Net Profit"] == "24.00"
    assert record["Profit Margin (%)"] == "24.00"
    assert record["Is Return"] == "Yes"
    assert record["Assigned To"] == "Sam"
    assert record["Order Date"] == "2026-09-01"


def test_summary_reuses_report_folding():
    breakdowns = [_breakdown(revenue="100"), _breakdown(revenue="50", return_="20", is_return=True)]

    summary = build_export_summary(breakdowns)

    assert summary.total_orders == 2
    assert summary.total_revenue == Decimal("150")
    assert summary.total_costs == Decimal("56") + Decimal("76")
    assert summary.net_profit == Decimal("18")
    assert summary.profit_margin == Decimal("12")
    assert summary.return_count == 1
    assert summary.return_costs == Decimal("20")

    sheets = build_sheets(build_export_rows(breakdowns, {b.order_id: _meta() for b in breakdowns}), summary)
    assert sheets["Profit Data"][0] == EXPORT_HEADERS
    assert len(sheets["Profit Data"]) == 3
    assert ["Net Profit", "18.00"] in sheets["Summary"]


@pytest.mark.parametrize("fmt, expected", [("csv", "csv"), ("CSV", "csv"), ("excel", "excel"), (None, "csv")])
def test_export_formats(fmt, expected):
    assert validate_export_params(date(2026, 1, 1), date(2026, 1, 31), fmt) == expected


def test_invalid_export_parameters():
    with pytest.raises(ReportParameterError) as exc_info:
        validate_export_params(date(2026, 1, 1), date(2026, 1, 31), "pdf")
    assert exc_info.value.field == "format"

    with pytest.raises(ReportParameterError):
        validate_export_params(date(2026, 2, 1), date(2026, 1, 1), "csv")

    with pytest.raises(ReportParameterError):
        validate_export_params(date(2025, 1, 1), date(2026, 6, 1), "csv", max_range_days=366)


def test_filename():
    assert generate_filename(datetime(2026, 9, 1), date(2026, 9, 30)) == "profit-report-2026-09-01-to-2026-09-30"


# ===================== AGAINST THE DATABASE =====================

def test_empty_export(db, tenant):
    export = ProfitExportService(db).export(
        {"period": "custom", "start_date": date(2026, 9, 1), "end_date": date(2026, 9, 30)}, tenant.id, "excel"
    )

    assert export.has_data is False
    assert export.rows == []
    assert export.sheets["Profit Data"] == [[NO_DATA]]
    assert export.filename == "profit-report-2026-09-01-to-2026-09-30"


def test_export_rows_newest_first(db, tenant, product, seller, make_lead, make_order):
    lead = make_lead(assignee=seller)
    older = make_order(total="100", created_at=datetime(2026, 9, 2, 10), lead=lead)
    newer = make_order(total="80", created_at=datetime(2026, 9, 20, 10), status=OrderStatus.DELIVERED.value)

    export = ProfitExportService(db).export(
        {"period": "custom", "start_date": date(2026, 9, 1), "end_date": date(2026, 9, 30)}, tenant.id, "csv"
    )

    assert export.has_data is True
    assert export.sheets is None
    assert [row.order_id for row in export.rows] == [newer.id, older.id]
    assert export.rows[1].assigned_to == "Sam Seller"
    assert export.rows[1].product_name == "Face Cream"
    assert export.summary.total_orders == 2
    assert export.summary.total_revenue == Decimal("180")
