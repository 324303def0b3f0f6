"""
Profit Export Schemas
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import date
from decimal import Decimal
from uuid import UUID

from .common import Money, Percent


class OrderExportMetadata(BaseModel):
    """Display fields for one order, supplied next to its breakdown"""
    order_date: date
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    product_name: Optional[str] = None
    quantity: int = 1
    selling_price: Money = Decimal("0")
    discount: Money = Decimal("0")
    status: str
    assigned_to: str = "Unassigned"


class OrderExportRow(BaseModel):
    order_id: UUID
    order_date: date
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    product_name: Optional[str] = None
    quantity: int
    selling_price: Money
    discount: Money
    revenue: Money
    product_cost: Money
    lead_cost: Money
    packaging_cost: Money
    printing_cost: Money
    return_cost: Money
    total_costs: Money
    gross_profit: Money
    net_profit: Money
    profit_margin: Percent
    status: str
    assigned_to: str
    is_return: bool


class ExportSummary(BaseModel):
    total_orders: int = 0
    total_revenue: Money = Decimal("0")
    total_costs: Money = Decimal("0")
    net_profit: Money = Decimal("0")
    profit_margin: Percent = Decimal("0")
    return_count: int = 0
    product_costs: Money = Decimal("0")
    lead_costs: Money = Decimal("0")
    packaging_costs: Money = Decimal("0")
    printing_costs: Money = Decimal("0")
    return_costs: Money = Decimal("0")


class ProfitExport(BaseModel):
    filename: str
    format: str
    has_data: bool
    rows: List[OrderExportRow] = []
    summary: ExportSummary
    sheets: Optional[Dict[str, List[List[Any]]]] = None
