"""
Profit Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.models.order import OrderStatus
from .common import Money, Percent


class CostBreakdown(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product: Money = Decimal("0")
    lead: Money = Decimal("0")
    packaging: Money = Decimal("0")
    printing: Money = Decimal("0")
    return_: Money = Field(Decimal("0"), alias="return")
    total: Money = Decimal("0")


class ProfitBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    revenue: Money
    costs: CostBreakdown
    gross_profit: Money
    net_profit: Money
    profit_margin: Percent
    is_return: bool = False


class PeriodProfitFilter(BaseModel):
    start_date: Optional[Union[datetime, date]] = None
    end_date: Optional[Union[datetime, date]] = None
    period: str = "monthly"  # daily, weekly, monthly, custom
    product_id: Optional[UUID] = None
    user_id: Optional[UUID] = None  # lead assignee
    status: Optional[OrderStatus] = None


class ReportPeriod(BaseModel):
    start: datetime
    end: datetime


class ProfitSummary(BaseModel):
    total_revenue: Money = Decimal("0")
    total_costs: Money = Decimal("0")
    net_profit: Money = Decimal("0")
    profit_margin: Percent = Decimal("0")
    order_count: int = 0
    return_count: int = 0


class CostCategoryTotals(BaseModel):
    product_costs: Money = Decimal("0")
    lead_costs: Money = Decimal("0")
    packaging_costs: Money = Decimal("0")
    printing_costs: Money = Decimal("0")
    return_costs: Money = Decimal("0")


class ProfitTrend(BaseModel):
    date: str
    revenue: Money
    costs: Money
    profit: Money
    order_count: int


class PeriodProfitReport(BaseModel):
    period: ReportPeriod
    summary: ProfitSummary
    breakdown: CostCategoryTotals
    trends: List[ProfitTrend] = []


class ProfitDashboardSummary(BaseModel):
    """Headline numbers for a rolling window, compared with the window before it"""
    period: str
    window: ReportPeriod
    total_profit: Money = Decimal("0")
    profit_margin: Percent = Decimal("0")
    profitable_orders: int = 0
    low_margin_orders: int = 0
    loss_orders: int = 0
    total_orders: int = 0
    avg_profit_per_order: Money = Decimal("0")
    profit_trend: str = "stable"  # up, down, stable
    profit_trend_percentage: Percent = Decimal("0")
