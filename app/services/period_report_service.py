"""
Period Profit Report Service

Folds per-order breakdowns over a date range into a summary, per-category
cost totals and a trend series bucketed by day, ISO week (Monday) or month.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core import settings
from app.core.exceptions import ProfitCalculationError, ReportParameterError
from app.models import Lead, Order
from app.schemas.profit import (
    CostCategoryTotals, PeriodProfitFilter, PeriodProfitReport, ProfitBreakdown,
    ProfitDashboardSummary, ProfitSummary, ProfitTrend, ReportPeriod,
)
from .profit_service import ProfitCalculationService, profit_margin

logger = logging.getLogger(__name__)

PERIODS = ("daily", "weekly", "monthly", "custom")
DEFAULT_PERIOD = "monthly"

# Rolling windows for the dashboard summary, ending now
SUMMARY_WINDOWS = {
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
}
LOW_MARGIN_THRESHOLD = Decimal("10")
TREND_THRESHOLD = Decimal("5")

DateLike = Union[date, datetime]


# ===================== DATE WINDOWS =====================

def _start_of(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _end_of(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def local_now() -> datetime:
    """Current wall-clock time in the configured zone, as a naive datetime"""
    try:
        tz = ZoneInfo(settings.TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo("UTC")
    return datetime.now(tz).replace(tzinfo=None)


def resolve_date_range(
    period: Optional[str],
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Report window for a period.

    daily -> today, weekly -> since Monday, monthly -> since the 1st.
    custom uses the given dates and falls back to the monthly window when
    either is missing. The window always ends at the end of today unless
    custom dates are used.
    """
    period = period or DEFAULT_PERIOD
    if period not in PERIODS:
        raise ReportParameterError(f"Invalid period '{period}'. Must be one of: {', '.join(PERIODS)}", "period")

    if period == "custom" and start_date is not None and end_date is not None:
        start, end = _start_of(start_date), _end_of(end_date)
    else:
        now = now or local_now()
        today = now.date()
        end = datetime.combine(today, time.max)
        if period == "daily":
            start = datetime.combine(today, time.min)
        elif period == "weekly":
            start = datetime.combine(today - timedelta(days=today.weekday()), time.min)
        else:
            start = datetime.combine(today.replace(day=1), time.min)

    if start > end:
        raise ReportParameterError("Start date must be before end date.", "start_date")
    return start, end


def bucket_key(moment: DateLike, period: str) -> str:
    """Trend bucket key: ISO date (daily), Monday's ISO date (weekly), YYYY-MM otherwise"""
    day = moment.date() if isinstance(moment, datetime) else moment
    if period == "daily":
        return day.isoformat()
    if period == "weekly":
        return (day - timedelta(days=day.weekday())).isoformat()
    return f"{day.year}-{day.month:02d}"


def profit_trend(current: Decimal, previous: Decimal) -> Tuple[str, Decimal]:
    """
    Direction and size of the change from the previous window.

    Changes within 5% either way are stable. With nothing to compare against,
    any profit counts as up 100%.
    """
    if previous != 0:
        change = (current - previous) / abs(previous) * 100
        if change > TREND_THRESHOLD:
            return "up", abs(change)
        if change < -TREND_THRESHOLD:
            return "down", abs(change)
        return "stable", abs(change)
    if current > 0:
        return "up", Decimal("100")
    return "stable", Decimal("0")


# ===================== FOLDING =====================

class ProfitAccumulator:
    """Running sums over breakdowns; used for report summaries and export summaries"""

    def __init__(self):
        self.revenue = Decimal("0")
        self.costs = Decimal("0")
        self.net_profit = Decimal("0")
        self.order_count = 0
        self.return_count = 0
        self.profitable_count = 0
        self.low_margin_count = 0
        self.loss_count = 0
        self.product_costs = Decimal("0")
        self.lead_costs = Decimal("0")
        self.packaging_costs = Decimal("0")
        self.printing_costs = Decimal("0")
        self.return_costs = Decimal("0")

    def add(self, breakdown: ProfitBreakdown) -> None:
        costs = breakdown.costs
        self.revenue += breakdown.revenue
        self.costs += costs.total
        self.net_profit += breakdown.net_profit
        self.order_count += 1
        if breakdown.is_return:
            self.return_count += 1
        if breakdown.net_profit > 0:
            self.profitable_count += 1
        elif breakdown.net_profit < 0:
            self.loss_count += 1
        if 0 <= breakdown.profit_margin < LOW_MARGIN_THRESHOLD:
            self.low_margin_count += 1
        self.product_costs += costs.product
        self.lead_costs += costs.lead
        self.packaging_costs += costs.packaging
        self.printing_costs += costs.printing
        self.return_costs += costs.return_

    @property
    def profit_margin(self) -> Decimal:
        return profit_margin(self.net_profit, self.revenue)

    @property
    def avg_profit(self) -> Decimal:
        if self.order_count == 0:
            return Decimal("0")
        return self.net_profit / self.order_count

    def summary(self) -> ProfitSummary:
        return ProfitSummary(
            total_revenue=self.revenue,
            total_costs=self.costs,
            net_profit=self.net_profit,
            profit_margin=self.profit_margin,
            order_count=self.order_count,
            return_count=self.return_count,
        )

    def category_totals(self) -> CostCategoryTotals:
        return CostCategoryTotals(
            product_costs=self.product_costs,
            lead_costs=self.lead_costs,
            packaging_costs=self.packaging_costs,
            printing_costs=self.printing_costs,
            return_costs=self.return_costs,
        )


class TrendAccumulator:
    """Per-bucket sums, one entry per non-empty bucket"""

    def __init__(self, period: str):
        self.period = period
        self.buckets: Dict[str, Dict[str, Any]] = {}

    def add(self, moment: DateLike, breakdown: ProfitBreakdown) -> None:
        key = bucket_key(moment, self.period)
        bucket = self.buckets.get(key)
        if bucket is None:
            bucket = self.buckets[key] = {
                "revenue": Decimal("0"),
                "costs": Decimal("0"),
                "profit": Decimal("0"),
                "order_count": 0,
            }
        bucket["revenue"] += breakdown.revenue
        bucket["costs"] += breakdown.costs.total
        bucket["profit"] += breakdown.net_profit
        bucket["order_count"] += 1

    def trends(self):
        return [
            ProfitTrend(date=key, **self.buckets[key])
            for key in sorted(self.buckets)
        ]


# ===================== SERVICE =====================

class PeriodReportService:
    """Period profit reports for one database session"""

    BATCH_SIZE = 500

    def __init__(self, db: Session, calculator: Optional[ProfitCalculationService] = None):
        self.db = db
        self.calculator = calculator or ProfitCalculationService(db)

    @staticmethod
    def parse_filter(params: Union[PeriodProfitFilter, Mapping[str, Any]]) -> PeriodProfitFilter:
        if isinstance(params, PeriodProfitFilter):
            return params
        try:
            return PeriodProfitFilter(**params)
        except ValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise ReportParameterError(f"Invalid report parameter {field}: {first['msg']}", field)

    def resolve_window(self, params: PeriodProfitFilter) -> Tuple[datetime, datetime]:
        if params.start_date is not None and params.end_date is not None:
            start, end = _start_of(params.start_date), _end_of(params.end_date)
            if start > end:
                raise ReportParameterError("Start date must be before end date.", "start_date")
            if params.period not in PERIODS:
                raise ReportParameterError(f"Invalid period '{params.period}'", "period")
            return start, end
        return resolve_date_range(params.period, params.start_date, params.end_date)

    def _orders(self, params: PeriodProfitFilter, tenant_id: UUID, start: datetime, end: datetime, newest_first: bool):
        query = self.calculator.order_query(tenant_id).filter(
            Order.created_at >= start,
            Order.created_at <= end,
        )

        if params.product_id:
            query = query.filter(Order.product_id == params.product_id)

        if params.user_id:
            query = query.join(Lead, Order.lead_id == Lead.id).filter(Lead.assigned_to == params.user_id)

        if params.status:
            query = query.filter(Order.status == params.status.value)

        order_by = Order.created_at.desc() if newest_first else Order.created_at.asc()
        return query.order_by(order_by, Order.id).yield_per(self.BATCH_SIZE)

    def iter_breakdowns(
        self,
        params: Union[PeriodProfitFilter, Mapping[str, Any]],
        tenant_id: UUID,
        newest_first: bool = False,
        window: Optional[Tuple[datetime, datetime]] = None,
    ) -> Iterator[Tuple[Order, ProfitBreakdown]]:
        """
        Yield (order, breakdown) for every matching order.

        An order whose calculation fails is logged and skipped; other errors
        propagate.
        """
        params = self.parse_filter(params)
        start, end = window or self.resolve_window(params)
        defaults = self.calculator.cost_config.get_default_costs(tenant_id)

        for order in self._orders(params, tenant_id, start, end, newest_first):
            try:
                breakdown = self.calculator.breakdown_for_order(order, defaults)
            except ProfitCalculationError as e:
                logger.warning(f"Excluding order {order.id} from profit report: [{e.code}] {e.message}")
                continue
            yield order, breakdown

    def calculate_period_profit(
        self,
        params: Union[PeriodProfitFilter, Mapping[str, Any]],
        tenant_id: UUID,
    ) -> PeriodProfitReport:
        params = self.parse_filter(params)
        start, end = self.resolve_window(params)

        totals = ProfitAccumulator()
        trends = TrendAccumulator(params.period)

        for order, breakdown in self.iter_breakdowns(params, tenant_id, window=(start, end)):
            totals.add(breakdown)
            trends.add(order.created_at, breakdown)

        logger.info(
            f"Profit report for tenant {tenant_id} {start.date()}..{end.date()}: "
            f"{totals.order_count} orders, {len(trends.buckets)} {params.period} buckets"
        )

        return PeriodProfitReport(
            period=ReportPeriod(start=start, end=end),
            summary=totals.summary(),
            breakdown=totals.category_totals(),
            trends=trends.trends(),
        )

    def summarize_profit(
        self,
        period: Optional[str],
        tenant_id: UUID,
        now: Optional[datetime] = None,
    ) -> ProfitDashboardSummary:
        """
        Dashboard headline for the last day, 7 days or 30 days.

        The trend compares net profit with the window of the same length
        just before it.
        """
        period = period or "daily"
        span = SUMMARY_WINDOWS.get(period)
        if span is None:
            raise ReportParameterError(
                f"Invalid period '{period}'. Must be one of: {', '.join(SUMMARY_WINDOWS)}", "period"
            )

        end = now or local_now()
        start = end - span
        params = PeriodProfitFilter(period=period)

        current = ProfitAccumulator()
        for _, breakdown in self.iter_breakdowns(params, tenant_id, window=(start, end)):
            current.add(breakdown)

        previous = ProfitAccumulator()
        previous_window = (start - span, start - timedelta(microseconds=1))
        for _, breakdown in self.iter_breakdowns(params, tenant_id, window=previous_window):
            previous.add(breakdown)

        trend, trend_percentage = profit_trend(current.net_profit, previous.net_profit)

        logger.info(
            f"Profit summary for tenant {tenant_id} ({period}): {current.order_count} orders, "
            f"trend {trend} against {previous.order_count} earlier orders"
        )

        return ProfitDashboardSummary(
            period=period,
            window=ReportPeriod(start=start, end=end),
            total_profit=current.net_profit,
            profit_margin=current.profit_margin,
            profitable_orders=current.profitable_count,
            low_margin_orders=current.low_margin_count,
            loss_orders=current.loss_count,
            total_orders=current.order_count,
            avg_profit_per_order=current.avg_profit,
            profit_trend=trend,
            profit_trend_percentage=trend_percentage,
        )
