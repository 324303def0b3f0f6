# Pydantic Schemas Package
from .common import Money, Percent, round_money, to_decimal
from .order import OrderCreate, StatusChangeRequest
from .cost import (
    DefaultCosts, TenantCostConfigResponse, OrderCostUpdate,
    LeadBatchCreate, LeadBatchUpdate, LeadBatchResponse,
)
from .profit import (
    CostBreakdown, ProfitBreakdown, PeriodProfitFilter, ReportPeriod,
    ProfitSummary, CostCategoryTotals, ProfitTrend, PeriodProfitReport, ProfitDashboardSummary,
)
from .export import OrderExportMetadata, OrderExportRow, ExportSummary, ProfitExport

__all__ = [
    "Money", "Percent", "round_money", "to_decimal",
    "OrderCreate", "StatusChangeRequest",
    "DefaultCosts", "TenantCostConfigResponse", "OrderCostUpdate",
    "LeadBatchCreate", "LeadBatchUpdate", "LeadBatchResponse",
    "CostBreakdown", "ProfitBreakdown", "PeriodProfitFilter", "ReportPeriod",
    "ProfitSummary", "CostCategoryTotals", "ProfitTrend", "PeriodProfitReport", "ProfitDashboardSummary",
    "OrderExportMetadata", "OrderExportRow", "ExportSummary", "ProfitExport",
]
