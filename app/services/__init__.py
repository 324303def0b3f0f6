# Services Package
from .cost_validation import validate_costs
from .cost_config_service import CostConfigService
from .profit_service import ProfitCalculationService, calculate_profit
from .recalculation_service import RecalculationTrigger
from .lead_batch_service import LeadBatchService
from .period_report_service import PeriodReportService, resolve_date_range
from .export_service import ProfitExportService
from .order_service import OrderService

__all__ = [
    "validate_costs",
    "CostConfigService",
    "ProfitCalculationService",
    "calculate_profit",
    "RecalculationTrigger",
    "LeadBatchService",
    "PeriodReportService",
    "resolve_date_range",
    "ProfitExportService",
    "OrderService",
]
