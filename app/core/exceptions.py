"""
Profit Engine Errors

Every public service operation raises one of these. They carry structured
detail (field names, order id, code) so the HTTP layer can pick a status code.
"""
import math
from typing import Any, Dict, List, Optional


class ErrorCode:
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    LEAD_NOT_FOUND = "LEAD_NOT_FOUND"
    LEAD_BATCH_NOT_FOUND = "LEAD_BATCH_NOT_FOUND"
    CALCULATION_FAILED = "CALCULATION_FAILED"

    # Codes that only affect a single order inside a batch operation
    PER_ORDER = (ORDER_NOT_FOUND, PRODUCT_NOT_FOUND)


class ProfitEngineError(Exception):
    """Base class for profit engine errors"""
    code = "PROFIT_ENGINE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class CostValidationError(ProfitEngineError):
    """One or more cost fields are negative, non-numeric or otherwise invalid"""
    code = "COST_VALIDATION_ERROR"

    def __init__(self, violations: List[Dict[str, Any]]):
        self.violations = violations
        details = ", ".join(f"{v['field']}: {v['message']}" for v in violations)
        super().__init__(f"Invalid cost values: {details}")

    @property
    def fields(self) -> List[str]:
        return [v["field"] for v in self.violations]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["violations"] = [
            {"field": v["field"], "message": v["message"], "value": _printable(v.get("value"))}
            for v in self.violations
        ]
        return data


class ProfitCalculationError(ProfitEngineError):
    """Profit could not be derived for an order"""

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.CALCULATION_FAILED,
        order_id: Optional[Any] = None,
        tenant_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.order_id = order_id
        self.tenant_id = tenant_id
        self.context = context or {}

    @property
    def is_per_order(self) -> bool:
        return self.code in ErrorCode.PER_ORDER

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.order_id is not None:
            data["order_id"] = str(self.order_id)
        return data


class InvalidTransitionError(ProfitEngineError):
    """Requested order status change is not allowed"""
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, requested: str, order_id: Optional[Any] = None):
        self.current = current
        self.requested = requested
        self.order_id = order_id
        super().__init__(f"Cannot transition from {current} to {requested}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"current_status": self.current, "requested_status": self.requested})
        return data


class InvalidStatusError(ProfitEngineError):
    """Requested status is not an order status at all"""
    code = "INVALID_STATUS"

    def __init__(self, status: Any):
        self.status = status
        super().__init__(f"Unknown order status '{status}'")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = "status"
        return data


class ReportParameterError(ProfitEngineError):
    """Invalid report or export parameters"""
    code = "INVALID_REPORT_PARAMETERS"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


def _printable(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if value is None or isinstance(value, (int, float, str, bool)):
        return value
    return str(value)
