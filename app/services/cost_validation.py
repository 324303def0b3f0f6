"""
Cost Validation - the one rule every cost input goes through

Collects every violation before raising so callers see all bad fields at once.
"""
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Optional

from app.core.exceptions import CostValidationError

logger = logging.getLogger(__name__)

ORDER_COST_FIELDS = ("packaging_cost", "printing_cost", "return_cost")
TENANT_CONFIG_FIELDS = ("default_packaging_cost", "default_printing_cost", "default_return_cost")

# Accepted but worth a second look
WARNING_THRESHOLDS = {
    "return": Decimal("1000"),
    "packaging": Decimal("100"),
    "printing": Decimal("50"),
    "lead": Decimal("500"),
}

# Cost columns are Numeric(18, 8)
MAX_DECIMAL_PLACES = 8

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def normalize_field(name: str) -> str:
    """packagingCost -> packaging_cost"""
    return _CAMEL.sub("_", name).lower()


def parse_cost(value: Any) -> Decimal:
    """Parse one cost value, raising ValueError with a readable reason"""
    if isinstance(value, bool) or value is None:
        raise ValueError("must be a number")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError("must be a number")
    else:
        raise ValueError("must be a number")

    if not number.is_finite():
        raise ValueError("must be a finite number")
    if number < 0:
        raise ValueError("cannot be negative")
    if -number.normalize().as_tuple().exponent > MAX_DECIMAL_PLACES:
        raise ValueError(f"cannot have more than {MAX_DECIMAL_PLACES} decimal places")
    return number


def validate_costs(
    costs: Optional[Mapping[str, Any]],
    allowed: Iterable[str] = ORDER_COST_FIELDS,
) -> Dict[str, Decimal]:
    """
    Validate a partial cost payload.

    Returns the supplied fields as Decimals keyed by snake_case name.
    Fields given as None are treated as omitted. Raises CostValidationError
    listing every offending field.
    """
    if costs is None:
        return {}
    if not isinstance(costs, Mapping):
        raise CostValidationError([
            {"field": "costs", "value": costs, "message": "cost data must be an object"}
        ])

    allowed = tuple(allowed)
    cleaned: Dict[str, Decimal] = {}
    violations = []

    for raw_field, value in costs.items():
        field = normalize_field(str(raw_field))
        if field not in allowed:
            violations.append({"field": field, "value": value, "message": "unknown cost field"})
            continue
        if value is None:
            continue
        try:
            cleaned[field] = parse_cost(value)
        except ValueError as e:
            violations.append({"field": field, "value": value, "message": str(e)})

    if violations:
        raise CostValidationError(violations)

    warn_high_costs(cleaned)
    return cleaned


def warn_high_costs(costs: Mapping[str, Decimal]) -> None:
    for field, value in costs.items():
        for keyword, threshold in WARNING_THRESHOLDS.items():
            if keyword in field and value > threshold:
                logger.warning(f"High {field} value {value}, please verify the amount")
                break
