from decimal import Decimal

import pytest

from app.core.exceptions import CostValidationError
from app.services.cost_validation import (
    TENANT_CONFIG_FIELDS, normalize_field, parse_cost, validate_costs,
)


def test_single_negative_cost_is_rejected():
    with pytest.raises(CostValidationError) as exc_info:
        validate_costs({"packagingCost": -1})

    assert exc_info.value.fields == ["packaging_cost"]


def test_every_invalid_field_is_reported():
    with pytest.raises(CostValidationError) as exc_info:
        validate_costs({"packagingCost": -1, "printingCost": -1})

    assert sorted(exc_info.value.fields) == ["packaging_cost", "printing_cost"]


@pytest.mark.parametrize("value, message", [
    (-0.01, "cannot be negative"),
    ("abc", "must be a number"),
    (True, "must be a number"),
    ([5], "must be a number"),
    (float("nan"), "must be a finite number"),
    (float("inf"), "must be a finite number"),
    ("Infinity", "must be a finite number"),
])
def test_invalid_values(value, message):
    with pytest.raises(CostValidationError) as exc_info:
        validate_costs({"return_cost": value})

    violation = exc_info.value.violations[0]
    assert violation["field"] == "return_cost"
    assert violation["message"] == message


@pytest.mark.parametrize("value, expected", [
    (0, Decimal("0")),
    (5, Decimal("5")),
    (12.5, Decimal("12.5")),
    ("7.25", Decimal("7.25")),
    (Decimal("3.10"), Decimal("3.10")),
])
def test_parse_cost_accepts_numbers(value, expected):
    assert parse_cost(value) == expected


def test_omitted_and_none_fields_are_skipped():
    assert validate_costs({"packaging_cost": None, "printing_cost": 2}) == {"printing_cost": Decimal("2")}
    assert validate_costs(None) == {}
    assert validate_costs({}) == {}


def test_unknown_field_is_a_violation():
    with pytest.raises(CostValidationError) as exc_info:
        validate_costs({"shipping_cost": 10, "packaging_cost": -2})

    assert sorted(exc_info.value.fields) == ["packaging_cost", "shipping_cost"]


def test_tenant_fields_use_their_own_allow_list():
    values = validate_costs({"defaultReturnCost": "15"}, allowed=TENANT_CONFIG_FIELDS)
    assert values == {"default_return_cost": Decimal("15")}

    with pytest.raises(CostValidationError):
        validate_costs({"packaging_cost": 1}, allowed=TENANT_CONFIG_FIELDS)


def test_non_mapping_payload_is_rejected():
    with pytest.raises(CostValidationError) as exc_info:
        validate_costs([1, 2, 3])

    assert exc_info.value.fields == ["costs"]


def test_error_payload_is_json_friendly():
    with pytest.raises(CostValidationError) as exc_info:
        validate_costs({"packaging_cost": float("nan")})

    data = exc_info.value.to_dict()
    assert data["error"] == "COST_VALIDATION_ERROR"
    assert data["violations"][0]["value"] == "nan"


def test_high_values_are_accepted_with_warning(caplog):
    with caplog.at_level("WARNING"):
        values = validate_costs({"packaging_cost": 150})

    assert values == {"packaging_cost": Decimal("150")}
    assert "High packaging_cost" in caplog.text


def test_normalize_field():
    assert normalize_field("packagingCost") == "packaging_cost"
    assert normalize_field("default_return_cost") == "default_return_cost"


def test_more_decimal_places_than_storage_holds():
    assert parse_cost("0.12345678") == Decimal("0.12345678")
    assert parse_cost("1.500000000") == Decimal("1.5")

    with pytest.raises(CostValidationError) as exc_info:
        validate_costs({"packaging_cost": "0.123456789"})

    assert exc_info.value.violations[0]["message"] == "cannot have more than 8 decimal places"
