from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.exceptions import (
    CostValidationError, ErrorCode, InvalidStatusError, InvalidTransitionError, ProfitCalculationError,
)
from app.models import AuditLog, Order, OrderStatus
from app.schemas.order import OrderCreate
from app.services import OrderService, RecalculationTrigger


@pytest.fixture
def created_order(db, tenant, product, cost_config):
    return OrderService.create_order(db, OrderCreate(product_id=product.id, customer_name="Jane"), tenant.id)


def _move(db, tenant, order, *statuses, **kwargs):
    trigger = RecalculationTrigger(db)
    result = None
    for status in statuses:
        result = trigger.change_status(order.id, tenant.id, status, **kwargs)
    return result


def test_new_order_has_cost_record(created_order):
    assert created_order.status == OrderStatus.PENDING.value
    assert created_order.total == Decimal("100")

    record = created_order.costs
    assert record.product_cost == Decimal("40")
    assert record.packaging_cost == Decimal("5")
    assert record.printing_cost == Decimal("3")
    assert record.return_cost == 0
    assert record.net_profit == Decimal("52")


def test_shipped_order_cannot_be_cancelled(db, tenant, created_order):
    _move(db, tenant, created_order, "CONFIRMED", "SHIPPED")

    with pytest.raises(InvalidTransitionError) as exc_info:
        _move(db, tenant, created_order, "CANCELLED")

    assert exc_info.value.current == "SHIPPED"
    db.refresh(created_order)
    assert created_order.status == "SHIPPED"

    _move(db, tenant, created_order, "DELIVERED")
    db.refresh(created_order)
    assert created_order.status == "DELIVERED"


@pytest.mark.parametrize("requested", ["shipped", "FOO", ""])
def test_unknown_status_is_not_a_transition(db, tenant, created_order, requested):
    with pytest.raises(InvalidStatusError) as exc_info:
        _move(db, tenant, created_order, requested)

    assert exc_info.value.to_dict()["field"] == "status"
    db.refresh(created_order)
    assert created_order.status == "PENDING"


@pytest.mark.parametrize("current, new, allowed", [
    ("PENDING", "CONFIRMED", True),
    ("PENDING", "CANCELLED", True),
    ("PENDING", "SHIPPED", False),
    ("CONFIRMED", "SHIPPED", True),
    ("CONFIRMED", "CANCELLED", True),
    ("SHIPPED", "DELIVERED", True),
    ("SHIPPED", "CANCELLED", False),
    ("DELIVERED", "RETURNED", True),
    ("DELIVERED", "CANCELLED", False),
    ("RETURNED", "DELIVERED", False),
    ("CANCELLED", "PENDING", False),
    ("PENDING", "LOST", False),
])
def test_transition_table(current, new, allowed):
    assert RecalculationTrigger.can_transition(current, new) is allowed


def test_return_with_explicit_cost(db, tenant, created_order):
    _move(db, tenant, created_order, "CONFIRMED", "SHIPPED", "DELIVERED")

    result = _move(db, tenant, created_order, "RETURNED", return_cost=35)

    assert result.is_return is True
    assert result.costs.return_ == Decimal("35")
    assert result.net_profit == Decimal("100") - Decimal("48") - Decimal("35")
    db.refresh(created_order.costs)
    assert created_order.costs.return_cost == Decimal("35")


def test_return_falls_back_to_tenant_default(db, tenant, created_order):
    _move(db, tenant, created_order, "CONFIRMED", "SHIPPED", "DELIVERED")

    result = _move(db, tenant, created_order, "RETURNED")

    assert result.costs.return_ == Decimal("20")
    assert result.net_profit == Decimal("32")


def test_invalid_return_cost_leaves_order_untouched(db, tenant, created_order):
    _move(db, tenant, created_order, "CONFIRMED", "SHIPPED", "DELIVERED")

    with pytest.raises(CostValidationError):
        _move(db, tenant, created_order, "RETURNED", return_cost=-10)

    db.refresh(created_order)
    assert created_order.status == "DELIVERED"


def test_return_cost_only_allowed_on_return(db, tenant, created_order):
    with pytest.raises(CostValidationError) as exc_info:
        _move(db, tenant, created_order, "CONFIRMED", return_cost=10)

    assert exc_info.value.fields == ["return_cost"]


def test_status_change_is_audited(db, tenant, created_order):
    _move(db, tenant, created_order, "CONFIRMED")

    entries = db.query(AuditLog).filter(AuditLog.record_id == str(created_order.id)).all()
    assert len(entries) == 1
    assert entries[0].action == "STATUS_CHANGE"
    assert entries[0].before_data == {"status": "PENDING"}
    assert entries[0].after_data == {"status": "CONFIRMED"}


def test_cost_record_version_moves_on_write(db, tenant, created_order):
    _move(db, tenant, created_order, "CONFIRMED", "SHIPPED", "DELIVERED")
    db.refresh(created_order.costs)
    version = created_order.costs.version

    _move(db, tenant, created_order, "RETURNED", return_cost=35)

    db.refresh(created_order.costs)
    assert created_order.costs.version > version


def test_missing_cost_record_is_created_on_change(db, tenant, product, cost_config, make_order):
    order = make_order(status=OrderStatus.DELIVERED.value)
    assert order.costs is None

    _move(db, tenant, order, "RETURNED")

    order = db.query(Order).filter(Order.id == order.id).one()
    assert order.costs is not None
    assert order.costs.return_cost == Decimal("20")
    assert order.costs.packaging_cost == Decimal("5")


def test_unknown_order(db, tenant):
    with pytest.raises(ProfitCalculationError) as exc_info:
        RecalculationTrigger(db).change_status(uuid4(), tenant.id, "CONFIRMED")

    assert exc_info.value.code == ErrorCode.ORDER_NOT_FOUND


def test_create_order_total_never_negative(db, tenant, product):
    order = OrderService.create_order(
        db,
        OrderCreate(product_id=product.id, unit_price=Decimal("10"), quantity=2, discount=Decimal("50")),
        tenant.id,
    )

    assert order.total == 0
    assert order.costs.net_profit == Decimal("-80")


def test_create_order_with_foreign_product(db, other_tenant, product):
    with pytest.raises(ProfitCalculationError) as exc_info:
        OrderService.create_order(db, OrderCreate(product_id=product.id), other_tenant.id)

    assert exc_info.value.code == ErrorCode.PRODUCT_NOT_FOUND
