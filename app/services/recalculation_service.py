"""
Recalculation Trigger - order status machine and the only writer of OrderCost
"""
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import CostValidationError, InvalidStatusError, InvalidTransitionError
from app.models import AuditLog, Order, OrderCost, OrderStatus
from app.schemas.common import to_decimal
from app.schemas.cost import DefaultCosts
from app.schemas.profit import ProfitBreakdown
from .cost_validation import validate_costs, ORDER_COST_FIELDS
from .profit_service import ProfitCalculationService

logger = logging.getLogger(__name__)

SNAPSHOT_QUANTUM = Decimal("0.00000001")


class RecalculationTrigger:
    """Applies cost-affecting order events and persists the recalculated profit"""

    # Valid status transitions; RETURNED and CANCELLED are terminal
    STATUS_TRANSITIONS = {
        OrderStatus.PENDING.value: [OrderStatus.CONFIRMED.value, OrderStatus.CANCELLED.value],
        OrderStatus.CONFIRMED.value: [OrderStatus.SHIPPED.value, OrderStatus.CANCELLED.value],
        OrderStatus.SHIPPED.value: [OrderStatus.DELIVERED.value],
        OrderStatus.DELIVERED.value: [OrderStatus.RETURNED.value],
        OrderStatus.RETURNED.value: [],
        OrderStatus.CANCELLED.value: [],
    }

    def __init__(self, db: Session, calculator: Optional[ProfitCalculationService] = None):
        self.db = db
        self.calculator = calculator or ProfitCalculationService(db)
        self.cost_config = self.calculator.cost_config

    @staticmethod
    def parse_status(value: Any) -> str:
        try:
            return OrderStatus(getattr(value, "value", value)).value
        except ValueError:
            raise InvalidStatusError(value)

    @classmethod
    def can_transition(cls, current: str, new: str) -> bool:
        return new in cls.STATUS_TRANSITIONS.get(current, [])

    # ---------- cost record ----------

    def ensure_cost_record(self, order: Order, defaults: Optional[DefaultCosts] = None) -> OrderCost:
        """Return the order's cost record, creating it from tenant defaults if missing"""
        if order.costs is not None:
            return order.costs

        if defaults is None:
            defaults = self.cost_config.get_default_costs(order.tenant_id)

        product_cost = Decimal("0")
        if order.product is not None:
            product_cost = to_decimal(order.product.cost_price) * (order.quantity or 0)

        lead_cost = Decimal("0")
        if order.lead is not None and order.lead.batch is not None:
            lead_cost = to_decimal(order.lead.batch.cost_per_lead)

        record = OrderCost(
            product_cost=product_cost,
            lead_cost=lead_cost,
            packaging_cost=defaults.packaging_cost,
            printing_cost=defaults.printing_cost,
            return_cost=Decimal("0"),  # only set when the order is returned
        )
        order.costs = record
        self.db.add(record)
        return record

    def recalculate(self, order: Order) -> ProfitBreakdown:
        """Recalculate and store the derived snapshot on the cost record (no commit)"""
        record = self.ensure_cost_record(order)
        breakdown = self.calculator.breakdown_for_order(order)

        if not self.calculator.freeze_product_cost:
            record.product_cost = breakdown.costs.product
        record.lead_cost = breakdown.costs.lead
        record.total_costs = breakdown.costs.total.quantize(SNAPSHOT_QUANTUM)
        record.gross_profit = breakdown.gross_profit.quantize(SNAPSHOT_QUANTUM)
        record.net_profit = breakdown.net_profit.quantize(SNAPSHOT_QUANTUM)
        record.profit_margin = breakdown.profit_margin.quantize(SNAPSHOT_QUANTUM)
        self.db.flush()
        return breakdown

    # ---------- events ----------

    def change_status(
        self,
        order_id: UUID,
        tenant_id: UUID,
        new_status: str,
        return_cost: Any = None,
        performed_by: Optional[UUID] = None,
    ) -> ProfitBreakdown:
        """
        Move an order to a new status and refresh its profit.

        A transition to RETURNED stores the supplied return cost, or the
        tenant default when none is given. Nothing is committed unless the
        whole change succeeds.
        """
        new_status = self.parse_status(new_status)
        supplied = validate_costs({"return_cost": return_cost}) if return_cost is not None else {}

        order = self.calculator.get_order(order_id, tenant_id)
        current_status = order.status

        if not self.can_transition(current_status, new_status):
            raise InvalidTransitionError(current_status, str(new_status), order_id=order_id)

        if supplied and new_status != OrderStatus.RETURNED.value:
            raise CostValidationError([{
                "field": "return_cost",
                "value": return_cost,
                "message": "only applies when the order is returned",
            }])

        try:
            before: Dict[str, Any] = {"status": current_status}
            after: Dict[str, Any] = {"status": new_status}

            if new_status == OrderStatus.RETURNED.value:
                defaults = self.cost_config.get_default_costs(tenant_id)
                final_return_cost = supplied.get("return_cost", defaults.return_cost)
                record = self.ensure_cost_record(order, defaults)
                before["return_cost"] = str(to_decimal(record.return_cost))
                record.return_cost = final_return_cost
                after["return_cost"] = str(final_return_cost)

            order.status = new_status
            breakdown = self.recalculate(order)

            self._audit(order, "STATUS_CHANGE", before, after, performed_by)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Order {order_id} status {current_status} -> {new_status}, net profit {breakdown.net_profit}")
        return breakdown

    def apply_cost_update(
        self,
        order_id: UUID,
        tenant_id: UUID,
        updates: Mapping[str, Any],
        performed_by: Optional[UUID] = None,
    ) -> ProfitBreakdown:
        """Manual packaging/printing/return cost edit, all-or-nothing"""
        values = validate_costs(updates, allowed=ORDER_COST_FIELDS)
        order = self.calculator.get_order(order_id, tenant_id)

        try:
            record = self.ensure_cost_record(order)
            before = {field: str(to_decimal(getattr(record, field))) for field in values}
            for field, value in values.items():
                setattr(record, field, value)

            breakdown = self.recalculate(order)

            self._audit(order, "COST_UPDATE", before, {f: str(v) for f, v in values.items()}, performed_by)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Updated costs for order {order_id}: {sorted(values)}")
        return breakdown

    def _audit(self, order: Order, action: str, before: Dict[str, Any], after: Dict[str, Any], performed_by: Optional[UUID]) -> None:
        self.db.add(AuditLog(
            tenant_id=order.tenant_id,
            table_name="order_header",
            record_id=str(order.id),
            action=action,
            performed_by=performed_by,
            before_data=before,
            after_data=after,
        ))
