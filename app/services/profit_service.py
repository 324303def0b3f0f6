"""
Profit Calculation Service

Derives a per-order profit breakdown from five cost components:

    total_costs   = product + lead + packaging + printing + return
    gross_profit  = revenue - product
    net_profit    = revenue - total_costs
    profit_margin = net_profit / revenue * 100   (0 when revenue is 0)

Cost resolution (what wins between an explicit value and a tenant default)
lives in ProfitCalculationService.resolve_costs and nowhere else. Calculation
never writes; persistence goes through RecalculationTrigger.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session, joinedload

from app.core import settings
from app.core.exceptions import ErrorCode, ProfitCalculationError
from app.models import Lead, Order, OrderStatus
from app.schemas.common import to_decimal
from app.schemas.cost import DefaultCosts
from app.schemas.profit import CostBreakdown, ProfitBreakdown
from .cost_config_service import CostConfigService
from .cost_validation import validate_costs

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ResolvedCosts:
    product: Decimal = ZERO
    lead: Decimal = ZERO
    packaging: Decimal = ZERO
    printing: Decimal = ZERO
    return_: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.product + self.lead + self.packaging + self.printing + self.return_


def profit_margin(net_profit: Decimal, revenue: Decimal) -> Decimal:
    """Net profit as a percentage of revenue, 0 when there is no revenue"""
    if revenue <= ZERO:
        return ZERO
    return net_profit / revenue * HUNDRED


def calculate_profit(order_id: UUID, revenue: Decimal, costs: ResolvedCosts, is_return: bool = False) -> ProfitBreakdown:
    """Pure profit arithmetic over already-resolved costs"""
    revenue = to_decimal(revenue)
    total_costs = costs.total
    net_profit = revenue - total_costs

    return ProfitBreakdown(
        order_id=order_id,
        revenue=revenue,
        costs=CostBreakdown(
            product=costs.product,
            lead=costs.lead,
            packaging=costs.packaging,
            printing=costs.printing,
            return_=costs.return_,
            total=total_costs,
        ),
        gross_profit=revenue - costs.product,
        net_profit=net_profit,
        profit_margin=profit_margin(net_profit, revenue),
        is_return=is_return,
    )


class ProfitCalculationService:
    """Profit calculation for orders of one database session"""

    def __init__(
        self,
        db: Session,
        cost_config: Optional[CostConfigService] = None,
        freeze_product_cost: Optional[bool] = None,
    ):
        self.db = db
        self.cost_config = cost_config or CostConfigService(db)
        if freeze_product_cost is None:
            freeze_product_cost = settings.PROFIT_FREEZE_PRODUCT_COST
        self.freeze_product_cost = freeze_product_cost

    # ---------- loading ----------

    def order_query(self, tenant_id: UUID):
        """Orders of one tenant with everything cost resolution touches"""
        return self.db.query(Order).options(
            joinedload(Order.product),
            joinedload(Order.costs),
            joinedload(Order.lead).joinedload(Lead.batch),
        ).filter(Order.tenant_id == tenant_id)

    def get_order(self, order_id: UUID, tenant_id: UUID) -> Order:
        order = self.order_query(tenant_id).filter(Order.id == order_id).first()
        if not order:
            raise ProfitCalculationError(
                f"Order {order_id} not found",
                ErrorCode.ORDER_NOT_FOUND,
                order_id=order_id,
                tenant_id=tenant_id,
            )
        return order

    # ---------- resolution ----------

    def resolve_costs(self, order: Order, defaults: DefaultCosts) -> ResolvedCosts:
        """
        Resolve the five cost components of an order.

        - product: live product cost price x quantity (or the value stored on
          the cost record when product cost freezing is enabled)
        - lead: cost per lead of the lead's batch, 0 without a batch
        - packaging/printing: cost record if present, else tenant default
        - return: only for RETURNED orders; cost record if present, else
          tenant default
        """
        record = order.costs

        if self.freeze_product_cost and record is not None:
            product_cost = to_decimal(record.product_cost)
        else:
            if order.product is None:
                raise ProfitCalculationError(
                    f"Product {order.product_id} not found for order {order.id}",
                    ErrorCode.PRODUCT_NOT_FOUND,
                    order_id=order.id,
                    tenant_id=order.tenant_id,
                )
            product_cost = to_decimal(order.product.cost_price) * (order.quantity or 0)

        lead_cost = ZERO
        if order.lead is not None and order.lead.batch is not None:
            lead_cost = to_decimal(order.lead.batch.cost_per_lead)

        if record is not None:
            packaging_cost = to_decimal(record.packaging_cost)
            printing_cost = to_decimal(record.printing_cost)
        else:
            packaging_cost = defaults.packaging_cost
            printing_cost = defaults.printing_cost

        return_cost = ZERO
        if order.status == OrderStatus.RETURNED.value:
            return_cost = to_decimal(record.return_cost) if record is not None else defaults.return_cost

        return ResolvedCosts(
            product=product_cost,
            lead=lead_cost,
            packaging=packaging_cost,
            printing=printing_cost,
            return_=return_cost,
        )

    # ---------- calculation ----------

    def breakdown_for_order(self, order: Order, defaults: Optional[DefaultCosts] = None) -> ProfitBreakdown:
        """Breakdown for an already-loaded order"""
        if defaults is None:
            defaults = self.cost_config.get_default_costs(order.tenant_id)

        costs = self.resolve_costs(order, defaults)
        try:
            return calculate_profit(
                order.id,
                to_decimal(order.total),
                costs,
                is_return=order.status == OrderStatus.RETURNED.value,
            )
        except (ArithmeticError, TypeError, ValueError) as e:
            raise ProfitCalculationError(
                f"Failed to calculate profit for order {order.id}: {e}",
                ErrorCode.CALCULATION_FAILED,
                order_id=order.id,
                tenant_id=order.tenant_id,
            ) from e

    def calculate_order_profit(self, order_id: UUID, tenant_id: UUID) -> ProfitBreakdown:
        order = self.get_order(order_id, tenant_id)
        return self.breakdown_for_order(order)

    def calculate_multiple_order_profits(self, order_ids: Iterable[UUID], tenant_id: UUID) -> List[ProfitBreakdown]:
        """Breakdowns for the given orders, skipping orders that fail"""
        defaults = self.cost_config.get_default_costs(tenant_id)
        results = []
        for order_id in order_ids:
            try:
                order = self.get_order(order_id, tenant_id)
                results.append(self.breakdown_for_order(order, defaults))
            except ProfitCalculationError as e:
                logger.warning(f"Skipping order {order_id}: [{e.code}] {e.message}")
        return results

    def update_order_costs_manually(
        self,
        order_id: UUID,
        tenant_id: UUID,
        updates: Mapping[str, Any],
        performed_by: Optional[UUID] = None,
    ) -> ProfitBreakdown:
        """Apply a manual packaging/printing/return cost edit and return the fresh breakdown"""
        from .recalculation_service import RecalculationTrigger

        trigger = RecalculationTrigger(self.db, calculator=self)
        return trigger.apply_cost_update(order_id, tenant_id, updates, performed_by=performed_by)

    validate_costs = staticmethod(validate_costs)
