"""
Order Service - Business Logic for Orders
"""
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from uuid import UUID
from decimal import Decimal
import logging

from app.core.exceptions import ErrorCode, ProfitCalculationError
from app.models import Lead, Order, OrderStatus, Product
from app.schemas.order import OrderCreate
from app.schemas.common import to_decimal

logger = logging.getLogger(__name__)


class OrderService:
    """Order business logic"""

    @staticmethod
    def get_orders(
        db: Session,
        tenant_id: UUID,
        status: Optional[str] = None,
        page: int = 1,
        per_page: int = 50
    ) -> Tuple[List[Order], int]:
        """Get orders of a tenant, newest first"""
        query = db.query(Order).filter(Order.tenant_id == tenant_id)

        if status and status != "all":
            query = query.filter(Order.status == status)

        total = query.count()

        orders = query.order_by(Order.created_at.desc())\
            .offset((page - 1) * per_page)\
            .limit(per_page)\
            .all()

        return orders, total

    @staticmethod
    def get_order_by_id(db: Session, order_id: UUID, tenant_id: UUID) -> Optional[Order]:
        return db.query(Order).filter(Order.id == order_id, Order.tenant_id == tenant_id).first()

    @staticmethod
    def calculate_total(unit_price: Decimal, quantity: int, discount: Decimal) -> Decimal:
        """Revenue of an order: price x quantity - discount, never below zero"""
        total = to_decimal(unit_price) * quantity - to_decimal(discount)
        return max(total, Decimal("0"))

    @staticmethod
    def create_order(
        db: Session,
        order_data: OrderCreate,
        tenant_id: UUID,
        created_by: Optional[UUID] = None,
    ) -> Order:
        """
        Create a PENDING order together with its cost record.

        The cost record starts from the product cost price, the lead's batch
        cost per lead and the tenant's packaging/printing defaults.
        """
        from .recalculation_service import RecalculationTrigger

        product = db.query(Product).filter(
            Product.id == order_data.product_id,
            Product.tenant_id == tenant_id
        ).first()
        if not product:
            raise ProfitCalculationError(
                f"Product {order_data.product_id} not found",
                ErrorCode.PRODUCT_NOT_FOUND,
                tenant_id=tenant_id,
            )

        lead = None
        if order_data.lead_id:
            lead = db.query(Lead).filter(
                Lead.id == order_data.lead_id,
                Lead.tenant_id == tenant_id
            ).first()
            if not lead:
                raise ProfitCalculationError(
                    f"Lead {order_data.lead_id} not found",
                    ErrorCode.LEAD_NOT_FOUND,
                    tenant_id=tenant_id,
                )

        unit_price = order_data.unit_price if order_data.unit_price is not None else to_decimal(product.price)

        order = Order(
            tenant_id=tenant_id,
            product=product,
            lead=lead,
            user_id=order_data.user_id or created_by,
            customer_name=order_data.customer_name,
            customer_phone=order_data.customer_phone,
            customer_address=order_data.customer_address,
            status=OrderStatus.PENDING.value,
            quantity=order_data.quantity,
            unit_price=unit_price,
            discount=order_data.discount,
            total=OrderService.calculate_total(unit_price, order_data.quantity, order_data.discount),
        )

        try:
            db.add(order)
            db.flush()

            trigger = RecalculationTrigger(db)
            trigger.ensure_cost_record(order)
            breakdown = trigger.recalculate(order)

            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(order)
        logger.info(f"Created order {order.id} for tenant {tenant_id}: total {order.total}, net profit {breakdown.net_profit}")
        return order
