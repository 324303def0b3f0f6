"""
Lead Batch Service - spreads one acquisition cost over the leads of an import
"""
from decimal import Decimal
from typing import Any, Iterable, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import CostValidationError, ErrorCode, ProfitCalculationError
from app.models import Lead, LeadBatch, Order
from app.schemas.common import to_decimal
from .cost_validation import parse_cost, warn_high_costs

logger = logging.getLogger(__name__)

COST_PER_LEAD_QUANTUM = Decimal("0.00000001")


def allocate_cost(total_cost: Decimal, lead_count: int) -> Decimal:
    """Cost per lead; zero leads is rejected instead of dividing"""
    if lead_count <= 0:
        raise CostValidationError([{
            "field": "lead_ids",
            "value": lead_count,
            "message": "cannot allocate cost across zero leads",
        }])
    return (total_cost / lead_count).quantize(COST_PER_LEAD_QUANTUM)


def _validate_total_cost(total_cost: Any) -> Decimal:
    try:
        return parse_cost(total_cost)
    except ValueError as e:
        raise CostValidationError([{"field": "total_cost", "value": total_cost, "message": str(e)}])


class LeadBatchService:
    """Lead batch creation and corrective edits"""

    def __init__(self, db: Session):
        self.db = db

    def create_lead_batch(
        self,
        tenant_id: UUID,
        total_cost: Any,
        lead_ids: Iterable[UUID],
        imported_by: Optional[UUID] = None,
    ) -> LeadBatch:
        """
        Create a batch for the given leads and attach them to it.

        cost_per_lead is computed once here and stored, so later changes to
        the lead set never alter historical cost per lead. Leads must belong
        to the tenant and must not already belong to another batch.
        """
        violations = []
        try:
            cost = _validate_total_cost(total_cost)
        except CostValidationError as e:
            violations.extend(e.violations)
            cost = None

        unique_ids = list(dict.fromkeys(lead_ids or []))
        if not unique_ids:
            violations.append({
                "field": "lead_ids",
                "value": 0,
                "message": "cannot allocate cost across zero leads",
            })
        if violations:
            raise CostValidationError(violations)

        leads = self.db.query(Lead).filter(
            Lead.tenant_id == tenant_id,
            Lead.id.in_(unique_ids),
        ).all()

        found = {lead.id for lead in leads}
        missing = [str(lead_id) for lead_id in unique_ids if lead_id not in found]
        if missing:
            raise CostValidationError([{
                "field": "lead_ids",
                "value": missing,
                "message": f"unknown leads: {', '.join(missing)}",
            }])

        already_batched = [str(lead.id) for lead in leads if lead.batch_id is not None]
        if already_batched:
            raise CostValidationError([{
                "field": "lead_ids",
                "value": already_batched,
                "message": f"leads already belong to a batch: {', '.join(already_batched)}",
            }])

        cost_per_lead = allocate_cost(cost, len(leads))
        warn_high_costs({"cost_per_lead": cost_per_lead})

        batch = LeadBatch(
            tenant_id=tenant_id,
            total_cost=cost,
            lead_count=len(leads),
            cost_per_lead=cost_per_lead,
            imported_by=imported_by,
        )
        self.db.add(batch)
        for lead in leads:
            lead.batch = batch

        self.db.commit()
        self.db.refresh(batch)

        logger.info(f"Created lead batch {batch.id}: {batch.lead_count} leads, {cost_per_lead} per lead")
        return batch

    def get_lead_batch(self, batch_id: UUID, tenant_id: UUID) -> LeadBatch:
        batch = self.db.query(LeadBatch).filter(
            LeadBatch.id == batch_id,
            LeadBatch.tenant_id == tenant_id,
        ).first()
        if not batch:
            raise ProfitCalculationError(
                f"Lead batch {batch_id} not found",
                ErrorCode.LEAD_BATCH_NOT_FOUND,
                tenant_id=tenant_id,
            )
        return batch

    def list_lead_batches(self, tenant_id: UUID, limit: Optional[int] = None, offset: int = 0) -> List[LeadBatch]:
        query = self.db.query(LeadBatch).filter(
            LeadBatch.tenant_id == tenant_id
        ).order_by(LeadBatch.created_at.desc())
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def update_lead_batch_cost(self, batch_id: UUID, tenant_id: UUID, total_cost: Any) -> LeadBatch:
        """
        Corrective edit of a batch's total cost.

        cost_per_lead is recomputed from the stored lead_count, and the cost
        snapshots of orders placed on the batch's leads are refreshed.
        """
        from .recalculation_service import RecalculationTrigger

        cost = _validate_total_cost(total_cost)
        batch = self.get_lead_batch(batch_id, tenant_id)

        try:
            batch.total_cost = cost
            batch.cost_per_lead = allocate_cost(cost, batch.lead_count)
            self.db.flush()

            trigger = RecalculationTrigger(self.db)
            orders = trigger.calculator.order_query(tenant_id).join(
                Lead, Order.lead_id == Lead.id
            ).filter(Lead.batch_id == batch.id).all()
            for order in orders:
                trigger.recalculate(order)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(batch)
        logger.info(f"Updated lead batch {batch_id}: total {to_decimal(batch.total_cost)}, {len(orders)} orders refreshed")
        return batch
