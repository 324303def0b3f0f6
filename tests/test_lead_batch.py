from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.exceptions import CostValidationError, ErrorCode, ProfitCalculationError
from app.schemas.order import OrderCreate
from app.services import LeadBatchService, OrderService
from app.services.lead_batch_service import allocate_cost


@pytest.mark.parametrize("total", ["0", "100", "333.33", "1000000", "0.01"])
@pytest.mark.parametrize("count", [1, 3, 7, 1000])
def test_allocation_is_conserved(total, count):
    total = Decimal(total)
    per_lead = allocate_cost(total, count)

    tolerance = Decimal("0.00000001") * count
    assert abs(per_lead * count - total) <= tolerance


def test_zero_leads_raises_instead_of_dividing():
    with pytest.raises(CostValidationError) as exc_info:
        allocate_cost(Decimal("100"), 0)

    assert exc_info.value.fields == ["lead_ids"]


def test_create_batch_splits_cost(db, tenant, make_lead):
    leads = [make_lead(name=f"Lead {i}") for i in range(4)]
    service = LeadBatchService(db)

    batch = service.create_lead_batch(tenant.id, 100, [lead.id for lead in leads])

    assert batch.lead_count == 4
    assert batch.cost_per_lead == Decimal("25")
    for lead in leads:
        db.refresh(lead)
        assert lead.batch_id == batch.id


def test_duplicate_lead_ids_count_once(db, tenant, make_lead):
    lead = make_lead()
    service = LeadBatchService(db)

    batch = service.create_lead_batch(tenant.id, "30", [lead.id, lead.id])

    assert batch.lead_count == 1
    assert batch.cost_per_lead == Decimal("30")


def test_invalid_cost_and_empty_leads_reported_together(db, tenant):
    service = LeadBatchService(db)

    with pytest.raises(CostValidationError) as exc_info:
        service.create_lead_batch(tenant.id, -5, [])

    assert sorted(exc_info.value.fields) == ["lead_ids", "total_cost"]


def test_unknown_and_foreign_leads_are_rejected(db, tenant, other_tenant, make_lead):
    service = LeadBatchService(db)
    lead = make_lead()

    with pytest.raises(CostValidationError):
        service.create_lead_batch(tenant.id, 10, [lead.id, uuid4()])

    with pytest.raises(CostValidationError):
        service.create_lead_batch(other_tenant.id, 10, [lead.id])


def test_lead_already_in_batch_is_rejected(db, tenant, make_lead):
    service = LeadBatchService(db)
    lead = make_lead()
    service.create_lead_batch(tenant.id, 10, [lead.id])

    with pytest.raises(CostValidationError) as exc_info:
        service.create_lead_batch(tenant.id, 20, [lead.id])

    assert "already belong" in exc_info.value.violations[0]["message"]


def test_get_missing_batch(db, tenant):
    service = LeadBatchService(db)

    with pytest.raises(ProfitCalculationError) as exc_info:
        service.get_lead_batch(uuid4(), tenant.id)

    assert exc_info.value.code == ErrorCode.LEAD_BATCH_NOT_FOUND


def test_list_batches_is_tenant_scoped(db, tenant, other_tenant, make_lead):
    service = LeadBatchService(db)
    service.create_lead_batch(tenant.id, 10, [make_lead().id])
    service.create_lead_batch(tenant.id, 20, [make_lead().id])

    assert len(service.list_lead_batches(tenant.id)) == 2
    assert len(service.list_lead_batches(tenant.id, limit=1)) == 1
    assert service.list_lead_batches(other_tenant.id) == []


def test_cost_correction_refreshes_order_snapshots(db, tenant, product, make_lead):
    service = LeadBatchService(db)
    leads = [make_lead(), make_lead()]
    batch = service.create_lead_batch(tenant.id, 20, [lead.id for lead in leads])

    order = OrderService.create_order(db, OrderCreate(product_id=product.id, lead_id=leads[0].id), tenant.id)
    assert order.costs.lead_cost == Decimal("10")

    updated = service.update_lead_batch_cost(batch.id, tenant.id, 50)

    assert updated.cost_per_lead == Decimal("25")
    assert updated.lead_count == 2
    db.refresh(order.costs)
    assert order.costs.lead_cost == Decimal("25")
    assert order.costs.net_profit == Decimal("100") - Decimal("40") - Decimal("25")


def test_cost_correction_validates_first(db, tenant, make_lead):
    service = LeadBatchService(db)
    batch = service.create_lead_batch(tenant.id, 20, [make_lead().id])

    with pytest.raises(CostValidationError):
        service.update_lead_batch_cost(batch.id, tenant.id, "free")

    db.refresh(batch)
    assert batch.total_cost == Decimal("20")
