import os
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import Base
from app.models import (
    AppUser, Lead, LeadBatch, Order, OrderCost, OrderStatus, Product,
    Tenant, TenantCostConfig,
)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def tenant(db):
    tenant = Tenant(code=f"T-{uuid4().hex[:8]}", name="Test Shop")
    db.add(tenant)
    db.commit()
    return tenant


@pytest.fixture
def other_tenant(db):
    tenant = Tenant(code=f"T-{uuid4().hex[:8]}", name="Other Shop")
    db.add(tenant)
    db.commit()
    return tenant


@pytest.fixture
def seller(db, tenant):
    user = AppUser(tenant_id=tenant.id, username=f"seller-{uuid4().hex[:8]}", full_name="Sam Seller")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def product(db, tenant):
    product = Product(tenant_id=tenant.id, code="P-001", name="Face Cream", price=Decimal("100.00"), cost_price=Decimal("40.00"))
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def cost_config(db, tenant):
    config = TenantCostConfig(
        tenant_id=tenant.id,
        default_packaging_cost=Decimal("5.00"),
        default_printing_cost=Decimal("3.00"),
        default_return_cost=Decimal("20.00"),
    )
    db.add(config)
    db.commit()
    return config


@pytest.fixture
def make_lead(db, tenant):
    def _make(assignee=None, batch=None, name="Lead"):
        lead = Lead(
            tenant_id=tenant.id,
            name=name,
            phone="0800000000",
            assigned_to=assignee.id if assignee else None,
            batch_id=batch.id if batch else None,
        )
        db.add(lead)
        db.commit()
        return lead
    return _make


@pytest.fixture
def make_batch(db, tenant):
    def _make(total_cost, leads):
        leads = list(leads)
        batch = LeadBatch(
            tenant_id=tenant.id,
            total_cost=Decimal(str(total_cost)),
            lead_count=len(leads),
            cost_per_lead=Decimal(str(total_cost)) / len(leads),
        )
        db.add(batch)
        for lead in leads:
            lead.batch = batch
        db.commit()
        return batch
    return _make


@pytest.fixture
def make_order(db, tenant, product):
    """Insert an order row directly, optionally with a cost record"""
    def _make(
        total="100.00",
        status=OrderStatus.PENDING.value,
        quantity=1,
        lead=None,
        created_at=None,
        costs=None,
        order_product=None,
        order_tenant=None,
    ):
        order_product = order_product or product
        order = Order(
            tenant_id=(order_tenant or tenant).id,
            product_id=order_product.id,
            lead_id=lead.id if lead else None,
            customer_name="Jane Buyer",
            customer_phone="0811111111",
            status=status,
            quantity=quantity,
            unit_price=Decimal(str(total)),
            discount=Decimal("0"),
            total=Decimal(str(total)),
            created_at=created_at or datetime.now(),
        )
        if costs is not None:
            order.costs = OrderCost(
                product_cost=Decimal(str(costs.get("product_cost", 0))),
                lead_cost=Decimal(str(costs.get("lead_cost", 0))),
                packaging_cost=Decimal(str(costs.get("packaging_cost", 0))),
                printing_cost=Decimal(str(costs.get("printing_cost", 0))),
                return_cost=Decimal(str(costs.get("return_cost", 0))),
            )
        db.add(order)
        db.commit()
        return order
    return _make
