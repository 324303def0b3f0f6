"""
Cost Configuration Service - per-tenant default costs
"""
from typing import Any, Mapping, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.models import TenantCostConfig
from app.schemas.common import to_decimal
from app.schemas.cost import DefaultCosts, TenantCostConfigResponse
from .cost_validation import validate_costs, TENANT_CONFIG_FIELDS

logger = logging.getLogger(__name__)


class CostConfigService:
    """Reads and writes tenant cost defaults"""

    def __init__(self, db: Session):
        self.db = db

    def get_config(self, tenant_id: UUID) -> Optional[TenantCostConfig]:
        return self.db.query(TenantCostConfig).filter(
            TenantCostConfig.tenant_id == tenant_id
        ).first()

    def get_default_costs(self, tenant_id: UUID) -> DefaultCosts:
        """Default costs for a tenant; zeros when nothing is configured"""
        config = self.get_config(tenant_id)
        if not config:
            logger.debug(f"No cost configuration for tenant {tenant_id}, using zero defaults")
            return DefaultCosts()

        return DefaultCosts(
            packaging_cost=to_decimal(config.default_packaging_cost),
            printing_cost=to_decimal(config.default_printing_cost),
            return_cost=to_decimal(config.default_return_cost),
        )

    def get_config_response(self, tenant_id: UUID) -> TenantCostConfigResponse:
        defaults = self.get_default_costs(tenant_id)
        return TenantCostConfigResponse(
            tenant_id=tenant_id,
            default_packaging_cost=defaults.packaging_cost,
            default_printing_cost=defaults.printing_cost,
            default_return_cost=defaults.return_cost,
            is_configured=self.get_config(tenant_id) is not None,
        )

    def update_tenant_cost_config(self, tenant_id: UUID, updates: Mapping[str, Any]) -> TenantCostConfigResponse:
        """
        Partially update tenant defaults.

        Omitted fields keep their current value. The row is created on the
        first write. Invalid input raises CostValidationError before anything
        is written.
        """
        values = validate_costs(updates, allowed=TENANT_CONFIG_FIELDS)

        config = self.get_config(tenant_id)
        created = config is None
        if created:
            config = TenantCostConfig(
                tenant_id=tenant_id,
                default_packaging_cost=0,
                default_printing_cost=0,
                default_return_cost=0,
            )
            self.db.add(config)

        for field, value in values.items():
            setattr(config, field, value)

        self.db.commit()
        self.db.refresh(config)

        action = "Created" if created else "Updated"
        logger.info(f"{action} cost config for tenant {tenant_id}: {sorted(values)}")
        return self.get_config_response(tenant_id)
