"""
API Router - JSON Endpoints
"""
from fastapi import APIRouter
from datetime import datetime

from app.api.orders import router as orders_router
from app.api.cost_config import router as cost_config_router
from app.api.leads import router as leads_router
from app.api.reporting import router as reporting_router

api_router = APIRouter(tags=["API"])

api_router.include_router(orders_router)
api_router.include_router(cost_config_router)
api_router.include_router(leads_router)
api_router.include_router(reporting_router)


@api_router.get("/status")
async def api_status():
    return {"status": "ok", "version": "1.0.0", "timestamp": datetime.now().isoformat()}
