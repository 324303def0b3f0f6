"""
Maps profit engine errors to HTTP responses
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from app.core.exceptions import (
    CostValidationError, ErrorCode, InvalidStatusError, InvalidTransitionError,
    ProfitCalculationError, ReportParameterError,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = (
    ErrorCode.ORDER_NOT_FOUND,
    ErrorCode.PRODUCT_NOT_FOUND,
    ErrorCode.LEAD_NOT_FOUND,
    ErrorCode.LEAD_BATCH_NOT_FOUND,
)


async def cost_validation_handler(request: Request, exc: CostValidationError):
    return JSONResponse(status_code=400, content=exc.to_dict())


async def report_parameter_handler(request: Request, exc: ReportParameterError):
    return JSONResponse(status_code=400, content=exc.to_dict())


async def invalid_status_handler(request: Request, exc: InvalidStatusError):
    return JSONResponse(status_code=400, content=exc.to_dict())


async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=409, content=exc.to_dict())


async def profit_calculation_handler(request: Request, exc: ProfitCalculationError):
    if exc.code in NOT_FOUND_CODES:
        return JSONResponse(status_code=404, content=exc.to_dict())

    logger.error(f"Profit calculation failed on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=500, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CostValidationError, cost_validation_handler)
    app.add_exception_handler(ReportParameterError, report_parameter_handler)
    app.add_exception_handler(InvalidStatusError, invalid_status_handler)
    app.add_exception_handler(InvalidTransitionError, invalid_transition_handler)
    app.add_exception_handler(ProfitCalculationError, profit_calculation_handler)
