"""Calculation, history and setup endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse

from sumlog.core.logging import get_logger
from sumlog.dependencies import CalculationServiceDep
from sumlog.schemas.calculation import (
    CalculateRequest,
    CalculateResponse,
    HistoryEntry,
)

logger = get_logger(__name__)

router = APIRouter()

PLAIN_TEXT_ERRORS = {
    400: {"description": "Invalid input", "content": {"text/plain": {}}},
    500: {"description": "Internal Server Error", "content": {"text/plain": {}}},
}


@router.post(
    "/calculate",
    response_model=CalculateResponse,
    status_code=status.HTTP_200_OK,
    summary="Add two numbers",
    description="Return num1 + num2, reusing a cached sum when one exists.",
    responses=PLAIN_TEXT_ERRORS,
)
async def calculate(
    request: CalculateRequest,
    service: CalculationServiceDep,
) -> CalculateResponse:
    """Add two numbers and log the calculation.

    Every successful call appends exactly one history record, whether the
    sum came from the cache or was computed.
    """
    outcome = await service.calculate(request.num1, request.num2)
    return CalculateResponse(result=outcome.result)


@router.get(
    "/hist_log",
    response_model=list[HistoryEntry],
    status_code=status.HTTP_200_OK,
    summary="Recent calculations",
    description="The most recent calculations, newest first.",
    responses={500: PLAIN_TEXT_ERRORS[500]},
)
async def history(service: CalculationServiceDep) -> list[HistoryEntry]:
    """List the most recent calculations."""
    records = await service.recent_history()
    logger.debug("history_listed", count=len(records))
    return [HistoryEntry.model_validate(record) for record in records]


@router.post(
    "/setup",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Create the history table",
    description="Idempotently create the history table if it does not exist.",
    responses={500: PLAIN_TEXT_ERRORS[500]},
)
async def setup(service: CalculationServiceDep) -> str:
    """Ensure the backing table exists."""
    await service.setup()
    logger.info("setup_completed")
    return "Setup complete\n"
