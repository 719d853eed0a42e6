"""Pydantic schemas for the SumLog HTTP API."""

from sumlog.schemas.calculation import (
    CalculateRequest,
    CalculateResponse,
    HistoryEntry,
)

__all__ = [
    "CalculateRequest",
    "CalculateResponse",
    "HistoryEntry",
]
