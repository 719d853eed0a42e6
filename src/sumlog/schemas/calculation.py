"""Request and response schemas for the calculation endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CalculateRequest(BaseModel):
    """Body of POST /calculate.

    Operands are accepted as raw JSON values and validated by the service,
    so that a non-numeric operand yields a 400 rather than a schema error.
    """

    num1: Any = Field(None, description="First operand (number or numeric string)")
    num2: Any = Field(None, description="Second operand (number or numeric string)")

    model_config = ConfigDict(
        json_schema_extra={"example": {"num1": 2, "num2": 3}},
    )


class CalculateResponse(BaseModel):
    """Body of a successful POST /calculate."""

    result: float = Field(..., description="num1 + num2")


class HistoryEntry(BaseModel):
    """One element of the GET /hist_log array."""

    model_config = ConfigDict(from_attributes=True)

    num1: float
    num2: float
    result: float
