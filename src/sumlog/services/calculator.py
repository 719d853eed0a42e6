"""CalculationService - cache-aside sum with a durable history.

For every request the service runs the same sequence of steps:

1. validate  - parse both operands (InvalidInputError, nothing else touched)
2. lookup    - consult the cache (CacheUnavailableError)
3. resolve   - hit: reuse the cached sum; miss: add and write through
4. persist   - append a history record (PersistenceError)
5. respond   - return the sum

Steps never retry. A failure in any step ends the request; work already
done by earlier steps (such as a write-through) is not undone.
"""

import math
import re
from dataclasses import dataclass
from typing import Any

import structlog

from sumlog.core.exceptions import InvalidInputError
from sumlog.core.logging import log_context
from sumlog.models.history import HistoryRecord
from sumlog.repositories.history import HistoryLog
from sumlog.services.cache import CacheAsideStore, cache_key

logger = structlog.get_logger(__name__)

# Plain decimal notation with optional exponent; no hex, underscores or words
_NUMERIC_STRING = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


# -----------------------------------------------------------------------------
# DTOs
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class InputPair:
    """Two validated, finite operands."""

    num1: float
    num2: float


@dataclass(frozen=True)
class CalculationResult:
    """Outcome of a served calculation."""

    num1: float
    num2: float
    result: float
    cache_hit: bool


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


def parse_operand(value: Any, field: str) -> float:
    """Parse one request field into a finite number.

    Accepts JSON numbers and strings holding a decimal number (surrounding
    whitespace ignored). Rejects booleans, null, containers, blank or
    non-numeric strings, and anything that is not finite as a double.

    Args:
        value: Raw JSON value from the request body
        field: Field name, for the error details

    Raises:
        InvalidInputError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidInputError(field=field, value=value, reason="boolean")

    if isinstance(value, int | float):
        try:
            number = float(value)
        except OverflowError:
            raise InvalidInputError(
                field=field, value=value, reason="out of range"
            ) from None
    elif isinstance(value, str):
        text = value.strip()
        if not _NUMERIC_STRING.match(text):
            raise InvalidInputError(field=field, value=value, reason="not a number")
        number = float(text)
    else:
        raise InvalidInputError(
            field=field, value=value, reason=f"unsupported type {type(value).__name__}"
        )

    if not math.isfinite(number):
        raise InvalidInputError(field=field, value=value, reason="not finite")
    return number


def parse_input_pair(raw_num1: Any, raw_num2: Any) -> InputPair:
    """Parse both operands of a calculation request."""
    return InputPair(
        num1=parse_operand(raw_num1, "num1"),
        num2=parse_operand(raw_num2, "num2"),
    )


# -----------------------------------------------------------------------------
# Calculation Service
# -----------------------------------------------------------------------------


class CalculationService:
    """Coordinates the cache and the history log for each request.

    Holds no state of its own beyond references to its collaborators.

    Usage:
        ```python
        service = CalculationService(cache=store, history=log)
        outcome = await service.calculate("2", 3)
        assert outcome.result == 5.0
        ```
    """

    def __init__(
        self,
        cache: CacheAsideStore,
        history: HistoryLog,
        *,
        history_limit: int = HistoryLog.DEFAULT_LIMIT,
    ) -> None:
        """Initialize the service.

        Args:
            cache: Store of previously computed sums
            history: Durable log of served calculations
            history_limit: Number of records recent_history() returns by default
        """
        self.cache = cache
        self.history = history
        self.history_limit = history_limit

    async def calculate(self, raw_num1: Any, raw_num2: Any) -> CalculationResult:
        """Serve one calculation.

        Raises:
            InvalidInputError: If an operand is not a finite number
            CacheUnavailableError: If the cache lookup or write fails
            PersistenceError: If the history record cannot be written
        """
        pair = parse_input_pair(raw_num1, raw_num2)
        key = cache_key(pair.num1, pair.num2)

        with log_context(cache_key=key):
            cached = await self.cache.lookup(key)
            if cached is not None:
                result = cached
            else:
                result = pair.num1 + pair.num2
                await self.cache.store(key, result)

            await self.history.append(pair.num1, pair.num2, result)

        logger.info(
            "calculation_served",
            num1=pair.num1,
            num2=pair.num2,
            result=result,
            cache_hit=cached is not None,
        )
        return CalculationResult(
            num1=pair.num1,
            num2=pair.num2,
            result=result,
            cache_hit=cached is not None,
        )

    async def recent_history(self, limit: int | None = None) -> list[HistoryRecord]:
        """Get the most recent calculations, newest first."""
        return await self.history.recent_records(
            self.history_limit if limit is None else limit
        )

    async def setup(self) -> None:
        """Ensure the history table exists."""
        await self.history.ensure_schema()
