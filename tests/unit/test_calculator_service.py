"""Tests for operand parsing and CalculationService orchestration.

The cache and the history log are mocked so that each step of the
request sequence can be observed (and failed) in isolation.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from sumlog.core.exceptions import (
    CacheUnavailableError,
    InvalidInputError,
    PersistenceError,
)
from sumlog.services.calculator import (
    CalculationService,
    parse_input_pair,
    parse_operand,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_cache() -> MagicMock:
    """Create a mock CacheAsideStore that always misses."""
    cache = MagicMock()
    cache.lookup = AsyncMock(return_value=None)
    cache.store = AsyncMock(return_value=None)
    return cache


@pytest.fixture
def mock_history() -> MagicMock:
    """Create a mock HistoryLog."""
    history = MagicMock()
    history.append = AsyncMock()
    history.recent_records = AsyncMock(return_value=[])
    history.ensure_schema = AsyncMock(return_value=None)
    return history


@pytest.fixture
def service(mock_cache: MagicMock, mock_history: MagicMock) -> CalculationService:
    return CalculationService(cache=mock_cache, history=mock_history)


# =============================================================================
# Parsing Tests
# =============================================================================


class TestParseOperand:
    """Tests for parse_operand."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (2, 2.0),
            (-3, -3.0),
            (2.5, 2.5),
            ("4", 4.0),
            ("  4.25 ", 4.25),
            ("-1e3", -1000.0),
            (".5", 0.5),
            ("+7", 7.0),
        ],
    )
    def test_accepts_numbers(self, raw: Any, expected: float) -> None:
        assert parse_operand(raw, "num1") == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "x",
            "",
            "   ",
            "1_000",
            "0x10",
            "NaN",
            "Infinity",
            "inf",
            "1e400",
            float("nan"),
            float("inf"),
            10**400,
            True,
            False,
            None,
            [1],
            {"value": 1},
        ],
    )
    def test_rejects_non_finite_or_non_numeric(self, raw: Any) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            parse_operand(raw, "num2")

        assert exc_info.value.status_code == 400
        assert exc_info.value.details["field"] == "num2"

    def test_parse_input_pair_reports_first_bad_field(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            parse_input_pair("a", "b")

        assert exc_info.value.details["field"] == "num1"


# =============================================================================
# Calculate Tests
# =============================================================================


class TestCalculate:
    """Tests for the calculate request sequence."""

    @pytest.mark.asyncio
    async def test_miss_computes_writes_through_and_logs(
        self,
        service: CalculationService,
        mock_cache: MagicMock,
        mock_history: MagicMock,
    ) -> None:
        outcome = await service.calculate(2, "3")

        assert outcome.result == 5.0
        assert outcome.cache_hit is False
        mock_cache.lookup.assert_awaited_once_with("2:3")
        mock_cache.store.assert_awaited_once_with("2:3", 5.0)
        mock_history.append.assert_awaited_once_with(2.0, 3.0, 5.0)

    @pytest.mark.asyncio
    async def test_hit_reuses_cached_value_and_still_logs(
        self,
        service: CalculationService,
        mock_cache: MagicMock,
        mock_history: MagicMock,
    ) -> None:
        mock_cache.lookup.return_value = 5.0

        outcome = await service.calculate(2, 3)

        assert outcome.result == 5.0
        assert outcome.cache_hit is True
        mock_cache.store.assert_not_awaited()
        mock_history.append.assert_awaited_once_with(2.0, 3.0, 5.0)

    @pytest.mark.asyncio
    async def test_invalid_input_touches_nothing(
        self,
        service: CalculationService,
        mock_cache: MagicMock,
        mock_history: MagicMock,
    ) -> None:
        with pytest.raises(InvalidInputError):
            await service.calculate("x", "y")

        mock_cache.lookup.assert_not_awaited()
        mock_cache.store.assert_not_awaited()
        mock_history.append.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_failure_is_terminal(
        self,
        service: CalculationService,
        mock_cache: MagicMock,
        mock_history: MagicMock,
    ) -> None:
        mock_cache.lookup.side_effect = CacheUnavailableError(operation="get")

        with pytest.raises(CacheUnavailableError):
            await service.calculate(2, 3)

        mock_history.append.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_through_failure_is_terminal(
        self,
        service: CalculationService,
        mock_cache: MagicMock,
        mock_history: MagicMock,
    ) -> None:
        mock_cache.store.side_effect = CacheUnavailableError(operation="set")

        with pytest.raises(CacheUnavailableError):
            await service.calculate(2, 3)

        mock_history.append.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_persistence_failure_propagates_after_write_through(
        self,
        service: CalculationService,
        mock_cache: MagicMock,
        mock_history: MagicMock,
    ) -> None:
        """The cache write is not undone when the history append fails."""
        mock_history.append.side_effect = PersistenceError(operation="append")

        with pytest.raises(PersistenceError):
            await service.calculate(2, 3)

        mock_cache.store.assert_awaited_once_with("2:3", 5.0)

    @pytest.mark.asyncio
    async def test_equal_operands_in_different_forms_share_cache_entry(
        self,
        service: CalculationService,
        mock_cache: MagicMock,
    ) -> None:
        await service.calculate("1", 1.0)
        await service.calculate(1.0, "1.00")

        keys = [call.args[0] for call in mock_cache.lookup.await_args_list]
        assert keys == ["1:1", "1:1"]


class TestHistoryAndSetup:
    """Tests for recent_history and setup delegation."""

    @pytest.mark.asyncio
    async def test_recent_history_uses_default_limit(
        self, service: CalculationService, mock_history: MagicMock
    ) -> None:
        await service.recent_history()
        mock_history.recent_records.assert_awaited_once_with(5)

    @pytest.mark.asyncio
    async def test_recent_history_custom_limit(
        self, mock_cache: MagicMock, mock_history: MagicMock
    ) -> None:
        service = CalculationService(
            cache=mock_cache, history=mock_history, history_limit=3
        )
        await service.recent_history()
        mock_history.recent_records.assert_awaited_once_with(3)

    @pytest.mark.asyncio
    async def test_recent_history_explicit_zero_limit(
        self, service: CalculationService, mock_history: MagicMock
    ) -> None:
        await service.recent_history(limit=0)
        mock_history.recent_records.assert_awaited_once_with(0)

    @pytest.mark.asyncio
    async def test_setup_ensures_schema(
        self, service: CalculationService, mock_history: MagicMock
    ) -> None:
        await service.setup()
        mock_history.ensure_schema.assert_awaited_once()
