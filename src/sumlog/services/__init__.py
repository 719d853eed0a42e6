"""Services package for SumLog.

This module exports service classes for business logic.
"""

from sumlog.services.cache import (
    CacheAsideStore,
    cache_key,
    canonical_number,
    create_redis_client,
)
from sumlog.services.calculator import (
    CalculationResult,
    CalculationService,
    InputPair,
    parse_input_pair,
    parse_operand,
)

__all__ = [
    # Cache
    "CacheAsideStore",
    "cache_key",
    "canonical_number",
    "create_redis_client",
    # Calculation
    "CalculationResult",
    "CalculationService",
    "InputPair",
    "parse_input_pair",
    "parse_operand",
]
