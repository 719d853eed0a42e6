"""Models package for SumLog.

This module exports the Base class and all model classes.
"""

from sumlog.models.base import Base, CreatedAtMixin
from sumlog.models.history import HistoryRecord

__all__ = [
    # Base and Mixins
    "Base",
    "CreatedAtMixin",
    # Tables
    "HistoryRecord",
]
