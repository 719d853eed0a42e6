"""Repository package for SumLog.

This module exports the persistence-facing repositories.
"""

from sumlog.repositories.history import HistoryLog

__all__ = [
    "HistoryLog",
]
