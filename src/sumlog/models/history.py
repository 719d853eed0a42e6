"""HistoryRecord model - one row per served calculation."""

from __future__ import annotations

from sqlalchemy import Double, Integer
from sqlalchemy.orm import Mapped, mapped_column

from sumlog.models.base import Base, CreatedAtMixin


class HistoryRecord(CreatedAtMixin, Base):
    """An immutable record of one calculation.

    Written for every successful /calculate request, cache hits included.

    Attributes:
        id: Identity, increasing with insertion order
        num1: First operand
        num2: Second operand
        result: The sum returned to the client
        created_at: Insertion time, assigned by the database
    """

    __tablename__ = "hist_log"
    # Fetch id and created_at with RETURNING on insert
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    num1: Mapped[float] = mapped_column(Double, nullable=False)
    num2: Mapped[float] = mapped_column(Double, nullable=False)
    result: Mapped[float] = mapped_column(Double, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<HistoryRecord(id={self.id}, num1={self.num1}, num2={self.num2}, "
            f"result={self.result}, created_at={self.created_at})>"
        )
