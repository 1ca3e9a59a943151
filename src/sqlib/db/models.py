from __future__ import annotations

from sqlalchemy import Boolean, SmallInteger, false
from sqlalchemy.orm import Mapped
from sqlalchemy.orm import DeclarativeBase, mapped_column  # type: ignore[attr-defined]


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for sqlib tables."""


# =============================================================================
# SQLAlchemy Models (Database Tables)
# =============================================================================


class ExecutionSlotModel(Base):
    """One execution slot. Rows are created once and never deleted."""

    __tablename__ = "execution_slots"

    # Slot ids are assigned by the facility (0..N-1), never by the database
    id: Mapped[int] = mapped_column(
        SmallInteger, primary_key=True, autoincrement=False
    )
    busy: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )

    def __repr__(self) -> str:
        return f"ExecutionSlotModel(id={self.id!r}, busy={self.busy!r})"
