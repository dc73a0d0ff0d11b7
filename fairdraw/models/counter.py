"""Identifier counters allocated inside the database transaction."""

from __future__ import annotations

from sqlalchemy import DDL, String, event
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .id_type import ID_TYPE

DRAW_COUNTER = "draws"


class IdCounter(Base):
    """Next identifier to hand out for a named sequence.

    Allocation bumps ``next_id`` with an ``UPDATE`` before reading it back,
    so the row lock serializes concurrent creators and a rolled back
    transaction also rolls back the allocation.
    """

    __tablename__ = "id_counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    """Sequence name, e.g. ``"draws"``."""

    next_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False, default=0)
    """Identifier the next allocation returns."""

    def __init__(self, *, name: str, next_id: int = 0) -> None:
        self.name = name
        self.next_id = next_id

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<IdCounter(name={self.name}, next_id={self.next_id})>"


# Seed the draw sequence whenever the table is created from metadata.
event.listen(
    IdCounter.__table__,
    "after_create",
    DDL(f"INSERT INTO id_counters (name, next_id) VALUES ('{DRAW_COUNTER}', 0)"),
)


__all__ = ["DRAW_COUNTER", "IdCounter"]
