from __future__ import annotations

import enum
import json
from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, TIMESTAMP_TYPE

if TYPE_CHECKING:
    from .draw import Draw


class AuditEventType(str, enum.Enum):
    DRAW_CREATED = "DrawCreated"
    COMMITTED = "Committed"
    REVEALED = "Revealed"
    FINALIZED = "Finalized"


class AuditEvent(Base):
    """Append-only public record of a single draw state transition.

    Rows are only ever inserted. ``payload_json`` holds the event fields
    with byte values encoded as lower-case hex.
    """

    __tablename__ = "draw_audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    draw_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("draws.id", ondelete="RESTRICT"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)
    occurred_at: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)

    draw: Mapped["Draw"] = relationship(back_populates="events")

    __table_args__ = (
        CheckConstraint(
            "event_type IN ('DrawCreated','Committed','Revealed','Finalized')",
            name="event_type_enum",
        ),
        Index("ix_draw_audit_events_draw_id", "draw_id"),
    )

    def __init__(
        self,
        *,
        event_type: AuditEventType | str,
        payload: dict[str, Any],
        occurred_at: int,
        draw: "Draw | None" = None,
        draw_id: int | None = None,
    ) -> None:
        if draw is not None:
            self.draw = draw
        if draw_id is not None:
            self.draw_id = draw_id
        self.event_type = AuditEventType(event_type).value
        self.payload_json = json.dumps(payload, sort_keys=True)
        self.occurred_at = occurred_at

    @property
    def payload(self) -> dict[str, Any]:
        return json.loads(self.payload_json)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "draw_id": self.draw_id,
            "event": self.event_type,
            "occurred_at": self.occurred_at,
            **self.payload,
        }

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<AuditEvent(id={self.id}, draw_id={self.draw_id}, event_type='{self.event_type}')>"
