"""Read-only accessors used to audit draws."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .registry import DrawRegistry
from .selection import select_winner
from ..errors import IndexOutOfRangeError
from ..models import AuditEvent, AuditEventType, DrawPhase


@dataclass(frozen=True)
class DrawSummary:
    """Snapshot of a draw's public metadata.

    ``phase`` is only populated when the caller supplies a timestamp.
    """

    draw_id: int
    creator: str
    commit_window_end: int
    reveal_window_end: int
    entrant_count: int
    revealed_count: int
    finalized: bool
    winner: Optional[str]
    phase: Optional[DrawPhase] = None


@dataclass(frozen=True)
class ReplayResult:
    """Winner recomputed from the audit log alone."""

    draw_id: int
    revealed_order: list[str]
    external_entropy: str
    winner_index: int
    winner: str
    recorded_winner: str

    @property
    def matches(self) -> bool:
        return self.winner == self.recorded_winner


def _at(items: Sequence[str], index: int, *, draw_id: int, label: str) -> str:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(items):
        raise IndexOutOfRangeError(
            f"{label} index {index!r} is out of range for draw {draw_id} "
            f"({len(items)} available)",
            draw_id=draw_id,
        )
    return items[index]


def get_draw_summary(
    session: Session, draw_id: int, current_time: Optional[int] = None
) -> DrawSummary:
    """Return the public summary of ``draw_id``."""
    draw = DrawRegistry.get(session, draw_id)
    return DrawSummary(
        draw_id=draw.id,
        creator=draw.creator,
        commit_window_end=draw.commit_window_end,
        reveal_window_end=draw.reveal_window_end,
        entrant_count=len(draw.entries),
        revealed_count=len(draw.revealed_entries),
        finalized=draw.finalized,
        winner=draw.winner,
        phase=draw.phase(current_time) if current_time is not None else None,
    )


def get_entrant(session: Session, draw_id: int, index: int) -> str:
    """Return the participant that committed at position ``index``."""
    draw = DrawRegistry.get(session, draw_id)
    return _at(draw.entrants, index, draw_id=draw_id, label="entrant")


def get_revealed_participant(session: Session, draw_id: int, index: int) -> str:
    """Return the participant that revealed at position ``index``."""
    draw = DrawRegistry.get(session, draw_id)
    return _at(draw.revealed_order, index, draw_id=draw_id, label="reveal")


def get_commitment(session: Session, draw_id: int, participant: str) -> Optional[str]:
    """Return ``participant``'s hex commitment, or ``None`` if they never committed."""
    draw = DrawRegistry.get(session, draw_id)
    entry = draw.entry_for(participant)
    return entry.commitment if entry is not None else None


def get_revealed_secret(session: Session, draw_id: int, participant: str) -> Optional[str]:
    """Return ``participant``'s revealed hex secret, or ``None`` before a reveal."""
    draw = DrawRegistry.get(session, draw_id)
    entry = draw.entry_for(participant)
    return entry.secret if entry is not None else None


def list_entrants(session: Session, draw_id: int) -> list[str]:
    return DrawRegistry.get(session, draw_id).entrants


def list_revealed(session: Session, draw_id: int) -> list[str]:
    return DrawRegistry.get(session, draw_id).revealed_order


def list_audit_events(
    session: Session,
    draw_id: Optional[int] = None,
    *,
    event_type: Optional[AuditEventType] = None,
) -> list[AuditEvent]:
    """Return audit events in the order they were appended.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session used to issue the query.
    draw_id : Optional[int], default: None
        Restrict to one draw. The draw must exist.
    event_type : Optional[AuditEventType], default: None
        Restrict to one kind of event.
    """

    stmt = select(AuditEvent)
    if draw_id is not None:
        DrawRegistry.get(session, draw_id)
        stmt = stmt.where(AuditEvent.draw_id == draw_id)
    if event_type is not None:
        stmt = stmt.where(AuditEvent.event_type == AuditEventType(event_type).value)
    return list(session.scalars(stmt.order_by(AuditEvent.id.asc())).all())


def replay_finalization(session: Session, draw_id: int) -> Optional[ReplayResult]:
    """Recompute the winner of ``draw_id`` from its audit events only.

    Only the ``Revealed`` and ``Finalized`` records are consulted, exactly as
    an outside observer reading the public log would. Returns ``None`` while
    the draw has not been finalized.
    """

    events = list_audit_events(session, draw_id)
    revealed_order: list[str] = []
    secrets: dict[str, str] = {}
    finalized_payload = None
    for event in events:
        payload = event.payload
        if event.event_type == AuditEventType.REVEALED.value:
            revealed_order.append(payload["participant"])
            secrets[payload["participant"]] = payload["secret"]
        elif event.event_type == AuditEventType.FINALIZED.value:
            finalized_payload = payload

    if finalized_payload is None:
        return None

    selection = select_winner(
        revealed_order, secrets, finalized_payload["external_entropy"]
    )
    return ReplayResult(
        draw_id=draw_id,
        revealed_order=revealed_order,
        external_entropy=finalized_payload["external_entropy"],
        winner_index=selection.winner_index,
        winner=selection.winner,
        recorded_winner=finalized_payload["winner"],
    )


__all__ = [
    "DrawSummary",
    "ReplayResult",
    "get_commitment",
    "get_draw_summary",
    "get_entrant",
    "get_revealed_participant",
    "get_revealed_secret",
    "list_audit_events",
    "list_entrants",
    "list_revealed",
    "replay_finalization",
]
