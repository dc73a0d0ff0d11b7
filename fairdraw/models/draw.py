"""Database models for commit-reveal draws."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE, TIMESTAMP_TYPE
from ..db.utils import timestamp_iso

if TYPE_CHECKING:
    from .audit import AuditEvent


class DrawPhase(str, enum.Enum):
    """Lifecycle phase of a draw at a given point in time."""

    COMMIT = "commit"
    REVEAL = "reveal"
    AWAITING_FINALIZATION = "awaiting_finalization"
    FINALIZED = "finalized"


def _normalize_hex(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized.startswith("0x"):
        normalized = normalized[2:]
    return normalized


class Draw(Base):
    """A single lottery round and its timing windows.

    Window ends are inclusive: a commit at exactly ``commit_window_end`` is
    accepted, and reveals open one tick later.
    """

    __tablename__ = "draws"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=False)
    """Sequential identifier assigned by :class:`~fairdraw.lottery.registry.DrawRegistry`."""

    creator: Mapped[str] = mapped_column(String(255), nullable=False)
    """Identity of the party that created the draw. Carries no privilege."""

    commit_window_end: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)
    """Last timestamp (inclusive) at which commitments are accepted."""

    reveal_window_end: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)
    """Last timestamp (inclusive) at which reveals are accepted."""

    created_at: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)
    """Timestamp supplied when the draw was created."""

    finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Set once the winner has been derived; never reverts."""

    winner: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Winning participant, ``None`` until finalized."""

    winner_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Position of ``winner`` in the reveal order."""

    external_entropy: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    """Hex-encoded entropy mixed into the seed at finalization."""

    finalized_at: Mapped[Optional[int]] = mapped_column(TIMESTAMP_TYPE, nullable=True)
    """Timestamp supplied when the draw was finalized."""

    entries: Mapped[list["DrawEntry"]] = relationship(
        back_populates="draw",
        cascade="all, delete-orphan",
        order_by="DrawEntry.entry_index",
    )
    """Per-participant commitments and reveals in commit order."""

    events: Mapped[list["AuditEvent"]] = relationship(
        back_populates="draw",
        order_by="AuditEvent.id",
    )

    __table_args__ = (
        CheckConstraint("id >= 0", name="id_non_negative"),
        CheckConstraint(
            "commit_window_end < reveal_window_end", name="window_order"
        ),
    )

    def __init__(
        self,
        *,
        id: int,
        creator: str,
        commit_window_end: int,
        reveal_window_end: int,
        created_at: int,
    ) -> None:
        self.id = id
        self.creator = creator
        self.commit_window_end = commit_window_end
        self.reveal_window_end = reveal_window_end
        self.created_at = created_at
        self.finalized = False

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Draw(id={id}, creator={creator}, finalized={finalized}, winner={winner})>".format(
            id=self.id,
            creator=self.creator,
            finalized=self.finalized,
            winner=self.winner,
        )

    @classmethod
    def get(cls, session: Session, draw_id: int) -> Optional["Draw"]:
        """Return the draw with ``draw_id`` if it exists."""
        return session.get(cls, draw_id)

    # -------- derived collections --------
    @property
    def entrants(self) -> list[str]:
        """Participants in commit order."""
        return [entry.participant for entry in self.entries]

    @property
    def commitments(self) -> dict[str, str]:
        """Participant to hex commitment."""
        return {entry.participant: entry.commitment for entry in self.entries}

    @property
    def revealed_entries(self) -> list["DrawEntry"]:
        revealed = [entry for entry in self.entries if entry.reveal_index is not None]
        return sorted(revealed, key=lambda entry: entry.reveal_index)

    @property
    def revealed_order(self) -> list[str]:
        """Participants in reveal order."""
        return [entry.participant for entry in self.revealed_entries]

    @property
    def revealed_secrets(self) -> dict[str, str]:
        """Participant to hex secret, for participants that revealed."""
        return {
            entry.participant: entry.secret
            for entry in self.revealed_entries
            if entry.secret is not None
        }

    def entry_for(self, participant: str) -> Optional["DrawEntry"]:
        """Return the entry committed by ``participant`` if any."""
        for entry in self.entries:
            if entry.participant == participant:
                return entry
        return None

    def phase(self, current_time: int) -> DrawPhase:
        """Return the phase of the draw at ``current_time``."""
        if self.finalized:
            return DrawPhase.FINALIZED
        if current_time <= self.commit_window_end:
            return DrawPhase.COMMIT
        if current_time <= self.reveal_window_end:
            return DrawPhase.REVEAL
        return DrawPhase.AWAITING_FINALIZATION

    def to_json(self) -> dict[str, Any]:
        """Serialize the draw into a JSON-friendly dict."""
        return {
            "id": self.id,
            "creator": self.creator,
            "commit_window_end": self.commit_window_end,
            "reveal_window_end": self.reveal_window_end,
            "created_at": self.created_at,
            "created_at_iso": timestamp_iso(self.created_at),
            "entrants": self.entrants,
            "commitments": self.commitments,
            "revealed_order": self.revealed_order,
            "revealed_secrets": self.revealed_secrets,
            "finalized": self.finalized,
            "winner": self.winner,
            "winner_index": self.winner_index,
            "external_entropy": self.external_entropy,
            "finalized_at": self.finalized_at,
        }


class DrawEntry(Base):
    """Commitment, and later the reveal, of one participant in one draw."""

    __tablename__ = "draw_entries"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    draw_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("draws.id", ondelete="CASCADE"), nullable=False
    )
    """Owning draw."""

    participant: Mapped[str] = mapped_column(String(255), nullable=False)
    """Identity of the committing participant."""

    entry_index: Mapped[int] = mapped_column(Integer, nullable=False)
    """Position in the draw's entrant list."""

    commitment: Mapped[str] = mapped_column(String(64), nullable=False)
    """Hex-encoded SHA-256 commitment; immutable once stored."""

    committed_at: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)

    secret: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    """Hex-encoded secret, set by a matching reveal."""

    reveal_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Position in the draw's reveal order."""

    revealed_at: Mapped[Optional[int]] = mapped_column(TIMESTAMP_TYPE, nullable=True)

    draw: Mapped["Draw"] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("draw_id", "participant", name="uq_draw_entry_participant"),
        UniqueConstraint("draw_id", "entry_index", name="uq_draw_entry_index"),
        UniqueConstraint("draw_id", "reveal_index", name="uq_draw_entry_reveal_index"),
        CheckConstraint(
            "(secret IS NULL) = (reveal_index IS NULL)", name="reveal_consistency"
        ),
        Index("ix_draw_entries_draw_id", "draw_id"),
    )

    def __init__(
        self,
        *,
        participant: str,
        entry_index: int,
        commitment: str,
        committed_at: int,
        draw: Optional["Draw"] = None,
        draw_id: Optional[int] = None,
    ) -> None:
        if draw is not None:
            self.draw = draw
        if draw_id is not None:
            self.draw_id = draw_id
        self.participant = participant
        self.entry_index = entry_index
        self.commitment = commitment
        self.committed_at = committed_at

    @validates("commitment")
    def _set_commitment(self, _key: str, value: str) -> str:
        if self.commitment is not None and _normalize_hex(value) != self.commitment:
            raise ValueError("commitment is immutable once stored")
        return _normalize_hex(value)  # type: ignore[return-value]

    @validates("secret")
    def _set_secret(self, _key: str, value: Optional[str]) -> Optional[str]:
        return _normalize_hex(value)

    @property
    def revealed(self) -> bool:
        return self.reveal_index is not None

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<DrawEntry(draw_id={draw_id}, participant={participant}, revealed={revealed})>".format(
            draw_id=self.draw_id,
            participant=self.participant,
            revealed=self.revealed,
        )


__all__ = ["Draw", "DrawEntry", "DrawPhase"]
