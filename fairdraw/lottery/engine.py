"""Engine that drives a draw through its commit, reveal and finalization phases."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from .commitment import Bytes32Like, hash_secret, to_bytes32, to_hex
from .identity import require_identity
from .registry import DEFAULT_REGISTRY, DrawRegistry
from .selection import WinnerSelection, select_winner
from ..errors import (
    AlreadyFinalizedError,
    CommitmentMismatchError,
    CommitWindowClosedError,
    DuplicateCommitmentError,
    DuplicateRevealError,
    NoCommitmentError,
    NoRevealsError,
    RevealNotStartedError,
    RevealWindowClosedError,
    RevealWindowNotFinishedError,
)
from ..models import AuditEvent, AuditEventType, Draw, DrawEntry

logger = logging.getLogger(__name__)


@dataclass
class FinalizationResult:
    """Value object describing a finalized draw.

    Attributes
    ----------
    draw : Draw
        The finalized draw as stored in the database.
    selection : WinnerSelection
        Seeds and index that produced the winner.
    external_entropy : str
        Hex-encoded entropy that was mixed in.
    """

    draw: Draw
    selection: WinnerSelection
    external_entropy: str

    @property
    def winner(self) -> str:
        return self.selection.winner


class DrawEngine:
    """Applies participant actions to draws bound to a SQLAlchemy session.

    Every method checks all of its preconditions before touching the draw,
    so a raised error leaves the stored state exactly as it was. The caller
    owns the transaction; the engine only flushes.
    """

    def __init__(
        self,
        session: Session,
        *,
        registry: Optional[DrawRegistry] = None,
    ) -> None:
        """Create a draw engine bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for lookups and persistence.
        registry : Optional[DrawRegistry], default: None
            Registry used to resolve draws. The shared default registry is
            used when omitted.
        """

        self._session = session
        self._registry = registry or DEFAULT_REGISTRY

    def _record(
        self,
        draw: Draw,
        event_type: AuditEventType,
        occurred_at: int,
        **fields,
    ) -> AuditEvent:
        event = AuditEvent(
            draw=draw,
            event_type=event_type,
            payload={"draw_id": draw.id, **fields},
            occurred_at=occurred_at,
        )
        self._session.add(event)
        return event

    def commit(
        self,
        draw_id: int,
        commitment_hash: Bytes32Like,
        participant: str,
        current_time: int,
    ) -> DrawEntry:
        """Register ``participant``'s commitment while the commit window is open.

        The commitment is stored as given; only its size is checked. Whether
        it was honestly derived is discovered at reveal time.

        Raises
        ------
        DrawNotFoundError
            If ``draw_id`` is unknown.
        TypeError, ValueError
            If a value or ``participant`` is malformed.
        CommitWindowClosedError
            If ``current_time`` is after the commit window end.
        DuplicateCommitmentError
            If ``participant`` already committed to this draw.
        """

        draw = self._registry.get(self._session, draw_id)
        commitment = to_hex(commitment_hash, name="commitment_hash")
        require_identity(participant)

        if current_time > draw.commit_window_end:
            raise CommitWindowClosedError(
                f"Commit window of draw {draw_id} closed at {draw.commit_window_end}",
                draw_id=draw_id,
            )
        if draw.entry_for(participant) is not None:
            raise DuplicateCommitmentError(
                f"{participant} already committed to draw {draw_id}",
                draw_id=draw_id,
            )

        entry = DrawEntry(
            participant=participant,
            entry_index=len(draw.entries),
            commitment=commitment,
            committed_at=current_time,
        )
        draw.entries.append(entry)
        self._record(
            draw,
            AuditEventType.COMMITTED,
            current_time,
            participant=participant,
            commitment_hash=commitment,
        )
        self._session.flush()

        logger.info("Draw %s: %s committed %s", draw_id, participant, commitment)
        return entry

    def reveal(
        self,
        draw_id: int,
        secret: Bytes32Like,
        participant: str,
        current_time: int,
    ) -> DrawEntry:
        """Record ``participant``'s secret during the reveal window.

        The reveal window opens one tick after the commit window end and
        closes after the reveal window end (inclusive).

        Raises
        ------
        DrawNotFoundError
            If ``draw_id`` is unknown.
        TypeError, ValueError
            If a value or ``participant`` is malformed.
        RevealNotStartedError
            If the commit window is still open.
        RevealWindowClosedError
            If the reveal window has ended.
        NoCommitmentError
            If ``participant`` never committed.
        CommitmentMismatchError
            If the secret does not hash to the stored commitment.
        DuplicateRevealError
            If ``participant`` already revealed.
        """

        draw = self._registry.get(self._session, draw_id)
        secret_bytes = to_bytes32(secret, name="secret")
        require_identity(participant)

        if current_time <= draw.commit_window_end:
            raise RevealNotStartedError(
                f"Reveal window of draw {draw_id} opens after {draw.commit_window_end}",
                draw_id=draw_id,
            )
        if current_time > draw.reveal_window_end:
            raise RevealWindowClosedError(
                f"Reveal window of draw {draw_id} closed at {draw.reveal_window_end}",
                draw_id=draw_id,
            )
        entry = draw.entry_for(participant)
        if entry is None:
            raise NoCommitmentError(
                f"{participant} has no commitment in draw {draw_id}",
                draw_id=draw_id,
            )
        if hash_secret(secret_bytes).hex() != entry.commitment:
            raise CommitmentMismatchError(
                f"Secret from {participant} does not match its commitment in draw {draw_id}",
                draw_id=draw_id,
            )
        if entry.revealed:
            raise DuplicateRevealError(
                f"{participant} already revealed in draw {draw_id}",
                draw_id=draw_id,
            )

        entry.secret = secret_bytes.hex()
        entry.reveal_index = len(draw.revealed_entries)
        entry.revealed_at = current_time
        self._record(
            draw,
            AuditEventType.REVEALED,
            current_time,
            participant=participant,
            secret=entry.secret,
        )
        self._session.flush()

        logger.info("Draw %s: %s revealed %s", draw_id, participant, entry.secret)
        return entry

    def ensure_finalizable(self, draw_id: int, current_time: int) -> Draw:
        """Return the draw if it can be finalized at ``current_time``.

        Raises the same errors as :meth:`finalize`, in the same order,
        without changing anything.
        """

        draw = self._registry.get(self._session, draw_id)
        if current_time <= draw.reveal_window_end:
            raise RevealWindowNotFinishedError(
                f"Reveal window of draw {draw_id} runs until {draw.reveal_window_end}",
                draw_id=draw_id,
            )
        if draw.finalized:
            raise AlreadyFinalizedError(
                f"Draw {draw_id} was already finalized", draw_id=draw_id
            )
        if not draw.revealed_entries:
            raise NoRevealsError(
                f"Draw {draw_id} has no revealed secrets", draw_id=draw_id
            )
        return draw

    def finalize(
        self,
        draw_id: int,
        current_time: int,
        external_entropy: Bytes32Like,
    ) -> FinalizationResult:
        """Derive and store the winner once the reveal window has closed.

        Any caller may finalize. A second call fails with
        :class:`AlreadyFinalizedError` and leaves the stored winner untouched.

        Notes
        -----
        1. XOR every revealed secret, as 256-bit unsigned integers.
        2. XOR the result with ``external_entropy``.
        3. Take the seed modulo the number of revealers.
        4. The winner is the revealer at that index in reveal order.

        Raises
        ------
        DrawNotFoundError
            If ``draw_id`` is unknown.
        RevealWindowNotFinishedError
            If ``current_time`` is not after the reveal window end.
        AlreadyFinalizedError
            If the draw was already finalized.
        NoRevealsError
            If nobody revealed.
        """

        draw = self.ensure_finalizable(draw_id, current_time)
        entropy = to_bytes32(external_entropy, name="external_entropy")
        revealed_order = draw.revealed_order

        selection = select_winner(revealed_order, draw.revealed_secrets, entropy)

        draw.winner = selection.winner
        draw.winner_index = selection.winner_index
        draw.external_entropy = entropy.hex()
        draw.finalized_at = current_time
        draw.finalized = True
        self._record(
            draw,
            AuditEventType.FINALIZED,
            current_time,
            winner=selection.winner,
            winner_index=selection.winner_index,
            external_entropy=draw.external_entropy,
        )
        self._session.flush()

        logger.info(
            "Draw %s finalized: winner %s (index %s of %s reveals)",
            draw_id,
            selection.winner,
            selection.winner_index,
            len(revealed_order),
        )
        return FinalizationResult(
            draw=draw,
            selection=selection,
            external_entropy=draw.external_entropy,
        )


__all__ = ["DrawEngine", "FinalizationResult"]
