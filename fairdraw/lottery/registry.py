"""Registry that owns draw creation and identifier assignment."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .identity import require_identity
from ..errors import DrawNotFoundError, InvalidDurationError
from ..models import DRAW_COUNTER, AuditEvent, AuditEventType, Draw, IdCounter

logger = logging.getLogger(__name__)

# Ids are stored as signed 64-bit integers.
MAX_DRAW_ID = 2**63 - 1


class DrawRegistry:
    """Creates draws and hands out dense, never-reused identifiers.

    The next identifier lives in the ``id_counters`` row named
    ``counter_name``. Allocation increments that row before reading it, so
    the database write lock serializes concurrent creators across sessions
    and processes. Rolling back the caller's transaction also rolls back the
    counter, which keeps ids dense.
    """

    def __init__(self, counter_name: str = DRAW_COUNTER) -> None:
        self.counter_name = counter_name

    def _allocate_id(self, session: Session) -> int:
        bumped = session.execute(
            update(IdCounter)
            .where(IdCounter.name == self.counter_name)
            .values(next_id=IdCounter.next_id + 1)
            .execution_options(synchronize_session=False)
        )
        if bumped.rowcount == 0:
            # counter row missing, e.g. tables created without the seed
            stored_max = session.scalar(select(func.max(Draw.id)))
            draw_id = 0 if stored_max is None else stored_max + 1
            session.add(IdCounter(name=self.counter_name, next_id=draw_id + 1))
            session.flush()
            return draw_id
        next_id = session.scalar(
            select(IdCounter.next_id).where(IdCounter.name == self.counter_name)
        )
        return next_id - 1

    def create_draw(
        self,
        session: Session,
        commit_duration: int,
        reveal_duration: int,
        creator: str,
        current_time: int,
    ) -> int:
        """Create a draw and return its identifier.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for persistence.
        commit_duration : int
            Length of the commit window, counted from ``current_time``.
        reveal_duration : int
            Length of the reveal window, counted from the end of the commit window.
        creator : str
            Identity of the caller creating the draw.
        current_time : int
            Timestamp supplied by the environment.

        Returns
        -------
        int
            Identifier of the new draw.

        Raises
        ------
        InvalidDurationError
            If either duration is not a strictly positive integer.
        TypeError, ValueError
            If ``creator`` is not a non-empty string.
        """

        for label, duration in (("commit", commit_duration), ("reveal", reveal_duration)):
            if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
                raise InvalidDurationError(
                    f"{label} duration must be a positive integer, got {duration!r}"
                )
        require_identity(creator, "creator")

        commit_window_end = current_time + commit_duration
        reveal_window_end = commit_window_end + reveal_duration

        draw_id = self._allocate_id(session)
        draw = Draw(
            id=draw_id,
            creator=creator,
            commit_window_end=commit_window_end,
            reveal_window_end=reveal_window_end,
            created_at=current_time,
        )
        session.add(draw)
        session.add(
            AuditEvent(
                draw=draw,
                event_type=AuditEventType.DRAW_CREATED,
                payload={
                    "draw_id": draw_id,
                    "creator": creator,
                    "commit_window_end": commit_window_end,
                    "reveal_window_end": reveal_window_end,
                },
                occurred_at=current_time,
            )
        )
        session.flush()

        logger.info(
            "Draw %s created by %s (commit until %s, reveal until %s)",
            draw_id,
            creator,
            commit_window_end,
            reveal_window_end,
        )
        return draw_id

    @staticmethod
    def get(session: Session, draw_id: int) -> Draw:
        """Return the draw with ``draw_id`` or raise :class:`DrawNotFoundError`."""
        draw: Optional[Draw] = None
        if (
            isinstance(draw_id, int)
            and not isinstance(draw_id, bool)
            and 0 <= draw_id <= MAX_DRAW_ID
        ):
            draw = Draw.get(session, draw_id)
        if draw is None:
            raise DrawNotFoundError(f"Draw {draw_id!r} does not exist", draw_id=draw_id)
        return draw


DEFAULT_REGISTRY = DrawRegistry()


__all__ = ["DEFAULT_REGISTRY", "MAX_DRAW_ID", "DrawRegistry"]
