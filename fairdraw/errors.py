"""Error taxonomy for draw operations.

Every error reflects a permanent fact about the draw or the caller's input, so
retrying the same call with the same arguments fails the same way. Operations
validate before mutating, which means a raised error always leaves the draw
exactly as it was.
"""

from __future__ import annotations

from typing import Optional


class DrawError(Exception):
    """Base class for all draw errors."""

    code = "draw_error"
    default_message = "Draw operation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        draw_id: Optional[int] = None,
    ) -> None:
        self.draw_id = draw_id
        self.message = message or self.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<{type(self).__name__}(code={self.code}, draw_id={self.draw_id})>"


# -------- families --------
class NotFoundError(DrawError, LookupError):
    """An identifier or index does not refer to anything."""

    code = "not_found"


class WindowError(DrawError):
    """An action was attempted outside of its time window."""

    code = "window"


class DuplicateActionError(DrawError):
    """An action that may only happen once was attempted again."""

    code = "duplicate"


class ValidationError(DrawError, ValueError):
    """Input or precondition violated."""

    code = "validation"


# -------- not found --------
class DrawNotFoundError(NotFoundError):
    code = "draw_not_found"
    default_message = "Draw does not exist"


class IndexOutOfRangeError(NotFoundError, IndexError):
    code = "index_out_of_range"
    default_message = "Index is out of range"


# -------- windows --------
class CommitWindowClosedError(WindowError):
    code = "commit_window_closed"
    default_message = "Commit window has closed"


class RevealNotStartedError(WindowError):
    code = "reveal_not_started"
    default_message = "Reveal window has not started"


class RevealWindowClosedError(WindowError):
    code = "reveal_window_closed"
    default_message = "Reveal window has closed"


class RevealWindowNotFinishedError(WindowError):
    code = "reveal_window_not_finished"
    default_message = "Reveal window has not finished"


# -------- duplicates --------
class DuplicateCommitmentError(DuplicateActionError):
    code = "duplicate_commitment"
    default_message = "Participant has already committed"


class DuplicateRevealError(DuplicateActionError):
    code = "duplicate_reveal"
    default_message = "Participant has already revealed"


class AlreadyFinalizedError(DuplicateActionError):
    code = "already_finalized"
    default_message = "Draw is already finalized"


# -------- validation --------
class InvalidDurationError(ValidationError):
    code = "invalid_duration"
    default_message = "Durations must be positive"


class NoCommitmentError(ValidationError):
    code = "no_commitment"
    default_message = "Participant has no commitment"


class CommitmentMismatchError(ValidationError):
    code = "commitment_mismatch"
    default_message = "Secret does not match the commitment"


class NoRevealsError(ValidationError):
    code = "no_reveals"
    default_message = "No secrets were revealed"


__all__ = [
    "DrawError",
    "NotFoundError",
    "WindowError",
    "DuplicateActionError",
    "ValidationError",
    "DrawNotFoundError",
    "IndexOutOfRangeError",
    "CommitWindowClosedError",
    "RevealNotStartedError",
    "RevealWindowClosedError",
    "RevealWindowNotFinishedError",
    "DuplicateCommitmentError",
    "DuplicateRevealError",
    "AlreadyFinalizedError",
    "InvalidDurationError",
    "NoCommitmentError",
    "CommitmentMismatchError",
    "NoRevealsError",
]
