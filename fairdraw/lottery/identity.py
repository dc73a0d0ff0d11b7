"""Validation for participant and creator identities."""

from __future__ import annotations


def require_identity(value: object, label: str = "participant") -> str:
    """Return ``value`` if it is usable as an identity string.

    Raises
    ------
    TypeError
        If ``value`` is not a ``str``.
    ValueError
        If ``value`` is empty or only whitespace.
    """
    if not isinstance(value, str):
        raise TypeError(f"{label} must be a string, got {type(value).__name__}")
    if not value.strip():
        raise ValueError(f"{label} must not be empty")
    return value


__all__ = ["require_identity"]
