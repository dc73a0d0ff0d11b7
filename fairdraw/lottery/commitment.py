"""Commitment helpers for the commit-reveal protocol.

Secrets, commitments and external entropy are all 32-byte values. They may be
supplied as raw bytes, as 64-character hex strings (an optional ``0x`` prefix
is accepted), or, for secrets and entropy, as non-negative integers below
``2**256``. Integers map to their big-endian encoding.
"""

from __future__ import annotations

import hashlib
from typing import Union

WORD_SIZE = 32
"""Width in bytes of secrets, commitments and entropy values."""

WORD_MAX = 1 << (WORD_SIZE * 8)

Bytes32Like = Union[bytes, bytearray, memoryview, str, int]


def to_bytes32(value: Bytes32Like, *, name: str = "value") -> bytes:
    """Normalize ``value`` to exactly 32 bytes.

    Parameters
    ----------
    value : bytes | bytearray | memoryview | str | int
        Raw bytes, a hex string, or a non-negative integer.
    name : str, default: "value"
        Label used in error messages.

    Returns
    -------
    bytes
        The 32-byte big-endian representation.

    Raises
    ------
    TypeError
        If ``value`` is of an unsupported type.
    ValueError
        If ``value`` has the wrong size, is not valid hex, or is out of range.
    """

    if isinstance(value, bool):
        raise TypeError(f"{name} must be bytes, a hex string, or an int")
    if isinstance(value, int):
        if value < 0 or value >= WORD_MAX:
            raise ValueError(f"{name} must be in the range [0, 2**256)")
        return value.to_bytes(WORD_SIZE, "big")
    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        if len(text) != WORD_SIZE * 2:
            raise ValueError(f"{name} must be {WORD_SIZE * 2} hex characters")
        try:
            return bytes.fromhex(text)
        except ValueError as exc:
            raise ValueError(f"{name} is not valid hex") from exc
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) != WORD_SIZE:
            raise ValueError(f"{name} must be exactly {WORD_SIZE} bytes")
        return raw
    raise TypeError(f"{name} must be bytes, a hex string, or an int")


def to_int(value: Bytes32Like, *, name: str = "value") -> int:
    """Interpret ``value`` as a 256-bit unsigned integer."""
    return int.from_bytes(to_bytes32(value, name=name), "big")


def to_hex(value: Bytes32Like, *, name: str = "value") -> str:
    """Return the lower-case hex form (no prefix) used for storage and logs."""
    return to_bytes32(value, name=name).hex()


def hash_secret(secret: Bytes32Like) -> bytes:
    """Return the SHA-256 digest of the secret's 32-byte encoding."""
    return hashlib.sha256(to_bytes32(secret, name="secret")).digest()


def make_commitment(secret: Bytes32Like) -> str:
    """Build the commitment a participant submits for ``secret``.

    This is what a participant computes off-line before calling ``commit``;
    the draw never sees the secret until the reveal.
    """
    return hash_secret(secret).hex()


def verify_commitment(secret: Bytes32Like, commitment: Bytes32Like) -> bool:
    """Return ``True`` when ``secret`` hashes to ``commitment``."""
    return hash_secret(secret) == to_bytes32(commitment, name="commitment")


__all__ = [
    "Bytes32Like",
    "WORD_SIZE",
    "hash_secret",
    "make_commitment",
    "to_bytes32",
    "to_hex",
    "to_int",
    "verify_commitment",
]
