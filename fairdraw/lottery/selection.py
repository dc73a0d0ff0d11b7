"""Deterministic winner selection from revealed secrets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .commitment import Bytes32Like, to_int


@dataclass(frozen=True)
class WinnerSelection:
    """Outcome of mixing revealed secrets with external entropy.

    Attributes
    ----------
    secrets_seed : int
        XOR of every revealed secret.
    seed : int
        ``secrets_seed`` XOR the external entropy.
    winner_index : int
        ``seed`` modulo the number of revealers.
    winner : str
        Participant at ``winner_index`` in reveal order.
    """

    secrets_seed: int
    seed: int
    winner_index: int
    winner: str


def aggregate_secrets(secrets: Iterable[Bytes32Like]) -> int:
    """XOR the secrets together as 256-bit unsigned integers."""
    seed = 0
    for secret in secrets:
        seed ^= to_int(secret, name="secret")
    return seed


def select_winner(
    revealed_order: Sequence[str],
    revealed_secrets: Mapping[str, Bytes32Like],
    external_entropy: Bytes32Like,
) -> WinnerSelection:
    """Select the winner for a draw.

    The XOR step is order independent, but the final index is taken into
    ``revealed_order``, so the reveal order must be the one recorded by the
    draw.

    Parameters
    ----------
    revealed_order : Sequence[str]
        Participants in the order they revealed.
    revealed_secrets : Mapping[str, Bytes32Like]
        Secret revealed by each participant in ``revealed_order``.
    external_entropy : Bytes32Like
        Value supplied by the environment at finalization time.

    Raises
    ------
    ValueError
        If ``revealed_order`` is empty.
    KeyError
        If a participant in ``revealed_order`` has no secret.
    """

    if not revealed_order:
        raise ValueError("cannot select a winner without reveals")

    secrets_seed = aggregate_secrets(revealed_secrets[p] for p in revealed_order)
    seed = secrets_seed ^ to_int(external_entropy, name="external_entropy")
    winner_index = seed % len(revealed_order)
    return WinnerSelection(
        secrets_seed=secrets_seed,
        seed=seed,
        winner_index=winner_index,
        winner=revealed_order[winner_index],
    )


__all__ = ["WinnerSelection", "aggregate_secrets", "select_winner"]
