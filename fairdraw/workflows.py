from typing import TYPE_CHECKING, Optional
import logging

from sqlalchemy.orm import Session

from .lottery.commitment import Bytes32Like
from .lottery.engine import DrawEngine
from .lottery.registry import DEFAULT_REGISTRY, DrawRegistry
from .models import DrawEntry

if TYPE_CHECKING:
    from .blockchain.api import ChainClient

logger = logging.getLogger(__name__)


def create_draw(
    session: Session,
    commit_duration: int,
    reveal_duration: int,
    creator: str,
    current_time: int,
    *,
    registry: Optional[DrawRegistry] = None,
) -> int:
    """Create a draw and return its identifier.

    ``commit_window_end`` is ``current_time + commit_duration`` and
    ``reveal_window_end`` is ``commit_window_end + reveal_duration``. A
    ``DrawCreated`` audit event is appended.

    Raises
    ------
    InvalidDurationError
        If either duration is not strictly positive.
    TypeError, ValueError
        If ``creator`` is not a non-empty string.
    """

    active_registry = registry or DEFAULT_REGISTRY
    return active_registry.create_draw(
        session, commit_duration, reveal_duration, creator, current_time
    )


def commit(
    session: Session,
    draw_id: int,
    commitment_hash: Bytes32Like,
    participant: str,
    current_time: int,
    *,
    registry: Optional[DrawRegistry] = None,
) -> DrawEntry:
    """Enter ``participant`` into a draw with ``commitment_hash``.

    This function essentially wraps :meth:`DrawEngine.commit`.
    """

    engine = DrawEngine(session, registry=registry)
    return engine.commit(draw_id, commitment_hash, participant, current_time)


def reveal(
    session: Session,
    draw_id: int,
    secret: Bytes32Like,
    participant: str,
    current_time: int,
    *,
    registry: Optional[DrawRegistry] = None,
) -> DrawEntry:
    """Reveal ``participant``'s secret for a draw.

    This function essentially wraps :meth:`DrawEngine.reveal`.
    """

    engine = DrawEngine(session, registry=registry)
    return engine.reveal(draw_id, secret, participant, current_time)


def finalize(
    session: Session,
    draw_id: int,
    current_time: int,
    external_entropy: Bytes32Like,
    *,
    registry: Optional[DrawRegistry] = None,
) -> str:
    """Finalize a draw and return the winner.

    Parameters
    ----------
    session : Session
        Active session used for persistence and queries.
    draw_id : int
        Draw to finalize.
    current_time : int
        Timestamp supplied by the environment; must be after the reveal window.
    external_entropy : Bytes32Like
        Value that was unknown to every participant at commit time, e.g. a
        recent block hash.
    registry : Optional[DrawRegistry], default: None
        Registry used to resolve the draw.

    Returns
    -------
    str
        The winning participant.
    """

    engine = DrawEngine(session, registry=registry)
    result = engine.finalize(draw_id, current_time, external_entropy)
    return result.winner


def finalize_with_chain_entropy(
    session: Session,
    draw_id: int,
    current_time: int,
    *,
    client: Optional["ChainClient"] = None,
    block_height: Optional[int] = None,
    registry: Optional[DrawRegistry] = None,
) -> str:
    """Finalize a draw using a block hash as external entropy.

    The block hash is fetched only after the draw is known to be ready, so a
    premature call does not hit the chain API.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    draw_id : int
        Draw to finalize.
    current_time : int
        Timestamp supplied by the environment.
    client : Optional[ChainClient]
        Optional pre-configured :class:`~fairdraw.blockchain.api.ChainClient`.
        If not provided, a default one will be created.
    block_height : Optional[int]
        Block whose hash is used. The latest block is used when omitted.
    registry : Optional[DrawRegistry], default: None
        Registry used to resolve the draw.

    Returns
    -------
    str
        The winning participant.
    """

    engine = DrawEngine(session, registry=registry)
    engine.ensure_finalizable(draw_id, current_time)

    if client is None:
        from .blockchain.api import ChainClient

        client = ChainClient()

    entropy = client.block_hash(block_height)
    logger.info("Draw %s: using block hash %s as entropy", draw_id, entropy.hex())
    return engine.finalize(draw_id, current_time, entropy).winner
