from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .draw import Draw, DrawEntry, DrawPhase  # noqa: F401
from .audit import AuditEvent, AuditEventType  # noqa: F401
from .counter import DRAW_COUNTER, IdCounter  # noqa: F401

__all__ = [
    "Base",
    "Draw",
    "DrawEntry",
    "DrawPhase",
    "AuditEvent",
    "AuditEventType",
    "DRAW_COUNTER",
    "IdCounter",
]
