from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from fairdraw.db.engine import make_engine

logger = logging.getLogger(__name__)

DRAW_TABLES = {"draws", "draw_entries", "draw_audit_events", "id_counters"}


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def missing_tables() -> set[str]:
    """Return the draw tables not present in the configured database."""
    engine = make_engine()
    try:
        return DRAW_TABLES - set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def main() -> int:
    """Apply migrations (default to head) and report any missing draw table."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    upgrade_db()
    missing = missing_tables()
    if missing:
        logger.error("Missing tables after upgrade: %s", ", ".join(sorted(missing)))
        return 1
    print("Draw tables ready:", ", ".join(sorted(DRAW_TABLES)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
