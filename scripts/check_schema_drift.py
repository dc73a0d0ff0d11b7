from __future__ import annotations

import argparse
import sys
from typing import Optional

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext

from fairdraw.db.engine import make_engine
from fairdraw.models import Base


def _only_draw_tables(obj, name, type_, reflected, compare_to) -> bool:
    # Other applications may share the database; ignore their tables.
    if type_ == "table":
        return name in Base.metadata.tables
    return True


def _print_ops(ops, indent: int = 0) -> None:
    prefix = "  " * indent
    for op in ops:
        print(f"{prefix}- {op}")
        sub_ops = getattr(op, "ops", None)
        if sub_ops:
            _print_ops(sub_ops, indent + 1)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compare the draw models with the live database schema."
    )
    parser.add_argument("--url", help="Database URL (defaults to DB_URL)")
    args = parser.parse_args(argv)

    engine = make_engine(args.url)
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                    "include_object": _only_draw_tables,
                },
            )
            migration = ag_api.produce_migrations(context, Base.metadata)
            upgrade_ops = migration.upgrade_ops
            if upgrade_ops is None or upgrade_ops.is_empty():
                print(f"Schema drift check: OK for {url_display}.")
                return 0
            print(f"Schema drift check: FAILED for {url_display}. Differences detected:")
            _print_ops(upgrade_ops.ops or [])
            return 1
    except Exception as exc:
        print(f"Schema drift check: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
