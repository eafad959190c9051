"""
Versioned schema migrations.

Each migration runs once, inside its own transaction, and is recorded in
`schema_migrations`. Unlike the startup reconciler, migrations may be
destructive, so they are only applied on request (scripts/migrate.py).
"""

import logging
from typing import List, NamedTuple, Optional, Set

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.db.schema import INDEXES, TABLE_NAME, create_index_sql, create_table_sql

logger = logging.getLogger(__name__)


class Migration(NamedTuple):
    version: int
    description: str
    statements: List[str]


MIGRATIONS: List[Migration] = [
    Migration(
        1,
        "create applications table",
        [create_table_sql()] + [create_index_sql(name, col) for name, col in INDEXES.items()],
    ),
    Migration(
        2,
        "store attachments as database blobs",
        [
            f"ALTER TABLE {TABLE_NAME} ADD COLUMN IF NOT EXISTS cv_data BYTEA",
            f"ALTER TABLE {TABLE_NAME} ADD COLUMN IF NOT EXISTS cv_mimetype VARCHAR(255)",
            f"ALTER TABLE {TABLE_NAME} ADD COLUMN IF NOT EXISTS cover_letter_data BYTEA",
            f"ALTER TABLE {TABLE_NAME} ADD COLUMN IF NOT EXISTS cover_letter_mimetype VARCHAR(255)",
        ],
    ),
    Migration(
        3,
        "drop legacy six_status column",
        [f"ALTER TABLE {TABLE_NAME} DROP COLUMN IF EXISTS six_status"],
    ),
]

CREATE_VERSIONS_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        version INTEGER PRIMARY KEY,
        description TEXT NOT NULL,
        applied_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
    )
"""


def ensure_versions_table(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(text(CREATE_VERSIONS_TABLE_SQL))


def applied_versions(engine: Engine) -> Set[int]:
    ensure_versions_table(engine)
    with engine.connect() as conn:
        rows = conn.execute(text("SELECT version FROM schema_migrations")).fetchall()
    return {row[0] for row in rows}


def pending_migrations(engine: Engine, target: Optional[int] = None) -> List[Migration]:
    done = applied_versions(engine)
    return [
        m for m in sorted(MIGRATIONS, key=lambda m: m.version)
        if m.version not in done and (target is None or m.version <= target)
    ]


def migrate(engine: Engine, target: Optional[int] = None, dry_run: bool = False) -> List[Migration]:
    """
    Apply pending migrations up to `target` (all when None).

    Stops at the first failing migration; earlier ones stay applied.
    Returns the migrations applied (or that would be applied on a dry run).
    """
    pending = pending_migrations(engine, target)
    if dry_run:
        return pending

    applied = []
    for migration in pending:
        logger.info("Applying migration %03d: %s", migration.version, migration.description)
        with engine.begin() as conn:
            for statement in migration.statements:
                conn.execute(text(statement))
            conn.execute(
                text("INSERT INTO schema_migrations (version, description) VALUES (:version, :description)"),
                {"version": migration.version, "description": migration.description},
            )
        applied.append(migration)
    return applied
