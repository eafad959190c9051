"""
Schema Reconciler for the `applications` table.

Brings whatever schema exists in the database up to the expected column set:
- creates the table when it is missing
- adds missing columns one at a time, each in its own transaction, so a
  failure on one column does not stop the others
- (re)creates the lookup indexes

Strictly additive. Destructive changes live in app.db.migrations.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

TABLE_NAME = "applications"


class ColumnSpec(NamedTuple):
    name: str
    sql_type: str
    default: Optional[str] = None
    not_null: bool = False

    def create_ddl(self) -> str:
        parts = [self.name, self.sql_type]
        if self.not_null:
            parts.append("NOT NULL")
        if self.default is not None:
            parts.append(f"DEFAULT {self.default}")
        return " ".join(parts)

    def add_ddl(self) -> str:
        # NOT NULL only when existing rows can be back-filled from the default
        parts = [self.name, self.sql_type]
        if self.default is not None:
            parts.append(f"DEFAULT {self.default}")
            if self.not_null:
                parts.append("NOT NULL")
        return " ".join(parts)


COLUMNS: List[ColumnSpec] = [
    ColumnSpec("id", "SERIAL PRIMARY KEY"),
    ColumnSpec("full_name", "TEXT", not_null=True),
    ColumnSpec("email", "TEXT", not_null=True),
    ColumnSpec("phone", "TEXT", not_null=True),
    ColumnSpec("location", "TEXT", "''", not_null=True),
    ColumnSpec("alx_status", "VARCHAR(50)", "'Not specified'"),
    ColumnSpec("position", "TEXT", not_null=True),
    ColumnSpec("education", "TEXT", "''", not_null=True),
    ColumnSpec("current_role_text", "TEXT", "''"),
    ColumnSpec("experience", "TEXT", "''", not_null=True),
    ColumnSpec("technical_skills", "TEXT", "''", not_null=True),
    ColumnSpec("domain_knowledge", "TEXT", "''"),
    ColumnSpec("portfolio_link", "TEXT", "''"),
    ColumnSpec("motivation", "TEXT", "''", not_null=True),
    ColumnSpec("skills", "TEXT[]", "'{}'", not_null=True),
    ColumnSpec("cv_data", "BYTEA"),
    ColumnSpec("cv_filename", "VARCHAR(255)"),
    ColumnSpec("cv_mimetype", "VARCHAR(255)"),
    ColumnSpec("cover_letter_data", "BYTEA"),
    ColumnSpec("cover_letter_filename", "VARCHAR(255)"),
    ColumnSpec("cover_letter_mimetype", "VARCHAR(255)"),
    ColumnSpec("consent", "BOOLEAN", "FALSE", not_null=True),
    ColumnSpec("submitted_at", "TIMESTAMPTZ", "CURRENT_TIMESTAMP"),
    ColumnSpec("status", "VARCHAR(20)", "'pending'"),
    ColumnSpec("notes", "TEXT"),
]

INDEXES: Dict[str, str] = {
    "idx_applications_email": "email",
    "idx_applications_position": "position",
    "idx_applications_status": "status",
}


def create_table_sql() -> str:
    columns = ",\n    ".join(c.create_ddl() for c in COLUMNS)
    return f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} (\n    {columns}\n)"


def add_column_sql(column: ColumnSpec) -> str:
    return f"ALTER TABLE {TABLE_NAME} ADD COLUMN IF NOT EXISTS {column.add_ddl()}"


def create_index_sql(name: str, column: str) -> str:
    return f"CREATE INDEX IF NOT EXISTS {name} ON {TABLE_NAME} ({column})"


TABLE_EXISTS_SQL = """
    SELECT EXISTS (
        SELECT 1 FROM information_schema.tables
        WHERE table_schema = current_schema() AND table_name = :table
    )
"""

COLUMNS_SQL = """
    SELECT column_name FROM information_schema.columns
    WHERE table_schema = current_schema() AND table_name = :table
"""


@dataclass
class ReconcileReport:
    created_table: bool = False
    added_columns: List[str] = field(default_factory=list)
    failed_columns: Dict[str, str] = field(default_factory=dict)
    indexes_ok: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed_columns and self.indexes_ok

    def as_dict(self) -> dict:
        return {
            "ok": self.ok,
            "created_table": self.created_table,
            "added_columns": self.added_columns,
            "failed_columns": self.failed_columns,
            "indexes_ok": self.indexes_ok,
            "error": self.error,
        }


def missing_columns(existing: List[str]) -> List[ColumnSpec]:
    present = set(existing)
    return [c for c in COLUMNS if c.name not in present]


def _table_exists(engine: Engine) -> bool:
    with engine.connect() as conn:
        return bool(conn.execute(text(TABLE_EXISTS_SQL), {"table": TABLE_NAME}).scalar())


def existing_columns(engine: Engine) -> List[str]:
    with engine.connect() as conn:
        rows = conn.execute(text(COLUMNS_SQL), {"table": TABLE_NAME}).fetchall()
    return [row[0] for row in rows]


def _add_missing_columns(engine: Engine, report: ReconcileReport) -> None:
    existing = existing_columns(engine)
    logger.info("Existing %s columns: %s", TABLE_NAME, ", ".join(existing))

    for column in missing_columns(existing):
        if column.name == "id":
            # A primary key cannot be bolted on safely; leave it to a migration
            report.failed_columns[column.name] = "primary key column missing"
            logger.error("Table %s has no id column; run scripts/migrate.py", TABLE_NAME)
            continue
        try:
            with engine.begin() as conn:
                conn.execute(text(add_column_sql(column)))
            report.added_columns.append(column.name)
            logger.info("Added missing column: %s", column.name)
        except Exception as e:
            report.failed_columns[column.name] = str(e).splitlines()[0]
            logger.warning("Could not add column %s: %s", column.name, e)


def _create_indexes(engine: Engine, report: ReconcileReport) -> None:
    failures = 0
    for name, column in INDEXES.items():
        try:
            with engine.begin() as conn:
                conn.execute(text(create_index_sql(name, column)))
        except Exception as e:
            failures += 1
            logger.warning("Could not create index %s: %s", name, e)
    report.indexes_ok = failures == 0


def reconcile_schema(engine: Engine) -> ReconcileReport:
    """
    Align the live `applications` table with COLUMNS and INDEXES.

    Never raises: problems are logged and recorded on the returned report.
    """
    report = ReconcileReport()
    try:
        if not _table_exists(engine):
            with engine.begin() as conn:
                conn.execute(text(create_table_sql()))
            report.created_table = True
            logger.info("Created %s table", TABLE_NAME)
        else:
            _add_missing_columns(engine, report)
        _create_indexes(engine, report)
    except Exception as e:
        report.error = str(e).splitlines()[0] if str(e) else type(e).__name__
        logger.error("Database setup error: %s", e)
        return report

    if report.ok:
        logger.info("Database schema is up to date")
    return report
