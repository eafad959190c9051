"""
Database module - PostgreSQL handle, schema reconciler and migrations.
"""
from app.db.postgres import Database, build_engine
from app.db.schema import ReconcileReport, reconcile_schema

__all__ = [
    "Database",
    "build_engine",
    "ReconcileReport",
    "reconcile_schema",
]
