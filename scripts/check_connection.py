#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the database is reachable and the schema is in shape.
Usage: python scripts/check_connection.py [--reconcile]
"""
import sys
sys.path.insert(0, '.')

from app.core.config import get_settings
from app.core.logging import setup_logging
from app.db.postgres import Database
from app.db.schema import COLUMNS, missing_columns, existing_columns


def main():
    settings = get_settings()
    setup_logging(settings.log_level)
    db = Database.from_settings(settings)

    print("=" * 50)
    print("CAREERS PORTAL - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] Testing PostgreSQL...")
    print(f"    URL: postgresql://{settings.db_user}:****@{settings.db_host}:{settings.db_port}/{settings.db_name}")
    if not db.ping():
        print("    ❌ PostgreSQL: FAILED")
        return 1
    print(f"    ✅ PostgreSQL: CONNECTED (server time {db.server_time()})")

    print("\n[2] Checking applications schema...")
    missing = [c.name for c in missing_columns(existing_columns(db.engine))]
    if missing:
        print(f"    ⚠️  Missing columns: {', '.join(missing)}")
    else:
        print(f"    ✅ All {len(COLUMNS)} columns present")

    if "--reconcile" in sys.argv:
        print("\n[3] Reconciling schema...")
        report = db.reconcile()
        print(f"    {'✅' if report.ok else '❌'} {report.as_dict()}")

    db.dispose()
    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main())
