#!/usr/bin/env python3
"""
Schema Migration Script

Applies the numbered migrations in app/db/migrations.py using the
DB_* settings from the environment / .env file.

Usage:
    python scripts/migrate.py --list
    python scripts/migrate.py --dry-run
    python scripts/migrate.py [--target N]
"""
import argparse
import logging
import sys

sys.path.insert(0, '.')

from app.core.config import get_settings
from app.core.logging import setup_logging
from app.db.migrations import MIGRATIONS, applied_versions, migrate
from app.db.postgres import build_engine


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Apply careers portal schema migrations")
    parser.add_argument("--list", action="store_true", help="show migrations and whether they are applied")
    parser.add_argument("--target", type=int, default=None, help="stop after this version")
    parser.add_argument("--dry-run", action="store_true", help="print pending migrations without applying")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)
    engine = build_engine(settings)

    print("=" * 50)
    print("CAREERS PORTAL - SCHEMA MIGRATIONS")
    print(f"Database: {settings.db_user}:****@{settings.db_host}:{settings.db_port}/{settings.db_name}")
    print("=" * 50)

    try:
        if args.list:
            done = applied_versions(engine)
            for m in MIGRATIONS:
                mark = "x" if m.version in done else " "
                print(f"  [{mark}] {m.version:03d} {m.description}")
            return 0

        migrations = migrate(engine, target=args.target, dry_run=args.dry_run)
        verb = "Would apply" if args.dry_run else "Applied"
        if not migrations:
            print("Nothing to do, schema is up to date.")
        for m in migrations:
            print(f"  {verb} {m.version:03d} {m.description}")
        return 0
    except Exception:
        logging.getLogger(__name__).exception("Migration failed")
        return 1
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
