"""
Database schema management.

Applies the SQL files in ``migrations/`` in order and records each applied
file in the ``meta`` table, so running it twice is harmless.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pg_connection import PostgresDB

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def get_migration_files() -> list[Path]:
    """Get all SQL migration files in order."""
    if not MIGRATIONS_DIR.exists():
        return []

    return sorted(MIGRATIONS_DIR.glob("*.sql"))


def run_migrations(db: "PostgresDB", force: bool = False) -> int:
    """
    Run all pending migrations.

    Args:
        db: Database connection
        force: If True, run all migrations even if already applied

    Returns:
        Number of migrations applied
    """
    migration_files = get_migration_files()
    if not migration_files:
        logger.warning("No migration files found in %s", MIGRATIONS_DIR)
        return 0

    applied = 0

    for migration_file in migration_files:
        migration_name = migration_file.stem

        if not force and db.is_initialized():
            if db.get_meta(f"migration_{migration_name}"):
                logger.debug("Skipping already applied migration: %s", migration_name)
                continue

        logger.info("Applying migration: %s", migration_name)

        try:
            # The script and its meta record commit together
            with db.transaction() as conn:
                conn.execute(migration_file.read_text())
                db.set_meta(f"migration_{migration_name}", "applied", conn=conn)
            applied += 1
            logger.info("Successfully applied migration: %s", migration_name)

        except Exception as e:
            logger.error("Failed to apply migration %s: %s", migration_name, e)
            raise

    return applied


def init_database(db: "PostgresDB") -> int:
    """
    Bring the database schema up to date.

    Args:
        db: Database connection

    Returns:
        Number of migrations applied
    """
    applied = run_migrations(db)
    logger.info("Database initialized with %d migrations", applied)
    return applied


def get_schema_version(db: "PostgresDB") -> str:
    """Get the current schema version."""
    if not db.is_initialized():
        return "0"

    return db.get_meta("schema_version") or "unknown"
