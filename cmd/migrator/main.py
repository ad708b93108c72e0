"""
Database Migrator Entry Point.

Applies the SQL files in ``migrations/`` in name order, recording each one
in the ``_migrations`` table.
"""
import asyncio
import sys
from pathlib import Path

import asyncpg
from dotenv import load_dotenv

from config.settings import get_settings
from pkg.logger.logger import get_logger, setup_logging


# Load environment variables
load_dotenv()

MIGRATIONS_DIR = Path(__file__).parent.parent.parent / "migrations"

logger = get_logger("migrator")


async def get_applied_migrations(conn: asyncpg.Connection) -> set[str]:
    """
    Get names of already applied migrations.

    Args:
        conn: Database connection.

    Returns:
        Set of applied migration names.
    """
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS _migrations (
            id SERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL UNIQUE,
            applied_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    rows = await conn.fetch("SELECT name FROM _migrations")
    return {row["name"] for row in rows}


def pending_migrations(migrations_dir: Path, applied: set[str]) -> list[Path]:
    """SQL files not yet applied, in the order they must run."""
    if not migrations_dir.exists():
        return []
    return [f for f in sorted(migrations_dir.glob("*.sql")) if f.name not in applied]


async def apply_migration(conn: asyncpg.Connection, migration_path: Path) -> None:
    """
    Apply a single migration in its own transaction.

    Args:
        conn: Database connection.
        migration_path: Path to migration SQL file.
    """
    sql = migration_path.read_text()

    async with conn.transaction():
        await conn.execute(sql)
        await conn.execute(
            "INSERT INTO _migrations (name) VALUES ($1)",
            migration_path.name,
        )

    logger.info("Migration applied", migration=migration_path.name)


async def run_migrations(database_url: str) -> int:
    """
    Run all pending migrations.

    Returns:
        Number of migrations applied.
    """
    conn = await asyncpg.connect(database_url)
    try:
        applied = await get_applied_migrations(conn)
        pending = pending_migrations(MIGRATIONS_DIR, applied)
        logger.info("Migration status", applied=len(applied), pending=len(pending))

        for migration_path in pending:
            await apply_migration(conn, migration_path)
        return len(pending)
    finally:
        await conn.close()


async def show_status(database_url: str) -> None:
    """Log applied and pending migrations."""
    conn = await asyncpg.connect(database_url)
    try:
        applied = await get_applied_migrations(conn)
        for path in pending_migrations(MIGRATIONS_DIR, applied):
            logger.info("Pending migration", migration=path.name)
        for name in sorted(applied):
            logger.info("Applied migration", migration=name)
    finally:
        await conn.close()


async def rollback_migration(database_url: str, migration_name: str) -> None:
    """
    Forget a migration.

    Only the tracking row is removed; schema changes must be reverted by hand.

    Args:
        database_url: Database connection string.
        migration_name: Name of migration to forget.
    """
    conn = await asyncpg.connect(database_url)
    try:
        result = await conn.execute(
            "DELETE FROM _migrations WHERE name = $1",
            migration_name,
        )
        if result == "DELETE 1":
            logger.info("Migration rolled back", migration=migration_name)
        else:
            logger.warning("Migration not found", migration=migration_name)
    finally:
        await conn.close()


def main() -> None:
    """Main entry point."""
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_format == "json", service="migrator")

    args = sys.argv[1:]
    if not args:
        count = asyncio.run(run_migrations(settings.database_url))
        logger.info("Migrations complete", applied=count)
    elif args[0] == "status":
        asyncio.run(show_status(settings.database_url))
    elif args[0] == "rollback" and len(args) > 1:
        asyncio.run(rollback_migration(settings.database_url, args[1]))
    else:
        logger.error("Unknown command", command=" ".join(args))
        print("Usage:")
        print("  python main.py                           # Run all migrations")
        print("  python main.py status                    # List applied and pending migrations")
        print("  python main.py rollback <migration_name> # Forget a migration")
        sys.exit(1)


if __name__ == "__main__":
    main()
