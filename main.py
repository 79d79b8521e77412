"""
main.py
-------
Entry point for the hotel operations backend bootstrap.

Responsibilities:
    - Open the shared database connection pool and check that it answers.
    - Build (or reset) the schema and seed the privileged account.
    - Exit non-zero on any bootstrap failure so no traffic is ever
      served against a partially initialized schema.
"""

import argparse
import sys
from typing import Optional, Sequence

from config import DB_SCHEMA_MODE, SCHEMA_MODES
from db.connection import close_pool, init_pool
from db.errors import DatabaseError
from db.init_db import SchemaManager, check_database_connection
from models.user import SeedAccount
from utils.logger import get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bootstrap the hotel operations database")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--reset", dest="mode", action="store_const", const="reset",
        help="Drop and recreate every table (destroys all data)",
    )
    mode.add_argument(
        "--migrate", dest="mode", action="store_const", const="migrate",
        help="Only create tables that do not exist yet",
    )
    parser.add_argument("--skip-seed", action="store_true", help="Do not create the privileged account")
    parser.set_defaults(mode=DB_SCHEMA_MODE)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the bootstrap.

    Returns:
        0 when the schema is ready, 1 otherwise.
    """
    args = parse_args(argv)
    if args.mode not in SCHEMA_MODES:
        logger.critical(f"Unknown schema mode '{args.mode}', expected one of {', '.join(SCHEMA_MODES)}.")
        return 1

    # ── 1. Connectivity check ─────────────────────────────
    pool = init_pool()
    if check_database_connection(pool):
        logger.info("✅ Database connection established.")
    else:
        logger.warning("Database connection check failed; attempting bootstrap anyway.")

    # ── 2. Schema + seed ──────────────────────────────────
    if args.mode == "reset":
        logger.warning("⚠️ Reset mode: every table will be dropped and all data lost.")
    manager = SchemaManager(pool, seed_account=SeedAccount.from_config(), reset=args.mode == "reset")
    try:
        manager.initialize_database(seed=not args.skip_seed)
        missing = manager.missing_tables()
        if missing:
            logger.critical(f"Schema incomplete after bootstrap, missing: {', '.join(missing)}")
            return 1
        unlinked = manager.missing_foreign_keys()
        if unlinked:
            pairs = ", ".join(f"{table} -> {target}" for table, target in unlinked)
            logger.critical(f"Schema is missing foreign keys: {pairs}")
            return 1
    except DatabaseError as e:
        logger.critical(f"💥 Database bootstrap failed: {e}")
        return 1
    finally:
        close_pool()

    logger.info("🚀 Database ready, the API may start accepting traffic.")
    return 0


def cli() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
