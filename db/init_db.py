"""
db/init_db.py
-------------
Builds the database schema and seeds the privileged account.

Tables are processed one at a time in registry order. In reset mode each
table is dropped and recreated, so every existing row is lost; in migrate
mode only missing tables are created. Run this module directly to bootstrap
a database:
    python -m db.init_db [--reset]
"""

from typing import Optional

import psycopg2

from db.connection import ConnectionPool
from db.errors import ConnectivityError, DatabaseError, SchemaRebuildError, SeedError
from db.schema import PRIVILEGED_USER_TYPE, TABLE_DEFINITIONS, referenced_tables
from models.user import SeedAccount
from repositories.user_repo import UserRepository
from security.passwords import PasswordHasher, hash_password
from utils.logger import get_logger

logger = get_logger(__name__)

# Session-scoped: foreign keys are not enforced while the role is 'replica'.
DISABLE_INTEGRITY_CHECKS = "SET session_replication_role = replica;"
ENABLE_INTEGRITY_CHECKS = "SET session_replication_role = DEFAULT;"

# Foreign keys on other tables that point at the given table. DROP ... CASCADE
# removes them, so they are read first and re-attached after the create.
INCOMING_FOREIGN_KEYS_SQL = """
    SELECT conrelid::regclass::text, conname, pg_get_constraintdef(oid)
    FROM pg_constraint
    WHERE contype = 'f' AND confrelid = to_regclass(%s) AND conrelid <> confrelid;
"""


class SchemaManager:
    """
    Rebuilds the registered tables and guarantees one privileged account.

    Not safe for concurrent use: the process calls initialize_database()
    once before serving traffic.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        seed_account: Optional[SeedAccount] = None,
        hasher: PasswordHasher = hash_password,
        reset: bool = False,
        tables=TABLE_DEFINITIONS,
    ):
        self.pool = pool
        self.seed_account = seed_account or SeedAccount.from_config()
        self.hasher = hasher
        self.reset = reset
        self.tables = tables
        self.users = UserRepository()

    # ── TABLES ────────────────────────────────────────────

    def rebuild_table(self, name: str, statement: str) -> None:
        """
        Recreate one table on a single pooled connection.

        Integrity checks are switched off for the rebuild and switched back
        on before the connection is released, whether or not it succeeded.

        Raises:
            SchemaRebuildError: If acquiring a connection, dropping or creating failed.
        """
        try:
            with self.pool.connection() as conn:
                self._rebuild_on(conn, name, statement)
        except (psycopg2.Error, ConnectivityError) as e:
            logger.error(f"❌ Failed to rebuild table {name}: {e}")
            raise SchemaRebuildError(name, e) from e
        logger.info(f"✅ Table {name} {'recreated' if self.reset else 'ready'}")

    def _rebuild_on(self, conn, name: str, statement: str) -> None:
        try:
            with conn.cursor() as cur:
                cur.execute(DISABLE_INTEGRITY_CHECKS)
                if self.reset:
                    cur.execute(INCOMING_FOREIGN_KEYS_SQL, (name,))
                    incoming = cur.fetchall()
                    cur.execute(f"DROP TABLE IF EXISTS {name} CASCADE;")
                    cur.execute(statement)
                    for table, constraint, definition in incoming:
                        cur.execute(f'ALTER TABLE {table} ADD CONSTRAINT "{constraint}" {definition} NOT VALID;')
                else:
                    cur.execute(statement)
            conn.commit()
        except psycopg2.Error:
            conn.rollback()
            raise
        finally:
            with conn.cursor() as cur:
                cur.execute(ENABLE_INTEGRITY_CHECKS)
            conn.commit()

    def initialize_database(self, seed: bool = True) -> None:
        """
        Rebuild every registered table in order, then seed.
        The first failure stops the run; later tables are left untouched.

        Raises:
            SchemaRebuildError: A table could not be rebuilt.
            SeedError: The privileged account could not be guaranteed.
        """
        mode = "reset" if self.reset else "migrate"
        logger.info(f"🚀 Initializing database schema ({mode} mode, {len(self.tables)} tables)...")
        for name, statement in self.tables.items():
            self.rebuild_table(name, statement)
        if seed:
            self.seed_privileged_account()
        logger.info("🎉 Database initialized.")

    def missing_tables(self) -> list[str]:
        """Registered tables absent from the current schema, in build order."""
        sql = """
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = current_schema() AND table_name = ANY(%s);
        """
        try:
            with self.pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (list(self.tables),))
                    existing = {row[0] for row in cur.fetchall()}
                conn.rollback()
        except psycopg2.Error as e:
            raise DatabaseError(f"Could not inspect schema: {e}") from e
        return [name for name in self.tables if name not in existing]

    def missing_foreign_keys(self) -> list[tuple[str, str]]:
        """Declared (table, referenced table) foreign keys absent from the current schema."""
        sql = """
            SELECT c.conrelid::regclass::text, c.confrelid::regclass::text
            FROM pg_constraint c
            JOIN pg_namespace n ON n.oid = c.connamespace
            WHERE c.contype = 'f' AND n.nspname = current_schema();
        """
        try:
            with self.pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql)
                    present = set(cur.fetchall())
                conn.rollback()
        except psycopg2.Error as e:
            raise DatabaseError(f"Could not inspect foreign keys: {e}") from e
        return [
            (name, target)
            for name, statement in self.tables.items()
            for target in sorted(referenced_tables(statement))
            if (name, target) not in present
        ]

    # ── SEED ──────────────────────────────────────────────

    def seed_privileged_account(self) -> bool:
        """
        Insert the privileged account unless one already exists.

        Returns:
            True if a row was inserted, False if one was already present.

        Raises:
            SeedError: If the check, the hasher or the insert failed, or no credential is configured.
        """
        try:
            with self.pool.connection() as conn:
                try:
                    with conn.cursor() as cur:
                        existing_id = self.users.find_id_by_type(cur, PRIVILEGED_USER_TYPE)
                        if existing_id is not None:
                            conn.rollback()
                            logger.info(f"Privileged account already present (user #{existing_id}).")
                            return False
                        user_id = self.users.insert_privileged(cur, self.seed_account, self._credential())
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
        except (psycopg2.Error, ConnectivityError, ValueError) as e:
            logger.error(f"Failed to seed privileged account: {e}")
            raise SeedError(e) from e
        logger.info(f"👑 Privileged account '{self.seed_account.username}' created (user #{user_id}).")
        return True

    def _credential(self) -> str:
        account = self.seed_account
        if not account.has_credential():
            raise ValueError("No credential configured: set SEED_ADMIN_PASSWORD_HASH or SEED_ADMIN_PASSWORD.")
        if account.password_hash:
            return account.password_hash
        try:
            return self.hasher(account.password)
        except Exception as e:
            logger.error(f"Password hasher failed: {e}")
            raise SeedError(e) from e


def check_database_connection(pool: ConnectionPool) -> bool:
    """
    Run a trivial query to confirm the database is reachable.
    Never raises; the cause of a failure is logged.
    """
    try:
        with pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
            conn.rollback()
        return True
    except (psycopg2.Error, ConnectivityError) as e:
        logger.error(f"Database connection check failed: {e}")
        return False


if __name__ == "__main__":
    from main import cli

    cli()
