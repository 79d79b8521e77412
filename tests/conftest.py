"""
In-memory stand-in for PostgreSQL.

FakeStore understands exactly the statements the bootstrap issues: integrity
toggles, DROP/CREATE TABLE, foreign-key catalog reads and ALTER TABLE ... ADD
CONSTRAINT, the seed SELECT/INSERT, the SELECT 1 check and the information_schema
lookup. Anything else fails the test. DROP ... CASCADE strips the foreign keys
other tables hold on the dropped one, and rollback restores the state seen at
the start of the transaction, as PostgreSQL does for DDL.
"""

import copy
import re

import psycopg2
import pytest
from psycopg2 import pool as pg_pool

from db import connection
from db.connection import ConnectionPool
from db.init_db import SchemaManager
from db.schema import referenced_tables
from models.user import SeedAccount

_CREATE_RE = re.compile(r"CREATE TABLE IF NOT EXISTS (\w+)")
_DROP_RE = re.compile(r"DROP TABLE IF EXISTS (\w+)")
_ADD_FK_RE = re.compile(r'ALTER TABLE (\w+) ADD CONSTRAINT "(\w+)" FOREIGN KEY \(\w+\) REFERENCES (\w+)\(id\) NOT VALID')


class FakeStore:
    def __init__(self):
        self.tables: dict[str, list] = {}
        # table -> {constraint name: referenced table}
        self.foreign_keys: dict[str, dict[str, str]] = {}
        self.next_user_id = 1
        self.unreachable = False
        self.broken_tables: set[str] = set()
        self.fail_user_insert = False
        self.connections: list["FakeConnection"] = []
        # (connection number, statement kind, table or None)
        self.log: list[tuple[int, str, object]] = []

    def add_user(self, username, user_type, **extra) -> dict:
        row = {"id": self.next_user_id, "username": username, "user_type": user_type, **extra}
        self.next_user_id += 1
        self.tables["users"].append(row)
        return row

    def foreign_key_targets(self, table) -> set[str]:
        return set(self.foreign_keys.get(table, {}).values())

    def snapshot(self):
        return copy.deepcopy((self.tables, self.foreign_keys, self.next_user_id))

    def restore(self, state):
        self.tables, self.foreign_keys, self.next_user_id = state

    def privileged_users(self) -> list[dict]:
        return [u for u in self.tables.get("users", []) if u["user_type"] == "super_admin"]

    def kinds(self) -> list[str]:
        return [kind for _, kind, _ in self.log]


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self.conn = conn
        self.store = conn.store
        self._rows: list[tuple] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def _record(self, kind, table=None):
        self.store.log.append((self.conn.number, kind, table))

    def execute(self, sql, params=None):
        store = self.store
        text = " ".join(sql.split())
        self.conn.begin()
        self._rows = []

        if text.startswith("SET session_replication_role = replica"):
            self.conn.integrity_checks = False
            self._record("disable")
        elif text.startswith("SET session_replication_role = DEFAULT"):
            self.conn.integrity_checks = True
            self._record("enable")
        elif _DROP_RE.match(text):
            name = _DROP_RE.match(text).group(1)
            store.tables.pop(name, None)
            store.foreign_keys.pop(name, None)
            for constraints in store.foreign_keys.values():
                for constraint, target in list(constraints.items()):
                    if target == name:
                        del constraints[constraint]
            self._record("drop", name)
        elif _CREATE_RE.search(text):
            name = _CREATE_RE.search(text).group(1)
            if name in store.broken_tables:
                raise psycopg2.ProgrammingError(f'syntax error at or near "{name}"')
            for target in referenced_tables(text):
                if target not in store.tables:
                    raise psycopg2.ProgrammingError(f'relation "{target}" does not exist')
            if name not in store.tables:
                store.tables[name] = []
                store.foreign_keys[name] = {f"{name}_{t}_fkey": t for t in referenced_tables(text)}
            self._record("create", name)
        elif "pg_get_constraintdef" in text:
            self._rows = [
                (table, constraint, f"FOREIGN KEY ({target}_id) REFERENCES {target}(id)")
                for table, constraints in store.foreign_keys.items()
                for constraint, target in constraints.items()
                if target == params[0] and table != target
            ]
            self._record("incoming_fks", params[0])
        elif _ADD_FK_RE.match(text):
            table, constraint, target = _ADD_FK_RE.match(text).groups()
            self._require(table)
            self._require(target)
            store.foreign_keys.setdefault(table, {})[constraint] = target
            self._record("add_fk", table)
        elif "pg_namespace" in text:
            self._rows = [
                (table, target)
                for table, constraints in store.foreign_keys.items()
                for target in constraints.values()
            ]
            self._record("list_fks")
        elif text.startswith("SELECT id FROM users WHERE user_type"):
            self._require("users")
            self._rows = [(u["id"],) for u in store.tables["users"] if u["user_type"] == params[0]][:1]
            self._record("select_user")
        elif text.startswith("INSERT INTO users"):
            self._require("users")
            if store.fail_user_insert:
                raise psycopg2.IntegrityError('duplicate key value violates unique constraint "users_email_key"')
            username, email, password, first_name, last_name, user_type = params
            row = store.add_user(
                username, user_type, email=email, password=password,
                first_name=first_name, last_name=last_name,
            )
            self._rows = [(row["id"],)]
            self._record("insert_user")
        elif text.startswith("SELECT 1"):
            self._rows = [(1,)]
            self._record("select_one")
        elif "information_schema.tables" in text:
            self._rows = [(name,) for name in params[0] if name in store.tables]
            self._record("inspect")
        else:
            raise AssertionError(f"Unexpected SQL: {text}")

    def _require(self, table):
        if table not in self.store.tables:
            raise psycopg2.ProgrammingError(f'relation "{table}" does not exist')

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, store: FakeStore, number: int):
        self.store = store
        self.number = number
        self.closed = 0
        self.integrity_checks = True
        self.commits = 0
        self.rollbacks = 0
        self._snapshot = None

    def begin(self):
        if self._snapshot is None:
            self._snapshot = self.store.snapshot()

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1
        self._snapshot = None

    def rollback(self):
        self.rollbacks += 1
        if self._snapshot is not None:
            self.store.restore(self._snapshot)
        self._snapshot = None


class FakePgPool:
    """Mimics psycopg2.pool.ThreadedConnectionPool."""

    def __init__(self, store: FakeStore, maxconn: int):
        self.store = store
        self.maxconn = maxconn
        self.checked_out: list[FakeConnection] = []
        self.returned: list[FakeConnection] = []
        self.closed = False

    def getconn(self):
        if len(self.checked_out) >= self.maxconn:
            raise pg_pool.PoolError("connection pool exhausted")
        conn = FakeConnection(self.store, len(self.store.connections) + 1)
        self.store.connections.append(conn)
        self.checked_out.append(conn)
        return conn

    def putconn(self, conn, close=False):
        self.checked_out.remove(conn)
        self.returned.append(conn)

    def closeall(self):
        self.closed = True


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def pg_pools(store, monkeypatch):
    """Every psycopg2 pool opened during the test, backed by `store`."""
    opened: list[FakePgPool] = []

    def factory(minconn, maxconn, dsn):
        if store.unreachable:
            raise psycopg2.OperationalError("could not connect to server: Connection refused")
        fake = FakePgPool(store, maxconn)
        opened.append(fake)
        return fake

    monkeypatch.setattr(connection.pool, "ThreadedConnectionPool", factory)
    yield opened
    connection.close_pool()


@pytest.fixture
def db_pool(pg_pools):
    return ConnectionPool(dsn="postgresql://test@localhost/hotel_ops_test", min_conn=1, max_conn=3)


@pytest.fixture
def account():
    return SeedAccount(password_hash="pbkdf2:sha256:600000$salt$digest")


@pytest.fixture
def manager(db_pool, account):
    return SchemaManager(db_pool, seed_account=account, reset=True)
