"""
db/schema.py
------------
Table definition registry.

Maps every table name to its full creation statement (table, indexes and
triggers) in the order the tables must be built: each table comes after every
table it references through a foreign key. Pure data, no I/O.
"""

import re
from types import MappingProxyType

# ── Enumerated column values ──────────────────────────────
USER_TYPES: tuple[str, ...] = ("super_admin", "admin", "manager", "staff", "guest")
PRIVILEGED_USER_TYPE: str = "super_admin"
ROOM_STATUSES: tuple[str, ...] = ("available", "occupied", "maintenance", "reserved")
HOUSEKEEPING_STATUSES: tuple[str, ...] = ("clean", "dirty", "in_progress", "inspected")
REQUEST_STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed", "cancelled")
PAYMENT_STATUSES: tuple[str, ...] = ("pending", "completed", "failed", "refunded")
INVOICE_STATUSES: tuple[str, ...] = ("unpaid", "paid", "overdue")


def _one_of(values: tuple[str, ...]) -> str:
    return ", ".join(f"'{v}'" for v in values)


def _touch_updated_at(table: str) -> str:
    """Keep `updated_at` current on every UPDATE of `table`."""
    return f"""
CREATE OR REPLACE FUNCTION set_updated_at() RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

CREATE OR REPLACE TRIGGER trg_{table}_updated_at
    BEFORE UPDATE ON {table}
    FOR EACH ROW EXECUTE FUNCTION set_updated_at();
"""


_USERS_SQL = f"""
-- Users table: staff accounts, guests and the privileged administrator
CREATE TABLE IF NOT EXISTS users (
    id                      SERIAL PRIMARY KEY,
    username                VARCHAR(50) NOT NULL UNIQUE,
    email                   VARCHAR(100) NOT NULL UNIQUE,
    password                VARCHAR(255) NOT NULL,
    first_name              VARCHAR(50),
    last_name               VARCHAR(50),
    mobile                  VARCHAR(20),
    user_type               VARCHAR(20) NOT NULL DEFAULT 'guest'
                            CHECK (user_type IN ({_one_of(USER_TYPES)})),
    is_active               BOOLEAN NOT NULL DEFAULT TRUE,
    last_login              TIMESTAMP,
    failed_login_attempts   INT DEFAULT 0,
    password_reset_token    VARCHAR(255),
    password_reset_expires  TIMESTAMP,
    created_at              TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at              TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_users_email ON users(email);
CREATE INDEX IF NOT EXISTS idx_users_user_type ON users(user_type);
{_touch_updated_at("users")}"""

_ROOMS_SQL = f"""
-- Rooms table: one row per physical room
CREATE TABLE IF NOT EXISTS rooms (
    id                  SERIAL PRIMARY KEY,
    room_number         VARCHAR(10) NOT NULL UNIQUE,
    room_type           VARCHAR(50) NOT NULL,
    status              VARCHAR(20) NOT NULL DEFAULT 'available'
                        CHECK (status IN ({_one_of(ROOM_STATUSES)})),
    price_per_night     NUMERIC(10,2) NOT NULL,
    capacity            INT NOT NULL,
    amenities           TEXT,
    created_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_rooms_room_type ON rooms(room_type);
CREATE INDEX IF NOT EXISTS idx_rooms_status ON rooms(status);
{_touch_updated_at("rooms")}"""

_HOUSEKEEPING_TASKS_SQL = f"""
-- Housekeeping tasks: cleaning state of a room, optionally assigned to a user
CREATE TABLE IF NOT EXISTS housekeeping_tasks (
    id                  SERIAL PRIMARY KEY,
    room_id             INT NOT NULL REFERENCES rooms(id),
    status              VARCHAR(20) NOT NULL DEFAULT 'clean'
                        CHECK (status IN ({_one_of(HOUSEKEEPING_STATUSES)})),
    staff_id            INT REFERENCES users(id),
    notes               TEXT,
    created_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_housekeeping_tasks_status ON housekeeping_tasks(status);
{_touch_updated_at("housekeeping_tasks")}"""

_SPECIAL_REQUESTS_SQL = f"""
-- Special requests: guest requests tied to a room
CREATE TABLE IF NOT EXISTS special_requests (
    id                  SERIAL PRIMARY KEY,
    user_id             INT NOT NULL REFERENCES users(id),
    room_id             INT NOT NULL REFERENCES rooms(id),
    request_type        VARCHAR(50) NOT NULL,
    description         TEXT,
    status              VARCHAR(20) NOT NULL DEFAULT 'pending'
                        CHECK (status IN ({_one_of(REQUEST_STATUSES)})),
    created_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
{_touch_updated_at("special_requests")}"""

# user_id is intentionally not UNIQUE: one user may hold several staff rows.
_STAFF_SQL = """
-- Staff table: employment details linked to a user account
CREATE TABLE IF NOT EXISTS staff (
    id                  SERIAL PRIMARY KEY,
    user_id             INT NOT NULL REFERENCES users(id),
    position            VARCHAR(50) NOT NULL,
    department          VARCHAR(50) NOT NULL,
    hire_date           DATE NOT NULL
);
"""

_PAYMENTS_SQL = f"""
-- Payments table: money received from a user
CREATE TABLE IF NOT EXISTS payments (
    id                  SERIAL PRIMARY KEY,
    user_id             INT NOT NULL REFERENCES users(id),
    amount              NUMERIC(10,2) NOT NULL,
    payment_method      VARCHAR(50) NOT NULL,
    transaction_id      VARCHAR(100),
    status              VARCHAR(20) NOT NULL DEFAULT 'pending'
                        CHECK (status IN ({_one_of(PAYMENT_STATUSES)})),
    payment_date        TIMESTAMP NOT NULL
);
"""

_INVOICES_SQL = f"""
-- Invoices table: amounts billed to a user
CREATE TABLE IF NOT EXISTS invoices (
    id                  SERIAL PRIMARY KEY,
    user_id             INT NOT NULL REFERENCES users(id),
    amount              NUMERIC(10,2) NOT NULL,
    issue_date          DATE NOT NULL,
    due_date            DATE NOT NULL,
    status              VARCHAR(20) NOT NULL DEFAULT 'unpaid'
                        CHECK (status IN ({_one_of(INVOICE_STATUSES)}))
);
"""

_TAX_PAYMENTS_SQL = """
-- Tax payments table: standalone ledger of taxes paid by the hotel
CREATE TABLE IF NOT EXISTS tax_payments (
    id                  SERIAL PRIMARY KEY,
    tax_type            VARCHAR(50) NOT NULL,
    amount              NUMERIC(10,2) NOT NULL,
    payment_date        DATE NOT NULL,
    reference_number    VARCHAR(100) NOT NULL
);
"""

_AUDIT_LOGS_SQL = """
-- Audit logs: append-only record of changes, actor is optional
CREATE TABLE IF NOT EXISTS audit_logs (
    id                  SERIAL PRIMARY KEY,
    user_id             INT REFERENCES users(id),
    action              VARCHAR(50) NOT NULL,
    table_name          VARCHAR(50) NOT NULL,
    record_id           INT,
    old_values          JSONB,
    new_values          JSONB,
    ip_address          VARCHAR(45),
    created_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

TABLE_DEFINITIONS = MappingProxyType({
    "users": _USERS_SQL,
    "rooms": _ROOMS_SQL,
    "housekeeping_tasks": _HOUSEKEEPING_TASKS_SQL,
    "special_requests": _SPECIAL_REQUESTS_SQL,
    "staff": _STAFF_SQL,
    "payments": _PAYMENTS_SQL,
    "invoices": _INVOICES_SQL,
    "tax_payments": _TAX_PAYMENTS_SQL,
    "audit_logs": _AUDIT_LOGS_SQL,
})

_REFERENCES_RE = re.compile(r"\bREFERENCES\s+(\w+)\s*\(", re.IGNORECASE)


def table_names() -> list[str]:
    """Table names in build order."""
    return list(TABLE_DEFINITIONS)


def referenced_tables(statement: str) -> set[str]:
    """Names of the tables a creation statement points at with foreign keys."""
    return set(_REFERENCES_RE.findall(statement))
