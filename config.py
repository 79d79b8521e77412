"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "hotel_ops")
DB_USER: str = os.getenv("DB_USER", "hotel_ops_user")
DB_PASS: str = os.getenv("DB_PASS", "")
DB_CONNECT_TIMEOUT: int = int(os.getenv("DB_CONNECT_TIMEOUT", "10"))

DATABASE_URL: str = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    f"?connect_timeout={DB_CONNECT_TIMEOUT}",
)

# ── Connection pool ───────────────────────────────────────
DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "10"))

# ── Schema bootstrap ──────────────────────────────────────
# 'migrate' only creates missing tables; 'reset' drops and recreates all of them.
SCHEMA_MODES: tuple[str, ...] = ("migrate", "reset")
DB_SCHEMA_MODE: str = os.getenv("DB_SCHEMA_MODE", "migrate").strip().lower()

# ── Privileged account seed ───────────────────────────────
SEED_ADMIN_USERNAME: str = os.getenv("SEED_ADMIN_USERNAME", "admin")
SEED_ADMIN_EMAIL: str = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
SEED_ADMIN_FIRST_NAME: str = os.getenv("SEED_ADMIN_FIRST_NAME", "System")
SEED_ADMIN_LAST_NAME: str = os.getenv("SEED_ADMIN_LAST_NAME", "Admin")
# A pre-hashed credential wins over the plain one, which is hashed at seed time.
SEED_ADMIN_PASSWORD_HASH: str = os.getenv("SEED_ADMIN_PASSWORD_HASH", "")
SEED_ADMIN_PASSWORD: str = os.getenv("SEED_ADMIN_PASSWORD", "")

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
