"""
repositories/user_repo.py
--------------------------
Data access layer for user records needed at bootstrap.

Methods take an open cursor so the caller decides the connection and
transaction boundaries (the seed step runs its check and insert on one
connection).
"""

from typing import Optional

from db.schema import PRIVILEGED_USER_TYPE
from models.user import SeedAccount


class UserRepository:
    """Queries on the users table."""

    def find_id_by_type(self, cur, user_type: str) -> Optional[int]:
        """
        Return the id of any user of the given type, or None.
        Existence only: at most one row is read.
        """
        cur.execute("SELECT id FROM users WHERE user_type = %s LIMIT 1;", (user_type,))
        row = cur.fetchone()
        return row[0] if row else None

    def insert_privileged(self, cur, account: SeedAccount, password_hash: str) -> int:
        """
        Insert the privileged account.

        Returns:
            The new user id.
        """
        sql = """
            INSERT INTO users
                (username, email, password, first_name, last_name, user_type)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING id;
        """
        cur.execute(sql, (
            account.username, account.email, password_hash,
            account.first_name, account.last_name, PRIVILEGED_USER_TYPE,
        ))
        return cur.fetchone()[0]
