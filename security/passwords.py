"""
security/passwords.py
---------------------
Password hashing used when seeding accounts from a plain credential.
"""

from typing import Callable

from werkzeug.security import generate_password_hash

PasswordHasher = Callable[[str], str]


def hash_password(plain: str) -> str:
    """
    Hash a plain password with werkzeug's default (salted scrypt).

    Raises:
        ValueError: If the password is empty.
    """
    if not plain:
        raise ValueError("Cannot hash an empty password.")
    return generate_password_hash(plain)
