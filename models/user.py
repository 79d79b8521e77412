"""
models/user.py
--------------
Domain model for the privileged account created at bootstrap.
"""

from dataclasses import dataclass, field
from typing import Optional

import config


@dataclass
class SeedAccount:
    """
    Identity of the privileged account inserted when none exists.

    Attributes:
        username: Login name (unique in `users`).
        email: Contact address (unique in `users`).
        first_name: Display first name.
        last_name: Display last name.
        password_hash: Opaque, already hashed credential. Stored as-is.
        password: Plain credential, hashed at seed time when no hash is given.
    """
    username: str = "admin"
    email: str = "admin@example.com"
    first_name: Optional[str] = "System"
    last_name: Optional[str] = "Admin"
    password_hash: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_config(cls) -> "SeedAccount":
        """Build the account from the SEED_ADMIN_* settings."""
        return cls(
            username=config.SEED_ADMIN_USERNAME,
            email=config.SEED_ADMIN_EMAIL,
            first_name=config.SEED_ADMIN_FIRST_NAME or None,
            last_name=config.SEED_ADMIN_LAST_NAME or None,
            password_hash=config.SEED_ADMIN_PASSWORD_HASH or None,
            password=config.SEED_ADMIN_PASSWORD or None,
        )

    def has_credential(self) -> bool:
        return bool(self.password_hash or self.password)
