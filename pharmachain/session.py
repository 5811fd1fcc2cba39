"""
Session store collaborators and the placeholder credential check.
"""

import json
from typing import Dict, Optional

from pharmachain.config import SESSION_KEY
from pharmachain.database import kv_delete, kv_get, kv_set
from pharmachain.errors import AuthenticationError
from pharmachain.models import User
from pharmachain.seed import credential_directory


class MemorySessionStore:
    """Process-local store; one instance per API session or test."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class DatabaseSessionStore:
    """Store backed by the ``kv_store`` table, survives restarts of the CLI."""

    def __init__(self, engine):
        self.engine = engine

    def get(self, key: str) -> Optional[str]:
        return kv_get(self.engine, key)

    def set(self, key: str, value: str) -> None:
        kv_set(self.engine, key, value)

    def remove(self, key: str) -> None:
        kv_delete(self.engine, key)


def save_user(store, user: User, key: str = SESSION_KEY) -> None:
    store.set(key, json.dumps(user.to_dict()))


def load_user(store, key: str = SESSION_KEY) -> Optional[User]:
    """Read the stored user; a corrupt entry is cleared and treated as absent."""
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return User.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        print(f"[WARN] Failed to parse stored user data ({e}); clearing it.")
        store.remove(key)
        return None


def check_credentials(email: str, password: str) -> User:
    """
    Exact-match lookup against the seeded directory.

    Placeholder only: passwords are compared in plaintext and must be
    replaced by real credential verification before production use.
    """
    for user, secret in credential_directory():
        if user.email == email and secret == password:
            return user
    raise AuthenticationError("Invalid email or password")
