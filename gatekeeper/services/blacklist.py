"""Revoked-token blacklist.

Membership is checked on every authenticated request, before the token
store. Entries remember the revoked token's original expiry so they can
optionally be pruned once expiry alone already invalidates the token.
"""

import threading
from datetime import datetime
from typing import Protocol


class Blacklist(Protocol):
    def add(self, token: str, expires_at: datetime | None = None) -> None:
        ...

    def contains(self, token: str) -> bool:
        ...

    def prune_expired(self, now: datetime) -> int:
        ...

    def __len__(self) -> int:
        ...


class InMemoryBlacklist:
    """Thread-safe token -> original expiry map. No removal is exposed."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, datetime | None] = {}

    def add(self, token: str, expires_at: datetime | None = None) -> None:
        """Blacklist ``token``. Re-adding keeps the first recorded expiry."""
        with self._lock:
            self._entries.setdefault(token, expires_at)

    def contains(self, token: str) -> bool:
        with self._lock:
            return token in self._entries

    def prune_expired(self, now: datetime) -> int:
        """Drop entries whose original expiry has passed. Returns count removed.

        Entries added without an expiry are kept forever.
        """
        with self._lock:
            expired = [
                token
                for token, expires_at in self._entries.items()
                if expires_at is not None and now > expires_at
            ]
            for token in expired:
                del self._entries[token]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._entries
