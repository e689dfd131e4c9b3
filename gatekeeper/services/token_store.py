"""In-memory session store keyed by bearer token."""

import math
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

# userId as the caller sent it; JSON scalars keep their type end to end
SubjectId = bool | int | float | str


def utc_now() -> datetime:
    """Current wall-clock instant, timezone-aware."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class SessionRecord:
    """Data bound to one issued token. Immutable once created."""

    token: str
    subject_id: SubjectId
    device_tag: str | None
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def expires_in(self, now: datetime) -> int:
        """Whole seconds of lifetime remaining, never negative."""
        remaining = (self.expires_at - now).total_seconds()
        return max(0, math.ceil(remaining))


class TokenStore(Protocol):
    def put(self, record: SessionRecord) -> None:
        ...

    def get(self, token: str) -> SessionRecord | None:
        ...

    def delete(self, token: str, expected: SessionRecord | None = None) -> bool:
        ...

    def for_each(self, visitor: Callable[[SessionRecord], None]) -> None:
        ...

    def __len__(self) -> int:
        ...

    def __contains__(self, token: object) -> bool:
        ...


class InMemoryTokenStore:
    """Thread-safe token -> SessionRecord map.

    Records are immutable, so a reader sees either the whole record or none.
    Every operation holds the lock for constant time except ``for_each``,
    which copies a snapshot under the lock and visits it unlocked.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, SessionRecord] = {}

    def put(self, record: SessionRecord) -> None:
        with self._lock:
            self._records[record.token] = record

    def get(self, token: str) -> SessionRecord | None:
        with self._lock:
            return self._records.get(token)

    def delete(self, token: str, expected: SessionRecord | None = None) -> bool:
        """Remove ``token``. Returns True if a record was removed.

        With ``expected`` set, removes only if the stored record is that exact
        record, so a caller acting on a stale snapshot never removes anything
        it did not observe.
        """
        with self._lock:
            current = self._records.get(token)
            if current is None:
                return False
            if expected is not None and current is not expected:
                return False
            del self._records[token]
            return True

    def snapshot(self) -> list[SessionRecord]:
        with self._lock:
            return list(self._records.values())

    def for_each(self, visitor: Callable[[SessionRecord], None]) -> None:
        for record in self.snapshot():
            visitor(record)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._records
