"""Request-time token validation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from gatekeeper.services.blacklist import Blacklist
from gatekeeper.services.token_store import SessionRecord, TokenStore, utc_now

logger = logging.getLogger(__name__)


class TokenStatus(str, Enum):
    """Outcome of checking a presented token."""

    VALID = "valid"
    UNKNOWN = "unknown"
    REVOKED = "revoked"
    EXPIRED = "expired"

    @property
    def message(self) -> str:
        """Client-facing denial message."""
        return _STATUS_MESSAGES[self]


_STATUS_MESSAGES = {
    TokenStatus.VALID: "Token is valid",
    TokenStatus.UNKNOWN: "Invalid token",
    TokenStatus.REVOKED: "Token has been revoked",
    TokenStatus.EXPIRED: "Token expired",
}


@dataclass(frozen=True)
class GateResult:
    status: TokenStatus
    record: SessionRecord | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is TokenStatus.VALID


class AuthenticationGate:
    """Decides whether a presented token is valid, unknown, revoked or expired.

    Revocation is checked before existence and expiry, so a token that was
    revoked and has since expired still reports REVOKED.
    """

    def __init__(
        self,
        store: TokenStore,
        blacklist: Blacklist,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._blacklist = blacklist
        self._clock = clock

    def check(self, token: str) -> GateResult:
        if self._blacklist.contains(token):
            return GateResult(TokenStatus.REVOKED)

        record = self._store.get(token)
        if record is None:
            return GateResult(TokenStatus.UNKNOWN)

        if record.is_expired(self._clock()):
            # Opportunistic; the reclaimer removes it eventually regardless
            self._store.delete(token, expected=record)
            logger.debug(f"Expired token presented for subject {record.subject_id}")
            return GateResult(TokenStatus.EXPIRED)

        return GateResult(TokenStatus.VALID, record)
