"""Token issuance, refresh and revocation.

The controller is the only component that inserts session records or
blacklist entries. Refresh and revoke on the same token are serialized by a
striped lock keyed on the token, and each re-checks the token under that
lock: when refreshes and revokes of one token race, exactly one wins and
the others fail with TokenStateError(REVOKED).
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from gatekeeper.services.auth_gate import AuthenticationGate, GateResult
from gatekeeper.services.blacklist import Blacklist
from gatekeeper.services.errors import InvalidInputError, TokenStateError
from gatekeeper.services.token_generator import generate_token
from gatekeeper.services.token_store import SessionRecord, SubjectId, TokenStore, utc_now

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)
DEFAULT_LOCK_STRIPES = 64


@dataclass(frozen=True)
class IssuedToken:
    """What a caller needs to render an issue/refresh response."""

    token: str
    subject_id: SubjectId
    device_tag: str | None
    expires_at: datetime
    expires_in: int


class TokenLifecycleController:
    """Issues, refreshes and revokes session tokens."""

    def __init__(
        self,
        store: TokenStore,
        blacklist: Blacklist,
        lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        clock: Callable[[], datetime] = utc_now,
        token_factory: Callable[[], str] = generate_token,
        lock_stripes: int = DEFAULT_LOCK_STRIPES,
    ) -> None:
        if lifetime <= timedelta(0):
            raise ValueError("Token lifetime must be positive")
        self._store = store
        self._blacklist = blacklist
        self._lifetime = lifetime
        self._clock = clock
        self._token_factory = token_factory
        self._gate = AuthenticationGate(store, blacklist, clock)
        self._locks = [threading.Lock() for _ in range(max(1, lock_stripes))]

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def _lock_for(self, token: str) -> threading.Lock:
        return self._locks[hash(token) % len(self._locks)]

    def issue(self, subject_id: SubjectId | None, device_tag: str | None = None) -> IssuedToken:
        """Mint a new token for ``subject_id``.

        Raises:
            InvalidInputError: If subject_id is missing, falsy or blank.
            GeneratorExhaustionError: If no secure random source is available.
        """
        if not subject_id or (isinstance(subject_id, str) and not subject_id.strip()):
            raise InvalidInputError("userId is required")
        issued = self._issue(subject_id, device_tag or None)
        logger.info(f"Token generated for userId: {subject_id}")
        return issued

    def _issue(
        self, subject_id: SubjectId, device_tag: str | None, token: str | None = None
    ) -> IssuedToken:
        token = token or self._token_factory()
        now = self._clock()
        record = SessionRecord(
            token=token,
            subject_id=subject_id,
            device_tag=device_tag,
            issued_at=now,
            expires_at=now + self._lifetime,
        )
        self._store.put(record)
        return IssuedToken(
            token=token,
            subject_id=subject_id,
            device_tag=device_tag,
            expires_at=record.expires_at,
            expires_in=record.expires_in(now),
        )

    def refresh(self, presented_token: str) -> IssuedToken:
        """Replace a live token with a new one carrying the same identity.

        The old token is blacklisted and removed before the new record is
        stored, so it is never usable once the new token exists.

        Raises:
            TokenStateError: If the token is no longer live, typically because
                a concurrent refresh or revoke already consumed it.
        """
        with self._lock_for(presented_token):
            record = self._require_live(presented_token)
            # Mint first so a generator failure leaves the old token usable
            new_token = self._token_factory()
            self._blacklist.add(presented_token, record.expires_at)
            self._store.delete(presented_token, expected=record)
            issued = self._issue(record.subject_id, record.device_tag, new_token)
        logger.info(f"Token refreshed for userId: {record.subject_id}")
        return issued

    def revoke(self, presented_token: str) -> None:
        """Blacklist ``presented_token`` and drop its session record.

        A token that is no longer live is left untouched and the call fails,
        so a revoke that loses a race to a refresh never reports success
        while the session continues under the new token.

        Raises:
            TokenStateError: If the token is unknown, already revoked or
                expired.
        """
        with self._lock_for(presented_token):
            record = self._require_live(presented_token)
            self._blacklist.add(presented_token, record.expires_at)
            self._store.delete(presented_token, expected=record)
        logger.info(f"Token revoked for userId: {record.subject_id}")

    def _require_live(self, token: str) -> SessionRecord:
        result = self._gate.check(token)
        if not result.is_valid or result.record is None:
            raise TokenStateError(result.status)
        return result.record

    def check(self, token: str) -> GateResult:
        """Check ``token`` against this controller's stores."""
        return self._gate.check(token)
