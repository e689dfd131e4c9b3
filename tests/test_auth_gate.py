"""Tests for the authentication gate."""

from datetime import timedelta

from gatekeeper.services.auth_gate import TokenStatus
from gatekeeper.services.token_store import SessionRecord


def _insert(store, clock, token="tok", expires_in=timedelta(hours=1)):
    record = SessionRecord(
        token=token,
        subject_id="user123",
        device_tag="hw-1",
        issued_at=clock(),
        expires_at=clock() + expires_in,
    )
    store.put(record)
    return record


class TestAuthenticationGate:
    def test_valid_token_returns_record(self, gate, store, clock):
        record = _insert(store, clock)

        result = gate.check("tok")

        assert result.status is TokenStatus.VALID
        assert result.is_valid
        assert result.record is record

    def test_unknown_token(self, gate):
        result = gate.check("never-issued")

        assert result.status is TokenStatus.UNKNOWN
        assert result.record is None

    def test_blacklisted_token_is_revoked_even_if_stored(self, gate, store, blacklist, clock):
        _insert(store, clock)
        blacklist.add("tok")

        assert gate.check("tok").status is TokenStatus.REVOKED

    def test_revoked_and_expired_reports_revoked(self, gate, store, blacklist, clock):
        """Revocation is checked before expiry."""
        record = _insert(store, clock)
        blacklist.add("tok", record.expires_at)
        clock.advance(hours=2)

        assert gate.check("tok").status is TokenStatus.REVOKED

    def test_expired_token_is_removed_from_store(self, gate, store, clock):
        _insert(store, clock)
        clock.advance(hours=1, microseconds=1)

        result = gate.check("tok")

        assert result.status is TokenStatus.EXPIRED
        assert "tok" not in store

    def test_token_is_valid_at_exact_expiry_instant(self, gate, store, clock):
        _insert(store, clock)
        clock.advance(hours=1)

        assert gate.check("tok").status is TokenStatus.VALID

    def test_already_expired_record_never_checks_valid(self, gate, store, clock):
        """A record whose expiry is 1ms in the past is expired on first check."""
        _insert(store, clock, expires_in=timedelta(milliseconds=-1))

        assert gate.check("tok").status is TokenStatus.EXPIRED

    def test_denials_are_stable(self, gate, blacklist):
        blacklist.add("tok")

        assert [gate.check("tok").status for _ in range(3)] == [TokenStatus.REVOKED] * 3

    def test_status_messages(self):
        assert TokenStatus.UNKNOWN.message == "Invalid token"
        assert TokenStatus.REVOKED.message == "Token has been revoked"
        assert TokenStatus.EXPIRED.message == "Token expired"
