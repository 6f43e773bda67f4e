"""Tests for the authentication and lockout state machine."""

from decimal import Decimal

import pytest

from atm_pin.audit import AuditLogger
from atm_pin.auth import AuthenticationEngine
from atm_pin.models.account import MAX_WRONG_ATTEMPTS, AccountRecord, ErrorKind
from atm_pin.models.audit import AuditEventType
from atm_pin.services.storage import (
    FlatFileAccountStorage,
    InMemoryAuditStorage,
    ReversibleEncoding,
)


PIN = "5831"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "atm_users.db"


@pytest.fixture
def store(db_path):
    store = FlatFileAccountStorage(db_path, encoding=ReversibleEncoding("sachin_key_v1"))
    store.load()
    store.add(AccountRecord(username="bob", pin=PIN, balance=Decimal("1000")))
    store.add(AccountRecord(username="carol", pin="472915", balance=Decimal("50")))
    return store


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage(max_events=100)


@pytest.fixture
def engine(store, audit_storage):
    return AuthenticationEngine(store, AuditLogger(audit_storage))


def event_types(audit_storage, username):
    return [e.event_type for e in audit_storage.get_events_by_username(username)]


class TestAuthenticate:
    """Tests for AuthenticationEngine.authenticate."""

    def test_correct_pin_on_fresh_account(self, engine, store):
        result = engine.authenticate(store.get("bob"), PIN)
        assert result.success
        assert result.kind is None
        assert result.record.wrong_attempts == 0
        assert store.get("bob").wrong_attempts == 0

    def test_wrong_pin_is_counted_and_persisted(self, engine, store):
        result = engine.authenticate(store.get("bob"), "0000")
        assert not result.success
        assert result.kind == ErrorKind.WRONG_PIN
        assert result.attempts == 1
        assert result.remaining_attempts == MAX_WRONG_ATTEMPTS - 1
        assert store.get("bob").wrong_attempts == 1
        assert not store.get("bob").locked

    def test_success_resets_attempts(self, engine, store):
        engine.authenticate(store.get("bob"), "0000")
        engine.authenticate(store.get("bob"), "0001")
        assert store.get("bob").wrong_attempts == 2

        result = engine.authenticate(store.get("bob"), PIN)
        assert result.success
        assert store.get("bob").wrong_attempts == 0

    def test_three_wrong_attempts_lock(self, engine, store):
        """Test the third wrong PIN locks the account."""
        record = store.get("bob")
        for expected in range(1, MAX_WRONG_ATTEMPTS + 1):
            result = engine.authenticate(record, "9999")
            record = result.record
            assert result.attempts == expected

        assert record.locked
        assert result.remaining_attempts == 0
        assert "locked" in result.message
        assert store.get("bob").locked
        assert store.get("bob").wrong_attempts == MAX_WRONG_ATTEMPTS

    def test_locked_account_refuses_correct_pin(self, engine, store, db_path):
        """Test a locked account fails without counting or writing."""
        record = store.get("bob")
        for _ in range(MAX_WRONG_ATTEMPTS):
            record = engine.authenticate(record, "9999").record
        before = db_path.read_bytes()

        result = engine.authenticate(record, PIN)
        assert not result.success
        assert result.kind == ErrorKind.ACCOUNT_LOCKED
        assert result.attempts == MAX_WRONG_ATTEMPTS
        assert db_path.read_bytes() == before

    def test_lock_survives_reload(self, engine, store, db_path):
        record = store.get("bob")
        for _ in range(MAX_WRONG_ATTEMPTS):
            record = engine.authenticate(record, "9999").record

        reloaded = FlatFileAccountStorage(db_path, encoding=ReversibleEncoding("sachin_key_v1"))
        reloaded.load()
        assert reloaded.get("bob").locked

    def test_hand_unlocked_account_locks_on_next_failure(self, engine, store):
        """Test an account unlocked by editing the file keeps the full count."""
        store.update(AccountRecord(
            username="bob", pin=PIN, balance=Decimal("1000"),
            wrong_attempts=MAX_WRONG_ATTEMPTS, locked=False,
        ))
        result = engine.authenticate(store.get("bob"), "9999")
        assert result.attempts == MAX_WRONG_ATTEMPTS
        assert result.record.locked

    def test_record_missing_from_store(self, engine):
        stray = AccountRecord(username="frank", pin=PIN)
        result = engine.authenticate(stray, PIN)
        assert not result.success
        assert result.kind == ErrorKind.USER_NOT_FOUND

    def test_authenticate_user_unknown(self, engine):
        result = engine.authenticate_user("nobody", PIN)
        assert not result.success
        assert result.kind == ErrorKind.USER_NOT_FOUND
        assert result.record is None

    def test_lockout_is_audited(self, engine, store, audit_storage):
        record = store.get("bob")
        for _ in range(MAX_WRONG_ATTEMPTS):
            record = engine.authenticate(record, "9999").record
        engine.authenticate(record, PIN)

        types = event_types(audit_storage, "bob")
        assert types.count(AuditEventType.AUTH_FAILED) == MAX_WRONG_ATTEMPTS
        assert AuditEventType.ACCOUNT_LOCKED in types
        assert types[-1] == AuditEventType.LOCKED_ATTEMPT_REJECTED

    def test_pins_never_reach_the_audit_log(self, engine, store, audit_storage):
        engine.authenticate(store.get("bob"), "9999")
        engine.authenticate(store.get("bob"), PIN)
        for event in audit_storage.get_recent_events():
            dumped = f"{event.description} {event.details} {event.error_message}"
            assert PIN not in dumped
            assert "9999" not in dumped


class TestChangePin:
    """Tests for AuthenticationEngine.change_pin."""

    def test_change_pin(self, engine, store):
        result = engine.change_pin(store.get("bob"), PIN, "6047")
        assert result.success
        assert result.reason is None
        assert store.get("bob").pin == "6047"
        assert engine.authenticate(store.get("bob"), "6047").success

    def test_change_resets_attempts(self, engine, store):
        engine.authenticate(store.get("bob"), "0000")
        result = engine.change_pin(store.get("bob"), PIN, "6047")
        assert result.success
        assert store.get("bob").wrong_attempts == 0

    def test_wrong_length(self, engine, store):
        """Test a new PIN of another length is refused."""
        result = engine.change_pin(store.get("bob"), PIN, "604718")
        assert not result.success
        assert result.kind == ErrorKind.INVALID_LENGTH
        assert store.get("bob").pin == PIN

    def test_six_digit_account_keeps_six(self, engine, store):
        result = engine.change_pin(store.get("carol"), "472915", "6047")
        assert result.kind == ErrorKind.INVALID_LENGTH
        assert engine.change_pin(store.get("carol"), "472915", "583192").success

    @pytest.mark.parametrize("weak_pin", ["1111", "1234", "4321", "1112", "2580"])
    def test_weak_pin(self, engine, store, weak_pin):
        """Test weak PINs, denylisted ones included, are refused."""
        result = engine.change_pin(store.get("bob"), PIN, weak_pin)
        assert not result.success
        assert result.kind == ErrorKind.WEAK_PIN
        assert store.get("bob").pin == PIN

    def test_non_digit_pin(self, engine, store):
        result = engine.change_pin(store.get("bob"), PIN, "60a7")
        assert result.kind == ErrorKind.INVALID_FORMAT
        assert store.get("bob").pin == PIN

    def test_failed_authentication_propagates(self, engine, store):
        """Test a wrong current PIN fails exactly like authenticate."""
        result = engine.change_pin(store.get("bob"), "0000", "6047")
        assert not result.success
        assert result.kind == ErrorKind.WRONG_PIN
        assert result.record.wrong_attempts == 1
        assert store.get("bob").pin == PIN

    def test_locked_account(self, engine, store):
        record = store.get("bob")
        for _ in range(MAX_WRONG_ATTEMPTS):
            record = engine.authenticate(record, "9999").record

        result = engine.change_pin(record, PIN, "6047")
        assert result.kind == ErrorKind.ACCOUNT_LOCKED
        assert store.get("bob").pin == PIN

    def test_rejection_is_audited(self, engine, store, audit_storage):
        engine.change_pin(store.get("bob"), PIN, "1111")
        assert event_types(audit_storage, "bob")[-1] == AuditEventType.PIN_CHANGE_REJECTED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
