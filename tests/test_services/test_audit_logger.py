"""
Tests du journal d'audit (AuditLogger).
"""

import pytest

from app.core.exceptions import StoreError, ValidationError
from app.models import AuditAction
from app.services.audit import AuditLogger


class FailingStore:
    """Store dont l'écriture d'audit échoue."""

    def append_audit_log(self, entry):
        raise StoreError("disk full")


class TestAuditLogger:

    def test_log_appends_entry(self, audit_logger, memory_store, clock):
        entry = audit_logger.log(5, AuditAction.RECORD_ACCESSED, "record 12 of patient 9", "10.0.0.5")

        assert entry.id == 1
        assert entry.action == "record_accessed"
        assert entry.timestamp == clock.now
        assert entry.ip_address == "10.0.0.5"
        assert memory_store.list_audit_logs() == [entry]

    def test_log_accepts_plain_string_action(self, audit_logger):
        entry = audit_logger.log(9, "login")
        assert entry.action == AuditAction.LOGIN.value
        assert entry.details is None

    def test_unknown_action_rejected(self, audit_logger, memory_store):
        with pytest.raises(ValidationError):
            audit_logger.log(9, "record_deleted")

        assert memory_store.list_audit_logs() == []

    def test_store_failure_propagates(self):
        with pytest.raises(StoreError):
            AuditLogger(FailingStore()).log(9, AuditAction.LOGIN)

    def test_newest_first(self, audit_logger, memory_store, clock):
        first = audit_logger.log(9, AuditAction.LOGIN)
        clock.advance(minutes=5)
        second = audit_logger.log(9, AuditAction.LOGOUT)

        assert memory_store.list_audit_logs_by_user(9) == [second, first]
