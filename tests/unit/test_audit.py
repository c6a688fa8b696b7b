"""Tests for crazzle_e2ee.audit — CryptoAuditLogger."""
from __future__ import annotations

import datetime
import json
from pathlib import Path

import pytest

from crazzle_e2ee.audit import AuditEvent, CryptoAuditLogger


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def logger_in_memory() -> CryptoAuditLogger:
    return CryptoAuditLogger(log_path=None)


@pytest.fixture()
def log_file(tmp_path: Path) -> Path:
    return tmp_path / "audit" / "crypto.jsonl"


@pytest.fixture()
def logger_on_disk(log_file: Path) -> CryptoAuditLogger:
    return CryptoAuditLogger(log_path=log_file)


# ---------------------------------------------------------------------------
# AuditEvent
# ---------------------------------------------------------------------------


class TestAuditEvent:
    def test_to_dict_contains_required_fields(self) -> None:
        d = AuditEvent(event_type="key_pair_generated", identity_id="alice").to_dict()
        assert d["event_type"] == "key_pair_generated"
        assert d["identity_id"] == "alice"
        assert d["counterpart_id"] is None
        assert d["details"] == {}
        assert "timestamp" in d

    def test_timestamp_is_utc_iso(self) -> None:
        event = AuditEvent(event_type="x", identity_id="alice")
        assert event.timestamp.tzinfo == datetime.timezone.utc
        assert datetime.datetime.fromisoformat(str(event.to_dict()["timestamp"])) == event.timestamp


# ---------------------------------------------------------------------------
# CryptoAuditLogger
# ---------------------------------------------------------------------------


class TestInMemory:
    def test_log_event_buffers_json_line(self, logger_in_memory: CryptoAuditLogger) -> None:
        logger_in_memory.log_event("custom", "alice", "bob", note="hi")
        (line,) = logger_in_memory.drain_buffer()
        entry = json.loads(line)
        assert entry["counterpart_id"] == "bob"
        assert entry["details"] == {"note": "hi"}

    def test_drain_clears_buffer(self, logger_in_memory: CryptoAuditLogger) -> None:
        logger_in_memory.log_event("custom", "alice")
        logger_in_memory.drain_buffer()
        assert logger_in_memory.drain_buffer() == []

    def test_convenience_event_types(self, logger_in_memory: CryptoAuditLogger) -> None:
        logger_in_memory.log_key_generated("alice", overwritten=False, fingerprint="AB")
        logger_in_memory.log_key_generated("alice", overwritten=True, fingerprint="CD")
        logger_in_memory.log_public_key_published("alice", fingerprint="CD")
        logger_in_memory.log_encryption("alice", "bob", success=True)
        logger_in_memory.log_encryption("alice", "bob", success=False, reason="InvalidPublicKey")
        logger_in_memory.log_decryption_failure("bob", "alice", reason="DecryptionFailed")
        events = logger_in_memory.read_log()
        assert [e["event_type"] for e in events] == [
            "key_pair_generated",
            "key_pair_overwritten",
            "public_key_published",
            "message_encrypted",
            "encryption_blocked",
            "decryption_failed",
        ]
        assert events[4]["details"] == {"reason": "InvalidPublicKey"}

    def test_read_log_tail(self, logger_in_memory: CryptoAuditLogger) -> None:
        for i in range(5):
            logger_in_memory.log_event("custom", f"id-{i}")
        assert [e["identity_id"] for e in logger_in_memory.read_log(tail=2)] == ["id-3", "id-4"]


class TestOnDisk:
    def test_creates_parent_directory(self, log_file: Path, logger_on_disk: CryptoAuditLogger) -> None:
        assert log_file.parent.is_dir()

    def test_appends_one_line_per_event(
        self, log_file: Path, logger_on_disk: CryptoAuditLogger
    ) -> None:
        logger_on_disk.log_encryption("alice", "bob", success=True)
        logger_on_disk.log_decryption_failure("bob", "alice", reason="DecryptionFailed")
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[1])["event_type"] == "decryption_failed"

    def test_read_log_skips_corrupt_lines(
        self, log_file: Path, logger_on_disk: CryptoAuditLogger
    ) -> None:
        logger_on_disk.log_event("custom", "alice")
        with log_file.open("a", encoding="utf-8") as fh:
            fh.write("not json\n\n")
        logger_on_disk.log_event("custom", "bob")
        assert [e["identity_id"] for e in logger_on_disk.read_log()] == ["alice", "bob"]
