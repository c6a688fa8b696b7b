"""CryptoAuditLogger — JSONL audit trail for key and message events.

Every security-relevant event (key pair generated or overwritten, public
key published, message encrypted, encryption blocked, decryption failed)
is appended as a single JSON line to the configured log file. Events carry
identity ids and failure reasons only: never plaintext, ciphertext or key
material.

If no file path is configured the logger emits to an in-memory buffer
that can be drained via :meth:`drain_buffer`.
"""
from __future__ import annotations

import datetime
import json
import threading
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class AuditEvent:
    """A single auditable crypto event.

    Parameters
    ----------
    event_type:
        Short snake_case string identifying the event (e.g. "key_pair_generated").
    identity_id:
        The identity whose key material was involved.
    counterpart_id:
        The other party of a message operation, if any.
    details:
        Arbitrary non-secret key-value metadata about the event.
    timestamp:
        UTC datetime of the event. Defaults to now.
    """

    event_type: str
    identity_id: str
    counterpart_id: str | None = None
    details: dict[str, object] = field(default_factory=dict)
    timestamp: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary suitable for JSON encoding."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type,
            "identity_id": self.identity_id,
            "counterpart_id": self.counterpart_id,
            "details": self.details,
        }


class CryptoAuditLogger:
    """Append-only JSONL audit logger for crypto events.

    Thread-safe. Each call to :meth:`log` appends one JSON line to the
    configured file path (or to the in-memory buffer if no path is set).

    Parameters
    ----------
    log_path:
        Path to the JSONL log file. Parent directories are created
        automatically. If None, events are buffered in memory only.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._buffer: list[str] = []
        self._lock = threading.Lock()

        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Core logging
    # ------------------------------------------------------------------

    def log(self, event: AuditEvent) -> None:
        """Append an audit event to the log."""
        line = json.dumps(event.to_dict(), separators=(",", ":"))
        with self._lock:
            if self._log_path is not None:
                with self._log_path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
            else:
                self._buffer.append(line)

    def log_event(
        self,
        event_type: str,
        identity_id: str,
        counterpart_id: str | None = None,
        **details: object,
    ) -> None:
        """Log a simple event without constructing :class:`AuditEvent`."""
        self.log(
            AuditEvent(
                event_type=event_type,
                identity_id=identity_id,
                counterpart_id=counterpart_id,
                details=dict(details),
            )
        )

    # ------------------------------------------------------------------
    # Convenience event loggers
    # ------------------------------------------------------------------

    def log_key_generated(self, identity_id: str, overwritten: bool, fingerprint: str) -> None:
        """Log a key_pair_generated or key_pair_overwritten event."""
        self.log_event(
            "key_pair_overwritten" if overwritten else "key_pair_generated",
            identity_id=identity_id,
            fingerprint=fingerprint,
        )

    def log_public_key_published(self, identity_id: str, fingerprint: str) -> None:
        """Log a public_key_published event."""
        self.log_event("public_key_published", identity_id=identity_id, fingerprint=fingerprint)

    def log_encryption(
        self,
        identity_id: str,
        counterpart_id: str,
        success: bool,
        reason: str = "",
    ) -> None:
        """Log a message_encrypted or encryption_blocked event."""
        if success:
            self.log_event("message_encrypted", identity_id, counterpart_id)
        else:
            self.log_event("encryption_blocked", identity_id, counterpart_id, reason=reason)

    def log_decryption_failure(self, identity_id: str, counterpart_id: str, reason: str) -> None:
        """Log a decryption_failed event."""
        self.log_event("decryption_failed", identity_id, counterpart_id, reason=reason)

    # ------------------------------------------------------------------
    # Buffer access
    # ------------------------------------------------------------------

    def drain_buffer(self) -> list[str]:
        """Return and clear the in-memory event buffer (oldest first)."""
        with self._lock:
            events = list(self._buffer)
            self._buffer.clear()
        return events

    def read_log(self, tail: int | None = None) -> list[dict[str, object]]:
        """Read events from the log file or the in-memory buffer.

        Parameters
        ----------
        tail:
            If provided, return only the last *tail* events.

        Returns
        -------
        list[dict[str, object]]
            Parsed event dictionaries in chronological order. Lines that
            are not valid JSON are skipped.
        """
        if self._log_path is None or not self._log_path.exists():
            with self._lock:
                lines = list(self._buffer)
        else:
            with self._lock:
                lines = self._log_path.read_text(encoding="utf-8").splitlines()

        parsed: list[dict[str, object]] = []
        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            try:
                entry: dict[str, object] = json.loads(stripped)
                parsed.append(entry)
            except json.JSONDecodeError:
                continue

        if tail is not None:
            return parsed[-tail:]
        return parsed


__all__ = ["AuditEvent", "CryptoAuditLogger"]
