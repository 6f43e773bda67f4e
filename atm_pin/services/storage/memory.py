"""
In-Memory Audit Storage

Keeps the most recent audit events in a bounded buffer so the admin
page can show them. Nothing is written to disk.
"""

from collections import deque
from typing import Optional

from atm_pin.config import get_settings
from atm_pin.models.audit import AuditEvent
from atm_pin.services.storage.interface import AuditStorageInterface


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only, bounded audit log. Oldest events fall off first."""

    def __init__(self, max_events: Optional[int] = None):
        if max_events is None:
            max_events = get_settings().app.audit_buffer_size
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def __len__(self) -> int:
        return len(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_username(self, username: str) -> list[AuditEvent]:
        return [event for event in self._events if event.username == username]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
