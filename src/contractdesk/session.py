from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

from .fields import DATE_FIELDS, REQUIRED_CONTRACT_FIELDS, missing_fields

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    INITIAL = "INITIAL"
    COLLECTING_ACCOUNT = "COLLECTING_ACCOUNT"
    COLLECTING_CONTRACT_DATA = "COLLECTING_CONTRACT_DATA"
    COLLECTING_DATES = "COLLECTING_DATES"
    COMPLETED = "COMPLETED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Session:
    session_id: str
    state: SessionState = SessionState.INITIAL
    fields: dict[str, str] = field(default_factory=dict)
    date_fields: dict[str, str] = field(default_factory=dict)
    last_input: str = ""
    created_at: datetime = field(default_factory=_utcnow)
    value_updates: list[dict[str, Any]] = field(default_factory=list)

    @property
    def missing_fields(self) -> list[str]:
        return missing_fields(self.fields)

    def set_field(self, name: str, value: str, reason: str) -> None:
        if name not in REQUIRED_CONTRACT_FIELDS:
            raise KeyError(f"'{name}' is not a registered contract field")
        old = self.fields.get(name)
        self.fields[name] = value
        self.log_update(name, old, value, reason)

    def set_dates(self, effective: str, expiration: str, reason: str) -> None:
        old = dict(self.date_fields)
        self.date_fields = dict(zip(DATE_FIELDS, (effective, expiration)))
        self.log_update("date_fields", old, dict(self.date_fields), reason)

    def transition(self, new_state: SessionState, reason: str) -> None:
        if new_state == self.state:
            return
        old = self.state
        self.state = new_state
        self.log_update("state", old.value, new_state.value, reason)
        logger.debug("Session %s: %s -> %s (%s)", self.session_id, old.value, new_state.value, reason)

    def reset(self, reason: str) -> None:
        """Clear collected data and return to INITIAL for the next conversation."""
        self.state = SessionState.INITIAL
        self.fields = {}
        self.date_fields = {}
        self.last_input = ""
        self.created_at = _utcnow()
        self.value_updates = []
        logger.info("Session %s reset (%s)", self.session_id, reason)

    def log_update(self, variable: str, old_value: Any, new_value: Any, reason: str) -> None:
        self.value_updates.append(
            {
                "variable": variable,
                "old_value": old_value,
                "new_value": new_value,
                "reason": reason,
            }
        )

    def snapshot(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "fields": dict(self.fields),
            "date_fields": dict(self.date_fields),
            "missing_fields": self.missing_fields,
            "last_input": self.last_input,
            "created_at": self.created_at.isoformat(),
        }


class SessionStore:
    """Keyed per-conversation state with one owner per session id at a time.

    The store-wide lock only guards creating a session's record and lock;
    a turn holds its own session lock, so different sessions never wait on
    each other.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
                self._sessions[session_id] = Session(session_id=session_id)
                logger.info("Session %s created", session_id)
            return lock

    @contextmanager
    def acquire(self, session_id: str) -> Iterator[Session]:
        while True:
            lock = self._lock_for(session_id)
            lock.acquire()
            with self._registry_lock:
                current = self._locks.get(session_id) is lock
                session = self._sessions.get(session_id)
            if current:
                break
            # discarded while we waited; take the fresh record
            lock.release()
        try:
            yield session
        finally:
            lock.release()

    def discard(self, session_id: str) -> bool:
        """Forget a session entirely; waits for an in-flight turn to finish."""
        with self._registry_lock:
            lock = self._locks.get(session_id)
        if lock is None:
            return False
        with lock:
            with self._registry_lock:
                if self._locks.get(session_id) is not lock:
                    return False
                del self._locks[session_id]
                del self._sessions[session_id]
        logger.info("Session %s discarded", session_id)
        return True

    def reset(self, session_id: str) -> None:
        with self.acquire(session_id) as session:
            session.reset("explicit_reset")

    def snapshot(self, session_id: str) -> dict[str, Any] | None:
        if session_id not in self:
            return None
        with self.acquire(session_id) as session:
            return session.snapshot()

    def __contains__(self, session_id: object) -> bool:
        with self._registry_lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)
