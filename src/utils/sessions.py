"""In-process session registry with an inactivity timeout."""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from src.utils.security import SecurityManager

DEFAULT_SESSION_TIMEOUT_MS = 30 * 60 * 1000


@dataclass
class SessionRecord:
    user_id: str
    last_activity: int
    data: dict[str, Any] = field(default_factory=dict)


class SessionManager:
    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._sessions: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def create_session(self, user_id: str, data: Optional[dict[str, Any]] = None) -> str:
        session_id = SecurityManager.generate_token(32)
        with self._lock:
            self._sessions[session_id] = SessionRecord(
                user_id=user_id, last_activity=self._now_ms(), data=data or {}
            )
        return session_id

    def validate_session(
        self, session_id: str, timeout_ms: int = DEFAULT_SESSION_TIMEOUT_MS
    ) -> bool:
        """True and refresh activity when alive; expired sessions are removed."""
        now = self._now_ms()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            if now - session.last_activity > timeout_ms:
                del self._sessions[session_id]
                return False
            session.last_activity = now
            return True

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        return self._sessions.get(session_id)

    def destroy_session(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def cleanup_sessions(self, timeout_ms: int = DEFAULT_SESSION_TIMEOUT_MS) -> int:
        now = self._now_ms()
        with self._lock:
            expired = [
                sid
                for sid, s in self._sessions.items()
                if now - s.last_activity > timeout_ms
            ]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)
