"""Per-process registry of open intake sessions.

Sessions idle for longer than the TTL are dropped on the next access.
"""

from __future__ import annotations

from time import monotonic

from ticket_intake.config import settings
from ticket_intake.logging import get_logger
from ticket_intake.services.intake.errors import IntakeSessionNotFoundError
from ticket_intake.services.intake.session import IntakeSession

logger = get_logger(__name__)


class SessionRegistry:
    def __init__(self, ttl_seconds: int | None = None):
        self.ttl_seconds = settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._sessions: dict[str, IntakeSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _expired(self, session: IntakeSession, now: float) -> bool:
        return now - session.last_activity > self.ttl_seconds

    def purge_expired(self) -> int:
        now = monotonic()
        expired = [key for key, session in self._sessions.items() if self._expired(session, now)]
        for key in expired:
            self._sessions.pop(key, None)
        if expired:
            logger.info("intake_sessions_expired count=%s", len(expired))
        return len(expired)

    def add(self, session: IntakeSession) -> IntakeSession:
        self.purge_expired()
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> IntakeSession:
        self.purge_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise IntakeSessionNotFoundError(session_id)
        return session

    def discard(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise IntakeSessionNotFoundError(session_id)


registry = SessionRegistry()
