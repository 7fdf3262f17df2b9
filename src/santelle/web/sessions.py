"""
In-memory quiz session registry.

Each visitor's QuizFlow lives here, keyed by session id, until it has been
idle for longer than `expire_hours`. The authoritative record is the quiz
row in the database; losing a session only loses the visitor's progress.
"""

import logging
from datetime import datetime, timedelta, timezone

from quiz.flow import QuizFlow

logger = logging.getLogger(__name__)


def _parse_iso(iso_str: str | None) -> datetime | None:
    """Parse ISO format string to datetime."""
    if not iso_str:
        return None
    try:
        if iso_str.endswith("Z"):
            iso_str = iso_str[:-1] + "+00:00"
        return datetime.fromisoformat(iso_str)
    except ValueError:
        return None


class QuizSessionRegistry:

    def __init__(self, expire_hours: int = 24):
        self.expire_hours = expire_hours
        self._flows: dict[str, QuizFlow] = {}

    def __len__(self) -> int:
        return len(self._flows)

    def add(self, flow: QuizFlow) -> QuizFlow:
        self.prune()
        self._flows[flow.session.session_id] = flow
        return flow

    def get(self, session_id: str) -> QuizFlow | None:
        flow = self._flows.get(session_id)
        if flow is not None and self.is_expired(flow):
            self._flows.pop(session_id, None)
            return None
        return flow

    def is_expired(self, flow: QuizFlow) -> bool:
        last_active = _parse_iso(flow.session.updated_at)
        if not last_active:
            return False
        return datetime.now(timezone.utc) - last_active > timedelta(hours=self.expire_hours)

    def prune(self) -> int:
        """Drop expired sessions. Returns how many were removed."""
        expired = [sid for sid, flow in self._flows.items() if self.is_expired(flow)]
        for sid in expired:
            del self._flows[sid]
        if expired:
            logger.info(f"Dropped {len(expired)} expired quiz sessions")
        return len(expired)

    async def close_all(self) -> None:
        """Wait for every session's pending writes (shutdown)."""
        for flow in list(self._flows.values()):
            await flow.close()
