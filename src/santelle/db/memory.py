"""
In-memory quiz record store and waitlist.

Used for local development (STORE_BACKEND=memory), the terminal quiz and
tests. Data lives only as long as the process.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from quiz.email_validation import normalize_email
from quiz.store import SubscribeOutcome


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryQuizRecordStore:

    def __init__(self):
        self.records: dict[str, dict[str, Any]] = {}

    async def create(self, answers: dict[str, int], signup: bool = False, email: str | None = None) -> str:
        record_id = str(uuid.uuid4())
        self.records[record_id] = {
            "id": record_id,
            **answers,
            "signup?": signup,
            "email": email,
            "plan": None,
            "created_at": _utc_now(),
        }
        return record_id

    async def update(
        self,
        record_id: str,
        *,
        email: str | None = None,
        signup: bool | None = None,
        plan_name: str | None = None,
    ) -> None:
        record = self.records.get(record_id)
        if record is None:
            raise KeyError(f"Quiz record not found: {record_id}")
        if email is not None:
            record["email"] = email
        if signup is not None:
            record["signup?"] = signup
        if plan_name is not None:
            record["plan"] = plan_name

    async def list_records(self, limit: int | None = None) -> list[dict[str, Any]]:
        rows = sorted(self.records.values(), key=lambda r: r["created_at"], reverse=True)
        return rows[:limit] if limit else rows


class InMemoryWaitlistService:

    def __init__(self):
        self.entries: dict[str, dict[str, Any]] = {}

    async def subscribe(self, email: str) -> SubscribeOutcome:
        email = normalize_email(email)
        if email in self.entries:
            return SubscribeOutcome.CONFLICT
        self.entries[email] = {"email": email, "mailing": True, "unsubscribed_at": None, "created_at": _utc_now()}
        return SubscribeOutcome.SUCCESS

    async def unsubscribe(self, email: str) -> bool:
        entry = self.entries.get(normalize_email(email))
        if entry is None:
            return False
        entry["mailing"] = False
        entry["unsubscribed_at"] = _utc_now()
        return True
