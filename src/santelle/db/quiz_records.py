"""
Quiz record storage in Supabase.

Table `quiz`: one row per completed questionnaire. Answers are stored as
1-based option indices in columns q1..q4; email, plan and the `signup?`
flag are filled in later as the visitor moves through the funnel.
"""

import logging
from typing import Any

from supabase import Client

from quiz.questions import QUESTION_IDS
from santelle.db.client import get_service_client

logger = logging.getLogger(__name__)

QUIZ_TABLE = "quiz"
SIGNUP_COLUMN = "signup?"
PLAN_COLUMN = "plan"


class SupabaseQuizRecordStore:
    """QuizRecordStore backed by the `quiz` table."""

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_service_client()
        return self._client

    async def create(self, answers: dict[str, int], signup: bool = False, email: str | None = None) -> str:
        row: dict[str, Any] = {qid: answers.get(qid) for qid in QUESTION_IDS}
        row[SIGNUP_COLUMN] = signup
        if email:
            row["email"] = email

        response = self.client.table(QUIZ_TABLE).insert(row).execute()
        if not response.data:
            raise RuntimeError("Quiz insert returned no rows")

        return str(response.data[0]["id"])

    async def update(
        self,
        record_id: str,
        *,
        email: str | None = None,
        signup: bool | None = None,
        plan_name: str | None = None,
    ) -> None:
        updates: dict[str, Any] = {}
        if email is not None:
            updates["email"] = email
        if signup is not None:
            updates[SIGNUP_COLUMN] = signup
        if plan_name is not None:
            updates[PLAN_COLUMN] = plan_name

        if not updates:
            return

        self.client.table(QUIZ_TABLE).update(updates).eq("id", record_id).execute()

    async def list_records(self, limit: int | None = None) -> list[dict[str, Any]]:
        query = self.client.table(QUIZ_TABLE).select("*").order("created_at", desc=True)
        if limit:
            query = query.limit(limit)
        response = query.execute()
        return response.data or []
