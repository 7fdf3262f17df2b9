"""
Waitlist storage in Supabase.

Table `waitlist` has a unique constraint on `email`; inserting an address
twice raises a PostgreSQL unique violation (23505), reported as CONFLICT.
"""

import logging
from datetime import datetime, timezone

from supabase import Client, PostgrestAPIError

from quiz.email_validation import normalize_email
from quiz.store import SubscribeOutcome
from santelle.db.client import get_service_client

logger = logging.getLogger(__name__)

WAITLIST_TABLE = "waitlist"
UNIQUE_VIOLATION = "23505"


class SupabaseWaitlistService:
    """WaitlistService backed by the `waitlist` table."""

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_service_client()
        return self._client

    async def subscribe(self, email: str) -> SubscribeOutcome:
        email = normalize_email(email)
        try:
            self.client.table(WAITLIST_TABLE).insert({"email": email}).execute()
        except PostgrestAPIError as e:
            if e.code == UNIQUE_VIOLATION:
                return SubscribeOutcome.CONFLICT
            logger.error(f"Failed to add {email} to waitlist: {e.message}")
            return SubscribeOutcome.ERROR

        logger.info("New waitlist subscriber")
        return SubscribeOutcome.SUCCESS

    async def unsubscribe(self, email: str) -> bool:
        email = normalize_email(email)
        response = (
            self.client.table(WAITLIST_TABLE)
            .update({
                "unsubscribed_at": datetime.now(timezone.utc).isoformat(),
                "mailing": False,
            })
            .eq("email", email)
            .execute()
        )
        return bool(response.data)
