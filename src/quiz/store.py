"""
Collaborator interfaces for the quiz flow.

The flow never talks to a database directly. It consumes two services:

- QuizRecordStore: stores the answers once the last question is answered,
  then receives partial updates (plan, email, signup flag) keyed by the
  record id it returned.
- WaitlistService: adds an email to the waitlist. An address that is
  already present is reported as CONFLICT, which callers treat as success.

Implementations live in santelle.db (Supabase and in-memory).
"""

from enum import Enum
from typing import Any, Protocol, runtime_checkable


class SubscribeOutcome(Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    ERROR = "error"

    @property
    def ok(self) -> bool:
        """Conflict means the address is already on the list - fine by the user."""
        return self is not SubscribeOutcome.ERROR


@runtime_checkable
class QuizRecordStore(Protocol):

    async def create(self, answers: dict[str, int], signup: bool = False, email: str | None = None) -> str:
        """Insert a quiz record and return its id."""
        ...

    async def update(
        self,
        record_id: str,
        *,
        email: str | None = None,
        signup: bool | None = None,
        plan_name: str | None = None,
    ) -> None:
        """Write only the provided fields. Repeating an update is harmless."""
        ...

    async def list_records(self, limit: int | None = None) -> list[dict[str, Any]]:
        """All records, newest first."""
        ...


@runtime_checkable
class WaitlistService(Protocol):

    async def subscribe(self, email: str) -> SubscribeOutcome:
        ...

    async def unsubscribe(self, email: str) -> bool:
        """Mark an address as unsubscribed. False when it is not on the list."""
        ...
