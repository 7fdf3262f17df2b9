"""Santelle database layer."""

from santelle.config import Settings
from santelle.db.memory import InMemoryQuizRecordStore, InMemoryWaitlistService
from santelle.db.quiz_records import SupabaseQuizRecordStore
from santelle.db.waitlist import SupabaseWaitlistService


def build_stores(settings: Settings):
    """(quiz record store, waitlist service) for the configured backend."""
    if settings.store_backend == "memory":
        return InMemoryQuizRecordStore(), InMemoryWaitlistService()
    return SupabaseQuizRecordStore(), SupabaseWaitlistService()


__all__ = [
    "InMemoryQuizRecordStore",
    "InMemoryWaitlistService",
    "SupabaseQuizRecordStore",
    "SupabaseWaitlistService",
    "build_stores",
]
