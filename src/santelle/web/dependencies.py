"""
FastAPI dependencies.

Collaborators are built once per process from settings. Tests replace them
with `app.dependency_overrides`.
"""

from functools import lru_cache

from quiz.email_validation import DnsOverHttpsValidator, DomainValidator
from quiz.store import QuizRecordStore, WaitlistService
from santelle.config import Settings, get_settings
from santelle.db import build_stores
from santelle.web.sessions import QuizSessionRegistry


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def _stores():
    return build_stores(get_settings())


def get_quiz_store() -> QuizRecordStore:
    return _stores()[0]


def get_waitlist_service() -> WaitlistService:
    return _stores()[1]


@lru_cache
def get_domain_validator() -> DomainValidator:
    settings = get_settings()
    return DnsOverHttpsValidator(
        resolver_url=settings.dns_resolver_url,
        timeout=settings.dns_timeout_seconds,
    )


@lru_cache
def get_session_registry() -> QuizSessionRegistry:
    return QuizSessionRegistry(expire_hours=get_settings().session_expire_hours)
