"""
Pytest configuration and fixtures for Santelle tests.
"""

import os
from unittest.mock import MagicMock

import pytest

# Set test environment before importing santelle modules
os.environ["SANTELLE_ENV"] = "development"
os.environ["STORE_BACKEND"] = "memory"
os.environ.setdefault("SUPABASE_URL", "")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "")

from quiz.flow import QuizFlow
from quiz.rate_limit import SubmissionRateLimiter
from santelle.db.memory import InMemoryQuizRecordStore, InMemoryWaitlistService


class FakeDomainValidator:
    """DomainValidator that answers from a fixed set of good domains."""

    def __init__(self, valid_domains: set[str] | None = None):
        self.valid_domains = valid_domains if valid_domains is not None else {"example.com", "santelle.ch"}
        self.calls: list[str] = []

    async def has_mx_record(self, domain: str) -> bool:
        self.calls.append(domain)
        return domain in self.valid_domains


class FakeClock:
    """Manually advanced clock for rate limiter tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.insert.return_value = mock_table
    mock_table.update.return_value = mock_table
    mock_table.delete.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.order.return_value = mock_table
    mock_table.limit.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table

    return mock_client


@pytest.fixture
def store():
    return InMemoryQuizRecordStore()


@pytest.fixture
def waitlist():
    return InMemoryWaitlistService()


@pytest.fixture
def validator():
    return FakeDomainValidator()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_flow(store, waitlist, validator, clock):
    """Factory for a QuizFlow wired to in-memory collaborators."""

    def _make(**overrides) -> QuizFlow:
        kwargs = {
            "store": store,
            "waitlist": waitlist,
            "validator": validator,
            "rate_limiter": SubmissionRateLimiter(clock=clock),
            "debounce_seconds": 0.01,
        }
        kwargs.update(overrides)
        return QuizFlow(**kwargs)

    return _make
