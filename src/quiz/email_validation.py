"""
Email Validation.

Two independent checks:
- Format: a fixed, permissive regex (something@something.tld, no spaces).
- Domain: the domain part must publish at least one MX record, looked up
  through a public DNS-over-HTTPS resolver.

Resolver failures (network errors, timeouts, bad payloads) count as an
invalid domain everywhere.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_EMAIL_LENGTH = 254

DEFAULT_RESOLVER_URL = "https://dns.google/resolve"
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_DEBOUNCE_SECONDS = 0.5


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email_format(email: str | None) -> bool:
    if not email:
        return False
    email = email.strip()
    return len(email) <= MAX_EMAIL_LENGTH and EMAIL_PATTERN.match(email) is not None


def email_domain(email: str) -> str | None:
    """Domain part of an address, or None if there is no '@'."""
    _, sep, domain = email.strip().rpartition("@")
    if not sep or not domain:
        return None
    return domain.lower()


@runtime_checkable
class DomainValidator(Protocol):
    """Checks whether a mail domain can receive email."""

    async def has_mx_record(self, domain: str) -> bool:
        ...


class DnsOverHttpsValidator:
    """
    MX lookup through a JSON DNS-over-HTTPS endpoint (Google's by default).

    Pass `client` to reuse a connection pool or inject a mock transport.
    """

    def __init__(
        self,
        resolver_url: str = DEFAULT_RESOLVER_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        self.resolver_url = resolver_url
        self.timeout = timeout
        self._client = client

    async def has_mx_record(self, domain: str) -> bool:
        if not domain:
            return False

        params = {"name": domain, "type": "MX"}
        try:
            if self._client is not None:
                response = await self._client.get(self.resolver_url, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.resolver_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            logger.warning(f"MX lookup timed out for {domain}")
            return False
        except httpx.HTTPError as e:
            logger.warning(f"MX lookup failed for {domain}: {e}")
            return False
        except ValueError as e:
            logger.warning(f"MX lookup returned invalid JSON for {domain}: {e}")
            return False

        if not isinstance(data, dict):
            return False
        # Any answer counts, including a CNAME chain ending in the MX record
        answers = data.get("Answer")
        return isinstance(answers, list) and len(answers) > 0


async def validate_email(email: str, validator: DomainValidator) -> tuple[bool, str]:
    """
    Run both checks.

    Returns:
        (is_valid, error_message)
    """
    if not is_valid_email_format(email):
        return False, "Please enter a valid email address"

    domain = email_domain(email)
    if not domain or not await validator.has_mx_record(domain):
        return False, "This email domain appears to be invalid"

    return True, ""


@dataclass(frozen=True)
class DomainCheckResult:
    """Outcome of a domain lookup, tagged with the address it was run for."""
    email: str
    valid: bool


class DebouncedDomainCheck:
    """
    Runs the domain lookup only after the address stops changing.

    Each `schedule()` cancels a timer that is still waiting. A lookup that
    has already started is left to finish; whichever lookup finishes last
    wins `latest`. Every timer is tracked until done so `wait()` covers
    replaced lookups too.
    """

    def __init__(self, validator: DomainValidator, delay: float = DEFAULT_DEBOUNCE_SECONDS):
        self.validator = validator
        self.delay = delay
        self.latest: DomainCheckResult | None = None
        self.lookups = 0
        self._timer: asyncio.Task | None = None
        self._timer_fired = False
        self._tasks: set[asyncio.Task] = set()

    def schedule(self, email: str) -> None:
        """Address changed: (re)start the debounce timer."""
        if self._timer is not None and not self._timer.done() and not self._timer_fired:
            self._timer.cancel()

        if not is_valid_email_format(email):
            self._timer = None
            return

        self._timer_fired = False
        self._timer = asyncio.create_task(self._run_after_delay(normalize_email(email)))
        self._tasks.add(self._timer)
        self._timer.add_done_callback(self._tasks.discard)

    async def _run_after_delay(self, email: str) -> None:
        await asyncio.sleep(self.delay)
        self._timer_fired = True
        await self.check_now(email)

    async def check_now(self, email: str) -> bool:
        """Look up immediately and record the result."""
        email = normalize_email(email)
        domain = email_domain(email)
        self.lookups += 1
        valid = bool(domain) and await self.validator.has_mx_record(domain)
        self.latest = DomainCheckResult(email=email, valid=valid)
        return valid

    def result_for(self, email: str) -> bool | None:
        """Cached result for this exact address, or None."""
        if self.latest is not None and self.latest.email == normalize_email(email):
            return self.latest.valid
        return None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait(self) -> None:
        """Wait for every timer and in-flight lookup, including replaced ones."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
