"""
Quiz Flow.

Owns one QuizSession and drives it through the state machine, attaching
the external calls each transition needs:

- Leaving the last question stores the answers (best-effort, detached).
- Choosing a plan writes the plan onto that record (best-effort, detached).
- Submitting an email is rate limited, validated (format, then MX), writes
  email + signup onto the record (best-effort) and subscribes the address
  to the waitlist (awaited; failure keeps the user in lead capture).

Record updates wait for the pending create so they always have an id to
write to. If the create failed, updates are skipped and logged.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

from . import state
from .background import BackgroundTasks
from .email_validation import (
    DebouncedDomainCheck,
    DnsOverHttpsValidator,
    DomainValidator,
    is_valid_email_format,
    normalize_email,
)
from .errors import InvalidTransitionError
from .plans import PLANS
from .questions import QUIZ_QUESTIONS
from .rate_limit import SubmissionRateLimiter
from .state import QuizPhase, QuizSession
from .store import QuizRecordStore, SubscribeOutcome, WaitlistService

logger = logging.getLogger(__name__)


class EmailStatus(Enum):
    ACCEPTED = "accepted"
    INVALID_FORMAT = "invalid_format"
    INVALID_DOMAIN = "invalid_domain"
    RATE_LIMITED = "rate_limited"
    SUBSCRIBE_FAILED = "subscribe_failed"


@dataclass(frozen=True)
class EmailSubmission:
    status: EmailStatus
    message: str = ""
    retry_after: int = 0

    @property
    def accepted(self) -> bool:
        return self.status == EmailStatus.ACCEPTED


INVALID_FORMAT_MESSAGE = "Please enter a valid email address"
INVALID_DOMAIN_MESSAGE = "This email domain appears to be invalid"
SUBSCRIBE_FAILED_MESSAGE = "Failed to join the waitlist. Please try again."


class QuizFlow:
    """Quiz state machine bound to its collaborators. One per visitor."""

    def __init__(
        self,
        store: QuizRecordStore,
        waitlist: WaitlistService,
        validator: DomainValidator | None = None,
        session: QuizSession | None = None,
        rate_limiter: SubmissionRateLimiter | None = None,
        debounce_seconds: float = 0.5,
    ):
        self.store = store
        self.waitlist = waitlist
        self.session = session or QuizSession(session_id=uuid.uuid4().hex)
        self.rate_limiter = rate_limiter or SubmissionRateLimiter()
        self.domain_check = DebouncedDomainCheck(validator or DnsOverHttpsValidator(), delay=debounce_seconds)
        self.background = BackgroundTasks()
        self._record_task: asyncio.Task | None = None
        self._submit_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        store: QuizRecordStore,
        waitlist: WaitlistService,
        validator: DomainValidator | None = None,
        session: QuizSession | None = None,
    ) -> "QuizFlow":
        """Build a flow using limiter, resolver and debounce values from Settings."""
        return cls(
            store=store,
            waitlist=waitlist,
            validator=validator or DnsOverHttpsValidator(
                resolver_url=settings.dns_resolver_url,
                timeout=settings.dns_timeout_seconds,
            ),
            session=session,
            rate_limiter=SubmissionRateLimiter(
                max_attempts=settings.rate_limit_max_attempts,
                window_seconds=settings.rate_limit_window_seconds,
                lockout_seconds=settings.rate_limit_lockout_seconds,
            ),
            debounce_seconds=settings.email_debounce_ms / 1000,
        )

    @property
    def phase(self) -> QuizPhase:
        return self.session.current_phase

    # -------------------------------------------------------------------------
    # Questioning
    # -------------------------------------------------------------------------

    def start(self) -> None:
        state.start(self.session)
        logger.info(f"Quiz started: session={self.session.session_id}")

    def select_answer(self, option: int) -> None:
        state.select_answer(self.session, option)

    def previous(self) -> bool:
        return state.go_previous(self.session)

    async def next(self) -> bool:
        """Advance; on the last question also stores the answers in the background."""
        advanced = state.go_next(self.session)
        if advanced and self.phase == QuizPhase.PLAN_SELECTION:
            logger.info(
                f"Quiz answered: session={self.session.session_id} "
                f"answers={self.session.answers} recommended={self.session.recommended_plan}"
            )
            self._record_task = self.background.spawn(self._create_record(), "create quiz record")
        return advanced

    # -------------------------------------------------------------------------
    # Plan selection
    # -------------------------------------------------------------------------

    async def select_plan(self, plan_name: str) -> None:
        state.select_plan(self.session, plan_name)
        self.background.spawn(
            self._update_record(plan_name=self.session.selected_plan),
            "update quiz record with plan",
        )

    # -------------------------------------------------------------------------
    # Lead capture
    # -------------------------------------------------------------------------

    def email_changed(self, email: str) -> str:
        """
        The visitor is typing. Checks format now and debounces the MX lookup.

        Must be called from inside the running event loop. Returns the
        format error message, or "" when the format is fine. An empty or
        malformed draft cancels any lookup still waiting to fire.
        """
        self.domain_check.schedule(email)
        if email and not is_valid_email_format(email):
            return INVALID_FORMAT_MESSAGE
        return ""

    async def submit_email(self, email: str) -> EmailSubmission:
        """
        Validate and subscribe. Submissions on one session run one at a time;
        a repeat of the address that already completed the quiz is accepted.
        """
        async with self._submit_lock:
            if self.phase == QuizPhase.COMPLETE and self.session.email == normalize_email(email):
                return EmailSubmission(EmailStatus.ACCEPTED)
            return await self._submit_email(email)

    async def _submit_email(self, email: str) -> EmailSubmission:
        if self.phase != QuizPhase.LEAD_CAPTURE:
            raise InvalidTransitionError("submit an email", self.phase.value)

        decision = self.rate_limiter.attempt()
        if not decision.allowed:
            return self._reject(EmailStatus.RATE_LIMITED, decision.message, decision.retry_after)

        if not is_valid_email_format(email):
            return self._reject(EmailStatus.INVALID_FORMAT, INVALID_FORMAT_MESSAGE)

        email = normalize_email(email)
        domain_valid = self.domain_check.result_for(email)
        if domain_valid is None:
            domain_valid = await self.domain_check.check_now(email)
        if not domain_valid:
            return self._reject(EmailStatus.INVALID_DOMAIN, INVALID_DOMAIN_MESSAGE)

        self.background.spawn(
            self._update_record(email=email, signup=True),
            "update quiz record with email",
        )

        outcome = await self._subscribe(email)
        if not outcome.ok:
            return self._reject(EmailStatus.SUBSCRIBE_FAILED, SUBSCRIBE_FAILED_MESSAGE)

        if outcome == SubscribeOutcome.CONFLICT:
            logger.info(f"Email already on waitlist: session={self.session.session_id}")

        state.complete(self.session, email)
        logger.info(f"Quiz complete: session={self.session.session_id} plan={self.session.selected_plan}")
        return EmailSubmission(EmailStatus.ACCEPTED)

    def _reject(self, status: EmailStatus, message: str, retry_after: int = 0) -> EmailSubmission:
        logger.info(f"Email submission rejected ({status.value}): session={self.session.session_id}")
        self.session.error = message
        self.session.touch()
        return EmailSubmission(status, message, retry_after)

    async def _subscribe(self, email: str) -> SubscribeOutcome:
        try:
            return await self.waitlist.subscribe(email)
        except Exception as e:
            logger.error(f"Waitlist subscription failed: {e}")
            return SubscribeOutcome.ERROR

    # -------------------------------------------------------------------------
    # Best-effort persistence
    # -------------------------------------------------------------------------

    async def _create_record(self) -> str:
        answers = self.session.complete_answers().to_dict()
        record_id = await self.store.create(answers, signup=False)
        self.session.record_id = record_id
        logger.debug(f"Quiz record created: {record_id}")
        return record_id

    async def _await_record_id(self) -> str | None:
        if self.session.record_id is None and self._record_task is not None:
            await self._record_task
        return self.session.record_id

    async def _update_record(self, **fields: Any) -> None:
        record_id = await self._await_record_id()
        if record_id is None:
            logger.warning(
                f"No quiz record for session {self.session.session_id}; skipping update of {sorted(fields)}"
            )
            return
        await self.store.update(record_id, **fields)
        logger.debug(f"Quiz record {record_id} updated: {sorted(fields)}")

    async def close(self) -> None:
        """Let pending lookups and writes finish."""
        await self.domain_check.wait()
        await self.background.drain()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict:
        """Session state plus what a UI needs to render the current phase."""
        data = self.session.to_dict()
        data["phases_completed"] = state.get_completed_phases(self.session)
        data["can_go_next"] = self.session.can_go_next()
        data["can_go_previous"] = self.session.can_go_previous()
        data["total_questions"] = len(QUIZ_QUESTIONS)

        if self.phase == QuizPhase.QUESTIONING:
            question = QUIZ_QUESTIONS[self.session.current_question]
            data["question"] = question.to_dict()
            data["selected_option"] = self.session.answers.get(question.id)

        if self.session.recommended_plan is not None:
            data["recommended_plan_name"] = PLANS[self.session.recommended_plan].name

        latest = self.domain_check.latest
        data["email_validation"] = (
            {"email": latest.email, "domain_valid": latest.valid} if latest else None
        )
        data["rate_limit"] = self.rate_limiter.to_dict()
        return data
