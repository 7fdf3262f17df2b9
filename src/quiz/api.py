"""
Quiz API Endpoints.

Two groups of routes:
- Quiz records: raw create / update / admin listing of stored questionnaires.
- Quiz sessions: the step-by-step flow (start, answer, next, previous,
  plan, email), one in-memory QuizFlow per session id.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from santelle.config import Settings
from santelle.web.dependencies import (
    get_app_settings,
    get_domain_validator,
    get_quiz_store,
    get_session_registry,
    get_waitlist_service,
)
from santelle.web.errors import Errors
from santelle.web.sessions import QuizSessionRegistry
from santelle.web.validation import ValidatedEmail

from .email_validation import DomainValidator, MAX_EMAIL_LENGTH
from .flow import EmailStatus, QuizFlow
from .plans import PLANS, plan_for_tier
from .questions import get_question_options
from .recommendation import CompleteAnswers, recommend_plan
from .store import QuizRecordStore, WaitlistService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["quiz"])


# =============================================================================
# Request Models
# =============================================================================


class AnswersRequest(BaseModel):
    """Answer map keyed by question id, 1-based option indices."""
    answers: dict[str, int]


class QuizRecordCreateRequest(BaseModel):
    answers: dict[str, int]
    signup: bool = False
    email: ValidatedEmail | None = None


class QuizRecordUpdateRequest(BaseModel):
    id: str
    email: ValidatedEmail
    signup: bool = False


class AnswerRequest(BaseModel):
    option: int = Field(ge=1)


class PlanRequest(BaseModel):
    plan_name: str = Field(min_length=1)


class EmailDraftRequest(BaseModel):
    email: str = Field(default="", max_length=MAX_EMAIL_LENGTH)


EMAIL_STATUS_CODES = {
    EmailStatus.ACCEPTED: 200,
    EmailStatus.INVALID_FORMAT: 400,
    EmailStatus.INVALID_DOMAIN: 400,
    EmailStatus.RATE_LIMITED: 429,
    EmailStatus.SUBSCRIBE_FAILED: 502,
}


# =============================================================================
# Catalogue & Recommendation
# =============================================================================


@router.get("/questions")
async def get_questions():
    """Question catalogue and plan list for rendering."""
    return {
        "questions": get_question_options(),
        "plans": [plan.to_dict() for plan in PLANS],
    }


@router.post("/recommendation")
async def get_recommendation(request: AnswersRequest):
    """Recommended plan for a complete answer set. Stateless."""
    answers = CompleteAnswers.from_answers(request.answers)
    tier = recommend_plan(answers)
    plan = plan_for_tier(tier)
    return {
        "success": True,
        "tier": int(tier),
        "tier_name": tier.name.lower(),
        "recommended_plan": PLANS.index(plan),
        "plan": plan.to_dict(),
    }


# =============================================================================
# Quiz Records
# =============================================================================


@router.post("")
async def create_quiz_record(
    request: QuizRecordCreateRequest,
    store: QuizRecordStore = Depends(get_quiz_store),
):
    """Store a set of answers. Email is optional for the initial save."""
    answers = CompleteAnswers.from_answers(request.answers)
    try:
        record_id = await store.create(answers.to_dict(), signup=request.signup, email=request.email)
    except Exception as e:
        logger.error(f"Failed to save quiz answers: {e}")
        raise Errors.internal("Failed to save quiz answers")

    return {"success": True, "data": {"id": record_id}}


@router.put("")
async def update_quiz_record(
    request: QuizRecordUpdateRequest,
    store: QuizRecordStore = Depends(get_quiz_store),
):
    """Attach email and signup status to an existing record."""
    try:
        await store.update(request.id, email=request.email, signup=request.signup)
    except Exception as e:
        logger.error(f"Failed to update quiz record {request.id}: {e}")
        raise Errors.internal("Failed to update quiz record")

    return {"success": True, "data": {"id": request.id}}


@router.get("/admin")
async def list_quiz_records(
    limit: int | None = None,
    store: QuizRecordStore = Depends(get_quiz_store),
):
    """All stored quiz responses, newest first."""
    try:
        records = await store.list_records(limit=limit)
    except Exception as e:
        logger.error(f"Failed to fetch quiz responses: {e}")
        raise Errors.internal("Failed to fetch quiz responses")

    return {"success": True, "data": records}


# =============================================================================
# Quiz Sessions
# =============================================================================


def _flow_response(flow: QuizFlow, **extra) -> dict:
    return {"success": True, **extra, "session": flow.snapshot()}


async def get_flow(
    session_id: str,
    registry: QuizSessionRegistry = Depends(get_session_registry),
) -> QuizFlow:
    flow = registry.get(session_id)
    if flow is None:
        raise Errors.not_found(f"Quiz session not found: {session_id}")
    return flow


@router.post("/sessions")
async def create_session(
    settings: Settings = Depends(get_app_settings),
    store: QuizRecordStore = Depends(get_quiz_store),
    waitlist: WaitlistService = Depends(get_waitlist_service),
    validator: DomainValidator = Depends(get_domain_validator),
    registry: QuizSessionRegistry = Depends(get_session_registry),
):
    """Open a new quiz session in the intro phase."""
    flow = QuizFlow.from_settings(settings, store=store, waitlist=waitlist, validator=validator)
    registry.add(flow)
    return _flow_response(flow)


@router.get("/sessions/{session_id}")
async def get_session(flow: QuizFlow = Depends(get_flow)):
    return _flow_response(flow)


@router.post("/sessions/{session_id}/start")
async def start_quiz(flow: QuizFlow = Depends(get_flow)):
    flow.start()
    return _flow_response(flow)


@router.post("/sessions/{session_id}/answer")
async def select_answer(request: AnswerRequest, flow: QuizFlow = Depends(get_flow)):
    flow.select_answer(request.option)
    return _flow_response(flow)


@router.post("/sessions/{session_id}/next")
async def next_question(flow: QuizFlow = Depends(get_flow)):
    """Advance. `advanced` is false when the current question is unanswered."""
    advanced = await flow.next()
    return _flow_response(flow, advanced=advanced)


@router.post("/sessions/{session_id}/previous")
async def previous_question(flow: QuizFlow = Depends(get_flow)):
    advanced = flow.previous()
    return _flow_response(flow, advanced=advanced)


@router.post("/sessions/{session_id}/plan")
async def select_plan(request: PlanRequest, flow: QuizFlow = Depends(get_flow)):
    await flow.select_plan(request.plan_name)
    return _flow_response(flow)


@router.put("/sessions/{session_id}/email")
async def email_changed(request: EmailDraftRequest, flow: QuizFlow = Depends(get_flow)):
    """Email field changed: format feedback now, domain check after a pause."""
    error = flow.email_changed(request.email)
    return _flow_response(flow, format_valid=not error, error=error)


@router.post("/sessions/{session_id}/email")
async def submit_email(request: EmailDraftRequest, flow: QuizFlow = Depends(get_flow)):
    result = await flow.submit_email(request.email)
    body = {
        "success": result.accepted,
        "status": result.status.value,
        "message": result.message,
        "retry_after": result.retry_after,
        "session": flow.snapshot(),
    }
    headers = {"Retry-After": str(result.retry_after)} if result.retry_after else None
    return JSONResponse(status_code=EMAIL_STATUS_CODES[result.status], content=body, headers=headers)
