"""
Quiz State Management.

The per-session state machine:

    INTRO -> QUESTIONING(0..N-1) -> PLAN_SELECTION -> LEAD_CAPTURE -> COMPLETE

Transition functions here are synchronous and side-effect free apart from
mutating the session they are given. Persistence, validation and
subscription are wired in by quiz.flow.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
import json

from .errors import InvalidAnswerError, InvalidTransitionError
from .plans import get_plan
from .questions import QUIZ_QUESTIONS, TOTAL_QUESTIONS
from .recommendation import CompleteAnswers, recommend_plan_index


class QuizPhase(Enum):
    """Quiz flow phases."""
    INTRO = "intro"
    QUESTIONING = "questioning"
    PLAN_SELECTION = "plan_selection"
    LEAD_CAPTURE = "lead_capture"
    COMPLETE = "complete"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class QuizSession:
    """
    State for one visitor's pass through the quiz.

    Answers are keyed by question id ("q1".."q4") with 1-based option
    indices. Unanswered questions are absent from the map.
    """
    session_id: str = ""
    current_phase: QuizPhase = QuizPhase.INTRO
    current_question: int = 0
    answers: dict[str, int] = field(default_factory=dict)

    # Set once the partial quiz has been stored externally
    record_id: str | None = None
    recommended_plan: int | None = None
    selected_plan: str | None = None
    email: str | None = None

    # Last user-facing error (validation, rate limit, subscription)
    error: str = ""

    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self):
        now = _utc_now()
        if not self.created_at:
            self.created_at = now
        if not self.updated_at:
            self.updated_at = now

    def touch(self) -> None:
        self.updated_at = _utc_now()

    @property
    def current_question_id(self) -> str:
        return QUIZ_QUESTIONS[self.current_question].id

    @property
    def is_complete(self) -> bool:
        return self.current_phase == QuizPhase.COMPLETE

    def can_go_next(self) -> bool:
        return (
            self.current_phase == QuizPhase.QUESTIONING
            and self.current_question_id in self.answers
        )

    def can_go_previous(self) -> bool:
        return self.current_phase == QuizPhase.QUESTIONING and self.current_question > 0

    def complete_answers(self) -> CompleteAnswers:
        """Raises IncompleteAnswersError if any question is unanswered."""
        return CompleteAnswers.from_answers(self.answers)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["current_phase"] = self.current_phase.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "QuizSession":
        data = dict(data)
        if "current_phase" in data:
            data["current_phase"] = QuizPhase(data["current_phase"])
        if "answers" in data:
            data["answers"] = {k: int(v) for k, v in (data["answers"] or {}).items()}
        return cls(**data)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "QuizSession":
        return cls.from_dict(json.loads(json_str))


def _require_phase(session: QuizSession, event: str, *phases: QuizPhase) -> None:
    if session.current_phase not in phases:
        raise InvalidTransitionError(event, session.current_phase.value)


# =============================================================================
# Transitions
# =============================================================================


def start(session: QuizSession) -> None:
    """INTRO -> QUESTIONING(0)."""
    _require_phase(session, "start", QuizPhase.INTRO)
    session.current_phase = QuizPhase.QUESTIONING
    session.current_question = 0
    session.error = ""
    session.touch()


def select_answer(session: QuizSession, option: int) -> None:
    """Record the answer for the current question. Phase does not change."""
    _require_phase(session, "select an answer", QuizPhase.QUESTIONING)

    question = QUIZ_QUESTIONS[session.current_question]
    if not question.is_valid_option(option):
        raise InvalidAnswerError(
            f"Option {option} is out of range for {question.id} (1-{len(question.options)})"
        )

    session.answers[question.id] = option
    session.touch()


def go_next(session: QuizSession) -> bool:
    """
    Advance to the next question, or into plan selection after the last one.

    Returns False (no-op) when the current question is unanswered.
    """
    _require_phase(session, "go to the next question", QuizPhase.QUESTIONING)

    if not session.can_go_next():
        return False

    if session.current_question < TOTAL_QUESTIONS - 1:
        session.current_question += 1
    else:
        session.recommended_plan = recommend_plan_index(session.complete_answers())
        session.current_phase = QuizPhase.PLAN_SELECTION

    session.touch()
    return True


def go_previous(session: QuizSession) -> bool:
    """Step back one question. No-op on the first question."""
    _require_phase(session, "go to the previous question", QuizPhase.QUESTIONING)

    if not session.can_go_previous():
        return False

    session.current_question -= 1
    session.touch()
    return True


def select_plan(session: QuizSession, plan_name: str) -> None:
    """PLAN_SELECTION -> LEAD_CAPTURE. Raises UnknownPlanError for bad names."""
    _require_phase(session, "select a plan", QuizPhase.PLAN_SELECTION)

    plan = get_plan(plan_name)
    session.selected_plan = plan.name
    session.current_phase = QuizPhase.LEAD_CAPTURE
    session.error = ""
    session.touch()


def complete(session: QuizSession, email: str) -> None:
    """LEAD_CAPTURE -> COMPLETE. Caller has already validated and subscribed."""
    _require_phase(session, "submit an email", QuizPhase.LEAD_CAPTURE)

    session.email = email
    session.current_phase = QuizPhase.COMPLETE
    session.error = ""
    session.touch()


def get_completed_phases(session: QuizSession) -> list[str]:
    """Phases strictly before the current one."""
    phase_order = list(QuizPhase)
    current_idx = phase_order.index(session.current_phase)
    return [phase.value for phase in phase_order[:current_idx]]
