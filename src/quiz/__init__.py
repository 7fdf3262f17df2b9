"""
Santelle Plan Quiz.

Four questions, one recommended plan, one email. Walks a visitor through:

1. Intro
2. Questioning - one answer per question, forward/back navigation
3. Plan selection - recommendation computed from the answers
4. Lead capture - email validated and added to the waitlist
5. Complete

Persistence is best-effort: a failed write is logged and the visitor moves on.
"""

from .flow import EmailStatus, EmailSubmission, QuizFlow
from .plans import PLANS, PlanTier
from .recommendation import CompleteAnswers, recommend_plan, recommend_plan_index
from .state import QuizPhase, QuizSession

__all__ = [
    "CompleteAnswers",
    "EmailStatus",
    "EmailSubmission",
    "PLANS",
    "PlanTier",
    "QuizFlow",
    "QuizPhase",
    "QuizSession",
    "recommend_plan",
    "recommend_plan_index",
]
