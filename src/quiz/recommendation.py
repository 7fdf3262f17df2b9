"""
Plan Recommendation Engine.

Maps the four quiz answers onto a plan tier:

1. q1 (symptom frequency) sets the baseline tier.
2. q2, q3 and q4 each nudge the tier by -1, 0 or +1 depending on whether
   the lowest, middle or highest option was chosen.
3. The running tier is clamped to [QUARTERLY, MONTHLY] after every step,
   so a decrement at the floor is lost rather than carried forward.

Pure and deterministic. Callers must supply a complete answer set.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from .errors import IncompleteAnswersError, InvalidAnswerError
from .plans import PlanTier, plan_index
from .questions import QUESTION_IDS, get_question


@dataclass(frozen=True)
class CompleteAnswers:
    """One validated 1-based option index per question."""
    q1: int
    q2: int
    q3: int
    q4: int

    def __post_init__(self):
        for question_id in QUESTION_IDS:
            option = getattr(self, question_id)
            if not get_question(question_id).is_valid_option(option):
                raise InvalidAnswerError(f"Option {option} is out of range for {question_id}")

    @classmethod
    def from_answers(cls, answers: Mapping[str, int]) -> "CompleteAnswers":
        """Build from a (possibly partial) answer map. Raises on gaps."""
        missing = [qid for qid in QUESTION_IDS if answers.get(qid) is None]
        if missing:
            raise IncompleteAnswersError(missing)
        return cls(**{qid: int(answers[qid]) for qid in QUESTION_IDS})

    def to_dict(self) -> dict[str, int]:
        return {qid: getattr(self, qid) for qid in QUESTION_IDS}


def _baseline(q1: int) -> PlanTier:
    if q1 == 4:
        return PlanTier.MONTHLY
    if q1 == 3:
        return PlanTier.BIMONTHLY
    return PlanTier.QUARTERLY


def _adjust(tier: PlanTier, option: int) -> PlanTier:
    # Three-option questions: 1 lowers, 3 raises, 2 leaves the tier alone
    if option == 3:
        return PlanTier.clamp(tier + 1)
    if option == 1:
        return PlanTier.clamp(tier - 1)
    return tier


def recommend_plan(answers: CompleteAnswers | Mapping[str, int]) -> PlanTier:
    """Recommended tier for a complete answer set."""
    if not isinstance(answers, CompleteAnswers):
        answers = CompleteAnswers.from_answers(answers)

    tier = _baseline(answers.q1)
    for option in (answers.q2, answers.q3, answers.q4):
        tier = _adjust(tier, option)
    return tier


def recommend_plan_index(answers: CompleteAnswers | Mapping[str, int]) -> int:
    """Zero-based index of the recommended plan in PLANS."""
    return plan_index(recommend_plan(answers))
