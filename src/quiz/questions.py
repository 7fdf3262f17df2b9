"""
Quiz Questions - the fixed question catalogue.

Four multiple-choice questions, each with a stable 1-based id (q1..q4).
Options are ordered so that a higher index means more frequent symptoms,
less confidence, more proactive tracking or more desired involvement.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Question:
    """One quiz question. Option indices exposed to callers are 1-based."""
    number: int
    title: str
    prompt: str
    options: tuple[str, ...]

    @property
    def id(self) -> str:
        return f"q{self.number}"

    def is_valid_option(self, option: int) -> bool:
        return 1 <= option <= len(self.options)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "question": self.prompt,
            "options": list(self.options),
        }


QUIZ_QUESTIONS: tuple[Question, ...] = (
    Question(
        number=1,
        title="Frequency of discomfort",
        prompt="How often do you experience vaginal infections or discomfort each year?",
        options=(
            "Less than once a year",
            "1 to 2 times a year",
            "2 to 4 times a year",
            "4 or more times a year",
        ),
    ),
    Question(
        number=2,
        title="Confidence",
        prompt="How confident do you feel understanding and managing your vaginal health?",
        options=(
            "Very confident - I know my body well",
            "Somewhat confident - I'd like more clarity",
            "Not very confident - I often feel unsure",
        ),
    ),
    Question(
        number=3,
        title="Tracking habits",
        prompt="How do you keep track of your intimate health today?",
        options=(
            "Only when there's a problem",
            "When something feels off",
            "I track my health regularly",
        ),
    ),
    Question(
        number=4,
        title="Desired involvement",
        prompt="How involved do you want to be in monitoring your vaginal health?",
        options=(
            "Something simple and occasional",
            "Regular testing is fine if it keeps me balanced",
            "Full visibility and personalised insights every month",
        ),
    ),
)

QUESTION_IDS: tuple[str, ...] = tuple(q.id for q in QUIZ_QUESTIONS)

TOTAL_QUESTIONS = len(QUIZ_QUESTIONS)


def get_question(question_id: str) -> Question:
    """Look up a question by id ("q1".."q4"). Raises KeyError if unknown."""
    for question in QUIZ_QUESTIONS:
        if question.id == question_id:
            return question
    raise KeyError(question_id)


def get_question_options() -> list[dict]:
    """All questions for UI display."""
    return [q.to_dict() for q in QUIZ_QUESTIONS]
