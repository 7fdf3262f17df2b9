"""Quiz domain exceptions."""


class QuizError(Exception):
    """Base class for quiz errors."""


class InvalidTransitionError(QuizError):
    """An event arrived in a phase that does not accept it."""

    def __init__(self, event: str, phase: str):
        super().__init__(f"Cannot {event} while in phase '{phase}'")
        self.event = event
        self.phase = phase


class InvalidAnswerError(QuizError):
    """Answer option outside the question's range."""


class IncompleteAnswersError(QuizError):
    """Recommendation requested without an answer for every question."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing answers for: {', '.join(missing)}")
        self.missing = missing


class UnknownPlanError(QuizError):
    """Plan name not in the plan catalogue."""
