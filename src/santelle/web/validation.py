"""
Request body validation shared by the waitlist and quiz record routes.

Email fields are trimmed, length-checked, matched against the format regex
and lower-cased before any handler sees them.
"""

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field

from quiz.email_validation import MAX_EMAIL_LENGTH, is_valid_email_format, normalize_email


def _check_email(v: object) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("email is required")
    if not is_valid_email_format(v):
        raise ValueError("Invalid email format")
    return normalize_email(v)


# Use for every email field in a request body
ValidatedEmail = Annotated[str, BeforeValidator(_check_email), Field(max_length=MAX_EMAIL_LENGTH)]


class EmailRequest(BaseModel):
    """Body with a single required email address."""
    email: ValidatedEmail


class SubscribeRequest(EmailRequest):
    """Subscribe form; screen data is accepted for analytics and ignored here."""
    screen_data: dict | None = Field(default=None, alias="screenData")

    model_config = {"populate_by_name": True}
