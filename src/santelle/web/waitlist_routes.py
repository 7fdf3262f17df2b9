"""
Waitlist routes.

- POST /waitlist    join from the plans page; an address already on the
                    list is a success.
- POST /subscribe   join from the landing page form; an address already on
                    the list is a 409.
- POST /unsubscribe stop waitlist mailings.
"""

import logging

from fastapi import APIRouter, Depends

from quiz.store import SubscribeOutcome, WaitlistService
from santelle.web.dependencies import get_waitlist_service
from santelle.web.errors import Errors
from santelle.web.validation import EmailRequest, SubscribeRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["waitlist"])


@router.post("/waitlist")
async def join_waitlist(
    request: EmailRequest,
    waitlist: WaitlistService = Depends(get_waitlist_service),
):
    outcome = await waitlist.subscribe(request.email)

    if outcome == SubscribeOutcome.CONFLICT:
        return {"success": True, "message": "Email already on waitlist"}
    if outcome == SubscribeOutcome.ERROR:
        raise Errors.internal("Failed to join waitlist")

    return {"success": True, "message": "Successfully joined waitlist"}


@router.post("/subscribe")
async def subscribe(
    request: SubscribeRequest,
    waitlist: WaitlistService = Depends(get_waitlist_service),
):
    outcome = await waitlist.subscribe(request.email)

    if outcome == SubscribeOutcome.CONFLICT:
        raise Errors.conflict("Email already subscribed")
    if outcome == SubscribeOutcome.ERROR:
        raise Errors.internal("Failed to save email to database")

    return {"success": True, "message": "Successfully subscribed to waitlist"}


@router.post("/unsubscribe")
async def unsubscribe(
    request: EmailRequest,
    waitlist: WaitlistService = Depends(get_waitlist_service),
):
    if not await waitlist.unsubscribe(request.email):
        raise Errors.not_found("Email not found in waitlist")

    logger.info("Waitlist unsubscribe")
    return {
        "success": True,
        "message": "Successfully unsubscribed from waitlist emails",
        "data": {"email": request.email},
    }
