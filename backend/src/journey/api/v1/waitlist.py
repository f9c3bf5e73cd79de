"""Waitlist API v1 endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, EmailStr, Field

from journey.api.deps import get_orchestrator
from journey.api.rate_limit import limiter
from journey.exceptions import (
    CheckoutCreationError,
    EntryNotFoundError,
    PaymentConfirmationError,
)
from journey.logging_config import get_logger
from journey.payments.checkout import CheckoutOrchestrator
from journey.referral.ledger import referral_link
from journey.waitlist.store import SignupResult

logger = get_logger(__name__)

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


# ==================== MODELS ====================


class CountResponse(BaseModel):
    """Number of people on the waitlist."""
    count: int


class SignupRequest(BaseModel):
    """Visitor submission from the landing page."""
    email: EmailStr
    first_name: str | None = Field(default=None, max_length=100)
    referral_code: str | None = Field(default=None, max_length=32)


class CheckoutResponse(BaseModel):
    """Hosted checkout to redirect to."""
    checkout_url: str


class ConfirmRequest(BaseModel):
    """Client callback after the Stripe redirect."""
    session_id: str = Field(min_length=1, max_length=255)


class SignupResponse(BaseModel):
    """Public state of a waitlist entry."""
    email: str
    queue_position: int
    referral_code: str
    referral_link: str
    is_vip: bool
    successful_referrals: int


def _to_response(result: SignupResult) -> SignupResponse:
    return SignupResponse(**asdict(result), referral_link=referral_link(result.referral_code))


# ==================== ENDPOINTS ====================


@router.get("/count", response_model=CountResponse)
async def get_count(orchestrator: CheckoutOrchestrator = Depends(get_orchestrator)):
    """Total number of people on the waitlist."""
    return CountResponse(count=orchestrator.get_total_count())


@router.get("/entry", response_model=SignupResponse)
async def get_entry(
    email: EmailStr = Query(...),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
    """Look up an entry by email."""
    try:
        return _to_response(orchestrator.get_entry(email))
    except EntryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")


@router.post("/checkout", response_model=CheckoutResponse)
@limiter.limit("10/minute")
async def create_checkout(
    request: Request,
    body: SignupRequest,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
    """Open a Stripe checkout for the waitlist fee."""
    try:
        url = orchestrator.create_checkout(body.email, body.first_name, body.referral_code)
    except CheckoutCreationError as e:
        logger.error("checkout_failed", email=body.email, error=e.message, details=e.details)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not start checkout. Please try again.",
        )
    return CheckoutResponse(checkout_url=url)


@router.post("/confirm", response_model=SignupResponse)
@limiter.limit("20/minute")
async def confirm_payment(
    request: Request,
    body: ConfirmRequest,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
    """Confirm a paid checkout and return the boarding pass."""
    try:
        result = await orchestrator.confirm_payment(body.session_id)
    except PaymentConfirmationError as e:
        logger.warning("confirm_failed", session_id=body.session_id, error=e.message, details=e.details)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Could not confirm payment. Please try again.",
        )
    return _to_response(result)


@router.post("/join", response_model=SignupResponse)
@limiter.limit("10/minute")
async def join_without_payment(
    request: Request,
    body: SignupRequest,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
    """Join the waitlist without paying."""
    result = await orchestrator.join_without_payment(body.email, body.first_name, body.referral_code)
    return _to_response(result)
