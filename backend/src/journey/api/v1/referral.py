"""Referral API v1 endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, EmailStr

from journey.api.deps import get_referral_service
from journey.api.rate_limit import limiter
from journey.referral.ledger import ReferralService

router = APIRouter(prefix="/referral", tags=["referral"])


# ==================== MODELS ====================


class VerifyCodeResponse(BaseModel):
    """Response from code verification."""
    valid: bool
    referrer_name: str | None = None
    referrer_queue_position: int | None = None


class ReferredEntry(BaseModel):
    referred_email: str
    joined_at: datetime | None = None


class ReferralStatsResponse(BaseModel):
    """Referral statistics for an entry."""
    email: str
    referral_code: str
    link: str
    is_vip: bool
    successful_referrals: int
    referrals: list[ReferredEntry]


# ==================== ENDPOINTS ====================


@router.get("/verify/{code}", response_model=VerifyCodeResponse)
@limiter.limit("30/minute")
async def verify_code(
    request: Request,
    code: str,
    referrals: ReferralService = Depends(get_referral_service),
):
    """Check a referral code for the landing page's "invited by" banner."""
    info = referrals.get_referrer_info(code)
    if info is None:
        return VerifyCodeResponse(valid=False)
    return VerifyCodeResponse(valid=True, **info)


@router.get("/stats", response_model=ReferralStatsResponse)
async def get_referral_stats(
    email: EmailStr = Query(...),
    referrals: ReferralService = Depends(get_referral_service),
):
    """Referral code, share link and referred signups of an entry."""
    stats = referrals.get_referral_stats(email)
    if stats is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return ReferralStatsResponse(**stats)
