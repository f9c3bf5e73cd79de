"""Drip sequence API v1 endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, EmailStr

from journey.api.deps import get_scheduler
from journey.exceptions import EntryNotFoundError
from journey.sequence.scheduler import DripScheduler
from journey.waitlist.store import normalize_email

router = APIRouter(prefix="/sequence", tags=["sequence"])


class SequenceEmailStatus(BaseModel):
    sequence_day: int
    email_type: str
    sent_at: datetime | None = None
    opened_at: datetime | None = None
    clicked_at: datetime | None = None
    bounced: bool = False


class SequenceStatusResponse(BaseModel):
    email: str
    emails: list[SequenceEmailStatus]


@router.get("/status", response_model=SequenceStatusResponse)
async def get_sequence_status(
    email: EmailStr = Query(...),
    scheduler: DripScheduler = Depends(get_scheduler),
):
    """Drip emails already sent to an entry."""
    try:
        records = scheduler.get_sequence_status(email)
    except EntryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return SequenceStatusResponse(
        email=normalize_email(email),
        emails=[SequenceEmailStatus(**r) for r in records],
    )
