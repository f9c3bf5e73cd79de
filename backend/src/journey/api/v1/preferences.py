"""Email preferences API v1 endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, EmailStr

from journey.api.deps import get_preferences_service
from journey.exceptions import EntryNotFoundError
from journey.waitlist.models import EmailFrequency
from journey.waitlist.preferences import PreferencesService

router = APIRouter(prefix="/preferences", tags=["preferences"])


class PreferencesResponse(BaseModel):
    email: str
    email_frequency: EmailFrequency
    receive_promotional: bool
    receive_product_updates: bool
    unsubscribed: bool


class UpdatePreferencesRequest(BaseModel):
    """Fields left out are not changed."""
    email: EmailStr
    email_frequency: EmailFrequency | None = None
    receive_promotional: bool | None = None
    receive_product_updates: bool | None = None


class UnsubscribeRequest(BaseModel):
    email: EmailStr


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")


@router.get("", response_model=PreferencesResponse)
async def get_preferences(
    email: EmailStr = Query(...),
    service: PreferencesService = Depends(get_preferences_service),
):
    """Current email preferences."""
    try:
        return PreferencesResponse(**asdict(service.get_preferences(email)))
    except EntryNotFoundError:
        raise _not_found()


@router.put("", response_model=PreferencesResponse)
async def update_preferences(
    body: UpdatePreferencesRequest,
    service: PreferencesService = Depends(get_preferences_service),
):
    """Update email preferences."""
    try:
        view = service.update_preferences(
            body.email,
            email_frequency=body.email_frequency,
            receive_promotional=body.receive_promotional,
            receive_product_updates=body.receive_product_updates,
        )
    except EntryNotFoundError:
        raise _not_found()
    return PreferencesResponse(**asdict(view))


@router.post("/unsubscribe", response_model=PreferencesResponse)
async def unsubscribe(
    body: UnsubscribeRequest,
    service: PreferencesService = Depends(get_preferences_service),
):
    """Stop all drip emails."""
    try:
        return PreferencesResponse(**asdict(service.unsubscribe(body.email)))
    except EntryNotFoundError:
        raise _not_found()
