from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from eventplanner.api.deps import NOT_ENOUGH_PERMISSIONS_DETAIL, get_current_user
from eventplanner.api.pagination import LimitParam, OffsetParam
from eventplanner.db.models import User, WaitlistEntry
from eventplanner.db.session import get_db
from eventplanner.schemas.waitlist import (
    OfferSpotRequest,
    OfferSpotResponse,
    SuccessResponse,
    WaitlistEntryResponse,
    WaitlistJoinRequest,
    WaitlistJoinResponse,
)
from eventplanner.services.event_service import get_event_or_404
from eventplanner.services.waitlist_service import (
    accept_offer,
    decline_offer,
    expire_offer,
    get_entry_or_404,
    join_wait_list,
    list_event_entries,
    list_user_entries,
    offer_spot,
    remove_entry,
)

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


@router.get("/events/{event_id}", response_model=list[WaitlistEntryResponse], status_code=status.HTTP_200_OK)
def list_event_wait_list(
    event_id: str,
    limit: LimitParam = 100,
    offset: OffsetParam = 0,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[WaitlistEntryResponse]:
    entries = list_event_entries(db=db, event_id=event_id, limit=limit, offset=offset)
    return [WaitlistEntryResponse.model_validate(entry) for entry in entries]


@router.get("/me", response_model=list[WaitlistEntryResponse], status_code=status.HTTP_200_OK)
def list_my_wait_list(
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[WaitlistEntryResponse]:
    entries = list_user_entries(db=db, user_id=current_user.id, limit=limit, offset=offset)
    return [WaitlistEntryResponse.model_validate(entry) for entry in entries]


@router.post("", response_model=WaitlistJoinResponse, status_code=status.HTTP_201_CREATED)
def join(
    payload: WaitlistJoinRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WaitlistJoinResponse:
    entry = join_wait_list(db=db, event_id=payload.event_id, user_id=current_user.id, notes=payload.notes)
    return WaitlistJoinResponse(id=entry.id, position=entry.position)


@router.delete("/{entry_id}", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
def leave(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    entry = db.scalar(select(WaitlistEntry).where(WaitlistEntry.id == entry_id))
    if not entry:
        return SuccessResponse()

    allowed = current_user.is_admin or entry.user_id == current_user.id
    if not allowed:
        event = get_event_or_404(db=db, event_id=entry.event_id)
        allowed = event.user_id == current_user.id
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_ENOUGH_PERMISSIONS_DETAIL)

    remove_entry(db=db, entry=entry)
    return SuccessResponse()


@router.post("/events/{event_id}/offer", response_model=OfferSpotResponse, status_code=status.HTTP_200_OK)
def offer(
    event_id: str,
    payload: OfferSpotRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OfferSpotResponse:
    event = get_event_or_404(db=db, event_id=event_id)
    if not event.is_managed_by(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_ENOUGH_PERMISSIONS_DETAIL)

    expires_in = payload.expires_in if payload else None
    entry = offer_spot(db=db, event_id=event.id, expires_in_hours=expires_in)
    return OfferSpotResponse(id=entry.id, user_id=entry.user_id)


def _get_own_entry(db: Session, entry_id: str, user: User) -> WaitlistEntry:
    entry = get_entry_or_404(db=db, entry_id=entry_id)
    if not (user.is_admin or entry.user_id == user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_ENOUGH_PERMISSIONS_DETAIL)
    return entry


@router.post("/{entry_id}/accept", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
def accept(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    accept_offer(db=db, entry=_get_own_entry(db=db, entry_id=entry_id, user=current_user))
    return SuccessResponse()


@router.post("/{entry_id}/decline", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
def decline(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    decline_offer(db=db, entry=_get_own_entry(db=db, entry_id=entry_id, user=current_user))
    return SuccessResponse()


@router.post("/{entry_id}/expire", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
def expire(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    entry = get_entry_or_404(db=db, entry_id=entry_id)
    event = get_event_or_404(db=db, event_id=entry.event_id)
    if not event.is_managed_by(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_ENOUGH_PERMISSIONS_DETAIL)

    expire_offer(db=db, entry=entry)
    return SuccessResponse()
