from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from eventplanner.api.deps import get_current_user, require_roles
from eventplanner.api.pagination import LimitParam, OffsetParam
from eventplanner.db.models import Event, User, UserRole
from eventplanner.db.session import get_db
from eventplanner.schemas.event import EventCreateRequest, EventResponse
from eventplanner.services.event_service import create_event, get_event_or_404

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event_for_me(
    payload: EventCreateRequest,
    current_user: User = Depends(require_roles(UserRole.ORGANIZER, UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> EventResponse:
    event = create_event(db=db, organizer=current_user, payload=payload)
    return EventResponse.model_validate(event)


@router.get("/me", response_model=list[EventResponse], status_code=status.HTTP_200_OK)
def list_my_events(
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[EventResponse]:
    events = db.scalars(
        select(Event)
        .where(Event.user_id == current_user.id)
        .order_by(Event.created_at.desc(), Event.title)
        .limit(limit)
        .offset(offset)
    ).all()
    return [EventResponse.model_validate(event) for event in events]


@router.get("/{event_id}", response_model=EventResponse, status_code=status.HTTP_200_OK)
def get_event(
    event_id: str,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventResponse:
    return EventResponse.model_validate(get_event_or_404(db=db, event_id=event_id))
