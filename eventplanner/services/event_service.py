from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from eventplanner.db.models import Event, User
from eventplanner.schemas.event import EventCreateRequest

EVENT_NOT_FOUND_DETAIL = "Event not found"


def get_event_or_404(db: Session, event_id: str) -> Event:
    event = db.scalar(select(Event).where(Event.id == event_id))
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=EVENT_NOT_FOUND_DETAIL)
    return event


def create_event(db: Session, organizer: User, payload: EventCreateRequest) -> Event:
    event = Event(user_id=organizer.id, **payload.model_dump())
    db.add(event)
    db.commit()
    db.refresh(event)
    return event
