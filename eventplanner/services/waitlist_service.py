import logging
from datetime import UTC, datetime, timedelta

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventplanner.core.config import settings
from eventplanner.core.metrics import WAITLIST_TRANSITIONS
from eventplanner.db.models import WaitlistEntry, WaitlistStatus
from eventplanner.services.event_service import get_event_or_404

logger = logging.getLogger("eventplanner.waitlist")

ALREADY_ON_WAIT_LIST_DETAIL = "Already on waitlist"
NO_WAITING_ENTRANT_DETAIL = "No one on waitlist"
ENTRY_NOT_FOUND_DETAIL = "Waitlist entry not found"
OFFER_EXPIRED_DETAIL = "Offer has expired"
WAITLIST_BUSY_DETAIL = "Waitlist is busy. Retry the request."


def _is_postgresql_session(db: Session) -> bool:
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"


def record_transition(entry: WaitlistEntry, new_status: WaitlistStatus) -> None:
    WAITLIST_TRANSITIONS.labels(status=new_status.value).inc()
    logger.info(
        "waitlist_%s entry_id=%s event_id=%s user_id=%s position=%s",
        new_status.value,
        entry.id,
        entry.event_id,
        entry.user_id,
        entry.position,
    )


def get_entry_or_404(db: Session, entry_id: str) -> WaitlistEntry:
    entry = db.scalar(select(WaitlistEntry).where(WaitlistEntry.id == entry_id))
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ENTRY_NOT_FOUND_DETAIL)
    return entry


def list_event_entries(db: Session, event_id: str, limit: int = 100, offset: int = 0) -> list[WaitlistEntry]:
    get_event_or_404(db=db, event_id=event_id)
    return list(
        db.scalars(
            select(WaitlistEntry)
            .where(WaitlistEntry.event_id == event_id)
            .order_by(WaitlistEntry.position)
            .limit(limit)
            .offset(offset)
        ).all()
    )


def list_user_entries(db: Session, user_id: int, limit: int = 20, offset: int = 0) -> list[WaitlistEntry]:
    return list(
        db.scalars(
            select(WaitlistEntry)
            .where(WaitlistEntry.user_id == user_id)
            .order_by(WaitlistEntry.joined_at.desc(), WaitlistEntry.position.desc())
            .limit(limit)
            .offset(offset)
        ).all()
    )


def next_position(db: Session, event_id: str) -> int:
    max_position = db.scalar(
        select(func.max(WaitlistEntry.position)).where(WaitlistEntry.event_id == event_id)
    )
    return (max_position or 0) + 1


def join_wait_list(db: Session, event_id: str, user_id: int, notes: str | None = None) -> WaitlistEntry:
    """Queue ``user_id`` for ``event_id`` behind every entry the event has ever had.

    Positions are never compacted. A concurrent join that grabbed the same
    position trips ``uq_waitlist_event_position``; the insert is then retried
    against a fresh maximum, unless the event itself is gone.
    """
    get_event_or_404(db=db, event_id=event_id)

    for _ in range(settings.waitlist_join_max_attempts):
        existing = db.scalar(
            select(WaitlistEntry.id).where(
                WaitlistEntry.event_id == event_id,
                WaitlistEntry.user_id == user_id,
            )
        )
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ALREADY_ON_WAIT_LIST_DETAIL)

        position = next_position(db=db, event_id=event_id)
        entry = WaitlistEntry(
            event_id=event_id,
            user_id=user_id,
            position=position,
            status=WaitlistStatus.WAITING.value,
            notes=notes,
        )
        db.add(entry)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            # A vanished event also trips a constraint (the foreign key on PostgreSQL).
            get_event_or_404(db=db, event_id=event_id)
            logger.info(
                "waitlist_join_conflict event_id=%s user_id=%s position=%s",
                event_id,
                user_id,
                position,
            )
            continue

        db.refresh(entry)
        record_transition(entry, WaitlistStatus.WAITING)
        return entry

    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=WAITLIST_BUSY_DETAIL)


def offer_spot(db: Session, event_id: str, expires_in_hours: float | None = None) -> WaitlistEntry:
    """Offer the open slot to the lowest-position ``waiting`` entrant.

    Earlier unresolved offers are ignored; only ``waiting`` entries are
    candidates. The status flip is conditional on the row still being
    ``waiting`` so two organizers cannot hand the same entry two offers.
    """
    lifetime_hours = expires_in_hours or settings.waitlist_offer_expire_hours

    for _ in range(settings.waitlist_offer_max_attempts):
        candidate_query = (
            select(WaitlistEntry)
            .where(
                WaitlistEntry.event_id == event_id,
                WaitlistEntry.status == WaitlistStatus.WAITING.value,
            )
            .order_by(WaitlistEntry.position)
            .limit(1)
        )
        if _is_postgresql_session(db):
            candidate_query = candidate_query.with_for_update(skip_locked=True)

        candidate = db.scalar(candidate_query)
        if not candidate:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=NO_WAITING_ENTRANT_DETAIL)

        offered_at = datetime.now(UTC)
        updated = db.execute(
            update(WaitlistEntry)
            .where(
                WaitlistEntry.id == candidate.id,
                WaitlistEntry.status == WaitlistStatus.WAITING.value,
            )
            .values(
                status=WaitlistStatus.OFFERED.value,
                offered_at=offered_at,
                expires_at=offered_at + timedelta(hours=lifetime_hours),
            )
        )
        if updated.rowcount != 1:
            db.rollback()
            continue

        db.commit()
        db.refresh(candidate)
        record_transition(candidate, WaitlistStatus.OFFERED)
        return candidate

    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=WAITLIST_BUSY_DETAIL)


def _require_offered(entry: WaitlistEntry, action: str) -> None:
    if entry.status != WaitlistStatus.OFFERED.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} an entry in status '{entry.status}'",
        )


def close_offer(db: Session, entry_id: str, new_status: WaitlistStatus, **values) -> bool:
    """Move an ``offered`` entry to ``new_status`` without committing.

    Returns ``False`` when the row is no longer ``offered``, which means a
    concurrent response, expiry or leave got there first.
    """
    updated = db.execute(
        update(WaitlistEntry)
        .where(
            WaitlistEntry.id == entry_id,
            WaitlistEntry.status == WaitlistStatus.OFFERED.value,
        )
        .values(status=new_status.value, **values)
    )
    return updated.rowcount == 1


def _close_offer_or_409(
    db: Session,
    entry: WaitlistEntry,
    action: str,
    new_status: WaitlistStatus,
    **values,
) -> None:
    entry_id = entry.id
    if close_offer(db=db, entry_id=entry_id, new_status=new_status, **values):
        db.commit()
        db.refresh(entry)
        record_transition(entry, new_status)
        return

    db.rollback()
    current_status = db.scalar(select(WaitlistEntry.status).where(WaitlistEntry.id == entry_id))
    if current_status is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ENTRY_NOT_FOUND_DETAIL)
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Cannot {action} an entry in status '{current_status}'",
    )


def _expire_if_lapsed(db: Session, entry: WaitlistEntry, action: str) -> None:
    if not entry.offer_has_lapsed():
        return

    _close_offer_or_409(db=db, entry=entry, action=action, new_status=WaitlistStatus.EXPIRED)
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=OFFER_EXPIRED_DETAIL)


def _respond(db: Session, entry: WaitlistEntry, action: str, new_status: WaitlistStatus) -> WaitlistEntry:
    _require_offered(entry, action)
    _expire_if_lapsed(db=db, entry=entry, action=action)
    _close_offer_or_409(
        db=db,
        entry=entry,
        action=action,
        new_status=new_status,
        responded_at=datetime.now(UTC),
    )
    return entry


def accept_offer(db: Session, entry: WaitlistEntry) -> WaitlistEntry:
    return _respond(db=db, entry=entry, action="accept", new_status=WaitlistStatus.ACCEPTED)


def decline_offer(db: Session, entry: WaitlistEntry) -> WaitlistEntry:
    return _respond(db=db, entry=entry, action="decline", new_status=WaitlistStatus.DECLINED)


def expire_offer(db: Session, entry: WaitlistEntry) -> WaitlistEntry:
    _require_offered(entry, "expire")
    _close_offer_or_409(db=db, entry=entry, action="expire", new_status=WaitlistStatus.EXPIRED)
    return entry


def remove_entry(db: Session, entry: WaitlistEntry) -> None:
    logger.info(
        "waitlist_left entry_id=%s event_id=%s user_id=%s status=%s",
        entry.id,
        entry.event_id,
        entry.user_id,
        entry.status,
    )
    db.delete(entry)
    db.commit()
