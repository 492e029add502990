import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from eventplanner.db.models import WaitlistEntry, WaitlistStatus
from eventplanner.db.session import SessionLocal
from eventplanner.services.waitlist_service import close_offer, record_transition
from eventplanner.tasks.celery_app import celery_app

logger = logging.getLogger("eventplanner.tasks.expirations")


def _stale_offers(db: Session, now: datetime) -> list[WaitlistEntry]:
    return list(
        db.scalars(
            select(WaitlistEntry).where(
                WaitlistEntry.status == WaitlistStatus.OFFERED.value,
                WaitlistEntry.expires_at.is_not(None),
                WaitlistEntry.expires_at <= now,
            )
        ).all()
    )


def expire_stale_offers(db: Session, now: datetime | None = None) -> int:
    current_time = now or datetime.now(UTC)

    # Offers answered after the scan keep their response.
    expired_entries = [
        entry
        for entry in _stale_offers(db=db, now=current_time)
        if close_offer(db=db, entry_id=entry.id, new_status=WaitlistStatus.EXPIRED)
    ]

    if expired_entries:
        db.commit()
        for entry in expired_entries:
            record_transition(entry, WaitlistStatus.EXPIRED)
        logger.info("stale_offers_expired count=%s", len(expired_entries))
    else:
        db.rollback()

    return len(expired_entries)


@celery_app.task(name="waitlist.expire_stale_offers")
def expire_stale_offers_task() -> dict[str, int]:
    db = SessionLocal()
    try:
        expired_count = expire_stale_offers(db=db)
        return {"expired": expired_count}
    finally:
        db.close()
