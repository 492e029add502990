from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from eventplanner.core.config import settings
from eventplanner.db.models import WaitlistEntry, WaitlistStatus
from eventplanner.db.session import SessionLocal
from eventplanner.tasks.celery_app import celery_app


def count_offers_expiring_soon(db: Session, now: datetime | None = None) -> int:
    current_time = now or datetime.now(UTC)
    remind_until = current_time + timedelta(minutes=settings.offer_reminder_lookahead_minutes)

    return db.scalar(
        select(func.count(WaitlistEntry.id)).where(
            WaitlistEntry.status == WaitlistStatus.OFFERED.value,
            WaitlistEntry.expires_at >= current_time,
            WaitlistEntry.expires_at < remind_until,
        )
    ) or 0


@celery_app.task(name="waitlist.remind_expiring_offers")
def remind_expiring_offers_task() -> dict[str, int]:
    db = SessionLocal()
    try:
        reminder_count = count_offers_expiring_soon(db=db)
        return {"to_remind": reminder_count}
    finally:
        db.close()
