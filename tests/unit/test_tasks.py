from datetime import UTC, datetime, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from eventplanner.db.base import Base
from eventplanner.db.models import Event, User, UserRole, WaitlistEntry, WaitlistStatus
from eventplanner.tasks.expirations import expire_stale_offers
from eventplanner.tasks.reminders import count_offers_expiring_soon


def _build_session() -> Session:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    return TestSession()


def _seed_event_with_attendees(db: Session, attendee_count: int) -> tuple[Event, list[User]]:
    organizer = User(email="task-organizer@example.com", hashed_password="x", role=UserRole.ORGANIZER.value)
    attendees = [
        User(email=f"task-attendee-{index}@example.com", hashed_password="x", role=UserRole.ATTENDEE.value)
        for index in range(attendee_count)
    ]
    db.add_all([organizer, *attendees])
    db.flush()
    event = Event(user_id=organizer.id, title="Task Event")
    db.add(event)
    db.flush()
    return event, attendees


def _offered_entry(event: Event, user: User, position: int, expires_at: datetime) -> WaitlistEntry:
    return WaitlistEntry(
        event_id=event.id,
        user_id=user.id,
        position=position,
        status=WaitlistStatus.OFFERED.value,
        offered_at=expires_at - timedelta(hours=24),
        expires_at=expires_at,
    )


def test_expire_stale_offers_expires_only_lapsed_offers():
    db = _build_session()
    event, (late, early, waiting) = _seed_event_with_attendees(db, 3)
    now = datetime.now(UTC)
    lapsed = _offered_entry(event, late, 1, now - timedelta(minutes=5))
    open_offer = _offered_entry(event, early, 2, now + timedelta(hours=3))
    queued = WaitlistEntry(event_id=event.id, user_id=waiting.id, position=3, status=WaitlistStatus.WAITING.value)
    db.add_all([lapsed, open_offer, queued])
    db.commit()

    expired = expire_stale_offers(db=db, now=now)

    assert expired == 1
    assert db.get(WaitlistEntry, lapsed.id).status == WaitlistStatus.EXPIRED.value
    assert db.get(WaitlistEntry, lapsed.id).responded_at is None
    assert db.get(WaitlistEntry, open_offer.id).status == WaitlistStatus.OFFERED.value
    assert db.get(WaitlistEntry, queued.id).status == WaitlistStatus.WAITING.value
    db.close()


def test_expire_stale_offers_is_noop_without_lapsed_offers():
    db = _build_session()
    event, (attendee,) = _seed_event_with_attendees(db, 1)
    now = datetime.now(UTC)
    db.add(_offered_entry(event, attendee, 1, now + timedelta(hours=1)))
    db.commit()

    assert expire_stale_offers(db=db, now=now) == 0
    db.close()


def test_count_offers_expiring_soon_counts_only_lookahead_window():
    db = _build_session()
    event, (soon, later, gone) = _seed_event_with_attendees(db, 3)
    now = datetime.now(UTC)
    db.add_all(
        [
            _offered_entry(event, soon, 1, now + timedelta(minutes=30)),
            _offered_entry(event, later, 2, now + timedelta(hours=5)),
            _offered_entry(event, gone, 3, now - timedelta(minutes=30)),
        ]
    )
    db.commit()

    count = count_offers_expiring_soon(db=db, now=now)
    assert count == 1
    db.close()
