from eventplanner.db.models.event import Event
from eventplanner.db.models.user import User, UserRole
from eventplanner.db.models.waitlist_entry import WaitlistEntry, WaitlistStatus

__all__ = [
    "User",
    "UserRole",
    "Event",
    "WaitlistEntry",
    "WaitlistStatus",
]
