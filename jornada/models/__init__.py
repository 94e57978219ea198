from jornada.models.tenant import Tenant
from jornada.models.user import User
from jornada.models.time_entry import TimeEntry, EntryStatus

__all__ = [
    "Tenant",
    "User",
    "TimeEntry",
    "EntryStatus",
]
