from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from dental_clinic.core.config import CLINIC_TZ


def now_local() -> datetime:
    """Current clinic-local time as a naive datetime (what the DB stores)."""
    return datetime.now(ZoneInfo(CLINIC_TZ)).replace(tzinfo=None)


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes are converted to clinic time; naive ones are taken as clinic time."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(CLINIC_TZ)).replace(tzinfo=None)
