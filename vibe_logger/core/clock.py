"""Time helpers shared by the token and session layers.

Every "same logical day" decision goes through ``is_same_day`` so expiry and
continuation agree on UTC calendar dates.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta

Clock = Callable[[], datetime]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utcnow() -> datetime:
    return datetime.now(UTC)


def epoch_millis(moment: datetime) -> int:
    """Exact epoch milliseconds of an aware datetime."""
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def calendar_day(moment: datetime) -> date:
    """UTC calendar date of a datetime; naive values are taken to be UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).date()


def is_same_day(first: datetime | date, second: datetime | date) -> bool:
    """Calendar-date equality (not an elapsed-time window)."""
    if isinstance(first, datetime):
        first = calendar_day(first)
    if isinstance(second, datetime):
        second = calendar_day(second)
    return first == second
