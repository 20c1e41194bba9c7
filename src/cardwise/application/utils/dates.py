"""Calendar-day helpers. Day boundaries follow the timezone of ``now``."""

import math
from datetime import date, datetime, time, timedelta


def start_of_day(now: datetime) -> datetime:
    return datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)


def start_of_tomorrow(now: datetime) -> datetime:
    return start_of_day(now) + timedelta(days=1)


def local_date(moment: datetime, reference: datetime) -> date:
    """
    Calendar date of ``moment`` as seen from ``reference``'s timezone.
    """
    if moment.tzinfo is not None and reference.tzinfo is not None:
        moment = moment.astimezone(reference.tzinfo)
    return moment.date()


def days_between(earlier: date, later: date) -> int:
    return (later - earlier).days


def ceil_days(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / 86400)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
