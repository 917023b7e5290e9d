from __future__ import annotations

from datetime import date, datetime
from typing import Callable

Clock = Callable[[], datetime]


# PUBLIC_INTERFACE
def local_now() -> datetime:
    """Return the current local wall-clock time (naive)."""
    return datetime.now()


# PUBLIC_INTERFACE
def calendar_day(moment: datetime) -> date:
    """
    Truncate a local timestamp to its calendar day.

    A report at 23:59:59 and one at 00:00:00 the next morning land on different days.
    """
    return moment.date()
