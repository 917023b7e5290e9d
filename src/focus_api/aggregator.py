from __future__ import annotations

import logging
from typing import Optional

from .errors import ValidationError
from .models import DailySessionEntity
from .repositories import Repository
from .task_engine import require_owner
from .utils import Clock, calendar_day, local_now

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class DailySessionAggregator:
    """
    Folds cycle-complete reports into one record per owner per local day.

    The two totals merge differently on purpose:
    - focus_minutes adds up across reports (each report is one finished focus period)
    - cycles_completed is replaced by the reported run total, the client's
      authoritative count since its last reset
    """

    def __init__(self, repo: Repository, now: Optional[Clock] = None) -> None:
        self._repo = repo
        self._clock = now or local_now

    def get_today(self, owner_id: str) -> DailySessionEntity:
        """Return today's record, or an unsaved zero record when nothing was reported yet."""
        owner_id = require_owner(owner_id)
        moment = self._clock()
        day = calendar_day(moment)
        record = self._repo.find_daily_record(owner_id, day)
        if record is not None:
            return record
        return {
            "owner_id": owner_id,
            "day": day,
            "focus_minutes": 0,
            "cycles_completed": 0,
            "updated_at": moment,
        }

    def report_cycle(
        self, owner_id: str, focus_seconds_just_completed: int, cycles_completed_this_run: int
    ) -> DailySessionEntity:
        owner_id = require_owner(owner_id)
        if focus_seconds_just_completed < 0:
            raise ValidationError("focus_seconds must not be negative")
        if cycles_completed_this_run < 0:
            raise ValidationError("cycles_completed must not be negative")

        minutes = focus_seconds_just_completed // 60
        day = calendar_day(self._clock())
        with self._repo.atomic(owner_id) as tx:
            existing = tx.find_daily_record(owner_id, day)
            if existing is None:
                record = tx.upsert_daily_record(owner_id, day, minutes, cycles_completed_this_run)
                logger.info(
                    "Daily record opened owner=%s day=%s minutes=%d cycles=%d",
                    owner_id, day, minutes, cycles_completed_this_run,
                )
            else:
                record = tx.upsert_daily_record(
                    owner_id,
                    day,
                    existing["focus_minutes"] + minutes,
                    cycles_completed_this_run,
                )
                logger.info(
                    "Daily record updated owner=%s day=%s minutes=%d cycles=%d",
                    owner_id, day, record["focus_minutes"], record["cycles_completed"],
                )
        return record
