from __future__ import annotations

from fastapi import APIRouter, Depends

from ..aggregator import DailySessionAggregator
from ..auth import get_owner_id
from ..dependencies import get_aggregator
from ..schemas import CycleReport, DailySessionOut

router = APIRouter(
    prefix="/api/v1/sessions",
    tags=["sessions"],
)


# PUBLIC_INTERFACE
@router.get(
    "/today",
    response_model=DailySessionOut,
    summary="Today's Session",
    description="Focus minutes and cycles for the caller's current local day; zeros if none yet.",
)
def get_today(
    owner_id: str = Depends(get_owner_id),
    aggregator: DailySessionAggregator = Depends(get_aggregator),
) -> DailySessionOut:
    """Return today's record for the caller without creating one."""
    return DailySessionOut(**aggregator.get_today(owner_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/cycles",
    response_model=DailySessionOut,
    summary="Report Completed Cycle",
    description=(
        "Record a finished focus period. Focus minutes are added to today's total; "
        "the cycle count replaces today's stored count."
    ),
)
def report_cycle(
    payload: CycleReport,
    owner_id: str = Depends(get_owner_id),
    aggregator: DailySessionAggregator = Depends(get_aggregator),
) -> DailySessionOut:
    """
    Record a completed focus period reported by the client.

    Returns:
        Today's updated record.
    """
    record = aggregator.report_cycle(owner_id, payload.focus_seconds, payload.cycles_completed)
    return DailySessionOut(**record)  # type: ignore[arg-type]
