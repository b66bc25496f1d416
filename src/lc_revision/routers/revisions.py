from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import settings
from ..models.revision import (
    DueRevisionsResponse,
    IntervalInfoResponse,
    RecordOutcomeRequest,
    RecordOutcomeResponse,
    RevisionState,
    RevisionStatsResponse,
    UpcomingDay,
    UpcomingRevisionsResponse,
)
from ..store import RevisionSQLiteStore, get_store

router = APIRouter(tags=["revisions"])


@router.post("", response_model=RecordOutcomeResponse, summary="復習結果を記録して次回復習日を更新")
async def record_outcome(
    req: RecordOutcomeRequest,
    store: RevisionSQLiteStore = Depends(get_store),
) -> RecordOutcomeResponse:
    """Record SUCCESS / PARTIAL / FAIL for a problem and return its new schedule.

    capacity_guaranteed=false means every day in the search horizon was full
    and the daily limit was exceeded.
    """
    recorded = store.record_outcome(req.slug, req.outcome, confidence_score=req.confidence_score)
    if recorded is None:
        raise HTTPException(status_code=404, detail="Problem not found")
    return RecordOutcomeResponse(
        success=True,
        revision=RevisionState.from_problem(recorded.problem),
        capacity_guaranteed=recorded.capacity_guaranteed,
    )


@router.get("/due", response_model=DueRevisionsResponse, summary="本日までに復習すべき問題")
async def due_revisions(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    store: RevisionSQLiteStore = Depends(get_store),
) -> DueRevisionsResponse:
    items = store.list_due(limit=limit or settings.due_list_default_limit)
    return DueRevisionsResponse(items=[RevisionState.from_problem(it) for it in items])


@router.get("/upcoming", response_model=UpcomingRevisionsResponse, summary="日別の復習予定")
async def upcoming_revisions(
    days: Optional[int] = Query(default=None, ge=1, le=366),
    store: RevisionSQLiteStore = Depends(get_store),
) -> UpcomingRevisionsResponse:
    today = store.scheduler.today()
    groups = store.upcoming(days=days or settings.upcoming_days_default, today=today)
    return UpcomingRevisionsResponse(
        days=[
            UpcomingDay(day=day, overdue=day < today, items=[RevisionState.from_problem(it) for it in items])
            for day, items in groups
        ]
    )


@router.get("/stats", response_model=RevisionStatsResponse, summary="進捗統計")
async def revision_stats(store: RevisionSQLiteStore = Depends(get_store)) -> RevisionStatsResponse:
    due_now, reviewed_today, total = store.get_stats()
    return RevisionStatsResponse(due_now=due_now, reviewed_today=reviewed_today, total_problems=total)


@router.get("/intervals", response_model=IntervalInfoResponse, summary="復習間隔の設定値")
async def interval_info(store: RevisionSQLiteStore = Depends(get_store)) -> IntervalInfoResponse:
    scheduler = store.scheduler
    return IntervalInfoResponse(
        intervals=list(scheduler.intervals),
        max_interval=scheduler.policy.max_interval,
        daily_review_limit=scheduler.allocator.capacity,
        slot_search_horizon_days=scheduler.allocator.horizon_days,
    )
