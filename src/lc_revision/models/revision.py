from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from ..scheduling import Outcome
from ..store import ProblemRevision


class RevisionState(BaseModel):
    """Revision state of one problem as shown on the dashboard.

    ダッシュボード表示用の復習状態。
    """

    slug: str
    title: str
    difficulty: str
    revision_count: int
    next_review: date
    last_reviewed: Optional[date] = None
    total_reviews: int
    confidence_score: Optional[int] = None

    @classmethod
    def from_problem(cls, problem: ProblemRevision) -> "RevisionState":
        return cls(
            slug=problem.slug,
            title=problem.title,
            difficulty=problem.difficulty,
            revision_count=problem.state.repetition_count,
            next_review=problem.state.next_review_date,
            last_reviewed=problem.state.last_reviewed_date,
            total_reviews=problem.state.total_reviews,
            confidence_score=problem.confidence_score,
        )


class RegisterProblemRequest(BaseModel):
    """問題登録リクエスト（拡張機能からの同期に相当）。"""

    slug: str = Field(min_length=1, max_length=200)
    title: str = Field(min_length=1, max_length=300)
    difficulty: str = Field(default="Medium", max_length=32)


class RegisterProblemResponse(BaseModel):
    created: bool
    revision: RevisionState


class RecordOutcomeRequest(BaseModel):
    """Request model for submitting a revision outcome.

    - outcome: SUCCESS | PARTIAL | FAIL
    - confidence_score: 任意の自己評価（1〜5）
    """

    slug: str = Field(min_length=1)
    outcome: Outcome
    confidence_score: Optional[int] = Field(default=None, ge=1, le=5)


class RecordOutcomeResponse(BaseModel):
    success: bool
    revision: RevisionState
    capacity_guaranteed: bool


class DueRevisionsResponse(BaseModel):
    items: list[RevisionState]


class UpcomingDay(BaseModel):
    """1日分の復習予定。overdue は今日より前の日。"""

    day: date
    overdue: bool = False
    items: list[RevisionState]


class ProblemListResponse(BaseModel):
    items: list[RevisionState]


class UpcomingRevisionsResponse(BaseModel):
    days: list[UpcomingDay]


class RevisionStatsResponse(BaseModel):
    """進捗統計。

    - due_now: 本日までに期限が来ている件数
    - reviewed_today: 今日採点した件数
    - total_problems: 登録済みの問題数
    """

    due_now: int
    reviewed_today: int
    total_problems: int


class IntervalInfoResponse(BaseModel):
    intervals: list[int]
    max_interval: int
    daily_review_limit: int
    slot_search_horizon_days: int
