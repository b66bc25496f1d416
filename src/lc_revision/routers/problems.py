from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..models.revision import (
    ProblemListResponse,
    RegisterProblemRequest,
    RegisterProblemResponse,
    RevisionState,
)
from ..store import RevisionSQLiteStore, get_store

router = APIRouter(tags=["problems"])


@router.get("", response_model=ProblemListResponse, summary="問題一覧（新しい順、難易度/キーワードで絞り込み）")
async def list_problems(
    limit: int = Query(default=100, ge=1, le=1000),
    difficulty: Optional[str] = Query(default=None, max_length=32),
    search: Optional[str] = Query(default=None, max_length=200),
    store: RevisionSQLiteStore = Depends(get_store),
) -> ProblemListResponse:
    items = store.search_problems(limit=limit, difficulty=difficulty, search=search)
    return ProblemListResponse(items=[RevisionState.from_problem(it) for it in items])


@router.post("", response_model=RegisterProblemResponse, summary="問題を登録して初回復習日を割り当て")
async def register_problem(
    req: RegisterProblemRequest,
    response: Response,
    store: RevisionSQLiteStore = Depends(get_store),
) -> RegisterProblemResponse:
    """Register a solved problem.

    New problems get their first review date (today + first interval, moved
    forward past full days). Re-registering only refreshes title/difficulty.
    """
    problem, created = store.register_problem(slug=req.slug, title=req.title, difficulty=req.difficulty)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return RegisterProblemResponse(created=created, revision=RevisionState.from_problem(problem))


@router.get("/{slug}", response_model=RevisionState, summary="問題1件の復習状態")
async def get_problem(slug: str, store: RevisionSQLiteStore = Depends(get_store)) -> RevisionState:
    problem = store.get_problem(slug)
    if problem is None:
        raise HTTPException(status_code=404, detail="Problem not found")
    return RevisionState.from_problem(problem)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT, summary="問題と復習状態を削除")
async def delete_problem(slug: str, store: RevisionSQLiteStore = Depends(get_store)) -> Response:
    if not store.delete_problem(slug):
        raise HTTPException(status_code=404, detail="Problem not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
