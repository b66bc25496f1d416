from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .config import settings
from .logging import logger
from .scheduling import (
    CollaboratorUnavailableError,
    Outcome,
    RevisionScheduler,
    ScheduleState,
)


@dataclass
class ProblemRevision:
    slug: str
    title: str
    difficulty: str
    state: ScheduleState
    confidence_score: Optional[int] = None

    @property
    def next_review_date(self) -> date:
        return self.state.next_review_date


@dataclass
class RecordedOutcome:
    problem: ProblemRevision
    raw_date: date
    capacity_guaranteed: bool


@dataclass
class Reassignment:
    slug: str
    title: str
    previous: date
    next_review: date


_REVISION_COLUMNS = """
    p.id AS problem_id, p.slug, p.title, p.difficulty,
    r.revision_count, r.next_review, r.last_reviewed, r.total_reviews, r.confidence_score
"""


def _parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)


def _row_to_problem(row: sqlite3.Row) -> ProblemRevision:
    state = ScheduleState(
        repetition_count=int(row["revision_count"]),
        next_review_date=_parse_day(row["next_review"]),  # type: ignore[arg-type]
        last_reviewed_date=_parse_day(row["last_reviewed"]),
        total_reviews=int(row["total_reviews"]),
    )
    confidence = row["confidence_score"]
    return ProblemRevision(
        slug=row["slug"],
        title=row["title"],
        difficulty=row["difficulty"],
        state=state,
        confidence_score=int(confidence) if confidence is not None else None,
    )


class RevisionSQLiteStore:
    """SQLite-backed revision store.

    - problems: 問題のメタデータ（slug で一意）
    - revisions: 問題ごとの復習状態（1:1）
    - revision_history: 採点履歴

    Scheduling writes (record_outcome / register_problem / redistribute) run
    inside BEGIN IMMEDIATE, so the per-day count read by the allocator and the
    write of next_review are serialised against every other writer.
    """

    def __init__(self, db_path: str, scheduler: RevisionScheduler | None = None) -> None:
        self.db_path = db_path
        self.scheduler = scheduler or RevisionScheduler()
        self._ensure_dirs()
        self._init_db()

    # --- low-level helpers ---
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10.0, isolation_level=None, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection and surface lock/IO failures as retryable errors."""
        try:
            conn = self._connect()
        except sqlite3.OperationalError as exc:
            raise CollaboratorUnavailableError(f"revision store unavailable: {exc}") from exc
        try:
            yield conn
        except sqlite3.OperationalError as exc:
            raise CollaboratorUnavailableError(f"revision store unavailable: {exc}") from exc
        finally:
            conn.close()

    @contextmanager
    def _write_transaction(self) -> Iterator[sqlite3.Connection]:
        with self._connection() as conn:
            # BEGIN IMMEDIATE to take the write lock before the capacity count is read
            conn.execute("BEGIN IMMEDIATE;")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK;")
                raise
            conn.execute("COMMIT;")

    def _ensure_dirs(self) -> None:
        p = Path(self.db_path)
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)

    def _init_db(self) -> None:
        with self._connection() as conn:
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS problems (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        slug TEXT NOT NULL UNIQUE,
                        title TEXT NOT NULL,
                        difficulty TEXT NOT NULL DEFAULT 'Medium',
                        created_at TEXT NOT NULL
                    );
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS revisions (
                        problem_id INTEGER PRIMARY KEY,
                        revision_count INTEGER NOT NULL DEFAULT 0,
                        next_review TEXT NOT NULL,
                        last_reviewed TEXT,
                        total_reviews INTEGER NOT NULL DEFAULT 0,
                        confidence_score INTEGER,
                        FOREIGN KEY(problem_id) REFERENCES problems(id) ON DELETE CASCADE
                    );
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS revision_history (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        problem_id INTEGER NOT NULL,
                        reviewed_at TEXT NOT NULL,
                        reviewed_on TEXT NOT NULL,
                        outcome TEXT NOT NULL,
                        revision_count INTEGER NOT NULL,
                        next_review TEXT NOT NULL,
                        capacity_guaranteed INTEGER NOT NULL,
                        FOREIGN KEY(problem_id) REFERENCES problems(id) ON DELETE CASCADE
                    );
                    """
                )
                conn.execute("CREATE INDEX IF NOT EXISTS idx_revisions_next_review ON revisions(next_review);")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_history_reviewed_on ON revision_history(reviewed_on);")

    @staticmethod
    def _count_on(conn: sqlite3.Connection, day: date) -> int:
        cur = conn.execute("SELECT COUNT(1) AS c FROM revisions WHERE next_review = ?;", (day.isoformat(),))
        return int(cur.fetchone()["c"])

    @staticmethod
    def _fetch_problem(conn: sqlite3.Connection, slug: str) -> Optional[sqlite3.Row]:
        cur = conn.execute(
            f"SELECT {_REVISION_COLUMNS} FROM problems p JOIN revisions r ON r.problem_id = p.id WHERE p.slug = ?;",
            (slug,),
        )
        return cur.fetchone()

    @staticmethod
    def _update_state(conn: sqlite3.Connection, problem_id: int, state: ScheduleState) -> None:
        # single statement so count/date/last_reviewed/total never diverge
        conn.execute(
            """
            UPDATE revisions
            SET revision_count = ?, next_review = ?, last_reviewed = ?, total_reviews = ?
            WHERE problem_id = ?;
            """,
            (
                state.repetition_count,
                state.next_review_date.isoformat(),
                state.last_reviewed_date.isoformat() if state.last_reviewed_date else None,
                state.total_reviews,
                problem_id,
            ),
        )

    # --- capacity / state collaborator API ---
    def count_scheduled_on(self, day: date) -> int:
        """Number of problems whose next review falls on `day`."""
        with self._connection() as conn:
            return self._count_on(conn, day)

    def read_schedule_state(self, slug: str) -> Optional[ScheduleState]:
        with self._connection() as conn:
            row = self._fetch_problem(conn, slug)
            return _row_to_problem(row).state if row is not None else None

    def write_schedule_state(self, slug: str, state: ScheduleState) -> bool:
        """Overwrite the stored state of a problem. False when the slug is unknown."""
        with self._write_transaction() as conn:
            row = self._fetch_problem(conn, slug)
            if row is None:
                return False
            self._update_state(conn, int(row["problem_id"]), state)
            return True

    # --- public API ---
    def register_problem(self, slug: str, title: str, difficulty: str = "Medium") -> Tuple[ProblemRevision, bool]:
        """Upsert a problem and give it a first review date if it has none.

        Returns (problem, created). Existing revision state is never reset.
        """
        now = datetime.now(timezone.utc).isoformat()
        created = False
        with self._write_transaction() as conn:
            conn.execute(
                """
                INSERT INTO problems(slug, title, difficulty, created_at) VALUES (?, ?, ?, ?)
                ON CONFLICT(slug) DO UPDATE SET title = excluded.title, difficulty = excluded.difficulty;
                """,
                (slug, title, difficulty or "Medium", now),
            )
            problem_id = int(conn.execute("SELECT id FROM problems WHERE slug = ?;", (slug,)).fetchone()["id"])
            existing = conn.execute("SELECT 1 FROM revisions WHERE problem_id = ?;", (problem_id,)).fetchone()
            if existing is None:
                scheduled = self.scheduler.initial_state(lambda day: self._count_on(conn, day))
                conn.execute(
                    "INSERT INTO revisions(problem_id, revision_count, next_review, total_reviews) VALUES (?, ?, ?, 0);",
                    (problem_id, scheduled.state.repetition_count, scheduled.state.next_review_date.isoformat()),
                )
                created = True
            row = self._fetch_problem(conn, slug)

        problem = _row_to_problem(row)  # type: ignore[arg-type]
        if created:
            logger.info(
                "problem_registered",
                slug=slug,
                next_review=problem.next_review_date.isoformat(),
            )
        return problem, created

    def record_outcome(
        self,
        slug: str,
        outcome: Outcome | str,
        confidence_score: Optional[int] = None,
    ) -> Optional[RecordedOutcome]:
        """Apply a review outcome and persist the new schedule atomically.

        Returns None when the slug is unknown. InvalidOutcomeError is raised
        before the database is touched.
        """
        outcome = Outcome.parse(outcome)
        with self._write_transaction() as conn:
            row = self._fetch_problem(conn, slug)
            if row is None:
                return None
            problem_id = int(row["problem_id"])
            current = _row_to_problem(row)

            scheduled = self.scheduler.record_outcome(
                slug,
                outcome,
                current.state,
                lambda day: self._count_on(conn, day),
            )
            self._update_state(conn, problem_id, scheduled.state)
            if confidence_score is not None:
                conn.execute(
                    "UPDATE revisions SET confidence_score = ? WHERE problem_id = ?;",
                    (confidence_score, problem_id),
                )
            conn.execute(
                """
                INSERT INTO revision_history(
                    problem_id, reviewed_at, reviewed_on, outcome, revision_count, next_review, capacity_guaranteed
                ) VALUES (?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    problem_id,
                    datetime.now(timezone.utc).isoformat(),
                    scheduled.state.last_reviewed_date.isoformat(),  # type: ignore[union-attr]
                    outcome.value,
                    scheduled.state.repetition_count,
                    scheduled.state.next_review_date.isoformat(),
                    1 if scheduled.capacity_guaranteed else 0,
                ),
            )

        problem = ProblemRevision(
            slug=current.slug,
            title=current.title,
            difficulty=current.difficulty,
            state=scheduled.state,
            confidence_score=confidence_score if confidence_score is not None else current.confidence_score,
        )
        logger.info(
            "revision_recorded",
            slug=slug,
            outcome=outcome.value,
            next_review=problem.next_review_date.isoformat(),
            capacity_guaranteed=scheduled.capacity_guaranteed,
        )
        return RecordedOutcome(
            problem=problem,
            raw_date=scheduled.raw_date,
            capacity_guaranteed=scheduled.capacity_guaranteed,
        )

    def get_problem(self, slug: str) -> Optional[ProblemRevision]:
        with self._connection() as conn:
            row = self._fetch_problem(conn, slug)
            return _row_to_problem(row) if row is not None else None

    def list_problems(self) -> List[ProblemRevision]:
        """All problems with revision state, soonest review first."""
        with self._connection() as conn:
            cur = conn.execute(
                f"""
                SELECT {_REVISION_COLUMNS}
                FROM problems p JOIN revisions r ON r.problem_id = p.id
                ORDER BY r.next_review ASC, p.id ASC;
                """
            )
            return [_row_to_problem(row) for row in cur.fetchall()]

    def search_problems(
        self,
        limit: int,
        difficulty: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[ProblemRevision]:
        """Newest problems first, optionally filtered.

        - difficulty: 完全一致
        - search: title / slug の部分一致（ASCII は大小文字を区別しない）
        """
        clauses: List[str] = []
        params: List[object] = []
        if difficulty:
            clauses.append("p.difficulty = ?")
            params.append(difficulty)
        if search:
            pattern = "%" + search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
            clauses.append("(p.title LIKE ? ESCAPE '\\' OR p.slug LIKE ? ESCAPE '\\')")
            params.extend([pattern, pattern])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(limit)
        with self._connection() as conn:
            cur = conn.execute(
                f"""
                SELECT {_REVISION_COLUMNS}
                FROM problems p JOIN revisions r ON r.problem_id = p.id
                {where}
                ORDER BY p.created_at DESC, p.id DESC
                LIMIT ?;
                """,
                params,
            )
            return [_row_to_problem(row) for row in cur.fetchall()]

    def list_due(self, limit: int, today: Optional[date] = None) -> List[ProblemRevision]:
        """Problems due today or earlier, soonest first, at most `limit`."""
        return self.scheduler.filter_due(self.list_problems(), limit, today=today)

    def upcoming(self, days: int, today: Optional[date] = None) -> List[Tuple[date, List[ProblemRevision]]]:
        """Scheduled problems grouped per day, up to (not including) today + days.

        Overdue days come first; callers compare the day with today to mark them.
        """
        start = today or self.scheduler.today()
        end = start + timedelta(days=days)
        groups: dict[date, List[ProblemRevision]] = {}
        for problem in self.list_problems():
            if problem.next_review_date < end:
                groups.setdefault(problem.next_review_date, []).append(problem)
        return sorted(groups.items())

    # --- stats ---
    def get_stats(self, today: Optional[date] = None) -> Tuple[int, int, int]:
        """Return (due_now, reviewed_today, total_problems).

        - due_now: next_review <= today の件数
        - reviewed_today: 当日採点された件数
        """
        day = (today or self.scheduler.today()).isoformat()
        with self._connection() as conn:
            due_now = int(conn.execute("SELECT COUNT(1) AS c FROM revisions WHERE next_review <= ?;", (day,)).fetchone()["c"])
            reviewed_today = int(
                conn.execute("SELECT COUNT(1) AS c FROM revision_history WHERE reviewed_on = ?;", (day,)).fetchone()["c"]
            )
            total = int(conn.execute("SELECT COUNT(1) AS c FROM problems;").fetchone()["c"])
            return due_now, reviewed_today, total

    # --- maintenance ---
    def redistribute(self, start: Optional[date] = None, apply: bool = True) -> List[Reassignment]:
        """Spread every revision over consecutive days, daily_limit per day.

        Order follows the current next_review. The first day defaults to the
        initial review date of a new problem (today + ladder[0]). With
        apply=False nothing is written (preview).
        """
        first_day = start or self.scheduler.initial_schedule()
        capacity = self.scheduler.allocator.capacity
        with self._write_transaction() as conn:
            cur = conn.execute(
                """
                SELECT p.id AS problem_id, p.slug, p.title, r.next_review
                FROM revisions r JOIN problems p ON p.id = r.problem_id
                ORDER BY r.next_review ASC, p.id ASC;
                """
            )
            plan: List[Reassignment] = []
            ids: List[int] = []
            for index, row in enumerate(cur.fetchall()):
                plan.append(
                    Reassignment(
                        slug=row["slug"],
                        title=row["title"],
                        previous=_parse_day(row["next_review"]),  # type: ignore[arg-type]
                        next_review=first_day + timedelta(days=index // capacity),
                    )
                )
                ids.append(int(row["problem_id"]))
            if apply:
                conn.executemany(
                    "UPDATE revisions SET next_review = ? WHERE problem_id = ?;",
                    [(item.next_review.isoformat(), pid) for item, pid in zip(plan, ids)],
                )

        if apply:
            logger.info(
                "revisions_redistributed",
                count=len(plan),
                start=first_day.isoformat(),
                daily_limit=capacity,
            )
        return plan

    def delete_problem(self, slug: str) -> bool:
        """Delete a problem and its revision state. Returns False if not found."""
        with self._write_transaction() as conn:
            cur = conn.execute("DELETE FROM problems WHERE slug = ?;", (slug,))
            return cur.rowcount > 0


@lru_cache(maxsize=1)
def get_store() -> RevisionSQLiteStore:
    """Process-wide store wired to settings."""
    return RevisionSQLiteStore(
        db_path=settings.revision_db_path,
        scheduler=RevisionScheduler.from_settings(settings),
    )
