import importlib.util
from datetime import date
from pathlib import Path

import pytest

from lc_revision.scheduling import ScheduleState
from lc_revision.store import RevisionSQLiteStore


_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "redistribute_revisions.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("redistribute_revisions", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


@pytest.fixture()
def crowded_db(tmp_path: Path) -> str:
    db_path = str(tmp_path / "crowded.sqlite3")
    store = RevisionSQLiteStore(db_path)
    for i in range(5):
        store.register_problem(slug=f"p-{i}", title=f"Problem {i}")
        store.write_schedule_state(f"p-{i}", ScheduleState(repetition_count=0, next_review_date=date(2030, 1, 1)))
    return db_path


def _days(db_path: str) -> list[date]:
    return [p.next_review_date for p in RevisionSQLiteStore(db_path).list_problems()]


def test_apply_with_yes(crowded_db, capsys):
    script = _load_script()

    assert script.main(["--db-path", crowded_db, "--start", "2030-02-01", "--yes"]) == 0

    assert _days(crowded_db) == [date(2030, 2, 1)] * 3 + [date(2030, 2, 2)] * 2
    out = capsys.readouterr().out
    assert "5 problems over 2 days" in out
    assert "Redistributed 5 problems starting 2030-02-01" in out


def test_cancel_leaves_schedule(crowded_db, monkeypatch):
    script = _load_script()
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    assert script.main(["--db-path", crowded_db, "--start", "2030-02-01"]) == 1

    assert _days(crowded_db) == [date(2030, 1, 1)] * 5


def test_empty_database(tmp_path, capsys):
    script = _load_script()

    assert script.main(["--db-path", str(tmp_path / "empty.sqlite3"), "--yes"]) == 0
    assert "No problems to redistribute" in capsys.readouterr().out
