import pytest

from lc_revision.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    for name in ("REVISION_INTERVALS", "DAILY_REVIEW_LIMIT", "SLOT_SEARCH_HORIZON_DAYS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.revision_intervals == (2, 3, 7, 21, 60)
    assert settings.daily_review_limit == 3
    assert settings.slot_search_horizon_days == 100


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("REVISION_INTERVALS", " 1, 2 ,4,8 ")
    monkeypatch.setenv("DAILY_REVIEW_LIMIT", "5")
    monkeypatch.setenv("SLOT_SEARCH_HORIZON_DAYS", "30")
    monkeypatch.setenv("REVISION_DB_PATH", "/tmp/other.sqlite3")

    settings = Settings()

    assert settings.revision_intervals == (1, 2, 4, 8)
    assert settings.daily_review_limit == 5
    assert settings.slot_search_horizon_days == 30
    assert settings.revision_db_path == "/tmp/other.sqlite3"


def test_database_path_alias(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("REVISION_DB_PATH", raising=False)
    monkeypatch.setenv("DATABASE_PATH", "/tmp/alias.sqlite3")

    assert Settings().revision_db_path == "/tmp/alias.sqlite3"


@pytest.mark.parametrize("raw", ["5", "2,0,7", "2,-1", "two,three"])
def test_invalid_ladder_rejected(monkeypatch: pytest.MonkeyPatch, raw: str):
    monkeypatch.setenv("REVISION_INTERVALS", raw)

    with pytest.raises(ValueError):
        Settings()


@pytest.mark.parametrize("name", ["DAILY_REVIEW_LIMIT", "SLOT_SEARCH_HORIZON_DAYS"])
def test_non_positive_limits_rejected(monkeypatch: pytest.MonkeyPatch, name: str):
    monkeypatch.setenv(name, "0")

    with pytest.raises(ValueError, match="must be >= 1"):
        Settings()


def test_unknown_keys_are_ignored(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STRICT_MODE", "true")
    monkeypatch.setenv("ENVIRONMENT", "production")

    settings = Settings()

    assert "strict_mode" not in Settings.model_fields
    assert not hasattr(settings, "environment")
