from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources.types import NoDecode


DEFAULT_DB_PATH = ".data/revisions.sqlite3"
DEFAULT_REVISION_INTERVALS: tuple[int, ...] = (2, 3, 7, 21, 60)
DEFAULT_DAILY_REVIEW_LIMIT = 3
DEFAULT_SLOT_SEARCH_HORIZON_DAYS = 100


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    環境変数から読み込まれるアプリ設定クラス。
    - revision_intervals: 復習間隔ラダー（日数）
    - daily_review_limit: 1日あたりの復習上限
    - slot_search_horizon_days: 空き日探索の最大日数
    """

    # --- データ永続化設定 ---
    revision_db_path: str = Field(
        default=DEFAULT_DB_PATH,
        description="Path to SQLite database for revision state / 復習状態用SQLite DBパス",
        validation_alias=AliasChoices("revision_db_path", "database_path"),
    )

    # --- スケジューリング ---
    revision_intervals: Annotated[tuple[int, ...], NoDecode] = Field(
        default=DEFAULT_REVISION_INTERVALS,
        description=(
            "Revision interval ladder in days (comma separated) / "
            "復習間隔ラダー（日数、カンマ区切り）"
        ),
    )
    daily_review_limit: int = Field(
        default=DEFAULT_DAILY_REVIEW_LIMIT,
        description="Max problems scheduled per calendar day / 1日あたりの復習上限",
    )
    slot_search_horizon_days: int = Field(
        default=DEFAULT_SLOT_SEARCH_HORIZON_DAYS,
        description=(
            "Days to search forward for a day with spare capacity / "
            "空き枠を探索する最大日数"
        ),
    )

    # --- 一覧表示の既定値 ---
    due_list_default_limit: int = Field(
        default=5,
        description="Default number of due problems returned / 期限到来一覧の既定件数",
    )
    upcoming_days_default: int = Field(
        default=30,
        description="Default number of days in the upcoming schedule / 予定一覧の既定日数",
    )

    # - extra: .env に存在する未使用キーを無視
    # - case_sensitive: 環境変数キーの大小文字を区別しない
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("revision_intervals", mode="before")
    @classmethod
    def _parse_revision_intervals(
        cls, raw_intervals: object
    ) -> tuple[int, ...] | object:  # pragma: no cover - pydantic handles typing
        """Accept "2,3,7,21,60" style strings as well as sequences.

        文字列/シーケンスのいずれでも受け取り、整数タプルへ変換する。
        """

        if raw_intervals is None:
            return DEFAULT_REVISION_INTERVALS
        if isinstance(raw_intervals, str):
            parts = [part.strip() for part in raw_intervals.split(",")]
            return tuple(int(part) for part in parts if part)
        try:
            return tuple(int(value) for value in raw_intervals)  # type: ignore[union-attr]
        except TypeError:
            return raw_intervals

    @field_validator("revision_intervals", mode="after")
    @classmethod
    def _validate_revision_intervals(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        """Reject ladders the scheduler cannot walk.

        FAIL は ladder[1] に戻すため、最低2段が必要。
        """

        if len(value) < 2:
            raise ValueError("REVISION_INTERVALS must contain at least two entries")
        if any(days <= 0 for days in value):
            raise ValueError("REVISION_INTERVALS must be positive day counts")
        return value

    @field_validator(
        "daily_review_limit",
        "slot_search_horizon_days",
        "due_list_default_limit",
        "upcoming_days_default",
        mode="after",
    )
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be >= 1")
        return value


settings = Settings()
