#!/usr/bin/env python
"""Spread every scheduled revision across days so no day exceeds the daily limit.

全問題の復習日を現在の順序のまま、1日あたり上限件数ずつ詰め直す。
"""

from __future__ import annotations

import argparse
from collections import OrderedDict
from datetime import date


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--db-path",
        default=None,
        help="SQLite DB のパス（既定: 設定値 REVISION_DB_PATH）",
    )
    parser.add_argument(
        "--start",
        type=date.fromisoformat,
        default=None,
        help="最初の割り当て日 YYYY-MM-DD（既定: 今日 + 最初の復習間隔）",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="確認プロンプトを出さずに適用する場合に指定。",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    from lc_revision.config import settings
    from lc_revision.logging import configure_logging
    from lc_revision.scheduling import RevisionScheduler
    from lc_revision.store import RevisionSQLiteStore

    configure_logging()
    store = RevisionSQLiteStore(
        db_path=args.db_path or settings.revision_db_path,
        scheduler=RevisionScheduler.from_settings(settings),
    )

    plan = store.redistribute(start=args.start, apply=False)
    if not plan:
        print("No problems to redistribute")
        return 0

    preview: "OrderedDict[date, list[str]]" = OrderedDict()
    for item in plan:
        preview.setdefault(item.next_review, []).append(item.title)
    print(f"{len(plan)} problems over {len(preview)} days ({settings.daily_review_limit} per day)")
    for day, titles in preview.items():
        print(f"\n{day.isoformat()} ({len(titles)} problems):")
        for i, title in enumerate(titles, start=1):
            print(f"  {i}. {title}")

    if not args.yes:
        answer = input(f"\nUpdate {len(plan)} revisions? [y/N] ").strip().lower()
        if answer not in {"y", "yes"}:
            print("Cancelled")
            return 1

    applied = store.redistribute(start=plan[0].next_review, apply=True)
    print(f"Redistributed {len(applied)} problems starting {plan[0].next_review.isoformat()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
