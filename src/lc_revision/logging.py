"""Structured logging setup.

構造化ログの初期化。スケジューリングの劣化（容量超過の許容など）を
呼び出し側や監視基盤が検出できるよう、全イベントを JSON で出力する。
"""

import logging

import structlog
from structlog import contextvars as structlog_contextvars


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog for application-wide logging.

    アプリ全体のロギング設定を行う。標準 logging を初期化し、
    structlog で ISO タイムスタンプと JSON 形式の出力を有効化する。
    """
    # stdlib 側の出力に "INFO:logger:" などのプレフィックスを付けない
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog_contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


logger = structlog.get_logger()
