"""ロギング設定モジュール

Cloud Run / Cloud Functions 環境ではJSON形式、ローカルではテキスト形式でログを出力する。

使い方:
    from duetrack.logging_config import setup_logging
    setup_logging()

環境変数:
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL) デフォルト: INFO
    K_SERVICE / CLOUD_RUN_JOB / FUNCTION_TARGET: クラウド環境判定（自動設定される）

構造化フィールドを付けたい場合は extra={"extra_fields": {...}} を渡す
（スイープの集計ログなど）。
"""

import json
import logging
import os

from duetrack.config import is_cloud_environment


class CloudLoggingFormatter(logging.Formatter):
    """Cloud Logging互換のJSONフォーマッタ

    stdout は Cloud Logging に転送されるが、
    JSON形式で `severity` フィールドを含めることで
    ログレベルが正しくマッピングされる。
    """

    LEVEL_TO_SEVERITY = {
        "DEBUG": "DEBUG",
        "INFO": "INFO",
        "WARNING": "WARNING",
        "ERROR": "ERROR",
        "CRITICAL": "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "severity": self.LEVEL_TO_SEVERITY.get(record.levelname, "DEFAULT"),
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)
        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging() -> None:
    """ログ設定を初期化する

    クラウド環境では Cloud Logging 互換の JSON フォーマットを使用し、
    ローカルではテキスト形式を使用する。
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    handler = logging.StreamHandler()
    if is_cloud_environment():
        handler.setFormatter(CloudLoggingFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root_logger.handlers.clear()
    root_logger.addHandler(handler)
