#!/usr/bin/env python3
"""CLI Entrypoint - 締め切りスイープをコマンドラインから1回実行

使い方:
    python -m duetrack.entrypoints.cli
    duetrack-sweep

環境変数:
    FIREBASE_SERVICE_ACCOUNT / FIREBASE_SERVICE_ACCOUNT_PATH: 認証情報
    LOOKAHEAD_MINUTES: 先読み幅（分） デフォルト: 15
    NOTIFY_POLICY: attempted | delivered デフォルト: attempted
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR) デフォルト: INFO

終了コード:
    0: 実行完了（個別の締め切りの失敗を含む）
    1: ストアへの接続失敗などの致命的エラー
    2: 設定エラー（ジョブは開始しない）
    130: 中断
"""

import logging
import sys

from duetrack.domain.errors import ConfigurationError, StoreUnavailableError
from duetrack.entrypoints.factory import create_sweep
from duetrack.logging_config import setup_logging

EXIT_FATAL = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def main():
    """メインエントリーポイント"""
    setup_logging()
    logger = logging.getLogger(__name__)

    logger.info("DueTrack deadline sweep - Starting")

    try:
        sweep = create_sweep()
    except ConfigurationError:
        logger.exception("Configuration error")
        sys.exit(EXIT_CONFIG)

    try:
        summary = sweep.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(EXIT_INTERRUPTED)
    except StoreUnavailableError:
        logger.exception("Document store unavailable")
        sys.exit(EXIT_FATAL)
    except Exception:
        logger.exception("Fatal error")
        sys.exit(EXIT_FATAL)

    if summary.failed:
        logger.warning("%d deadline(s) failed and will be retried", summary.failed)
    logger.info("Done. Total notifications sent: %d", summary.delivered)


if __name__ == "__main__":
    main()
