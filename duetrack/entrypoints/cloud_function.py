"""Cloud Functions Entrypoint - Cloud Scheduler から HTTP で締め切りスイープを実行

デプロイ例:
    gcloud functions deploy duetrack-sweep \\
        --gen2 \\
        --runtime=python313 \\
        --region=us-central1 \\
        --source=. \\
        --entry-point=sweep_deadlines_http \\
        --trigger-http \\
        --no-allow-unauthenticated \\
        --timeout=120s \\
        --memory=256Mi

    gcloud scheduler jobs create http duetrack-sweep-every-minute \\
        --schedule="every 1 minutes" --uri=<function URL> --oidc-service-account-email=...

環境変数設定:
    - PROJECT_ID
    - LOOKAHEAD_MINUTES (optional, default 15)
    - NOTIFY_POLICY (optional, default attempted)
    認証情報は関数のサービスアカウント（ADC）を使用する。
"""

import logging
from datetime import datetime

import functions_framework

from duetrack.domain.errors import ConfigurationError, StoreUnavailableError
from duetrack.entrypoints.factory import create_sweep
from duetrack.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@functions_framework.http
def sweep_deadlines_http(request):
    """
    HTTP Cloud Function エントリーポイント。

    Args:
        request (flask.Request): HTTPリクエスト（内容は使用しない）

    Returns:
        tuple: (JSON 辞書, ステータスコード)
    """
    started = datetime.now()
    logger.info("DueTrack deadline sweep triggered via HTTP")

    try:
        sweep = create_sweep()
        summary = sweep.run()
    except ConfigurationError as e:
        logger.exception("Configuration error")
        return {"status": "error", "reason": "configuration", "detail": str(e)}, 500
    except StoreUnavailableError as e:
        logger.exception("Document store unavailable")
        return {"status": "error", "reason": "store_unavailable", "detail": str(e)}, 503

    duration = (datetime.now() - started).total_seconds()
    logger.info("Sweep finished in %.2f seconds", duration)
    # 個別の締め切りの失敗があっても 200（次回の実行で再試行される）
    return {"status": "ok", **summary.as_dict()}, 200
