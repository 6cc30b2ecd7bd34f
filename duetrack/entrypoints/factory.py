"""Factory - 依存性注入の組み立て

Firebase App・Firestore クライアント・FCM ゲートウェイを1回だけ初期化し、
DeadlineSweep に明示的に渡す。
"""

import logging

from duetrack.adapters.fcm_gateway import FcmPushGateway
from duetrack.adapters.firebase_app import ensure_firebase_app, firestore_client
from duetrack.adapters.firestore_repository import (
    FirestoreDeadlineRepository,
    FirestorePushTokenRepository,
)
from duetrack.config import AppConfig
from duetrack.services.deadline_sweep import DeadlineSweep

logger = logging.getLogger(__name__)


def create_sweep(config: AppConfig | None = None) -> DeadlineSweep:
    """
    DeadlineSweep を生成（全依存を組み立て）。

    Args:
        config: アプリケーション設定（Noneの場合は環境変数から読み込み）

    Returns:
        DeadlineSweep: 実行可能なスイープジョブ

    Raises:
        ConfigurationError: 認証情報・設定値が不正な場合
    """
    if config is None:
        config = AppConfig.from_env()

    logger.info(
        "Creating deadline sweep: project_id=%s, lookahead=%s, policy=%s",
        config.project_id,
        config.lookahead,
        config.notify_policy.value,
    )

    app = ensure_firebase_app(config)
    db = firestore_client(app)

    return DeadlineSweep(
        deadline_repo=FirestoreDeadlineRepository(db),
        token_repo=FirestorePushTokenRepository(db),
        gateway=FcmPushGateway(app=app),
        lookahead=config.lookahead,
        notify_policy=config.notify_policy,
    )
