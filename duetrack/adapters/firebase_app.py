"""Firebase Admin 初期化の一元管理

サービスアカウント JSON（環境変数 or ファイル）があればそれで、
なければ Application Default Credentials (ADC) で初期化する。
Firestore クライアントも同じ App から取得するため、認証情報は 1 か所で決まる。
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials as fb_creds
from firebase_admin import firestore as fb_firestore
from google.cloud import firestore

from duetrack.config import AppConfig
from duetrack.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


def ensure_firebase_app(config: AppConfig) -> firebase_admin.App:
    """Firebase Admin を初期化する（二重初期化を防ぐ）"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    try:
        if config.service_account_info is not None:
            cred = fb_creds.Certificate(config.service_account_info)
        else:
            cred = fb_creds.ApplicationDefault()
    except (ValueError, OSError) as e:
        raise ConfigurationError(f"Invalid Firebase credentials: {e}") from e

    app = firebase_admin.initialize_app(
        cred,
        options={"projectId": config.project_id} if config.project_id else {},
    )
    logger.info("Firebase Admin initialized: project=%s", config.project_id)
    return app


def firestore_client(app: firebase_admin.App) -> firestore.Client:
    """App に紐づく Firestore クライアントを返す"""
    return fb_firestore.client(app)
