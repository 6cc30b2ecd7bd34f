"""FastAPI 依存性注入

Firebase Auth JWT 検証と Firestore リポジトリ・サービスの初期化を担当する。
各ルートは Depends() でこのモジュールの関数を呼び出して認証 uid と
サービスインスタンスを受け取る。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import firebase_admin
import firebase_admin.auth as fb_auth
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.cloud import firestore

from duetrack.adapters.firebase_app import ensure_firebase_app, firestore_client
from duetrack.adapters.firestore_repository import (
    FirestoreCategoryRepository,
    FirestoreDeadlineRepository,
    FirestorePushTokenRepository,
)
from duetrack.config import AppConfig
from duetrack.entrypoints.factory import create_sweep
from duetrack.services.category_service import CategoryService
from duetrack.services.deadline_service import DeadlineService
from duetrack.services.deadline_sweep import DeadlineSweep

logger = logging.getLogger(__name__)

# ── 設定・Firebase Admin 初期化（プロセス内で1回のみ） ──────────────────────────

_config: AppConfig | None = None
_firebase_app: firebase_admin.App | None = None


def _get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def _get_firebase_app() -> firebase_admin.App:
    global _firebase_app
    if _firebase_app is None:
        _firebase_app = ensure_firebase_app(_get_config())
    return _firebase_app


# ── 認証 ────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AuthInfo:
    """Firebase Auth JWT から取得した認証情報"""

    uid: str
    email: str
    display_name: str


_bearer = HTTPBearer()


async def get_auth_info(
    creds: HTTPAuthorizationCredentials = Depends(_bearer),
) -> AuthInfo:
    """
    Authorization: Bearer <id_token> ヘッダーを検証して AuthInfo を返す。

    Raises:
        HTTPException(401): トークンが無効な場合
    """
    app = _get_firebase_app()
    try:
        decoded = fb_auth.verify_id_token(creds.credentials, app=app)
    except Exception as e:
        logger.warning("Invalid Firebase ID token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired Firebase ID token",
        ) from e

    return AuthInfo(
        uid=decoded["uid"],
        email=decoded.get("email", ""),
        display_name=decoded.get("name", ""),
    )


async def get_current_uid(
    auth_info: AuthInfo = Depends(get_auth_info),
) -> str:
    """認証済みユーザーの uid のみを返す"""
    return auth_info.uid


# ── Firestore クライアント（シングルトン） ──────────────────────────────────────

_firestore_client: firestore.Client | None = None


def _get_firestore_client() -> firestore.Client:
    global _firestore_client
    if _firestore_client is None:
        _firestore_client = firestore_client(_get_firebase_app())
        logger.info("Firestore client initialized")
    return _firestore_client


# ── リポジトリ・サービス依存 ──────────────────────────────────────────────────


def get_deadline_repo() -> FirestoreDeadlineRepository:
    """DeadlineRepository を返す依存関数"""
    return FirestoreDeadlineRepository(_get_firestore_client())


def get_category_repo() -> FirestoreCategoryRepository:
    """CategoryRepository を返す依存関数"""
    return FirestoreCategoryRepository(_get_firestore_client())


def get_push_token_repo() -> FirestorePushTokenRepository:
    """PushTokenRepository を返す依存関数"""
    return FirestorePushTokenRepository(_get_firestore_client())


def get_deadline_service(
    repo: FirestoreDeadlineRepository = Depends(get_deadline_repo),
) -> DeadlineService:
    return DeadlineService(repo)


def get_category_service(
    repo: FirestoreCategoryRepository = Depends(get_category_repo),
) -> CategoryService:
    return CategoryService(repo)


def get_sweep() -> DeadlineSweep:
    """ワーカーエンドポイント用の DeadlineSweep を返す依存関数（組み立ては factory と共通）"""
    return create_sweep(_get_config())
