"""プッシュトークン管理 API ルート

PUT    /api/push-tokens          → FCM 登録トークンを保存（再登録は冪等）
DELETE /api/push-tokens/{token}  → トークンを削除

Firestore スキーマ:
  users/{uid}/pushTokens/{token}: { token, createdAt }
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from duetrack.adapters.firestore_repository import FirestorePushTokenRepository
from duetrack.entrypoints.api.deps import get_current_uid, get_push_token_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/push-tokens", tags=["push-tokens"])


class PushTokenRequest(BaseModel):
    token: str = Field(min_length=1, pattern=r"^[^/]+$")


@router.put("", status_code=status.HTTP_204_NO_CONTENT)
def register_push_token(
    body: PushTokenRequest,
    uid: str = Depends(get_current_uid),
    repo: FirestorePushTokenRepository = Depends(get_push_token_repo),
) -> None:
    """通知許可時にクライアントが取得した FCM トークンを保存する"""
    repo.register_token(uid, body.token, created_at=datetime.now(timezone.utc))


@router.delete("/{token}", status_code=status.HTTP_204_NO_CONTENT)
def unregister_push_token(
    token: str,
    uid: str = Depends(get_current_uid),
    repo: FirestorePushTokenRepository = Depends(get_push_token_repo),
) -> None:
    """この端末の通知を無効化する"""
    repo.delete_token(uid, token)
