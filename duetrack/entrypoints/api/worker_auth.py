"""スイープ用ワーカーエンドポイントの呼び出し元検証

Cloud Scheduler の HTTP ジョブは OIDC トークンを付与して /worker/sweep-deadlines を叩く。
ここではそのトークンを検証し、許可したサービスアカウント以外からの実行要求を 401 で拒否する。

環境変数:
    WORKER_SERVICE_ACCOUNT_EMAIL: 許可するサービスアカウント（カンマ区切りで複数可）。
        未設定なら全リクエストを拒否する
    WORKER_OIDC_AUDIENCE: 設定時のみ aud クレームを照合（スケジューラジョブの audience）
    LOCAL_MODE: 設定時は検証しない（ローカルから curl で実行するため）
"""

from __future__ import annotations

import logging
import os

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

logger = logging.getLogger(__name__)

# ヘッダー欠落も 403 ではなく 401 にする
_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _allowed_callers() -> frozenset[str]:
    raw = os.environ.get("WORKER_SERVICE_ACCOUNT_EMAIL", "")
    return frozenset(e.strip().lower() for e in raw.split(",") if e.strip())


def verify_worker_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> None:
    """スケジューラからの OIDC トークンを検証する Depends 関数"""
    if os.environ.get("LOCAL_MODE"):
        return

    allowed = _allowed_callers()
    if not allowed:
        logger.error("WORKER_SERVICE_ACCOUNT_EMAIL is not set; refusing sweep request")
        raise _unauthorized("Worker authentication is not configured")
    if credentials is None:
        raise _unauthorized("Missing Authorization header")

    try:
        claims = id_token.verify_oauth2_token(
            credentials.credentials,
            google_requests.Request(),
            audience=os.environ.get("WORKER_OIDC_AUDIENCE") or None,
        )
    except (ValueError, google_auth_exceptions.GoogleAuthError) as exc:
        logger.warning("Scheduler OIDC token rejected: %s", exc)
        raise _unauthorized("Invalid OIDC token") from exc

    caller = str(claims.get("email", "")).lower()
    if not claims.get("email_verified") or caller not in allowed:
        logger.warning("Sweep request from unexpected caller: %s", caller or "-")
        raise _unauthorized("Unauthorized service account")
