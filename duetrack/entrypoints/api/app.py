"""FastAPI アプリケーション

DueTrack バックエンド API。
Cloud Run Service として動作し、Firebase Auth で認証する。

エンドポイント一覧:
  GET    /api/deadlines
  POST   /api/deadlines
  DELETE /api/deadlines/{id}
  GET    /api/categories
  POST   /api/categories
  PUT    /api/push-tokens
  DELETE /api/push-tokens/{token}
  POST   /worker/sweep-deadlines   ← Cloud Scheduler（OIDC）
  GET    /health
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from duetrack.entrypoints import worker
from duetrack.entrypoints.api.routes import categories, deadlines, push_tokens
from duetrack.logging_config import setup_logging

# ── ロギング初期化 ───────────────────────────────────────────────────────────
setup_logging()
logger = logging.getLogger(__name__)

# ── FastAPI アプリ ───────────────────────────────────────────────────────────
app = FastAPI(
    title="DueTrack API",
    description="締め切り管理アプリ DueTrack のバックエンド API",
    version="1.0.0",
)

# ── グローバル例外ミドルウェア ──────────────────────────────────────────────────
# add_middleware は後から登録したものが外側になる。
# このミドルウェアを CORSMiddleware より先に登録して内側に置き、
# 500 レスポンスにも CORS ヘッダーが付くようにする。


@app.middleware("http")
async def _catch_unhandled_exceptions(
    request: Request, call_next: Callable[[Request], Response]
) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(
            "Unhandled exception: %s %s - %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# ── CORS（Web フロントエンドからのリクエストを許可） ─────────────────────────
# CORS_ORIGINS 環境変数でカンマ区切りのオリジンを指定可能
_extra_origins = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_extra_origins if _extra_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ── ルーター登録 ─────────────────────────────────────────────────────────────
_PREFIX = "/api"

app.include_router(deadlines.router, prefix=_PREFIX)
app.include_router(categories.router, prefix=_PREFIX)
app.include_router(push_tokens.router, prefix=_PREFIX)

# ── スケジューラ用ワーカールート（/worker/*）──────────────────────────────────
# Firebase Auth なし。OIDC トークン検証（verify_worker_token）で保護される。
app.include_router(worker.router, prefix="/worker")


@app.get("/health")
async def health() -> dict:
    """ヘルスチェックエンドポイント（Cloud Run の起動確認用）"""
    return {"status": "ok"}


logger.info("DueTrack API started")
