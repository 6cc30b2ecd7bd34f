"""Cloud Scheduler ワーカー エントリーポイント

Cloud Scheduler から HTTP POST を受け取り、締め切りスイープを1回実行する。
app.py で /worker プレフィックスにマウントされる。

レスポンス:
  200 {"status": "ok", "candidates": ..., "notified": ..., "delivered": ...,
       "tokens_pruned": ..., "skipped": ..., "failed": ...}
  503 ストアに到達できない場合（スケジューラの次回実行で再試行）
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from duetrack.domain.errors import StoreUnavailableError
from duetrack.entrypoints.api.deps import get_sweep
from duetrack.entrypoints.api.worker_auth import verify_worker_token
from duetrack.services.deadline_sweep import DeadlineSweep

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_worker_token)])


@router.post("/sweep-deadlines", status_code=status.HTTP_200_OK)
def sweep_deadlines(sweep: DeadlineSweep = Depends(get_sweep)) -> dict:
    """期日が近い締め切りをプッシュ通知する（毎分呼び出される想定）"""
    try:
        summary = sweep.run()
    except StoreUnavailableError as e:
        logger.exception("Deadline sweep aborted: store unavailable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Document store unavailable: {e}",
        ) from e
    return {"status": "ok", **summary.as_dict()}
