"""締め切り API ルート

GET    /api/deadlines?category=all&limit=8  → 200 [DeadlineResponse...]（期日の昇順）
POST   /api/deadlines                       → 201 DeadlineResponse / 409 重複
DELETE /api/deadlines/{id}                  → 204 / 404
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from duetrack.domain.errors import DeadlineNotFoundError, DuplicateDeadlineError
from duetrack.domain.models import Deadline
from duetrack.entrypoints.api.deps import get_current_uid, get_deadline_service
from duetrack.services.deadline_service import (
    ALL_CATEGORIES,
    DEFAULT_LIST_LIMIT,
    DeadlineService,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/deadlines", tags=["deadlines"])


class DeadlineRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    due_date: date  # YYYY-MM-DD
    category_id: str | None = None
    timezone: str = "UTC"  # due_date の 0 時をどのタイムゾーンで解釈するか


class DeadlineResponse(BaseModel):
    id: str
    title: str
    due_at: datetime | None
    category_id: str
    notified: bool


def _to_response(d: Deadline) -> DeadlineResponse:
    return DeadlineResponse(
        id=d.id,
        title=d.title,
        due_at=d.due_at,
        category_id=d.effective_category_id,
        notified=d.notified,
    )


@router.get("", response_model=list[DeadlineResponse])
async def list_deadlines(
    category: str = ALL_CATEGORIES,
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=100),
    uid: str = Depends(get_current_uid),
    service: DeadlineService = Depends(get_deadline_service),
) -> list[DeadlineResponse]:
    """
    直近の締め切りを返す。

    クエリパラメータ:
        category: "all"（既定）またはカテゴリID。"uncategorized" でカテゴリなしを絞り込み
        limit: 最大件数（既定 8）
    """
    deadlines = service.list_upcoming(uid, category=category, limit=limit)
    return [_to_response(d) for d in deadlines]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=DeadlineResponse)
async def create_deadline(
    body: DeadlineRequest,
    uid: str = Depends(get_current_uid),
    service: DeadlineService = Depends(get_deadline_service),
) -> DeadlineResponse:
    """締め切りを追加する"""
    try:
        tz = ZoneInfo(body.timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown timezone: {body.timezone}",
        ) from e

    try:
        deadline = service.add_deadline(
            uid, body.title, body.due_date, body.category_id, tz=tz
        )
    except DuplicateDeadlineError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="That deadline already exists.",
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from e

    return _to_response(deadline)


@router.delete("/{deadline_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deadline(
    deadline_id: str,
    uid: str = Depends(get_current_uid),
    service: DeadlineService = Depends(get_deadline_service),
) -> None:
    """締め切りを削除する"""
    try:
        service.delete_deadline(uid, deadline_id)
    except DeadlineNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Deadline not found"
        ) from e
