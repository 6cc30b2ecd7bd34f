"""カテゴリ API ルート

GET  /api/categories  → 200 [CategoryResponse...]（初回は既定カテゴリを作成）
POST /api/categories  → 201 CategoryResponse / 409 重複
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from duetrack.domain.errors import DuplicateCategoryError
from duetrack.entrypoints.api.deps import get_category_service, get_current_uid
from duetrack.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


class CategoryRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class CategoryResponse(BaseModel):
    id: str
    name: str


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    uid: str = Depends(get_current_uid),
    service: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    """カテゴリ一覧を名前順で返す"""
    return [
        CategoryResponse(id=c.id, name=c.name) for c in service.list_categories(uid)
    ]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CategoryResponse)
async def create_category(
    body: CategoryRequest,
    uid: str = Depends(get_current_uid),
    service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    """カテゴリを追加する。ID は名前から導出される"""
    try:
        category = service.add_category(uid, body.name)
    except DuplicateCategoryError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="That category already exists.",
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from e
    return CategoryResponse(id=category.id, name=category.name)
