"""CategoryService - ユーザー単位カテゴリの管理"""

from __future__ import annotations

import logging

from duetrack.domain.errors import DuplicateCategoryError
from duetrack.domain.models import DEFAULT_CATEGORIES, Category, category_slug
from duetrack.domain.ports import CategoryRepository

logger = logging.getLogger(__name__)


class CategoryService:
    """
    カテゴリ一覧の取得と追加。

    - 初めて空のカテゴリ一覧を参照したときに既定カテゴリを作成する
    - ID は表示名のスラッグ。衝突は DuplicateCategoryError（統合しない）
    """

    def __init__(self, repo: CategoryRepository) -> None:
        self._repo = repo

    def list_categories(self, uid: str) -> list[Category]:
        """カテゴリ一覧を名前順で返す"""
        categories = self._repo.list_categories(uid)
        if not categories:
            categories = list(DEFAULT_CATEGORIES)
            self._repo.put_categories(uid, categories)
            logger.info("Materialized default categories: uid=%s", uid)
        return sorted(categories, key=lambda c: c.name.lower())

    def add_category(self, uid: str, name: str) -> Category:
        """
        カテゴリを追加する。

        Raises:
            ValueError: 名前が空の場合
            DuplicateCategoryError: 同じスラッグのカテゴリが既に存在する場合
        """
        name = name.strip()
        if not name:
            raise ValueError("Category name must not be empty")

        category = Category(id=category_slug(name), name=name)
        existing = self.list_categories(uid)
        if any(c.id == category.id for c in existing):
            raise DuplicateCategoryError(category.id)

        self._repo.create_category(uid, category)
        logger.info("Category added: uid=%s, category_id=%s", uid, category.id)
        return category
