"""DeadlineService - クライアント向けの締め切り CRUD"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime, time, timezone, tzinfo

from duetrack.domain.errors import DeadlineNotFoundError, DuplicateDeadlineError
from duetrack.domain.models import Deadline
from duetrack.domain.ports import DeadlineRepository

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"
DEFAULT_LIST_LIMIT = 8

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(deadline: Deadline) -> datetime:
    # dueAt が読めない旧データは先頭に並べる
    return deadline.due_at or _EPOCH


class DeadlineService:
    """締め切りの一覧（カテゴリ絞り込み・期日順）・追加・削除"""

    def __init__(
        self,
        repo: DeadlineRepository,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repo
        self._clock = clock

    def list_upcoming(
        self,
        uid: str,
        category: str = ALL_CATEGORIES,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Deadline]:
        """
        ユーザーの締め切りを期日の昇順で返す。

        Args:
            uid: Firebase Auth UID
            category: "all" なら絞り込みなし。categoryId 未設定は "uncategorized" に一致
            limit: 最大件数
        """
        deadlines = self._repo.list_for_user(uid)
        if category != ALL_CATEGORIES:
            deadlines = [d for d in deadlines if d.effective_category_id == category]
        return sorted(deadlines, key=_sort_key)[:limit]

    def add_deadline(
        self,
        uid: str,
        title: str,
        due_date: date,
        category_id: str | None,
        tz: tzinfo = timezone.utc,
    ) -> Deadline:
        """
        締め切りを追加する。dueAt は tz における due_date の 0 時。

        Returns:
            Deadline: ストアが採番した ID を含む作成済みの締め切り

        Raises:
            ValueError: タイトルが空の場合
            DuplicateDeadlineError: 同じタイトル（大文字小文字無視）・期日・カテゴリが既にある場合
        """
        title = title.strip()
        if not title:
            raise ValueError("Deadline title must not be empty")

        new = Deadline(
            id="",
            title=title,
            due_at=datetime.combine(due_date, time.min, tzinfo=tz),
            user_id=uid,
            category_id=category_id or None,
        )
        for d in self._repo.list_for_user(uid):
            if (
                d.title.strip().lower() == title.lower()
                and d.due_at is not None
                and d.due_at.astimezone(tz).date() == due_date
                and d.effective_category_id == new.effective_category_id
            ):
                raise DuplicateDeadlineError(
                    f"Deadline already exists: {title} ({due_date.isoformat()})"
                )

        deadline_id = self._repo.create(
            uid,
            title=new.title,
            due_at=new.due_at,
            category_id=new.category_id,
            created_at=self._clock(),
        )
        logger.info("Deadline added: uid=%s, deadline_id=%s", uid, deadline_id)
        return replace(new, id=deadline_id)

    def delete_deadline(self, uid: str, deadline_id: str) -> None:
        """
        締め切りを削除する。

        Raises:
            DeadlineNotFoundError: 存在しない、または他ユーザーの締め切りの場合
        """
        deadline = self._repo.get(deadline_id)
        if deadline is None or deadline.user_id != uid:
            raise DeadlineNotFoundError(deadline_id)
        self._repo.delete(deadline_id)
        logger.info("Deadline deleted: uid=%s, deadline_id=%s", uid, deadline_id)
