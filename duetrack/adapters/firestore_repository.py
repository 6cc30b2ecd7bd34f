"""Firestore Repository Adapter

DeadlineRepository / CategoryRepository / PushTokenRepository の Firestore 実装。

Firestore コレクション構造:
  deadlines/{deadlineId}                    ← 締め切り（全ユーザー共通、userId で所有者を判別）
  users/{uid}/categories/{slug}             ← カテゴリ（ID は表示名のスラッグ）
  users/{uid}/pushTokens/{token}            ← FCM 登録トークン（ID はトークン文字列）

フィールド名はクライアント（Web アプリ）と共有するため camelCase。
"""

from __future__ import annotations

import logging
from datetime import datetime

from google.api_core import exceptions as gapi_exceptions
from google.cloud import firestore

from duetrack.domain.errors import DuplicateCategoryError, StoreUnavailableError
from duetrack.domain.models import Category, Deadline, PushToken, due_at_from_value
from duetrack.domain.ports import (
    CategoryRepository,
    DeadlineRepository,
    PushTokenRepository,
)

logger = logging.getLogger(__name__)

_DEADLINES = "deadlines"
_USERS = "users"
_CATEGORIES = "categories"
_PUSH_TOKENS = "pushTokens"


class FirestoreDeadlineRepository(DeadlineRepository):
    """
    Firestore を使った DeadlineRepository 実装。

    スイープジョブは dueAt の範囲クエリと notified のマージ書き込みのみを使う。
    """

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def find_due_between(self, start: datetime, end: datetime) -> list[Deadline]:
        """dueAt が [start, end] の締め切りを取得。到達不能なら StoreUnavailableError"""
        query = (
            self._db.collection(_DEADLINES)
            .where("dueAt", ">=", start)
            .where("dueAt", "<=", end)
        )
        try:
            # stream() は遅延評価なので、通信エラーはここで確定させる
            deadlines = [self._snap_to_deadline(snap) for snap in query.stream()]
        except gapi_exceptions.GoogleAPIError as e:
            raise StoreUnavailableError(f"Deadline window query failed: {e}") from e
        logger.info(
            "Found %d deadline(s) due between %s and %s",
            len(deadlines),
            start.isoformat(),
            end.isoformat(),
        )
        return deadlines

    def mark_notified(self, deadline_id: str, notified_at: datetime) -> None:
        """notified / notifiedAt 以外のフィールドには触れない"""
        self._db.collection(_DEADLINES).document(deadline_id).set(
            {"notified": True, "notifiedAt": notified_at}, merge=True
        )
        logger.info("Marked deadline notified: deadline_id=%s", deadline_id)

    def list_for_user(self, uid: str) -> list[Deadline]:
        snaps = self._db.collection(_DEADLINES).where("userId", "==", uid).stream()
        return [self._snap_to_deadline(snap) for snap in snaps]

    def get(self, deadline_id: str) -> Deadline | None:
        snap = self._db.collection(_DEADLINES).document(deadline_id).get()
        if not snap.exists:
            return None
        return self._snap_to_deadline(snap)

    def create(
        self,
        uid: str,
        title: str,
        due_at: datetime,
        category_id: str | None,
        created_at: datetime,
    ) -> str:
        """締め切りを作成。Firestore が採番した ID を返す"""
        ref = self._db.collection(_DEADLINES).add(
            {
                "title": title,
                "dueAt": due_at,
                "userId": uid,
                "categoryId": category_id,
                "notified": False,
                "createdAt": created_at,
            }
        )[1]
        logger.info("Created deadline: uid=%s, deadline_id=%s", uid, ref.id)
        return ref.id

    def delete(self, deadline_id: str) -> None:
        self._db.collection(_DEADLINES).document(deadline_id).delete()
        logger.info("Deleted deadline: deadline_id=%s", deadline_id)

    # ── 変換ヘルパー ──────────────────────────────────────────────────────────

    @staticmethod
    def _snap_to_deadline(snap) -> Deadline:
        d = snap.to_dict() or {}
        return Deadline(
            id=snap.id,
            title=d.get("title") or "",
            due_at=due_at_from_value(d.get("dueAt")),
            user_id=d.get("userId") or None,
            category_id=d.get("categoryId") or None,
            notified=d.get("notified") is True,
            notified_at=d.get("notifiedAt"),
            created_at=d.get("createdAt"),
        )


class FirestoreCategoryRepository(CategoryRepository):
    """users/{uid}/categories を管理する CategoryRepository 実装"""

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def _col(self, uid: str):
        return self._db.collection(_USERS).document(uid).collection(_CATEGORIES)

    def list_categories(self, uid: str) -> list[Category]:
        return [
            Category(id=snap.id, name=d.get("name") or snap.id)
            for snap in self._col(uid).stream()
            for d in (snap.to_dict() or {},)
        ]

    def create_category(self, uid: str, category: Category) -> None:
        """create() は既存ドキュメントがあると AlreadyExists で失敗する（条件付き書き込み）"""
        try:
            self._col(uid).document(category.id).create(
                {"id": category.id, "name": category.name}
            )
        except gapi_exceptions.AlreadyExists as e:
            raise DuplicateCategoryError(category.id) from e
        logger.info("Created category: uid=%s, category_id=%s", uid, category.id)

    def put_categories(self, uid: str, categories: list[Category]) -> None:
        batch = self._db.batch()
        col = self._col(uid)
        for c in categories:
            batch.set(col.document(c.id), {"id": c.id, "name": c.name})
        batch.commit()
        logger.info("Wrote %d categories: uid=%s", len(categories), uid)


class FirestorePushTokenRepository(PushTokenRepository):
    """users/{uid}/pushTokens を管理する PushTokenRepository 実装"""

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def _col(self, uid: str):
        return self._db.collection(_USERS).document(uid).collection(_PUSH_TOKENS)

    def list_tokens(self, uid: str) -> list[PushToken]:
        """token フィールドがない旧ドキュメントはドキュメントIDをトークンとみなす"""
        tokens: list[PushToken] = []
        for snap in self._col(uid).stream():
            d = snap.to_dict() or {}
            token = d.get("token") or snap.id
            if not token:
                continue
            tokens.append(
                PushToken(id=snap.id, token=token, created_at=d.get("createdAt"))
            )
        return tokens

    def register_token(self, uid: str, token: str, created_at: datetime) -> None:
        self._col(uid).document(token).set({"token": token, "createdAt": created_at})
        logger.info("Registered push token: uid=%s, token=%s...", uid, token[:12])

    def delete_token(self, uid: str, token_id: str) -> None:
        self._col(uid).document(token_id).delete()
        logger.info("Deleted push token: uid=%s, token=%s...", uid, token_id[:12])
