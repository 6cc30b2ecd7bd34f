"""Firestore リポジトリのユニットテスト

Firestore クライアントをモックし、クエリ条件・マージ書き込み・
欠損値のフォールバック・例外の変換を検証する。
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from duetrack.adapters.firestore_repository import (
    FirestoreCategoryRepository,
    FirestoreDeadlineRepository,
    FirestorePushTokenRepository,
)
from duetrack.domain.errors import DuplicateCategoryError, StoreUnavailableError
from duetrack.domain.models import Category
from google.api_core import exceptions as gapi_exceptions

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _make_snap(doc_id: str, data: dict | None) -> MagicMock:
    """Firestore DocumentSnapshot のモックを生成する"""
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = data is not None
    snap.to_dict.return_value = data
    return snap


class TestFindDueBetween:
    """dueAt の範囲クエリ"""

    def _make_repo(self, snaps=None, error=None):
        mock_db = MagicMock()
        query = mock_db.collection.return_value.where.return_value.where.return_value
        if error is not None:
            query.stream.side_effect = error
        else:
            query.stream.return_value = snaps or []
        return FirestoreDeadlineRepository(mock_db), mock_db

    def test_queries_inclusive_range_on_due_at(self):
        # Arrange
        repo, mock_db = self._make_repo()
        end = _NOW + timedelta(minutes=15)

        # Act
        repo.find_due_between(_NOW, end)

        # Assert
        mock_db.collection.assert_called_with("deadlines")
        first_where = mock_db.collection.return_value.where
        first_where.assert_called_once_with("dueAt", ">=", _NOW)
        first_where.return_value.where.assert_called_once_with("dueAt", "<=", end)

    def test_converts_snapshots_to_deadlines(self):
        snaps = [
            _make_snap(
                "D1",
                {
                    "title": "Rent",
                    "dueAt": _NOW,
                    "userId": "U1",
                    "categoryId": "bills",
                    "notified": False,
                },
            )
        ]
        repo, _ = self._make_repo(snaps)

        (deadline,) = repo.find_due_between(_NOW, _NOW)

        assert deadline.id == "D1"
        assert deadline.title == "Rent"
        assert deadline.due_at == _NOW
        assert deadline.user_id == "U1"
        assert deadline.category_id == "bills"
        assert deadline.notified is False

    def test_missing_fields_fall_back(self):
        """userId・notified・categoryId が欠落していても Deadline が生成される"""
        repo, _ = self._make_repo([_make_snap("D9", {"dueAt": _NOW})])

        (deadline,) = repo.find_due_between(_NOW, _NOW)

        assert deadline.user_id is None
        assert deadline.notified is False
        assert deadline.category_id is None
        assert deadline.effective_category_id == "uncategorized"
        assert deadline.title == ""

    def test_non_boolean_notified_is_not_treated_as_notified(self):
        repo, _ = self._make_repo(
            [_make_snap("D1", {"dueAt": _NOW, "userId": "U1", "notified": "yes"})]
        )

        (deadline,) = repo.find_due_between(_NOW, _NOW)

        assert deadline.notified is False

    def test_api_error_becomes_store_unavailable(self):
        repo, _ = self._make_repo(error=gapi_exceptions.ServiceUnavailable("down"))

        with pytest.raises(StoreUnavailableError):
            repo.find_due_between(_NOW, _NOW)


class TestDeadlineWrites:
    def test_mark_notified_merge_writes_only_notification_fields(self):
        mock_db = MagicMock()
        repo = FirestoreDeadlineRepository(mock_db)

        repo.mark_notified("D1", _NOW)

        ref = mock_db.collection.return_value.document
        ref.assert_called_once_with("D1")
        ref.return_value.set.assert_called_once_with(
            {"notified": True, "notifiedAt": _NOW}, merge=True
        )

    def test_create_writes_client_schema_and_returns_generated_id(self):
        mock_db = MagicMock()
        new_ref = MagicMock()
        new_ref.id = "generated"
        mock_db.collection.return_value.add.return_value = (_NOW, new_ref)
        repo = FirestoreDeadlineRepository(mock_db)

        deadline_id = repo.create("U1", "Rent", _NOW, "bills", created_at=_NOW)

        assert deadline_id == "generated"
        written = mock_db.collection.return_value.add.call_args[0][0]
        assert written == {
            "title": "Rent",
            "dueAt": _NOW,
            "userId": "U1",
            "categoryId": "bills",
            "notified": False,
            "createdAt": _NOW,
        }

    def test_get_returns_none_when_missing(self):
        mock_db = MagicMock()
        mock_db.collection.return_value.document.return_value.get.return_value = (
            _make_snap("D1", None)
        )
        repo = FirestoreDeadlineRepository(mock_db)

        assert repo.get("D1") is None

    def test_legacy_string_due_date_is_parsed(self):
        mock_db = MagicMock()
        mock_db.collection.return_value.document.return_value.get.return_value = (
            _make_snap("D1", {"dueAt": "2026-03-01", "userId": "U1"})
        )
        repo = FirestoreDeadlineRepository(mock_db)

        deadline = repo.get("D1")

        assert deadline.due_at == datetime(2026, 3, 1, tzinfo=timezone.utc)


class TestPushTokenRepository:
    def _make_repo(self, snaps):
        mock_db = MagicMock()
        col = (
            mock_db.collection.return_value.document.return_value.collection.return_value
        )
        col.stream.return_value = snaps
        return FirestorePushTokenRepository(mock_db), col

    def test_token_field_is_preferred_and_doc_id_is_fallback(self):
        repo, _ = self._make_repo(
            [
                _make_snap("doc-1", {"token": "T1"}),
                _make_snap("T2", {}),
            ]
        )

        tokens = repo.list_tokens("U1")

        assert [(t.id, t.token) for t in tokens] == [("doc-1", "T1"), ("T2", "T2")]

    def test_register_uses_token_as_document_id(self):
        repo, col = self._make_repo([])

        repo.register_token("U1", "T1", created_at=_NOW)

        col.document.assert_called_once_with("T1")
        col.document.return_value.set.assert_called_once_with(
            {"token": "T1", "createdAt": _NOW}
        )

    def test_delete_token(self):
        repo, col = self._make_repo([])

        repo.delete_token("U1", "T1")

        col.document.assert_called_once_with("T1")
        col.document.return_value.delete.assert_called_once()


class TestCategoryRepository:
    def test_create_uses_conditional_create(self):
        mock_db = MagicMock()
        repo = FirestoreCategoryRepository(mock_db)
        col = (
            mock_db.collection.return_value.document.return_value.collection.return_value
        )

        repo.create_category("U1", Category(id="scholarships", name="Scholarships"))

        col.document.assert_called_once_with("scholarships")
        col.document.return_value.create.assert_called_once_with(
            {"id": "scholarships", "name": "Scholarships"}
        )

    def test_already_exists_becomes_duplicate_category(self):
        mock_db = MagicMock()
        col = (
            mock_db.collection.return_value.document.return_value.collection.return_value
        )
        col.document.return_value.create.side_effect = gapi_exceptions.AlreadyExists(
            "exists"
        )
        repo = FirestoreCategoryRepository(mock_db)

        with pytest.raises(DuplicateCategoryError):
            repo.create_category("U1", Category(id="work", name="Work"))

    def test_put_categories_commits_one_batch(self):
        mock_db = MagicMock()
        repo = FirestoreCategoryRepository(mock_db)

        repo.put_categories(
            "U1", [Category(id="work", name="Work"), Category(id="bills", name="Bills")]
        )

        batch = mock_db.batch.return_value
        assert batch.set.call_count == 2
        batch.commit.assert_called_once()
