"""E2E テスト用フィクスチャ

Firestore Emulator に接続し、実際の Repository を使ってテストする。
Firebase Auth は dependency_overrides でバイパスし、FCM はモックする。

前提: FIRESTORE_EMULATOR_HOST 環境変数が設定されていること
  例: FIRESTORE_EMULATOR_HOST=localhost:8080 pytest tests/e2e/ -m e2e -v
"""

from __future__ import annotations

import os

import pytest
from duetrack.entrypoints.api import deps
from duetrack.entrypoints.api.app import app
from duetrack.entrypoints.api.deps import AuthInfo
from fastapi.testclient import TestClient
from google.cloud import firestore

# テスト用固定値
TEST_UID = "e2e-test-user"
TEST_UID_2 = "e2e-test-user-2"


@pytest.fixture(scope="session")
def firestore_client():
    """Firestore Emulator に接続するクライアント（セッション共有）。

    FIRESTORE_EMULATOR_HOST が未設定の場合は localhost:8080 をデフォルトとして使用する。
    エミュレーターが起動していない場合はテストが接続エラーで失敗する。
    """
    host = os.environ.get("FIRESTORE_EMULATOR_HOST", "localhost:8080")
    os.environ["FIRESTORE_EMULATOR_HOST"] = host
    return firestore.Client(project="test-project")


@pytest.fixture(autouse=True)
def _cleanup_firestore(request, firestore_client):
    """各テスト後に Emulator のデータをクリーンアップ（e2e マーク付きのみ）"""
    yield
    if not request.node.get_closest_marker("e2e"):
        return
    for collection_name in ["deadlines", "users"]:
        for doc_ref in firestore_client.collection(collection_name).list_documents():
            _delete_document_recursive(doc_ref)


def _delete_document_recursive(doc_ref) -> None:
    """ドキュメントとサブコレクションを再帰的に削除"""
    for subcol in doc_ref.collections():
        for child in subcol.list_documents():
            _delete_document_recursive(child)
    doc_ref.delete()


@pytest.fixture
def e2e_client(firestore_client):
    """認証バイパス + 実 Firestore の TestClient。

    - get_auth_info: AuthInfo(TEST_UID) を固定返却（Firebase Auth をバイパス）
    - Firestore: Emulator に接続した実 Client を使用
    """
    deps._firestore_client = firestore_client

    app.dependency_overrides[deps.get_auth_info] = lambda: AuthInfo(
        uid=TEST_UID, email="e2e@example.com", display_name="E2E Test User"
    )

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    deps._firestore_client = None
