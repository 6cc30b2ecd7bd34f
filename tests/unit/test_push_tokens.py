"""プッシュトークン API のユニットテスト"""

import pytest
from duetrack.entrypoints.api.app import app
from duetrack.entrypoints.api.deps import get_current_uid, get_push_token_repo
from fastapi.testclient import TestClient

from tests.fakes import InMemoryPushTokenRepository


@pytest.fixture
def repo():
    return InMemoryPushTokenRepository({"U1": ["existing-token"]})


@pytest.fixture
def client(repo):
    app.dependency_overrides[get_current_uid] = lambda: "U1"
    app.dependency_overrides[get_push_token_repo] = lambda: repo
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class TestRegister:
    def test_register_returns_204(self, client, repo):
        response = client.put("/api/push-tokens", json={"token": "new-token"})

        assert response.status_code == 204
        assert repo.token_ids("U1") == {"existing-token", "new-token"}
        assert repo.docs["U1"]["new-token"].created_at is not None

    def test_register_is_idempotent(self, client, repo):
        client.put("/api/push-tokens", json={"token": "existing-token"})
        client.put("/api/push-tokens", json={"token": "existing-token"})

        assert repo.token_ids("U1") == {"existing-token"}

    @pytest.mark.parametrize("token", ["", "a/b"])
    def test_unusable_token_is_422(self, client, token):
        """空文字とドキュメントIDに使えない "/" を含むトークンは拒否する"""
        response = client.put("/api/push-tokens", json={"token": token})

        assert response.status_code == 422


class TestUnregister:
    def test_delete_returns_204(self, client, repo):
        response = client.delete("/api/push-tokens/existing-token")

        assert response.status_code == 204
        assert repo.token_ids("U1") == set()

    def test_delete_unknown_token_is_still_204(self, client):
        response = client.delete("/api/push-tokens/unknown")

        assert response.status_code == 204
