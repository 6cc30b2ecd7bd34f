"""共通テストフィクスチャ

全テストから利用可能なモックオブジェクトとサンプルデータを提供。

モックの作成:
- ゲートウェイは MagicMock(spec=PushGateway) で ABC のメソッドシグネチャを保持
- リポジトリは状態の確認が必要なため tests/fakes.py のインメモリ実装を使う
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from duetrack.domain.models import Deadline, NotificationMessage
from duetrack.domain.ports import PushGateway

from tests.fakes import NOW, make_deadline, outcomes_for


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def sample_deadline() -> Deadline:
    """サンプル締め切り: 10分後が期日、未通知"""
    return make_deadline("D1")


@pytest.fixture
def mock_gateway() -> MagicMock:
    """PushGateway のモック（既定では全トークン成功）"""
    mock = MagicMock(spec=PushGateway)

    def _all_success(tokens: list[str], message: NotificationMessage):
        return outcomes_for(tokens)

    mock.send_multicast.side_effect = _all_success
    return mock
