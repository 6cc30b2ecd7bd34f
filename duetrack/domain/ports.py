"""Ports - サービスのインターフェース定義（ABC）

各Port（抽象基底クラス）は外部サービスとの契約を定義します。
実装クラス（Adapter）はこれらのABCを継承し、全ての抽象メソッドを実装する必要があります。

スイープジョブはこれらのポートにのみ依存するため、テストでは
MagicMock(spec=Port) やインメモリ実装に差し替えられる。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from duetrack.domain.models import (
    Category,
    Deadline,
    DeliveryOutcome,
    NotificationMessage,
    PushToken,
)


class DeadlineRepository(ABC):
    """締め切りの永続化（Firestore等）"""

    @abstractmethod
    def find_due_between(self, start: datetime, end: datetime) -> list[Deadline]:
        """
        dueAt が [start, end]（両端含む）の締め切りを全ユーザー横断で取得。

        Raises:
            StoreUnavailableError: ストアに到達できない場合
        """
        pass

    @abstractmethod
    def mark_notified(self, deadline_id: str, notified_at: datetime) -> None:
        """notified / notifiedAt のみをマージ書き込みする"""
        pass

    @abstractmethod
    def list_for_user(self, uid: str) -> list[Deadline]:
        """ユーザーの締め切り一覧を取得"""
        pass

    @abstractmethod
    def get(self, deadline_id: str) -> Deadline | None:
        """締め切りを取得。存在しない場合はNoneを返す"""
        pass

    @abstractmethod
    def create(
        self,
        uid: str,
        title: str,
        due_at: datetime,
        category_id: str | None,
        created_at: datetime,
    ) -> str:
        """締め切りを作成。ストアが採番したIDを返す"""
        pass

    @abstractmethod
    def delete(self, deadline_id: str) -> None:
        """締め切りを削除"""
        pass


class CategoryRepository(ABC):
    """ユーザー単位カテゴリの永続化"""

    @abstractmethod
    def list_categories(self, uid: str) -> list[Category]:
        """カテゴリ一覧を取得（順序不定）"""
        pass

    @abstractmethod
    def create_category(self, uid: str, category: Category) -> None:
        """
        カテゴリを ID 指定で作成する（存在する場合は失敗）。

        Raises:
            DuplicateCategoryError: 同じIDのカテゴリが既に存在する場合
        """
        pass

    @abstractmethod
    def put_categories(self, uid: str, categories: list[Category]) -> None:
        """カテゴリをまとめて書き込む（既定カテゴリの初期化用、冪等）"""
        pass


class PushTokenRepository(ABC):
    """端末プッシュトークンの永続化"""

    @abstractmethod
    def list_tokens(self, uid: str) -> list[PushToken]:
        """ユーザーの登録済みトークンを取得"""
        pass

    @abstractmethod
    def register_token(self, uid: str, token: str, created_at: datetime) -> None:
        """トークン文字列をドキュメントIDとして登録（再登録は冪等）"""
        pass

    @abstractmethod
    def delete_token(self, uid: str, token_id: str) -> None:
        """トークンドキュメントを削除"""
        pass


class PushGateway(ABC):
    """プッシュ通知ゲートウェイ（FCM等）"""

    @abstractmethod
    def send_multicast(
        self, tokens: list[str], message: NotificationMessage
    ) -> list[DeliveryOutcome]:
        """
        複数トークンへ一括送信し、入力と同じ順序でトークン単位の結果を返す。

        Raises:
            Exception: 呼び出し自体が失敗した場合（結果が得られない）
        """
        pass
