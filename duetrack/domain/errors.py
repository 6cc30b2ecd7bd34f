"""ドメイン固有の例外クラス"""


class DueTrackError(Exception):
    """DueTrack の基底例外"""

    pass


class ConfigurationError(DueTrackError):
    """設定エラー（認証情報の欠落・不正な設定値）"""

    pass


class StoreUnavailableError(DueTrackError):
    """ドキュメントストア（Firestore）に到達できないエラー"""

    pass


class DuplicateCategoryError(DueTrackError):
    """同じスラッグのカテゴリが既に存在する"""

    def __init__(self, category_id: str) -> None:
        super().__init__(f"Category already exists: {category_id}")
        self.category_id = category_id


class DuplicateDeadlineError(DueTrackError):
    """同じタイトル・期日・カテゴリの締め切りが既に存在する"""

    pass


class DeadlineNotFoundError(DueTrackError):
    """締め切りが存在しない、または他ユーザーの所有"""

    pass
