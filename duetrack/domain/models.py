"""ドメインモデル - 外部依存なしのデータ構造"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

UNCATEGORIZED = "uncategorized"

_SLUG_MAX_LENGTH = 32
_SLUG_FALLBACK = "category"
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class Deadline:
    """締め切り（Firestore の deadlines/{id}）"""

    id: str  # Firestore ドキュメントID
    title: str
    due_at: datetime | None  # タイムゾーン付き。旧データ由来で欠落し得る
    user_id: str | None  # 欠落していれば不正レコード
    category_id: str | None = None  # None は "uncategorized" 扱い
    notified: bool = False
    notified_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def effective_category_id(self) -> str:
        return self.category_id or UNCATEGORIZED


@dataclass(frozen=True)
class Category:
    """ユーザー単位のカテゴリ（users/{uid}/categories/{slug}）"""

    id: str  # 表示名から導出したスラッグ
    name: str


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="school", name="School"),
    Category(id="bills", name="Bills"),
    Category(id="work", name="Work"),
    Category(id="health", name="Health"),
    Category(id="personal", name="Personal"),
)


@dataclass(frozen=True)
class PushToken:
    """端末の FCM 登録トークン（users/{uid}/pushTokens/{token}）"""

    id: str  # ドキュメントID（通常はトークン文字列そのもの）
    token: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class NotificationMessage:
    """マルチキャスト送信するペイロード（表示用通知 + data ブロック）"""

    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


class FailureKind(Enum):
    """トークン単位の送信失敗の分類"""

    INVALID_TOKEN = "INVALID_TOKEN"  # 恒久的。トークンを削除してよい
    TRANSIENT = "TRANSIENT"  # 一時的。トークンは残す


@dataclass(frozen=True)
class DeliveryOutcome:
    """1トークン分の送信結果"""

    token: str
    success: bool
    failure: FailureKind | None = None
    error: str = ""

    @property
    def is_invalid_token(self) -> bool:
        return not self.success and self.failure is FailureKind.INVALID_TOKEN


class NotifyPolicy(Enum):
    """notified フラグを立てる条件"""

    ATTEMPTED = "attempted"  # 送信を試みた時点で立てる
    DELIVERED = "delivered"  # 1件以上成功した場合のみ立てる


@dataclass
class SweepSummary:
    """スイープ1回分の集計"""

    candidates: int = 0  # ウィンドウ内で未通知の締め切り数
    notified: int = 0  # notified=true を書き込んだ締め切り数
    delivered: int = 0  # 送信に成功したトークン数
    tokens_pruned: int = 0  # 削除した無効トークン数
    skipped: int = 0  # 不正レコード・トークンなしでスキップした数
    failed: int = 0  # 個別処理で例外が発生した数

    def as_dict(self) -> dict[str, int]:
        return {
            "candidates": self.candidates,
            "notified": self.notified,
            "delivered": self.delivered,
            "tokens_pruned": self.tokens_pruned,
            "skipped": self.skipped,
            "failed": self.failed,
        }


def category_slug(name: str) -> str:
    """
    カテゴリ表示名からスラッグIDを導出する。

    小文字化し、英数字以外の連続を "-" 1文字にまとめ、前後の "-" を除去して
    32文字で切り詰める。結果が空なら "category" を返す。

    >>> category_slug("Scholarships!!")
    'scholarships'
    """
    slug = _NON_ALNUM.sub("-", name.strip().lower()).strip("-")
    return slug[:_SLUG_MAX_LENGTH] or _SLUG_FALLBACK


def due_at_from_value(value: object) -> datetime | None:
    """
    Firestore の dueAt 値を datetime に変換する。

    Timestamp（datetime）はそのまま、旧形式の "YYYY-MM-DD" 文字列は
    UTC の 0 時として解釈する。解釈できない値は None。
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, str):
        try:
            parsed = datetime.strptime(value, "%Y-%m-%d")
        except ValueError:
            return None
        return parsed.replace(tzinfo=timezone.utc)
    return None


def to_epoch_millis(value: datetime | None) -> int:
    """datetime をエポックミリ秒に変換（None は 0）"""
    if value is None:
        return 0
    return int(value.timestamp() * 1000)
