"""Firebase Cloud Messaging Gateway Adapter

firebase_admin.messaging.send_each を使った PushGateway 実装。
トークンごとに Message を組み立て、1 リクエストあたりの上限（500件）を
超える場合は分割して送信する。結果は入力トークンと同じ順序で返す。

失敗の分類:
- UnregisteredError（アプリ削除・トークン失効）
- SenderIdMismatchError（別プロジェクトで発行されたトークン）
  → INVALID_TOKEN（恒久的、トークン削除対象）
- InvalidArgumentError
  → ペイロードが妥当な場合のみ INVALID_TOKEN。
    サイズ超過や、送信先全件が同じエラーになった場合はペイロード側の問題とみなし TRANSIENT
- それ以外（QuotaExceeded / Unavailable / Internal 等）
  → TRANSIENT（トークンは残し、次回スイープで再試行）
"""

from __future__ import annotations

import json
import logging

import firebase_admin
from firebase_admin import exceptions as fb_exceptions
from firebase_admin import messaging

from duetrack.domain.models import DeliveryOutcome, FailureKind, NotificationMessage
from duetrack.domain.ports import PushGateway

logger = logging.getLogger(__name__)

MAX_TOKENS_PER_CALL = 500
MAX_PAYLOAD_BYTES = 4096

_UNREGISTERED_ERRORS = (
    messaging.UnregisteredError,
    messaging.SenderIdMismatchError,
)


def payload_size(message: NotificationMessage) -> int:
    """FCM の上限判定に使うペイロードのバイト数（notification + data）"""
    payload = {
        "notification": {"title": message.title, "body": message.body},
        "data": message.data,
    }
    return len(json.dumps(payload, ensure_ascii=False).encode("utf-8"))


class FcmPushGateway(PushGateway):
    """
    FCM への一括送信。

    通知（title/body）と data ブロックの両方を載せるため、
    バックグラウンドのクライアントも data から締め切りを特定できる。
    """

    def __init__(
        self,
        app: firebase_admin.App | None = None,
        ttl_seconds: int = 86400,
    ) -> None:
        """
        Args:
            app: 初期化済みの Firebase App（None ならデフォルト App）
            ttl_seconds: 未配信メッセージを FCM が保持する秒数
        """
        self._app = app
        self._ttl_seconds = ttl_seconds

    def send_multicast(
        self, tokens: list[str], message: NotificationMessage
    ) -> list[DeliveryOutcome]:
        size = payload_size(message)
        payload_ok = size <= MAX_PAYLOAD_BYTES
        if not payload_ok:
            logger.warning(
                "Notification payload exceeds FCM limit: %d > %d bytes",
                size,
                MAX_PAYLOAD_BYTES,
            )

        outcomes: list[DeliveryOutcome] = []
        for start in range(0, len(tokens), MAX_TOKENS_PER_CALL):
            chunk = tokens[start : start + MAX_TOKENS_PER_CALL]
            outcomes.extend(self._send_chunk(chunk, message, payload_ok))
        return outcomes

    def _build(self, token: str, message: NotificationMessage) -> messaging.Message:
        return messaging.Message(
            token=token,
            notification=messaging.Notification(
                title=message.title, body=message.body
            ),
            data=dict(message.data),
            webpush=messaging.WebpushConfig(
                headers={"TTL": str(self._ttl_seconds)},
            ),
        )

    def _send_chunk(
        self, tokens: list[str], message: NotificationMessage, payload_ok: bool
    ) -> list[DeliveryOutcome]:
        resp = messaging.send_each(
            [self._build(t, message) for t in tokens], app=self._app
        )
        logger.info(
            "FCM batch sent: tokens=%d, success=%d, failure=%d",
            len(tokens),
            resp.success_count,
            resp.failure_count,
        )

        # 複数トークンが全件 InvalidArgumentError ならトークンではなくメッセージの問題
        if len(tokens) > 1 and all(
            isinstance(r.exception, fb_exceptions.InvalidArgumentError)
            for r in resp.responses
        ):
            logger.warning(
                "Every token rejected with INVALID_ARGUMENT; treating as payload error"
            )
            payload_ok = False

        return [
            self._to_outcome(token, r, payload_ok)
            for token, r in zip(tokens, resp.responses)
        ]

    @staticmethod
    def _to_outcome(
        token: str, response: messaging.SendResponse, payload_ok: bool
    ) -> DeliveryOutcome:
        if response.success:
            return DeliveryOutcome(token=token, success=True)
        exc = response.exception
        if isinstance(exc, _UNREGISTERED_ERRORS) or (
            payload_ok and isinstance(exc, fb_exceptions.InvalidArgumentError)
        ):
            failure = FailureKind.INVALID_TOKEN
        else:
            failure = FailureKind.TRANSIENT
        return DeliveryOutcome(
            token=token,
            success=False,
            failure=failure,
            error=str(exc) if exc is not None else "unknown error",
        )
