"""DeadlineSweep - 期日が近い締め切りのプッシュ通知ジョブ

スケジューラから定期的に（例: 毎分）呼び出される冪等なバッチ処理。
Ports にのみ依存し、Firestore / FCM の実装詳細からは独立。

処理フロー:
1. [now, now + lookahead] に dueAt がある締め切りを取得
2. notified 済み・userId 欠落を除外
3. 所有ユーザーの pushTokens を取得（0件ならスキップ、notified は立てない）
4. 締め切り1件につき1回マルチキャスト送信
5. 無効トークン（恒久的失敗）のみ削除
6. notified / notifiedAt をマージ書き込み
7. 集計（SweepSummary）を返す

ウィンドウ取得の失敗（StoreUnavailableError）だけが呼び出し元に伝播する。
締め切り単位の失敗はログに残して次の締め切りへ進む。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from duetrack.domain.models import (
    Deadline,
    NotificationMessage,
    NotifyPolicy,
    SweepSummary,
    to_epoch_millis,
)
from duetrack.domain.ports import DeadlineRepository, PushGateway, PushTokenRepository

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Deadline coming up"
FALLBACK_DEADLINE_TITLE = "Upcoming deadline"
MAX_TITLE_LENGTH = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_notification(deadline: Deadline) -> NotificationMessage:
    """
    締め切り1件分の通知ペイロードを組み立てる。

    data ブロックの値は FCM の制約により全て文字列。
    タイトルは MAX_TITLE_LENGTH 文字で切り詰め、ペイロードを FCM の上限内に収める。
    """
    title = deadline.title or FALLBACK_DEADLINE_TITLE
    if len(title) > MAX_TITLE_LENGTH:
        title = title[: MAX_TITLE_LENGTH - 1] + "…"
    return NotificationMessage(
        title=NOTIFICATION_TITLE,
        body=f"{title} is due soon.",
        data={
            "deadlineId": deadline.id,
            "userId": deadline.user_id or "",
            "title": title,
            "dueAt": str(to_epoch_millis(deadline.due_at)),
        },
    )


class DeadlineSweep:
    """
    期日が近い締め切りをユーザーの端末へ通知する。

    notified フラグの状態遷移:
        PENDING (notified=false) → ATTEMPTED (notified=true)
    トークンが1件もない締め切りは PENDING のまま残り、次回以降のスイープで再評価される。
    """

    def __init__(
        self,
        deadline_repo: DeadlineRepository,
        token_repo: PushTokenRepository,
        gateway: PushGateway,
        lookahead: timedelta,
        notify_policy: NotifyPolicy = NotifyPolicy.ATTEMPTED,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Args:
            deadline_repo: 締め切りの取得・notified 書き込み
            token_repo: ユーザーのプッシュトークン取得・削除
            gateway: プッシュ通知の送信（FCM等）
            lookahead: 「期日が近い」とみなす先読み幅
            notify_policy: notified を立てる条件
            clock: 現在時刻（テストで固定するため注入可能）
        """
        if lookahead <= timedelta(0):
            raise ValueError(f"lookahead must be positive: {lookahead}")
        self._deadlines = deadline_repo
        self._tokens = token_repo
        self._gateway = gateway
        self._lookahead = lookahead
        self._policy = notify_policy
        self._clock = clock

    def run(self) -> SweepSummary:
        """
        スイープを1回実行する。

        Returns:
            SweepSummary: 実行結果の集計

        Raises:
            StoreUnavailableError: ウィンドウ取得でストアに到達できなかった場合
        """
        now = self._clock()
        window_end = now + self._lookahead
        logger.info(
            "Checking deadlines due between %s and %s",
            now.isoformat(),
            window_end.isoformat(),
        )

        deadlines = self._deadlines.find_due_between(now, window_end)
        summary = SweepSummary()

        for deadline in deadlines:
            if deadline.notified:
                logger.debug("Skipping %s (already notified)", deadline.id)
                continue
            if not deadline.user_id or deadline.due_at is None:
                logger.warning("Skipping %s (missing userId or dueAt)", deadline.id)
                summary.skipped += 1
                continue
            if not now <= deadline.due_at <= window_end:
                logger.debug("Skipping %s (outside window)", deadline.id)
                continue

            summary.candidates += 1
            try:
                self._process(deadline, now, summary)
            except Exception:
                logger.exception(
                    "Sweep failed for deadline %s (user %s)",
                    deadline.id,
                    deadline.user_id,
                )
                summary.failed += 1

        logger.info(
            "Sweep complete: candidates=%d, notified=%d, delivered=%d, "
            "tokens_pruned=%d, skipped=%d, failed=%d",
            summary.candidates,
            summary.notified,
            summary.delivered,
            summary.tokens_pruned,
            summary.skipped,
            summary.failed,
            extra={"extra_fields": {"sweep_summary": summary.as_dict()}},
        )
        return summary

    def _process(
        self, deadline: Deadline, now: datetime, summary: SweepSummary
    ) -> None:
        """締め切り1件の送信・トークン整理・notified 書き込み"""
        uid = deadline.user_id
        push_tokens = self._tokens.list_tokens(uid)

        # 同じトークン文字列が複数ドキュメントにある場合もまとめて1回だけ送る
        token_doc_ids: dict[str, list[str]] = {}
        for t in push_tokens:
            token_doc_ids.setdefault(t.token, []).append(t.id)

        if not token_doc_ids:
            logger.info("No push tokens for user %s. Skipping %s.", uid, deadline.id)
            summary.skipped += 1
            return

        tokens = list(token_doc_ids)
        logger.info(
            "Sending to %d token(s) for deadline %s...", len(tokens), deadline.id
        )
        outcomes = self._gateway.send_multicast(tokens, build_notification(deadline))

        success_count = 0
        for outcome in outcomes:
            if outcome.success:
                success_count += 1
                continue
            if outcome.is_invalid_token:
                logger.info(
                    "Invalid token for user %s: %s... -> %s",
                    uid,
                    outcome.token[:12],
                    outcome.error,
                )
                summary.tokens_pruned += self._prune(
                    uid, token_doc_ids.get(outcome.token, [])
                )
            else:
                logger.warning(
                    "Transient delivery failure for user %s: %s... -> %s",
                    uid,
                    outcome.token[:12],
                    outcome.error,
                )

        summary.delivered += success_count
        logger.info(
            "Result for %s: success=%d, failure=%d",
            deadline.id,
            success_count,
            len(outcomes) - success_count,
        )

        if self._policy is NotifyPolicy.DELIVERED and success_count == 0:
            logger.info("No successful delivery for %s; leaving it pending", deadline.id)
            return

        self._deadlines.mark_notified(deadline.id, now)
        summary.notified += 1

    def _prune(self, uid: str, token_ids: list[str]) -> int:
        """無効トークンのドキュメントを削除し、削除できた件数を返す"""
        pruned = 0
        for token_id in token_ids:
            try:
                self._tokens.delete_token(uid, token_id)
                pruned += 1
            except Exception:
                # 削除できなくても次回スイープで再度無効判定され削除される
                logger.exception(
                    "Failed to delete token for user %s: %s...", uid, token_id[:12]
                )
        return pruned
