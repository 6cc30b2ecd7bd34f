"""登録済みの全端末にテスト通知を送るスクリプト

FCM の認証情報・トークン登録・サービスワーカーの受信までを
手動で（または CI から）確認するために使う。締め切りの notified には触れない。

実行方法:
    # 送信対象の確認のみ
    python scripts/send_test_notification.py --dry-run

    # 全ユーザーに送信
    python scripts/send_test_notification.py

    # 特定ユーザーのみ（UID 指定）
    python scripts/send_test_notification.py --uid <uid>

    # 無効と判定されたトークンも削除する
    python scripts/send_test_notification.py --prune

認証情報は FIREBASE_SERVICE_ACCOUNT / FIREBASE_SERVICE_ACCOUNT_PATH から読む。
"""

from __future__ import annotations

import argparse
import logging

from duetrack.adapters.fcm_gateway import FcmPushGateway
from duetrack.adapters.firebase_app import ensure_firebase_app, firestore_client
from duetrack.adapters.firestore_repository import FirestorePushTokenRepository
from duetrack.config import AppConfig
from duetrack.domain.models import NotificationMessage

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)

_USERS = "users"

TEST_MESSAGE = NotificationMessage(
    title="Test notification",
    body="DueTrack notifications are working.",
    data={"type": "test"},
)


def send_to_user(
    uid: str,
    token_repo: FirestorePushTokenRepository,
    gateway: FcmPushGateway,
    dry_run: bool,
    prune: bool,
) -> tuple[int, int]:
    """
    1ユーザーの全トークンにテスト通知を送る。

    Returns:
        (送信成功数, 削除したトークン数)
    """
    tokens = token_repo.list_tokens(uid)
    if not tokens:
        logger.info("SKIP uid=%s (no tokens)", uid)
        return 0, 0

    logger.info("SEND uid=%s tokens=%d (dry_run=%s)", uid, len(tokens), dry_run)
    if dry_run:
        return 0, 0

    # 同じトークン文字列のドキュメントが複数あっても送信は1回、削除は全件
    ids_by_token: dict[str, list[str]] = {}
    for t in tokens:
        ids_by_token.setdefault(t.token, []).append(t.id)

    outcomes = gateway.send_multicast(list(ids_by_token), TEST_MESSAGE)
    sent = 0
    pruned = 0
    for outcome in outcomes:
        if outcome.success:
            sent += 1
            continue
        logger.warning(
            "FAILED uid=%s token=%s... kind=%s error=%s",
            uid,
            outcome.token[:12],
            outcome.failure.value if outcome.failure else "-",
            outcome.error,
        )
        if prune and outcome.is_invalid_token:
            for token_id in ids_by_token.get(outcome.token, []):
                token_repo.delete_token(uid, token_id)
                pruned += 1
    return sent, pruned


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a test push notification")
    parser.add_argument("--uid", help="Send only to this user")
    parser.add_argument("--dry-run", action="store_true", help="List targets only")
    parser.add_argument(
        "--prune", action="store_true", help="Delete tokens reported as invalid"
    )
    args = parser.parse_args()

    config = AppConfig.from_env()
    app = ensure_firebase_app(config)
    db = firestore_client(app)
    token_repo = FirestorePushTokenRepository(db)
    gateway = FcmPushGateway(app=app)

    if args.uid:
        uids = [args.uid]
    else:
        # users/{uid} 本体が未作成（サブコレクションのみ）のユーザーも含める
        uids = [ref.id for ref in db.collection(_USERS).list_documents()]

    total_sent = 0
    total_pruned = 0
    for uid in uids:
        sent, pruned = send_to_user(uid, token_repo, gateway, args.dry_run, args.prune)
        total_sent += sent
        total_pruned += pruned

    logger.info(
        "Done. users=%d, sent=%d, pruned=%d", len(uids), total_sent, total_pruned
    )


if __name__ == "__main__":
    main()
