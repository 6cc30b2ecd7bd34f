"""設定管理 - 環境変数の型安全な読み込み"""

import json
import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

from duetrack.domain.errors import ConfigurationError
from duetrack.domain.models import NotifyPolicy

DEFAULT_LOOKAHEAD_MINUTES = 15


def is_cloud_environment() -> bool:
    """Cloud Run / Cloud Functions 環境かどうかを判定"""
    return any(
        os.getenv(name) for name in ("K_SERVICE", "CLOUD_RUN_JOB", "FUNCTION_TARGET")
    )


@dataclass(frozen=True)
class AppConfig:
    """アプリケーション設定"""

    project_id: str | None
    service_account_info: dict | None  # None なら Application Default Credentials
    lookahead: timedelta = timedelta(minutes=DEFAULT_LOOKAHEAD_MINUTES)
    notify_policy: NotifyPolicy = NotifyPolicy.ATTEMPTED

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        環境変数から設定を読み込む。

        Raises:
            ConfigurationError: 認証情報がない、または設定値が不正な場合
        """
        load_dotenv()

        service_account_info = _load_service_account()
        if service_account_info is None and not is_cloud_environment():
            raise ConfigurationError(
                "Firebase credentials are not set: "
                "set FIREBASE_SERVICE_ACCOUNT or FIREBASE_SERVICE_ACCOUNT_PATH"
            )

        project_id = os.getenv("PROJECT_ID") or (service_account_info or {}).get(
            "project_id"
        )

        raw_lookahead = os.getenv("LOOKAHEAD_MINUTES", str(DEFAULT_LOOKAHEAD_MINUTES))
        try:
            lookahead_minutes = int(raw_lookahead)
        except ValueError:
            raise ConfigurationError(
                f"LOOKAHEAD_MINUTES must be an integer: {raw_lookahead!r}"
            ) from None
        if lookahead_minutes <= 0:
            raise ConfigurationError(
                f"LOOKAHEAD_MINUTES must be positive: {lookahead_minutes}"
            )

        raw_policy = os.getenv("NOTIFY_POLICY", NotifyPolicy.ATTEMPTED.value).lower()
        try:
            notify_policy = NotifyPolicy(raw_policy)
        except ValueError:
            raise ConfigurationError(
                f"NOTIFY_POLICY must be 'attempted' or 'delivered': {raw_policy!r}"
            ) from None

        return cls(
            project_id=project_id,
            service_account_info=service_account_info,
            lookahead=timedelta(minutes=lookahead_minutes),
            notify_policy=notify_policy,
        )


def _load_service_account() -> dict | None:
    """FIREBASE_SERVICE_ACCOUNT（JSON文字列）→ FIREBASE_SERVICE_ACCOUNT_PATH の順で読む"""
    raw = os.getenv("FIREBASE_SERVICE_ACCOUNT")
    if raw:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                "FIREBASE_SERVICE_ACCOUNT is not valid JSON"
            ) from e

    path = os.getenv("FIREBASE_SERVICE_ACCOUNT_PATH")
    if path:
        if not os.path.exists(path):
            raise ConfigurationError(f"Service account file not found: {path}")
        with open(path, encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Service account file is not valid JSON: {path}"
                ) from e

    return None
