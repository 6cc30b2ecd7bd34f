"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from duetrack.domain.errors import (
    ConfigurationError,
    DeadlineNotFoundError,
    DueTrackError,
    DuplicateCategoryError,
    DuplicateDeadlineError,
    StoreUnavailableError,
)
from duetrack.domain.models import (
    DEFAULT_CATEGORIES,
    UNCATEGORIZED,
    Category,
    Deadline,
    DeliveryOutcome,
    FailureKind,
    NotificationMessage,
    NotifyPolicy,
    PushToken,
    SweepSummary,
    category_slug,
)
from duetrack.domain.ports import (
    CategoryRepository,
    DeadlineRepository,
    PushGateway,
    PushTokenRepository,
)

__all__ = [
    # Models
    "Deadline",
    "Category",
    "PushToken",
    "NotificationMessage",
    "FailureKind",
    "DeliveryOutcome",
    "NotifyPolicy",
    "SweepSummary",
    "DEFAULT_CATEGORIES",
    "UNCATEGORIZED",
    "category_slug",
    # Errors
    "DueTrackError",
    "ConfigurationError",
    "StoreUnavailableError",
    "DuplicateCategoryError",
    "DuplicateDeadlineError",
    "DeadlineNotFoundError",
    # Ports
    "DeadlineRepository",
    "CategoryRepository",
    "PushTokenRepository",
    "PushGateway",
]
