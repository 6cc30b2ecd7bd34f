"""Services layer - ビジネスロジック"""

from duetrack.services.category_service import CategoryService
from duetrack.services.deadline_service import DeadlineService
from duetrack.services.deadline_sweep import DeadlineSweep

__all__ = [
    "DeadlineSweep",
    "DeadlineService",
    "CategoryService",
]
