from .aggregate import RelationAggregator
from .constants import DeveloperRole, Visibility, WidgetStatus
from .grants import AccessGrantStore
from .service import WidgetService
from .updater import PATCH_COLUMNS, WidgetUpdater
from .visibility import VisibilityResolver

__all__ = [
    "AccessGrantStore",
    "RelationAggregator",
    "VisibilityResolver",
    "WidgetUpdater",
    "WidgetService",
    "PATCH_COLUMNS",
    "Visibility",
    "WidgetStatus",
    "DeveloperRole",
]
