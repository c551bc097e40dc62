from .permissions import (
    WIDGET_DEVELOPER_ROLE,
    has_capability,
    viewer_reaches_via_team_grant,
)

__all__ = ["WIDGET_DEVELOPER_ROLE", "has_capability", "viewer_reaches_via_team_grant"]
