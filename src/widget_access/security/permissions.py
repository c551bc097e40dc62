from __future__ import annotations

from typing import Dict, Iterable, Optional, Set

# Widget visibility capabilities
VIEW_PUBLIC = "widget.view.public"
VIEW_OWNED = "widget.view.owned"
VIEW_TEAM_GRANTED = "widget.view.team_granted"

WIDGET_DEVELOPER_ROLE = "widget developer"

# Central role -> capabilities mapping. Projects can extend at startup.
# Widget developers reach private widgets only through their own developer
# relations, never through a grant made to their team.
CAPABILITY_REGISTRY: Dict[str, Set[str]] = {
    WIDGET_DEVELOPER_ROLE: {VIEW_PUBLIC, VIEW_OWNED},
    "league": {VIEW_PUBLIC, VIEW_OWNED, VIEW_TEAM_GRANTED},
    "master": {VIEW_PUBLIC, VIEW_OWNED, VIEW_TEAM_GRANTED},
}

# Roles missing from the registry (or an unknown role) keep the team path
DEFAULT_CAPABILITIES: Set[str] = {VIEW_PUBLIC, VIEW_OWNED, VIEW_TEAM_GRANTED}


def normalize_role(role: Optional[str]) -> Optional[str]:
    if role is None:
        return None
    normalized = " ".join(role.strip().lower().split())
    return normalized or None


def get_capabilities_for_role(role: Optional[str]) -> Set[str]:
    key = normalize_role(role)
    if key is None:
        return set(DEFAULT_CAPABILITIES)
    return set(CAPABILITY_REGISTRY.get(key, DEFAULT_CAPABILITIES))


def get_capabilities_for_roles(roles: Iterable[Optional[str]]) -> Set[str]:
    caps: Set[str] = set()
    for r in roles:
        caps |= get_capabilities_for_role(r)
    return caps


def has_capability(role: Optional[str], capability: str) -> bool:
    return capability in get_capabilities_for_role(role)


def viewer_reaches_via_team_grant(role: Optional[str]) -> bool:
    """Whether a viewer with ``role`` may see private widgets granted to their team."""
    return has_capability(role, VIEW_TEAM_GRANTED)


__all__ = [
    "VIEW_PUBLIC",
    "VIEW_OWNED",
    "VIEW_TEAM_GRANTED",
    "WIDGET_DEVELOPER_ROLE",
    "CAPABILITY_REGISTRY",
    "DEFAULT_CAPABILITIES",
    "normalize_role",
    "get_capabilities_for_role",
    "get_capabilities_for_roles",
    "has_capability",
    "viewer_reaches_via_team_grant",
]
