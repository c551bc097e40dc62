from __future__ import annotations

from enum import StrEnum
from typing import Optional


class Visibility(StrEnum):
    PUBLIC = "public"
    PRIVATE = "private"


class WidgetStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"


class DeveloperRole(StrEnum):
    OWNER = "owner"
    MEMBER = "member"


def normalize_visibility(value: Optional[str]) -> Optional[Visibility]:
    """Map a stored or requested visibility onto the enum, ignoring case.

    Returns None for values outside {public, private}.
    """
    if value is None:
        return None
    try:
        return Visibility(value.strip().lower())
    except ValueError:
        return None


def is_private(value: Optional[str]) -> bool:
    return normalize_visibility(value) is Visibility.PRIVATE


def is_public(value: Optional[str]) -> bool:
    # NULL is public, never private
    return value is None or normalize_visibility(value) is Visibility.PUBLIC


def is_private_to_public(old: Optional[str], new: Optional[str]) -> bool:
    """The only visibility transition with a side effect (grant cascade)."""
    return is_private(old) and new is not None and normalize_visibility(new) is Visibility.PUBLIC
