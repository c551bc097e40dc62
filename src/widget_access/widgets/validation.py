"""Identifier coercion shared by the store, the updater and the service."""

from __future__ import annotations

import uuid
from typing import Any

from widget_access.exceptions import ValidationError


def coerce_int_id(value: Any, *, kind: str = "widget") -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {kind} ID ({value!r})")
    if isinstance(value, int):
        if value < 1:
            raise ValidationError(f"Invalid {kind} ID ({value!r})")
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit() and int(text) > 0:
            return int(text)
    raise ValidationError(f"Invalid {kind} ID ({value!r})")


def coerce_widget_id(value: Any) -> int:
    return coerce_int_id(value, kind="widget")


def coerce_user_id(value: Any) -> int:
    return coerce_int_id(value, kind="user")


def coerce_team_id(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        try:
            return uuid.UUID(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Invalid team ID ({value!r})")
