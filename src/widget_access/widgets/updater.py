"""Sparse widget updates with the private -> public grant cascade."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.orm import InstrumentedAttribute

from widget_access.db.engine import DBEngine
from widget_access.db.models import Widget
from widget_access.db.uow import UnitOfWork
from widget_access.exceptions import NotFoundError, TransactionFailure, ValidationError

from .constants import is_private_to_public
from .grants import AccessGrantStore
from .schemas import WidgetPatch
from .validation import coerce_widget_id

logger = logging.getLogger(__name__)

# patch field -> widget column it writes
PATCH_COLUMNS: dict[str, InstrumentedAttribute] = {
    "name": Widget.name,
    "description": Widget.description,
    "redirect_link": Widget.redirect_link,
    "visibility": Widget.visibility,
    "image_url": Widget.image_url,
    "public_id": Widget.public_id,
    "restricted_access": Widget.restricted_access,
}


def build_patch(fields: WidgetPatch | Mapping[str, Any]) -> WidgetPatch:
    if isinstance(fields, WidgetPatch):
        return fields
    if not isinstance(fields, Mapping):
        raise ValidationError(
            "Invalid widget patch", detail={"expected": "object", "got": type(fields).__name__}
        )
    try:
        return WidgetPatch.model_validate(dict(fields))
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid widget patch",
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc


def column_changes(patch: WidgetPatch) -> dict[InstrumentedAttribute, Any]:
    return {PATCH_COLUMNS[field]: value for field, value in patch.changes().items()}


class WidgetUpdater:
    """Apply a patch and its grant cascade as one transaction.

    Either every column in the patch and the cascade are written, or nothing
    is: any failure after the transaction opens is rolled back and reported as
    :class:`TransactionFailure`. A missing widget is a :class:`NotFoundError`.
    """

    def __init__(self, engine: DBEngine) -> None:
        self._engine = engine

    async def update(self, widget_id: Any, patch: WidgetPatch | Mapping[str, Any]) -> Widget:
        wid = coerce_widget_id(widget_id)
        patch = build_patch(patch)
        changes = column_changes(patch)

        try:
            async with UnitOfWork(self._engine) as uow:
                session = uow.session
                widget = (
                    await session.execute(
                        select(Widget).where(Widget.id == wid).with_for_update()
                    )
                ).scalar_one_or_none()
                if widget is None:
                    raise NotFoundError("Widget not found", detail={"widget_id": wid})
                if not changes:
                    return widget

                old_visibility = widget.visibility
                await session.execute(
                    update(Widget).where(Widget.id == wid).values(changes)
                )

                revoked = 0
                if "visibility" in patch.model_fields_set and is_private_to_public(
                    old_visibility, patch.visibility
                ):
                    revoked = await AccessGrantStore(session).revoke_all(wid)

                await session.refresh(widget)
                fields = sorted(patch.model_fields_set)
                uow.on_commit(
                    lambda: logger.info(
                        "widget updated (fields=%s, grants revoked=%d)",
                        ",".join(fields), revoked,
                        extra={"widget_id": wid},
                    )
                )
        except (NotFoundError, ValidationError):
            raise
        except Exception as exc:
            logger.exception("widget update rolled back", extra={"widget_id": wid})
            raise TransactionFailure("Failed to update widget") from exc

        return widget


__all__ = ["PATCH_COLUMNS", "build_patch", "column_changes", "WidgetUpdater"]
