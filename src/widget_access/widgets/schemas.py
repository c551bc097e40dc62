"""Pydantic schemas for widget reads, patches and relation payloads.

JSON is camelCase on the wire (``redirectLink``, ``developerIds``, ``hexCode``);
Python code uses snake_case field names.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constants import Visibility, normalize_visibility


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Read models
# ============================================================================


class CategoryView(CamelModel):
    id: int
    name: str
    hex_code: str | None = None


class TeamRead(CamelModel):
    id: uuid.UUID
    name: str


class AccessGrantRead(CamelModel):
    widget_id: int
    team_id: uuid.UUID
    created_at: datetime | None = None


class DeveloperRead(CamelModel):
    user_id: int
    email: str | None = None
    role: str


class WidgetView(CamelModel):
    """A widget with its developer ids and categories collected as sets."""

    id: int
    name: str
    description: str | None = None
    visibility: str | None = None
    status: str
    created_at: datetime | None = None
    redirect_link: str | None = None
    image_url: str | None = None
    public_id: str | None = None
    restricted_access: bool = False
    developer_ids: list[int] = Field(default_factory=list)
    categories: list[CategoryView] = Field(default_factory=list)


# ============================================================================
# Write models
# ============================================================================


def _check_visibility(value: str | None) -> str:
    if value is None or normalize_visibility(value) is None:
        raise ValueError("visibility must be 'public' or 'private'")
    return value.strip()


class WidgetPatch(CamelModel):
    """Sparse widget update.

    Only fields present in the payload are applied; absent fields are left
    untouched and unknown fields are ignored. ``description``, ``redirectLink``,
    ``imageUrl`` and ``publicId`` may be cleared with an explicit null.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    name: str | None = None
    description: str | None = None
    redirect_link: str | None = None
    visibility: str | None = None
    image_url: str | None = None
    public_id: str | None = None
    restricted_access: bool | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str | None) -> str:
        if v is None or not v.strip():
            raise ValueError("name must be a non-empty string")
        return v.strip()

    @field_validator("visibility")
    @classmethod
    def _visibility_known(cls, v: str | None) -> str:
        return _check_visibility(v)

    @field_validator("restricted_access")
    @classmethod
    def _restricted_not_null(cls, v: bool | None) -> bool:
        if v is None:
            raise ValueError("restrictedAccess cannot be null")
        return v

    def changes(self) -> dict[str, Any]:
        """Field name -> value for every field the caller actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set


class ApprovedWidgetCreate(CamelModel):
    """Creation call issued by the registration workflow once a request is approved."""

    name: str = Field(validation_alias=AliasChoices("name", "widgetName", "widget_name"))
    description: str | None = None
    visibility: str = Visibility.PUBLIC.value
    selected_team_ids: list[uuid.UUID] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selectedTeamIds", "selected_team_ids", "selectedTeams"),
    )
    user_id: int = Field(validation_alias=AliasChoices("userId", "user_id", "ownerId"))
    redirect_link: str | None = None
    image_url: str | None = None
    public_id: str | None = None
    restricted_access: bool = False

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must be a non-empty string")
        return v.strip()

    @field_validator("visibility")
    @classmethod
    def _visibility_known(cls, v: str) -> str:
        return _check_visibility(v)


class WidgetListFilter(CamelModel):
    name: str | None = None
    categories: list[int] | None = None
    page: int | None = Field(default=None, ge=1)
    limit: int | None = Field(default=None, ge=1, le=500)


class TeamGrantCreate(CamelModel):
    team_id: uuid.UUID


class DeveloperAdd(CamelModel):
    developer_id: int = Field(validation_alias=AliasChoices("developerId", "developer_id", "userId"))


class CategoryAttach(CamelModel):
    category_id: int


__all__ = [
    "CategoryView",
    "TeamRead",
    "AccessGrantRead",
    "DeveloperRead",
    "WidgetView",
    "WidgetPatch",
    "ApprovedWidgetCreate",
    "WidgetListFilter",
    "TeamGrantCreate",
    "DeveloperAdd",
    "CategoryAttach",
]
