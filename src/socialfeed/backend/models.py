"""Pydantic models for rows exchanged with the hosted backend.

Field aliases follow the backend's table columns (``users.name``,
``users.picture``, ...) while the Python attribute names follow the
service's own vocabulary.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _as_str(value: Any) -> Any:
    return str(value) if value is not None else value


# Backend ids may be integers or UUIDs depending on the table
RowId = Annotated[str, BeforeValidator(_as_str)]


class Identity(BaseModel):
    """Authenticated identity supplied by the identity provider."""

    email: str = Field(min_length=1)
    name: str = ""
    picture: str = ""


class DirectoryEntry(BaseModel):
    """A read-only snapshot of one user from the user directory."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: RowId = Field(validation_alias="id")
    display_name: str = Field(validation_alias="name")
    avatar_url: str = Field(default="", validation_alias="picture")
    email: str = ""
    bio: str | None = None

    @field_validator("avatar_url", "display_name", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat NULL columns as empty strings."""
        return "" if v is None else v


class PostImage(BaseModel):
    """An image attached to a post."""

    image_url: str


class PostRecord(BaseModel):
    """A post as returned by the posts table, with embedded relations."""

    model_config = ConfigDict(populate_by_name=True)

    id: RowId
    title: str = ""
    content: str = ""
    user_id: Annotated[str | None, BeforeValidator(_as_str)] = None
    created_at: datetime
    author: DirectoryEntry | None = Field(default=None, validation_alias="users")
    images: list[PostImage] = Field(default_factory=list, validation_alias="post_images")
    mention_user_ids: list[str] = Field(default_factory=list, validation_alias="tags")

    @field_validator("images", mode="before")
    @classmethod
    def images_default(cls, v: Any) -> Any:
        """Embedded relations come back as null when nothing is attached."""
        return v or []

    @field_validator("mention_user_ids", mode="before")
    @classmethod
    def flatten_tags(cls, v: Any) -> list[str]:
        """Flatten embedded ``tags`` rows (``[{"user_id": ...}]``) into ids."""
        if not v:
            return []
        return [str(item["user_id"]) if isinstance(item, dict) else str(item) for item in v]
