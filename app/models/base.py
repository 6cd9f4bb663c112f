"""Shared base fields for all models."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def timestamp_field() -> Any:
    """Timezone-aware timestamp column defaulting to now (UTC)."""
    return Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)


class TimestampMixin(SQLModel):
    """Created / updated timestamps injected into every table."""

    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class PrincipalOwnedMixin(SQLModel):
    """Rows owned by an identity-provider principal (e.g. ``user_2abc...``).

    Mutations filter on this column so an owner can only touch their own rows.
    """

    principal_id: str = Field(max_length=64, nullable=False, index=True)
