"""Rating configuration (owner-defined criteria) and public rating submissions."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid, timestamp_field

RATING_SLOTS = 5


class RatingConfig(TimestampMixin, SQLModel, table=True):
    __tablename__ = "rating_configs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", unique=True, nullable=False, index=True)
    features: str = Field(default="[]", sa_column=Column(Text, nullable=False))  # JSON array of labels


class RatingSubmission(SQLModel, table=True):
    """Append-only. Scores are aligned to the features configured at submit time."""

    __tablename__ = "rating_submissions"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    brand_slug: str = Field(max_length=100, nullable=False, index=True)

    score_1: int | None = Field(default=None, ge=1, le=5)
    score_2: int | None = Field(default=None, ge=1, le=5)
    score_3: int | None = Field(default=None, ge=1, le=5)
    score_4: int | None = Field(default=None, ge=1, le=5)
    score_5: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = Field(default=None, max_length=300)

    created_at: datetime = timestamp_field()

    @property
    def scores(self) -> list[int | None]:
        return [self.score_1, self.score_2, self.score_3, self.score_4, self.score_5]


# ── Pydantic schemas ─────────────────────────────────────────

class RatingConfigWrite(SQLModel):
    features: list[Any] = Field(default_factory=list)


class RatingSubmissionCreate(SQLModel):
    # Loose typing on purpose: app.services.validation decides what is acceptable
    stars: list[Any] = Field(default_factory=list)
    comment: Any = None
