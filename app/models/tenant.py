"""Tenant model: one restaurant brand, owned by exactly one principal."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid, timestamp_field


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # One row per principal; the shell is created on first authenticated touch
    principal_id: str = Field(max_length=64, unique=True, nullable=False, index=True)
    email: str | None = Field(default=None, max_length=320)

    first_name: str | None = Field(default=None, max_length=60)
    last_name: str | None = Field(default=None, max_length=60)
    phone: str | None = Field(default=None, max_length=24)
    address: str | None = Field(default=None, max_length=120)

    # Brand identity: immutable once onboarding completes.
    # NULL until then; multiple NULLs are allowed by the unique index.
    brand_name: str | None = Field(default=None, max_length=80)
    brand_slug: str | None = Field(default=None, max_length=100, unique=True, index=True)
    admin_path: str | None = Field(default=None, max_length=120)
    public_path: str | None = Field(default=None, max_length=120)

    logo_url: str | None = Field(default=None, max_length=2048)
    onboarding_complete: bool = Field(default=False)
    last_seen_at: datetime = timestamp_field()


# ── Pydantic schemas ─────────────────────────────────────────

class OnboardingCreate(SQLModel):
    # Raw strings; rules live in app.services.validation
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    address: str = ""
    brand_name: str = ""


class PersonalDataUpdate(SQLModel):
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    address: str = ""


class PersonalDataRead(SQLModel):
    first_name: str
    last_name: str
    phone: str
    address: str
    brand_name: str


class TenantRead(SQLModel):
    id: uuid.UUID
    brand_name: str | None
    brand_slug: str | None
    admin_path: str | None
    public_path: str | None
    logo_url: str | None
    onboarding_complete: bool


class PublicStoreRead(SQLModel):
    """The subset of a tenant visible without authentication."""
    brand_name: str | None
    phone: str | None
    address: str | None
    logo: str | None
