"""Employee (waiter) model: staff registered under a tenant, tipped via Mercado Pago."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import PrincipalOwnedMixin, TimestampMixin, new_uuid


class Employee(PrincipalOwnedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "employees"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)

    first_name: str = Field(max_length=60, nullable=False)
    last_name: str = Field(max_length=60, nullable=False)
    dni: str = Field(max_length=20, nullable=False)
    phone: str = Field(max_length=24, nullable=False)
    mercadopago_link: str = Field(max_length=2048, nullable=False)
    photo_url: str | None = Field(default=None, max_length=2048)


# ── Pydantic schemas ─────────────────────────────────────────

class EmployeeWrite(SQLModel):
    """Create / update body. ``image`` is either a data URL or an existing URL."""
    first_name: str = ""
    last_name: str = ""
    dni: str = ""
    phone: str = ""
    mercadopago_link: str = ""
    image: str | None = None


class EmployeeRead(SQLModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    dni: str
    phone: str
    mercadopago_link: str
    photo: str | None
    created_at: datetime


class PublicWaiterRead(SQLModel):
    """Roster entry shown on the public brand page."""
    id: uuid.UUID
    first_name: str
    display_name: str = Field(description='First name plus last initial, e.g. "Juan P."')
    photo: str | None
    mercadopago_link: str
