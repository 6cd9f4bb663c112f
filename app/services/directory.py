"""Tenant directory: the single authority tying a principal to its brand.

The relational store is the source of truth. The identity provider's
metadata bag is a denormalized copy: it is written after the durable record
and refreshed from it on ``touch`` when the two disagree.

Every operation takes the principal id explicitly; nothing here reads
request-global state.
"""

import json
import logging
import uuid
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import (
    ConflictError,
    NotFoundError,
    OnboardingRequiredError,
    UpstreamFailure,
    ValidationError,
)
from app.models.base import new_uuid, utcnow
from app.models.employee import Employee
from app.models.rating import RatingConfig, RatingSubmission
from app.models.tenant import PersonalDataRead, PublicStoreRead, Tenant
from app.services.identity import IdentityGateway, MetadataValue, Principal
from app.services.slug import build_admin_path, build_store_path, slugify_brand
from app.services.validation import (
    validate_employee,
    validate_onboarding,
    validate_personal_data,
    validate_rating_features,
)

logger = logging.getLogger(__name__)

STORE_READ_FAILED = "No se pudo leer la informacion. Intenta de nuevo."
STORE_WRITE_FAILED = "No se pudieron guardar los cambios. Intenta de nuevo."
WRITE_CONFLICT = "Los datos cambiaron mientras se guardaban. Intenta de nuevo."
SLUG_TAKEN = "Ya existe un restaurante con ese nombre."

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def tenant_metadata(tenant: Tenant) -> dict[str, MetadataValue]:
    """The metadata bag an onboarded tenant should carry."""
    full_name = " ".join(p for p in (tenant.first_name, tenant.last_name) if p)
    return {
        "onboardingComplete": tenant.onboarding_complete,
        "firstName": tenant.first_name or "",
        "lastName": tenant.last_name or "",
        "fullName": full_name,
        "phone": tenant.phone or "",
        "address": tenant.address or "",
        "brandName": tenant.brand_name or "",
        "brandSlug": tenant.brand_slug or "",
        "adminPath": tenant.admin_path or "",
        "storePath": tenant.public_path or "",
    }


def _metadata_drifted(principal: Principal, tenant: Tenant) -> bool:
    if not tenant.onboarding_complete:
        return False
    return (
        not principal.onboarding_complete
        or principal.metadata_str("brandSlug") != tenant.brand_slug
    )


def parse_features(raw: str | None) -> list[str]:
    try:
        features = json.loads(raw or "[]")
    except json.JSONDecodeError:
        return []
    return [f for f in features if isinstance(f, str)] if isinstance(features, list) else []


class TenantDirectory:
    def __init__(self, session: AsyncSession, identity: IdentityGateway | None = None) -> None:
        self.session = session
        self.identity = identity

    # ── Store access ─────────────────────────────────────────

    async def _execute(self, stmt):
        try:
            return await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning("Record store request failed", exc_info=exc)
            raise UpstreamFailure(STORE_READ_FAILED) from exc

    async def _commit(self, conflict_message: str = WRITE_CONFLICT) -> None:
        """Commit; a unique-constraint violation becomes a ConflictError."""
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.info("Record store write conflict", exc_info=exc)
            raise ConflictError(conflict_message) from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning("Record store write failed", exc_info=exc)
            raise UpstreamFailure(STORE_WRITE_FAILED) from exc

    def _require_identity(self) -> IdentityGateway:
        if self.identity is None:
            raise RuntimeError("TenantDirectory needs an identity gateway for this operation")
        return self.identity

    async def _push_metadata(self, principal_id: str, partial: dict[str, MetadataValue]) -> None:
        await self._require_identity().patch_metadata(principal_id, partial)

    # ── Lookup ───────────────────────────────────────────────

    async def get_tenant(self, principal_id: str) -> Tenant | None:
        stmt = (
            select(Tenant)
            .where(Tenant.principal_id == principal_id)
            .execution_options(populate_existing=True)
        )
        result = await self._execute(stmt)
        return result.scalar_one_or_none()

    async def require_tenant(self, principal_id: str) -> Tenant:
        tenant = await self.get_tenant(principal_id)
        if tenant is None:
            raise NotFoundError("No se encontro la cuenta.")
        return tenant

    async def require_onboarded(self, principal_id: str) -> Tenant:
        tenant = await self.get_tenant(principal_id)
        if tenant is None or not tenant.onboarding_complete or not tenant.brand_slug:
            raise OnboardingRequiredError()
        return tenant

    async def find_by_slug(self, brand_slug: str) -> Tenant | None:
        """Resolve a public key to its tenant; None when nobody owns it."""
        stmt = select(Tenant).where(
            Tenant.brand_slug == brand_slug,
            Tenant.onboarding_complete.is_(True),  # type: ignore[union-attr]
        )
        result = await self._execute(stmt)
        return result.scalar_one_or_none()

    async def public_profile(self, brand_slug: str) -> PublicStoreRead | None:
        tenant = await self.find_by_slug(brand_slug)
        if tenant is None:
            return None
        return PublicStoreRead(
            brand_name=tenant.brand_name,
            phone=tenant.phone,
            address=tenant.address,
            logo=tenant.logo_url,
        )

    async def roster_for_slug(self, brand_slug: str) -> list[Employee]:
        tenant = await self.find_by_slug(brand_slug)
        if tenant is None:
            return []
        return await self.list_employees(tenant.principal_id)

    async def features_for_slug(self, brand_slug: str) -> list[str]:
        tenant = await self.find_by_slug(brand_slug)
        if tenant is None:
            return []
        return await self._features_for_tenant(tenant.id)

    # ── Shell lifecycle ──────────────────────────────────────

    async def upsert_shell(self, principal_id: str, email: str | None) -> Tenant:
        """Ensure exactly one row per principal and bump ``last_seen_at``.

        A single INSERT .. ON CONFLICT keyed on principal_id, so concurrent
        first requests cannot produce two rows.
        """
        dialect = self.session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise RuntimeError(f"Unsupported database dialect: {dialect}")

        now = utcnow()
        stmt = insert(Tenant).values(
            id=new_uuid(),
            principal_id=principal_id,
            email=email,
            onboarding_complete=False,
            last_seen_at=now,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["principal_id"],
            set_={"email": stmt.excluded.email, "last_seen_at": stmt.excluded.last_seen_at},
        )
        await self._execute(stmt)
        await self._commit()
        return await self.require_tenant(principal_id)

    async def touch(self, principal_id: str) -> Tenant:
        """Called on every authenticated request."""
        principal = await self._require_identity().get_principal(principal_id)
        tenant = await self.upsert_shell(principal_id, principal.email)

        if _metadata_drifted(principal, tenant):
            logger.info("Refreshing identity metadata for %s from tenant record", principal_id)
            try:
                await self._push_metadata(principal_id, tenant_metadata(tenant))
            except UpstreamFailure:
                # The record stays authoritative; the next touch retries
                logger.warning("Metadata refresh failed for %s", principal_id)
        return tenant

    async def delete_principal(self, principal_id: str) -> bool:
        """Remove the tenant and everything it owns. False if nothing existed."""
        tenant = await self.get_tenant(principal_id)
        if tenant is None:
            return False
        await self._execute(delete(RatingSubmission).where(RatingSubmission.tenant_id == tenant.id))
        await self._execute(delete(RatingConfig).where(RatingConfig.tenant_id == tenant.id))
        await self._execute(delete(Employee).where(Employee.tenant_id == tenant.id))
        await self._execute(delete(Tenant).where(Tenant.id == tenant.id))
        await self._commit()
        logger.info("Deleted tenant %s for principal %s", tenant.id, principal_id)
        return True

    # ── Onboarding & profile ─────────────────────────────────

    async def complete_onboarding(self, principal_id: str, **raw: Any) -> Tenant:
        result = validate_onboarding(
            raw.get("first_name"),
            raw.get("last_name"),
            raw.get("phone"),
            raw.get("address"),
            raw.get("brand_name"),
        )
        if not result.valid:
            raise ValidationError(result.errors)

        values = result.values
        brand_slug = slugify_brand(values["brand_name"])

        tenant = await self.get_tenant(principal_id)
        if tenant is None:
            tenant = await self.touch(principal_id)

        if tenant.onboarding_complete:
            if tenant.brand_slug != brand_slug:
                raise ConflictError("La marca ya fue registrada y no se puede cambiar.")
            # Same brand again: nothing new to persist, but heal the metadata copy
            await self._push_metadata(principal_id, tenant_metadata(tenant))
            return tenant

        owner = await self.find_by_slug(brand_slug)
        if owner is not None and owner.principal_id != principal_id:
            raise ConflictError(SLUG_TAKEN)

        tenant.first_name = values["first_name"]
        tenant.last_name = values["last_name"]
        tenant.phone = values["phone"]
        tenant.address = values["address"]
        tenant.brand_name = values["brand_name"]
        tenant.brand_slug = brand_slug
        tenant.admin_path = build_admin_path(brand_slug)
        tenant.public_path = build_store_path(brand_slug)
        tenant.onboarding_complete = True
        tenant.updated_at = utcnow()
        self.session.add(tenant)
        # Another principal may claim the slug between our check and the write
        await self._commit(conflict_message=SLUG_TAKEN)
        await self.session.refresh(tenant)

        logger.info("Principal %s onboarded as %s", principal_id, brand_slug)
        await self._push_metadata(principal_id, tenant_metadata(tenant))
        return tenant

    async def get_personal_data(self, principal_id: str) -> PersonalDataRead:
        tenant = await self.require_tenant(principal_id)
        return PersonalDataRead(
            first_name=tenant.first_name or "",
            last_name=tenant.last_name or "",
            phone=tenant.phone or "",
            address=tenant.address or "",
            brand_name=tenant.brand_name or "",
        )

    async def update_personal_data(self, principal_id: str, **raw: Any) -> PersonalDataRead:
        """Edit name / phone / address. The brand is fixed after onboarding."""
        tenant = await self.require_onboarded(principal_id)
        result = validate_personal_data(
            raw.get("first_name"), raw.get("last_name"), raw.get("phone"), raw.get("address"),
        )
        if not result.valid:
            raise ValidationError(result.errors, message="Revisa los datos personales.")

        for key, value in result.values.items():
            setattr(tenant, key, value)
        tenant.updated_at = utcnow()
        self.session.add(tenant)
        await self._commit()
        await self.session.refresh(tenant)

        values = result.values
        await self._push_metadata(principal_id, {
            "firstName": values["first_name"],
            "lastName": values["last_name"],
            "fullName": f"{values['first_name']} {values['last_name']}".strip(),
            "phone": values["phone"],
            "address": values["address"],
        })
        return PersonalDataRead(**values, brand_name=tenant.brand_name or "")

    async def set_logo(self, principal_id: str, logo_url: str) -> Tenant:
        tenant = await self.require_onboarded(principal_id)
        tenant.logo_url = logo_url
        tenant.updated_at = utcnow()
        self.session.add(tenant)
        await self._commit()
        await self.session.refresh(tenant)
        return tenant

    async def get_logo(self, principal_id: str) -> str | None:
        tenant = await self.require_tenant(principal_id)
        return tenant.logo_url

    # ── Rating configuration ─────────────────────────────────

    async def _features_for_tenant(self, tenant_id: uuid.UUID) -> list[str]:
        result = await self._execute(select(RatingConfig).where(RatingConfig.tenant_id == tenant_id))
        config = result.scalar_one_or_none()
        return parse_features(config.features) if config else []

    async def get_rating_features(self, principal_id: str) -> list[str]:
        tenant = await self.require_tenant(principal_id)
        return await self._features_for_tenant(tenant.id)

    async def save_rating_features(self, principal_id: str, features: Any) -> list[str]:
        """Replace the whole list. A rejected list leaves the stored one untouched."""
        result = validate_rating_features(features)
        if not result.valid:
            raise ValidationError(result.errors)

        tenant = await self.require_tenant(principal_id)
        labels: list[str] = result.values["features"]

        existing = await self._execute(select(RatingConfig).where(RatingConfig.tenant_id == tenant.id))
        config = existing.scalar_one_or_none()
        if config is None:
            config = RatingConfig(tenant_id=tenant.id)
        config.features = json.dumps(labels, ensure_ascii=False)
        config.updated_at = utcnow()
        self.session.add(config)
        await self._commit()
        return labels

    # ── Employees ────────────────────────────────────────────

    async def list_employees(self, principal_id: str) -> list[Employee]:
        stmt = (
            select(Employee)
            .where(Employee.principal_id == principal_id)
            .order_by(Employee.created_at.desc())  # type: ignore[union-attr]
        )
        result = await self._execute(stmt)
        return list(result.scalars().all())

    def check_employee_fields(self, raw: dict[str, Any]) -> dict[str, str]:
        result = validate_employee(
            raw.get("first_name"),
            raw.get("last_name"),
            raw.get("dni"),
            raw.get("phone"),
            raw.get("mercadopago_link"),
        )
        if not result.valid:
            raise ValidationError(result.errors)
        return result.values

    async def create_employee(
        self, principal_id: str, photo_url: str | None = None, **raw: Any,
    ) -> Employee:
        values = self.check_employee_fields(raw)
        tenant = await self.require_tenant(principal_id)

        employee = Employee(
            tenant_id=tenant.id,
            principal_id=principal_id,
            photo_url=photo_url,
            **values,
        )
        self.session.add(employee)
        await self._commit()
        await self.session.refresh(employee)
        return employee

    async def update_employee(
        self,
        principal_id: str,
        employee_id: uuid.UUID,
        photo_url: str | None = None,
        **raw: Any,
    ) -> Employee:
        """Ownership lives in the WHERE clause: id AND principal_id."""
        values = self.check_employee_fields(raw)
        await self.require_tenant(principal_id)

        stmt = (
            update(Employee)
            .where(Employee.id == employee_id, Employee.principal_id == principal_id)
            .values(**values, photo_url=photo_url, updated_at=utcnow())
        )
        result = await self._execute(stmt)
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError("Mozo no encontrado.")
        await self._commit()

        fetched = await self._execute(
            select(Employee)
            .where(Employee.id == employee_id)
            .execution_options(populate_existing=True)
        )
        return fetched.scalar_one()

    async def delete_employee(self, principal_id: str, employee_id: uuid.UUID) -> None:
        await self.require_tenant(principal_id)
        result = await self._execute(
            delete(Employee).where(Employee.id == employee_id, Employee.principal_id == principal_id)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError("Mozo no encontrado.")
        await self._commit()
