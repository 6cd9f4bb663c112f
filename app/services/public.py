"""Unauthenticated read path for a brand page, plus anonymous rating writes."""

import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.errors import NotFoundError, UpstreamFailure, ValidationError
from app.models.employee import Employee, PublicWaiterRead
from app.models.rating import RatingSubmission
from app.models.tenant import PublicStoreRead
from app.services.directory import TenantDirectory
from app.services.validation import validate_rating_submission

logger = logging.getLogger(__name__)


@dataclass
class PublicBundle:
    store: PublicStoreRead | None = None
    waiters: list[PublicWaiterRead] = field(default_factory=list)
    rating_features: list[str] = field(default_factory=list)


def display_name(first_name: str, last_name: str) -> str:
    """Public label for a waiter: ("Juan", "Perez") -> "Juan P."."""
    initial = last_name.strip()[:1].upper()
    return f"{first_name.strip()} {initial}." if initial else first_name.strip()


def to_public_waiter(employee: Employee) -> PublicWaiterRead:
    return PublicWaiterRead(
        id=employee.id,
        first_name=employee.first_name,
        display_name=display_name(employee.first_name, employee.last_name),
        photo=employee.photo_url,
        mercadopago_link=employee.mercadopago_link,
    )


class PublicResolver:
    """Aggregates the public view of a brand.

    The three lookups run concurrently, each in its own session, and each
    degrades to its empty form on its own. There is no snapshot across them.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    async def _profile(self, brand_slug: str) -> PublicStoreRead | None:
        async with self.session_factory() as session:
            return await TenantDirectory(session).public_profile(brand_slug)

    async def _roster(self, brand_slug: str) -> list[PublicWaiterRead]:
        async with self.session_factory() as session:
            employees = await TenantDirectory(session).roster_for_slug(brand_slug)
        return [to_public_waiter(e) for e in employees]

    async def _features(self, brand_slug: str) -> list[str]:
        async with self.session_factory() as session:
            return await TenantDirectory(session).features_for_slug(brand_slug)

    async def resolve_bundle(self, brand_slug: str) -> PublicBundle:
        store, waiters, features = await asyncio.gather(
            self._profile(brand_slug),
            self._roster(brand_slug),
            self._features(brand_slug),
        )
        return PublicBundle(store=store, waiters=waiters, rating_features=features)


async def submit_rating(
    session: AsyncSession,
    brand_slug: str,
    stars: object,
    comment: object,
) -> RatingSubmission:
    """Append one anonymous rating, checked against the current features."""
    directory = TenantDirectory(session)
    tenant = await directory.find_by_slug(brand_slug)
    if tenant is None:
        raise NotFoundError("Restaurante no encontrado.")

    features = await directory.features_for_slug(brand_slug)
    result = validate_rating_submission(stars, comment, configured_count=len(features))
    if not result.valid:
        raise ValidationError(result.errors)

    s1, s2, s3, s4, s5 = result.values["scores"]
    submission = RatingSubmission(
        tenant_id=tenant.id,
        brand_slug=brand_slug,
        score_1=s1,
        score_2=s2,
        score_3=s3,
        score_4=s4,
        score_5=s5,
        comment=result.values["comment"],
    )
    session.add(submission)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning("Rating write failed for %s", brand_slug, exc_info=exc)
        raise UpstreamFailure("No se pudo guardar la calificacion.") from exc
    await session.refresh(submission)
    logger.info("Rating stored for %s", brand_slug)
    return submission
