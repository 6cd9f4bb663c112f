"""Public brand page data and anonymous ratings (no authentication)."""

from fastapi import APIRouter, status

from app.api.deps import Session, SessionFactory
from app.api.envelope import OkResponse
from app.models.employee import PublicWaiterRead
from app.models.rating import RatingSubmissionCreate
from app.models.tenant import PublicStoreRead
from app.services.public import PublicResolver, submit_rating

router = APIRouter(prefix="/public", tags=["public"])


class PublicBrandResponse(OkResponse):
    store: PublicStoreRead | None
    waiters: list[PublicWaiterRead]
    rating_features: list[str]


@router.get("/{brand_slug}", response_model=PublicBrandResponse)
async def get_public_brand(brand_slug: str, session_factory: SessionFactory) -> PublicBrandResponse:
    """Unknown slugs return an empty bundle rather than a 404."""
    bundle = await PublicResolver(session_factory).resolve_bundle(brand_slug)
    return PublicBrandResponse(
        store=bundle.store,
        waiters=bundle.waiters,
        rating_features=bundle.rating_features,
    )


@router.post(
    "/{brand_slug}/rating",
    response_model=OkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_rating(
    brand_slug: str,
    body: RatingSubmissionCreate,
    session: Session,
) -> OkResponse:
    await submit_rating(session, brand_slug, body.stars, body.comment)
    return OkResponse()
