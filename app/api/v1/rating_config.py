"""Rating criteria an owner asks customers to score."""

from fastapi import APIRouter

from app.api.deps import Auth, Directory
from app.api.envelope import OkResponse
from app.models.rating import RatingConfigWrite

router = APIRouter(prefix="/admin/rating-config", tags=["admin"])


class RatingConfigResponse(OkResponse):
    features: list[str]


@router.get("", response_model=RatingConfigResponse)
async def get_rating_config(auth: Auth, directory: Directory) -> RatingConfigResponse:
    features = await directory.get_rating_features(auth.principal_id)
    return RatingConfigResponse(features=features)


@router.patch("", response_model=RatingConfigResponse)
async def update_rating_config(
    body: RatingConfigWrite,
    auth: Auth,
    directory: Directory,
) -> RatingConfigResponse:
    """Replace the whole list (max 5 labels, blanks dropped)."""
    features = await directory.save_rating_features(auth.principal_id, body.features)
    return RatingConfigResponse(features=features)
