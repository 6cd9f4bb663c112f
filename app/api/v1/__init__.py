"""V1 API router aggregation."""

from fastapi import APIRouter

from app.api.v1.logo import router as logo_router
from app.api.v1.onboarding import router as onboarding_router
from app.api.v1.personal_data import router as personal_data_router
from app.api.v1.public import router as public_router
from app.api.v1.rating_config import router as rating_config_router
from app.api.v1.waiters import router as waiters_router
from app.api.v1.webhooks import router as webhooks_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(onboarding_router)
v1_router.include_router(personal_data_router)
v1_router.include_router(rating_config_router)
v1_router.include_router(waiters_router)
v1_router.include_router(logo_router)
v1_router.include_router(public_router)
v1_router.include_router(webhooks_router)
