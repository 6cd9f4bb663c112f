"""Onboarding: binds the signed-in principal to a brand slug, once."""

from fastapi import APIRouter

from app.api.deps import Auth, Directory
from app.api.envelope import OkResponse
from app.models.tenant import OnboardingCreate, TenantRead

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


class OnboardingResponse(OkResponse):
    tenant: TenantRead
    redirect_to: str


@router.post("", response_model=OnboardingResponse)
async def submit_onboarding(
    body: OnboardingCreate,
    auth: Auth,
    directory: Directory,
) -> OnboardingResponse:
    """Validate the form, derive the slug and persist it.

    Re-submitting the same brand is a no-op; a different brand is a 409.
    """
    tenant = await directory.complete_onboarding(auth.principal_id, **body.model_dump())
    return OnboardingResponse(
        tenant=TenantRead.model_validate(tenant),
        redirect_to=tenant.admin_path or "/",
    )
