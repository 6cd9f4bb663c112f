"""Brand logo upload: one stable object per tenant."""

from fastapi import APIRouter, UploadFile

from app.api.deps import Auth, Directory, Uploader
from app.api.envelope import OkResponse
from app.core.errors import OnboardingRequiredError

router = APIRouter(prefix="/admin/logo", tags=["admin"])


class LogoResponse(OkResponse):
    image_url: str | None


class LogoUploadResponse(LogoResponse):
    object_path: str
    bucket: str


@router.get("", response_model=LogoResponse)
async def get_logo(auth: Auth, directory: Directory) -> LogoResponse:
    return LogoResponse(image_url=await directory.get_logo(auth.principal_id))


@router.post("", response_model=LogoUploadResponse)
async def upload_logo(
    file: UploadFile,
    auth: Auth,
    directory: Directory,
    uploader: Uploader,
) -> LogoUploadResponse:
    brand_slug = auth.tenant.brand_slug
    if not brand_slug:
        raise OnboardingRequiredError("Falta la marca del restaurante.")

    content = await file.read()
    asset = await uploader.upload_logo(brand_slug, content, file.content_type, file.filename)
    await directory.set_logo(auth.principal_id, asset.url)

    return LogoUploadResponse(image_url=asset.url, object_path=asset.path, bucket=asset.bucket)
