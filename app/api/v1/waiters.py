"""Waiter roster CRUD: every query scoped to the signed-in principal."""

import uuid

from fastapi import APIRouter, status

from app.api.deps import Auth, Directory, PrincipalContext, Uploader
from app.api.envelope import OkResponse
from app.core.errors import OnboardingRequiredError, ValidationError
from app.models.employee import Employee, EmployeeRead, EmployeeWrite
from app.services.assets import AssetUploader

router = APIRouter(prefix="/admin/waiters", tags=["admin"])

DATA_URL_PREFIX = "data:image/"


class WaiterResponse(OkResponse):
    waiter: EmployeeRead


class WaiterListResponse(OkResponse):
    waiters: list[EmployeeRead]


def _to_read(employee: Employee) -> EmployeeRead:
    return EmployeeRead(
        id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        dni=employee.dni,
        phone=employee.phone,
        mercadopago_link=employee.mercadopago_link,
        photo=employee.photo_url,
        created_at=employee.created_at,
    )


async def _store_photo(auth: PrincipalContext, uploader: AssetUploader, data_url: str) -> str:
    brand_slug = auth.tenant.brand_slug
    if not brand_slug:
        raise OnboardingRequiredError("No se encontro la marca para guardar la foto del mozo.")
    asset = await uploader.upload_employee_photo(brand_slug, data_url)
    return asset.url


def _fields(body: EmployeeWrite) -> dict:
    return body.model_dump(exclude={"image"})


@router.get("", response_model=WaiterListResponse)
async def list_waiters(auth: Auth, directory: Directory) -> WaiterListResponse:
    employees = await directory.list_employees(auth.principal_id)
    return WaiterListResponse(waiters=[_to_read(e) for e in employees])


@router.post("", response_model=WaiterResponse, status_code=status.HTTP_201_CREATED)
async def create_waiter(
    body: EmployeeWrite,
    auth: Auth,
    directory: Directory,
    uploader: Uploader,
) -> WaiterResponse:
    # Validate before uploading so a bad form never leaves a stray photo
    directory.check_employee_fields(_fields(body))

    photo_url = None
    if body.image and body.image.strip():
        photo_url = await _store_photo(auth, uploader, body.image)

    employee = await directory.create_employee(auth.principal_id, photo_url=photo_url, **_fields(body))
    return WaiterResponse(waiter=_to_read(employee))


@router.patch("/{waiter_id}", response_model=WaiterResponse)
async def update_waiter(
    waiter_id: uuid.UUID,
    body: EmployeeWrite,
    auth: Auth,
    directory: Directory,
    uploader: Uploader,
) -> WaiterResponse:
    """``image`` may be a new data URL, the current photo URL, or null to clear it."""
    directory.check_employee_fields(_fields(body))

    photo_url = body.image.strip() if body.image and body.image.strip() else None
    if photo_url and photo_url.startswith(DATA_URL_PREFIX):
        photo_url = await _store_photo(auth, uploader, photo_url)
    elif photo_url and not uploader.owns_url(auth.tenant.brand_slug or "", photo_url):
        raise ValidationError({"image": "La foto debe ser una imagen subida a MiPropina."})

    employee = await directory.update_employee(
        auth.principal_id, waiter_id, photo_url=photo_url, **_fields(body),
    )
    return WaiterResponse(waiter=_to_read(employee))


@router.delete("/{waiter_id}", response_model=OkResponse)
async def delete_waiter(
    waiter_id: uuid.UUID,
    auth: Auth,
    directory: Directory,
) -> OkResponse:
    await directory.delete_employee(auth.principal_id, waiter_id)
    return OkResponse()
