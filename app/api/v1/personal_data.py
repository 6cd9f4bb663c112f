"""Owner profile: name, phone and address. The brand is read-only here."""

from fastapi import APIRouter

from app.api.deps import Auth, Directory
from app.api.envelope import OkResponse
from app.models.tenant import PersonalDataRead, PersonalDataUpdate

router = APIRouter(prefix="/admin/personal-data", tags=["admin"])


class PersonalDataResponse(OkResponse):
    personal_data: PersonalDataRead


@router.get("", response_model=PersonalDataResponse)
async def get_personal_data(auth: Auth, directory: Directory) -> PersonalDataResponse:
    data = await directory.get_personal_data(auth.principal_id)
    return PersonalDataResponse(personal_data=data)


@router.patch("", response_model=PersonalDataResponse)
async def update_personal_data(
    body: PersonalDataUpdate,
    auth: Auth,
    directory: Directory,
) -> PersonalDataResponse:
    data = await directory.update_personal_data(auth.principal_id, **body.model_dump())
    return PersonalDataResponse(personal_data=data)
