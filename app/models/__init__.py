"""Import all models so SQLModel.metadata picks them up."""

from app.models.employee import Employee, EmployeeRead, EmployeeWrite, PublicWaiterRead
from app.models.rating import (
    RATING_SLOTS,
    RatingConfig,
    RatingConfigWrite,
    RatingSubmission,
    RatingSubmissionCreate,
)
from app.models.tenant import (
    OnboardingCreate,
    PersonalDataRead,
    PersonalDataUpdate,
    PublicStoreRead,
    Tenant,
    TenantRead,
)

__all__ = [
    "RATING_SLOTS",
    "Employee",
    "EmployeeRead",
    "EmployeeWrite",
    "OnboardingCreate",
    "PersonalDataRead",
    "PersonalDataUpdate",
    "PublicStoreRead",
    "PublicWaiterRead",
    "RatingConfig",
    "RatingConfigWrite",
    "RatingSubmission",
    "RatingSubmissionCreate",
    "Tenant",
    "TenantRead",
]
