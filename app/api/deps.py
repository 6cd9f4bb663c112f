"""FastAPI dependencies for authentication and tenant resolution."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.config import get_settings
from app.core.database import get_session, get_session_factory
from app.core.errors import AuthorizationError
from app.models.tenant import Tenant
from app.services.assets import AssetUploader
from app.services.directory import TenantDirectory
from app.services.identity import IdentityGateway, get_identity_gateway
from app.services.storage import BlobStore, get_blob_store

# auto_error=False: a missing header becomes our own 401 envelope
bearer_scheme = HTTPBearer(auto_error=False)


class PrincipalContext:
    """Resolved identity carried through a request."""

    __slots__ = ("principal_id", "tenant")

    def __init__(self, principal_id: str, tenant: Tenant) -> None:
        self.principal_id = principal_id
        self.tenant = tenant


Session = Annotated[AsyncSession, Depends(get_session)]
SessionFactory = Annotated[sessionmaker, Depends(get_session_factory)]
Identity = Annotated[IdentityGateway, Depends(get_identity_gateway)]
Blobs = Annotated[BlobStore, Depends(get_blob_store)]


def get_directory(session: Session, identity: Identity) -> TenantDirectory:
    return TenantDirectory(session, identity)


Directory = Annotated[TenantDirectory, Depends(get_directory)]


async def get_principal_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    identity: Identity,
    directory: Directory,
) -> PrincipalContext:
    """Authenticate the bearer session token and touch the tenant shell."""
    token = credentials.credentials if credentials else None
    principal_id = await identity.authenticate(token)
    if principal_id is None:
        raise AuthorizationError()

    tenant = await directory.touch(principal_id)
    return PrincipalContext(principal_id=principal_id, tenant=tenant)


def get_uploader(store: Blobs) -> AssetUploader:
    return AssetUploader(store)


def get_webhook_secret() -> str:
    return get_settings().clerk_webhook_secret


# Typed shorthand for use in route signatures
Auth = Annotated[PrincipalContext, Depends(get_principal_context)]
Uploader = Annotated[AssetUploader, Depends(get_uploader)]
WebhookSecret = Annotated[str, Depends(get_webhook_secret)]
