"""Identity gateway: authentication and the per-principal metadata bag.

The rest of the app depends on the ``IdentityGateway`` protocol only.
``ClerkIdentityGateway`` is the production implementation: session tokens
are verified locally with the instance's PEM key, users and metadata go
through the Clerk Backend API.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

import httpx
from jose import JWTError

from app.core.config import get_settings
from app.core.errors import UpstreamFailure
from app.core.security import decode_session_token

logger = logging.getLogger(__name__)

MetadataValue = str | bool

IDENTITY_FAILED = "No se pudo contactar al servicio de cuentas. Intenta de nuevo."


@dataclass
class Principal:
    id: str
    email: str | None
    metadata: dict[str, MetadataValue] = field(default_factory=dict)

    def metadata_str(self, key: str) -> str | None:
        value = self.metadata.get(key)
        return value if isinstance(value, str) and value else None

    @property
    def onboarding_complete(self) -> bool:
        return self.metadata.get("onboardingComplete") is True


class IdentityGateway(Protocol):
    async def authenticate(self, token: str | None) -> str | None: ...

    async def get_principal(self, principal_id: str) -> Principal: ...

    async def patch_metadata(self, principal_id: str, partial: dict[str, MetadataValue]) -> None: ...


def primary_email(user: dict) -> str | None:
    """Pick the primary address from a Clerk user payload, else the first one."""
    addresses = user.get("email_addresses") or []
    primary_id = user.get("primary_email_address_id")
    for address in addresses:
        if primary_id and address.get("id") == primary_id:
            return address.get("email_address")
    return addresses[0].get("email_address") if addresses else None


def principal_from_payload(user: dict) -> Principal:
    metadata = user.get("public_metadata") or {}
    return Principal(
        id=user["id"],
        email=primary_email(user),
        metadata={k: v for k, v in metadata.items() if isinstance(v, (str, bool))},
    )


class ClerkIdentityGateway:
    """Clerk-backed gateway. Every call is a single attempt; no retries."""

    def __init__(self, api_url: str, secret_key: str) -> None:
        self.api_url = api_url.rstrip("/")
        self.secret_key = secret_key

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def authenticate(self, token: str | None) -> str | None:
        if not token:
            return None
        try:
            claims = decode_session_token(token)
        except JWTError:
            logger.info("Rejected session token")
            return None
        subject = claims.get("sub")
        return subject if isinstance(subject, str) and subject else None

    async def get_principal(self, principal_id: str) -> Principal:
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(
                    f"{self.api_url}/users/{principal_id}", headers=self._headers()
                )
        except httpx.HTTPError as exc:
            logger.warning("Identity request for %s failed", principal_id, exc_info=exc)
            raise UpstreamFailure(IDENTITY_FAILED) from exc
        if not resp.is_success:
            logger.warning(
                "Identity request for %s failed (%s): %s", principal_id, resp.status_code, resp.text,
            )
            raise UpstreamFailure(IDENTITY_FAILED, upstream_status=resp.status_code)
        return principal_from_payload(resp.json())

    async def patch_metadata(self, principal_id: str, partial: dict[str, MetadataValue]) -> None:
        # Clerk deep-merges public_metadata, so a partial map is enough
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.patch(
                    f"{self.api_url}/users/{principal_id}/metadata",
                    json={"public_metadata": partial},
                    headers=self._headers(),
                )
        except httpx.HTTPError as exc:
            logger.warning("Metadata update for %s failed", principal_id, exc_info=exc)
            raise UpstreamFailure(IDENTITY_FAILED) from exc
        if not resp.is_success:
            logger.warning(
                "Metadata update for %s failed (%s): %s", principal_id, resp.status_code, resp.text,
            )
            raise UpstreamFailure(IDENTITY_FAILED, upstream_status=resp.status_code)


def get_identity_gateway() -> IdentityGateway:
    """FastAPI dependency; tests override it with an in-memory fake."""
    settings = get_settings()
    return ClerkIdentityGateway(settings.clerk_api_url, settings.clerk_secret_key)
