"""Blob storage gateway: Supabase Storage over its REST API."""

import logging
from typing import Protocol
from urllib.parse import quote

import httpx

from app.core.config import get_settings
from app.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)

UPLOAD_FAILED = "No se pudo subir la imagen. Intenta de nuevo."


class BlobStore(Protocol):
    async def put_object(self, bucket: str, path: str, data: bytes, content_type: str) -> None: ...

    def get_public_url(self, bucket: str, path: str) -> str: ...


class SupabaseStorage:
    """Uploads with ``x-upsert`` so a stable path overwrites the previous object."""

    def __init__(self, base_url: str, service_role_key: str) -> None:
        self.base_url = base_url.rstrip("/")
        self.service_role_key = service_role_key

    async def put_object(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        if not self.base_url or not self.service_role_key:
            logger.error("Storage is not configured")
            raise UpstreamFailure(UPLOAD_FAILED)

        url = f"{self.base_url}/storage/v1/object/{bucket}/{quote(path)}"
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    url,
                    content=data,
                    headers={
                        "apikey": self.service_role_key,
                        "Authorization": f"Bearer {self.service_role_key}",
                        "Content-Type": content_type,
                        "x-upsert": "true",
                    },
                )
        except httpx.HTTPError as exc:
            logger.warning("Storage upload to %s/%s failed", bucket, path, exc_info=exc)
            raise UpstreamFailure(UPLOAD_FAILED) from exc

        if not resp.is_success:
            logger.warning(
                "Storage upload failed (%s) [bucket=%s path=%s]: %s",
                resp.status_code, bucket, path, resp.text,
            )
            raise UpstreamFailure(UPLOAD_FAILED, upstream_status=resp.status_code)
        logger.info("Stored %d bytes at %s/%s", len(data), bucket, path)

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{path}"


def get_blob_store() -> BlobStore:
    """FastAPI dependency; tests override it with an in-memory fake."""
    settings = get_settings()
    return SupabaseStorage(settings.supabase_url, settings.supabase_service_role_key)
