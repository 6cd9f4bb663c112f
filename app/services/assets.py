"""Image uploads scoped to a tenant's storage namespace."""

import base64
import binascii
import re
import uuid
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

from app.core.config import get_settings
from app.core.errors import MalformedPayloadError, ValidationError
from app.services.slug import strip_diacritics
from app.services.storage import BlobStore

DATA_URL_REGEX = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,(.+)$", re.DOTALL)

MAX_BASENAME_LENGTH = 80
MAX_EXTENSION_LENGTH = 10
DEFAULT_BASENAME = "logo"


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    content_type: str
    extension: str


@dataclass(frozen=True)
class StoredAsset:
    bucket: str
    path: str
    url: str


def normalize_filename(filename: str) -> str:
    """Make an uploaded filename safe for object paths.

    >>> normalize_filename("Logo Café.PNG")
    'logo-cafe.png'
    """
    trimmed = filename.strip()
    if not trimmed:
        return DEFAULT_BASENAME

    base, dot, extension = trimmed.rpartition(".")
    if not dot:
        base, extension = trimmed, ""

    safe_base = re.sub(r"[^a-z0-9_-]+", "-", strip_diacritics(base.lower()))
    safe_base = safe_base.strip("-")[:MAX_BASENAME_LENGTH] or DEFAULT_BASENAME
    safe_extension = re.sub(r"[^a-z0-9]+", "", extension.lower())[:MAX_EXTENSION_LENGTH]

    if not safe_extension:
        return safe_base
    return f"{safe_base}.{safe_extension}"


def _extension_for(content_type: str) -> str:
    subtype = content_type.split("/", 1)[1] if "/" in content_type else ""
    return re.sub(r"[^a-z0-9]", "", subtype.lower()) or "jpg"


def parse_image_data_url(data_url: str) -> ImagePayload:
    """Decode ``data:image/<type>;base64,<payload>``.

    Raises MalformedPayloadError for anything else, including bad base64.
    """
    match = DATA_URL_REGEX.match(data_url.strip())
    if match is None:
        raise MalformedPayloadError("Formato de imagen no valido")

    content_type, encoded = match.group(1), match.group(2)
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedPayloadError("Formato de imagen no valido") from exc

    if not data:
        raise MalformedPayloadError("La imagen esta vacia")
    return ImagePayload(data=data, content_type=content_type, extension=_extension_for(content_type))


def check_image(data: bytes, content_type: str | None) -> None:
    settings = get_settings()
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError({"file": "Solo se permiten imagenes."})
    if not data:
        raise MalformedPayloadError("La imagen esta vacia")
    if len(data) > settings.max_image_bytes:
        max_mb = settings.max_image_bytes // (1024 * 1024)
        raise ValidationError({"file": f"La imagen supera el maximo de {max_mb} MB."})


class AssetUploader:
    """Writes images under ``<prefix>/<brand_slug>/`` and returns public URLs."""

    def __init__(self, store: BlobStore, bucket: str | None = None, prefix: str | None = None) -> None:
        settings = get_settings()
        self.store = store
        self.bucket = bucket or settings.storage_bucket
        self.prefix = prefix if prefix is not None else settings.storage_prefix

    def _path(self, brand_slug: str, *parts: str) -> str:
        return "/".join(p for p in (self.prefix, brand_slug, *parts) if p)

    async def _put(self, path: str, data: bytes, content_type: str) -> StoredAsset:
        await self.store.put_object(self.bucket, path, data, content_type)
        return StoredAsset(
            bucket=self.bucket,
            path=path,
            url=self.store.get_public_url(self.bucket, path),
        )

    def owns_url(self, brand_slug: str, url: str) -> bool:
        """True when ``url`` is a public URL under this brand's storage namespace."""
        if not brand_slug:
            return False
        try:
            parts = urlsplit(url)
        except ValueError:
            return False
        if parts.scheme not in ("http", "https") or ".." in unquote(parts.path).split("/"):
            return False
        base = self.store.get_public_url(self.bucket, self._path(brand_slug) + "/")
        return url.startswith(base)

    async def upload_logo(
        self, brand_slug: str, data: bytes, content_type: str | None, filename: str | None,
    ) -> StoredAsset:
        """Stable name per tenant: a new logo replaces the previous object."""
        check_image(data, content_type)
        _, dot, extension = normalize_filename(filename or "").rpartition(".")
        name = f"{DEFAULT_BASENAME}.{extension}" if dot else DEFAULT_BASENAME
        return await self._put(self._path(brand_slug, name), data, content_type)

    async def upload_employee_photo(self, brand_slug: str, data_url: str) -> StoredAsset:
        """Fresh random name per call; previous photos are left in place."""
        payload = parse_image_data_url(data_url)
        check_image(payload.data, payload.content_type)
        name = f"foto-{uuid.uuid4()}.{payload.extension}"
        return await self._put(
            self._path(brand_slug, "employee", "foto", name), payload.data, payload.content_type,
        )
