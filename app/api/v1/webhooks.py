"""Identity provider lifecycle webhooks (user.created / updated / deleted)."""

import json
import logging

from fastapi import APIRouter, Request

from app.api.deps import Directory, WebhookSecret
from app.api.envelope import OkResponse
from app.core.errors import InvalidSignatureError, MalformedPayloadError
from app.core.security import WebhookVerificationError, verify_webhook
from app.services.identity import primary_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


class WebhookResponse(OkResponse):
    ignored: str | None = None


@router.post("/identity", response_model=WebhookResponse, response_model_exclude_none=True)
async def identity_webhook(
    request: Request,
    directory: Directory,
    secret: WebhookSecret,
) -> WebhookResponse:
    """Apply the same shell upsert / cascade delete the directory performs itself."""
    body = await request.body()
    try:
        verify_webhook(secret, dict(request.headers), body)
    except WebhookVerificationError as exc:
        logger.warning("Rejected identity webhook: %s", exc)
        raise InvalidSignatureError() from exc

    try:
        event = json.loads(body)
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError("Payload de webhook invalido.") from exc
    if not isinstance(event, dict):
        raise MalformedPayloadError("Payload de webhook invalido.")

    event_type = event.get("type")
    data = event.get("data")
    if not isinstance(data, dict):
        data = {}
    logger.info("Identity webhook received: %s", event_type)

    if event_type in ("user.created", "user.updated"):
        if not data.get("id"):
            raise MalformedPayloadError("Payload de webhook invalido.")
        await directory.upsert_shell(data["id"], primary_email(data))
        return WebhookResponse()

    if event_type == "user.deleted":
        if data.get("id"):
            await directory.delete_principal(data["id"])
        return WebhookResponse()

    return WebhookResponse(ignored=str(event_type))
