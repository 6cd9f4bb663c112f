"""Security utilities: session token verification and webhook signatures."""

import base64
import hashlib
import hmac
import time

from jose import jwt

from app.core.config import get_settings

settings = get_settings()

# Clerk signs session tokens with RS256.
SESSION_TOKEN_ALGORITHMS = ["RS256"]

# Reject webhook deliveries whose timestamp drifts more than this (seconds).
WEBHOOK_TOLERANCE = 5 * 60


# ── Session tokens ────────────────────────────────────────────

def decode_session_token(token: str) -> dict:
    """Verify a session JWT against the configured PEM key.

    Raises jose.JWTError on failure.
    """
    return jwt.decode(
        token,
        settings.clerk_jwt_key,
        algorithms=SESSION_TOKEN_ALGORITHMS,
        options={"verify_aud": False},
    )


# ── Webhook signatures (svix scheme) ──────────────────────────

class WebhookVerificationError(Exception):
    pass


def _secret_bytes(secret: str) -> bytes:
    if secret.startswith("whsec_"):
        return base64.b64decode(secret.removeprefix("whsec_"))
    return secret.encode()


def sign_webhook(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    """Return the base64 HMAC-SHA256 signature for one delivery."""
    signed = f"{msg_id}.{timestamp}.".encode() + body
    digest = hmac.new(_secret_bytes(secret), signed, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_webhook(
    secret: str,
    headers: dict[str, str],
    body: bytes,
    now: float | None = None,
) -> None:
    """Check the svix-id / svix-timestamp / svix-signature headers.

    Raises WebhookVerificationError when the delivery cannot be trusted.
    """
    if not secret:
        raise WebhookVerificationError("Webhook secret is not configured")

    msg_id = headers.get("svix-id")
    timestamp = headers.get("svix-timestamp")
    signature_header = headers.get("svix-signature")
    if not msg_id or not timestamp or not signature_header:
        raise WebhookVerificationError("Missing signature headers")

    try:
        sent_at = int(timestamp)
    except ValueError as exc:
        raise WebhookVerificationError("Invalid timestamp") from exc

    current = time.time() if now is None else now
    if abs(current - sent_at) > WEBHOOK_TOLERANCE:
        raise WebhookVerificationError("Timestamp outside tolerance")

    expected = sign_webhook(secret, msg_id, timestamp, body)
    # Header carries space-separated "v1,<sig>" entries (one per active secret)
    for entry in signature_header.split():
        version, _, candidate = entry.partition(",")
        if version == "v1" and hmac.compare_digest(candidate, expected):
            return
    raise WebhookVerificationError("No matching signature")
