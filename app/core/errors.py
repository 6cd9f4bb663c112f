"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``app.api.envelope`` renders them into the
``{"ok": false, "error": ..., "trace_id": ...}`` envelope.
"""

from fastapi import status


class AppError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Ocurrio un error inesperado."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthorizationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "No autorizado."


class ValidationError(AppError):
    """Field-level rule violation. ``errors`` maps field name to reason."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Revisa los datos ingresados."

    def __init__(self, errors: dict[str, str], message: str | None = None) -> None:
        self.errors = dict(errors)
        first = next(iter(self.errors.values()), None)
        super().__init__(message or first)


class MalformedPayloadError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Formato de imagen no valido."


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No encontrado."


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "El recurso ya existe."


class OnboardingRequiredError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "No se pudo resolver el contexto del restaurante."


class UpstreamFailure(AppError):
    """Network or storage error from the identity provider or the record store."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "La operacion fallo."

    def __init__(self, message: str | None = None, upstream_status: int | None = None) -> None:
        self.upstream_status = upstream_status
        super().__init__(message)


class InvalidSignatureError(AppError):
    """Webhook delivery whose signature or timestamp cannot be trusted."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Firma de webhook invalida."
