"""Field validators for owner- and customer-submitted text.

Every validator is pure and total: it trims its input, never raises, and
returns a ``ValidationResult`` carrying either the cleaned values or a
``field -> reason`` mapping. Reasons are user-facing (es-AR).
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from app.models.rating import RATING_SLOTS
from app.services.slug import slugify_brand

NAME_RULE = (2, 60)
PHONE_RULE = (8, 24)
ADDRESS_RULE = (5, 120)
BRAND_NAME_RULE = (2, 80)
DNI_RULE = (6, 20)

RATING_MAX_FEATURES = RATING_SLOTS
RATING_FEATURE_MAX_LENGTH = 80
RATING_COMMENT_MAX_LENGTH = 300
RATING_MIN_SCORE = 1
RATING_MAX_SCORE = 5

NAME_REGEX = re.compile(r"^[A-Za-zÀ-ÿ' -]+$")
PHONE_REGEX = re.compile(r"^[0-9+() -]+$")
DNI_REGEX = re.compile(r"^[0-9.\-]+$")
# mercadopago.com, optionally followed by a two-letter country TLD
MERCADOPAGO_HOST = re.compile(r"^(www\.)?mercadopago\.com(\.[a-z]{2})?$")


@dataclass(frozen=True)
class ValidationResult:
    values: dict[str, Any]
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors


# ── Helpers ───────────────────────────────────────────────────

def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _length_ok(value: str, rule: tuple[int, int]) -> bool:
    low, high = rule
    return low <= len(value) <= high


def is_mercadopago_link(url: str) -> bool:
    """True when ``url`` points at a Mercado Pago host, not merely mentions one."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False
    if parts.scheme.lower() not in ("http", "https"):
        return False
    host = (parts.hostname or "").lower()
    if not MERCADOPAGO_HOST.match(host):
        return False
    return bool(parts.path.strip("/"))


# ── Personal data / onboarding ────────────────────────────────

def _editable_errors(clean: dict[str, str]) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not _length_ok(clean["first_name"], NAME_RULE) or not NAME_REGEX.match(clean["first_name"]):
        errors["first_name"] = "Nombre invalido"
    if not _length_ok(clean["last_name"], NAME_RULE) or not NAME_REGEX.match(clean["last_name"]):
        errors["last_name"] = "Apellido invalido"
    if not _length_ok(clean["phone"], PHONE_RULE) or not PHONE_REGEX.match(clean["phone"]):
        errors["phone"] = "Telefono invalido"
    if not _length_ok(clean["address"], ADDRESS_RULE):
        errors["address"] = "Direccion invalida"
    return errors


def validate_personal_data(
    first_name: Any, last_name: Any, phone: Any, address: Any,
) -> ValidationResult:
    """Rules for the fields an owner may edit after onboarding."""
    clean = {
        "first_name": _clean(first_name),
        "last_name": _clean(last_name),
        "phone": _clean(phone),
        "address": _clean(address),
    }
    return ValidationResult(values=clean, errors=_editable_errors(clean))


def validate_onboarding(
    first_name: Any, last_name: Any, phone: Any, address: Any, brand_name: Any,
) -> ValidationResult:
    personal = validate_personal_data(first_name, last_name, phone, address)
    clean = {**personal.values, "brand_name": _clean(brand_name)}
    errors = dict(personal.errors)

    if not _length_ok(clean["brand_name"], BRAND_NAME_RULE) or not slugify_brand(clean["brand_name"]):
        errors["brand_name"] = "Marca invalida"

    return ValidationResult(values=clean, errors=errors)


# ── Rating configuration ──────────────────────────────────────

def validate_rating_features(features: Any) -> ValidationResult:
    """Blank labels are dropped; order and duplicates are kept as entered.

    Anything other than a list of strings is rejected as a whole.
    """
    if not isinstance(features, list) or not all(isinstance(item, str) for item in features):
        return ValidationResult(
            values={"features": []},
            errors={"features": "Las caracteristicas deben ser una lista de textos."},
        )

    labels = [item.strip() for item in features if item.strip()]

    errors: dict[str, str] = {}
    if len(labels) > RATING_MAX_FEATURES:
        errors["features"] = f"No podes guardar mas de {RATING_MAX_FEATURES} caracteristicas."
    elif any(len(label) > RATING_FEATURE_MAX_LENGTH for label in labels):
        errors["features"] = (
            f"Cada caracteristica puede tener hasta {RATING_FEATURE_MAX_LENGTH} caracteres."
        )

    return ValidationResult(values={"features": labels}, errors=errors)


# ── Rating submission ─────────────────────────────────────────

def _as_score(value: Any) -> int | None:
    """Coerce one star value; None means "not an integer"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return _as_score(float(value.strip()))
        except ValueError:
            return None
    return None


def validate_rating_submission(
    stars: Any, comment: Any, configured_count: int,
) -> ValidationResult:
    """Check stars against the brand's configured feature count.

    On success ``values["scores"]`` is the five-slot array (unused slots None)
    and ``values["comment"]`` is the trimmed comment or None.
    """
    raw = list(stars) if isinstance(stars, list) else []
    # Unset trailing slots are not counted
    while raw and raw[-1] is None:
        raw.pop()

    errors: dict[str, str] = {}
    scores = [_as_score(value) for value in raw]

    if configured_count == 0:
        errors["stars"] = "Este restaurante no tiene caracteristicas para calificar."
    elif len(scores) != configured_count:
        errors["stars"] = "La cantidad de puntajes no coincide con las caracteristicas configuradas."
    elif any(s is None or not RATING_MIN_SCORE <= s <= RATING_MAX_SCORE for s in scores):
        errors["stars"] = "Cada puntaje debe ser un numero entero entre 1 y 5."

    clean_comment = _clean(comment) or None
    if clean_comment and len(clean_comment) > RATING_COMMENT_MAX_LENGTH:
        errors["comment"] = (
            f"El comentario puede tener hasta {RATING_COMMENT_MAX_LENGTH} caracteres."
        )

    slots: list[int | None] = [None] * RATING_SLOTS
    for index, score in enumerate(scores[:RATING_SLOTS]):
        slots[index] = score

    return ValidationResult(values={"scores": slots, "comment": clean_comment}, errors=errors)


# ── Employees ─────────────────────────────────────────────────

def validate_employee(
    first_name: Any,
    last_name: Any,
    dni: Any,
    phone: Any,
    mercadopago_link: Any,
) -> ValidationResult:
    clean = {
        "first_name": _clean(first_name),
        "last_name": _clean(last_name),
        "dni": _clean(dni),
        "phone": _clean(phone),
        "mercadopago_link": _clean(mercadopago_link),
    }
    if not all(clean.values()):
        return ValidationResult(
            values=clean,
            errors={"form": "Completa todos los campos obligatorios."},
        )

    errors: dict[str, str] = {}
    if not _length_ok(clean["first_name"], NAME_RULE) or not NAME_REGEX.match(clean["first_name"]):
        errors["first_name"] = "Nombre invalido"
    if not _length_ok(clean["last_name"], NAME_RULE) or not NAME_REGEX.match(clean["last_name"]):
        errors["last_name"] = "Apellido invalido"
    if not _length_ok(clean["dni"], DNI_RULE) or not DNI_REGEX.match(clean["dni"]):
        errors["dni"] = "DNI invalido"
    if not _length_ok(clean["phone"], PHONE_RULE) or not PHONE_REGEX.match(clean["phone"]):
        errors["phone"] = "Telefono invalido"
    if not is_mercadopago_link(clean["mercadopago_link"]):
        errors["mercadopago_link"] = "El link debe ser una URL valida de Mercado Pago."

    return ValidationResult(values=clean, errors=errors)
