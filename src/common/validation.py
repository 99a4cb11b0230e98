from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Optional, Union


Raw = Union[str, int, float, None]


# -------------------- Result and rules --------------------

@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single validation.

    `error` is set iff `is_valid` is False. `kind` is a stable machine tag
    (required, not-a-number, non-positive, too-large, too-small) for callers
    that want to branch without matching on the message text.
    """

    is_valid: bool
    error: Optional[str] = None
    kind: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def fail(cls, kind: str, error: str) -> "ValidationResult":
        return cls(is_valid=False, error=error, kind=kind)


@dataclass(frozen=True)
class Bounds:
    min: float
    max: float


@dataclass(frozen=True)
class ImcValidationRules:
    peso: Bounds
    altura: Bounds


IMC_VALIDATION_RULES = ImcValidationRules(
    peso=Bounds(min=0.1, max=500.0),
    altura=Bounds(min=0.1, max=3.0),
)


@dataclass(frozen=True)
class _FieldMessages:
    required: str
    not_a_number: str
    non_positive: str
    too_large: str
    too_small: str


_PESO_MESSAGES = _FieldMessages(
    required="El peso es requerido",
    not_a_number="El peso debe ser un número válido",
    non_positive="El peso debe ser mayor a 0",
    too_large="El peso no puede ser mayor a {max} kg",
    too_small="El peso debe ser mayor a {min} kg",
)

_ALTURA_MESSAGES = _FieldMessages(
    required="La altura es requerida",
    not_a_number="La altura debe ser un número válido",
    non_positive="La altura debe ser mayor a 0",
    too_large="La altura no puede ser mayor a {max} metros",
    too_small="La altura debe ser mayor a {min} metros",
)


# -------------------- Parsing helpers --------------------

# Longest decimal prefix: sign, digits with optional fraction, optional exponent.
_FLOAT_PREFIX_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(raw: Raw) -> Optional[float]:
    """Parse a form value into a finite float, or None when it is not a number.

    Strings are read the lenient way HTML form values usually are: leading
    whitespace is skipped and the longest numeric prefix wins, so "70kg" gives
    70.0 while "abc" gives None. NaN and infinities are never returned.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        m = _FLOAT_PREFIX_RE.match(str(raw).lstrip())
        if not m:
            return None
        try:
            value = float(m.group(0))
        except ValueError:
            return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _fmt_bound(value: float) -> str:
    # 3.0 -> "3", 0.1 -> "0.1"
    return f"{value:g}"


def _validate_measure(raw: Raw, bounds: Bounds, messages: _FieldMessages) -> ValidationResult:
    # Order matters: the first failing rule decides the single reported message.
    if not raw:
        return ValidationResult.fail("required", messages.required)

    value = parse_number(raw)
    if value is None:
        return ValidationResult.fail("not-a-number", messages.not_a_number)

    if value <= 0:
        return ValidationResult.fail("non-positive", messages.non_positive)

    if value > bounds.max:
        return ValidationResult.fail(
            "too-large", messages.too_large.format(max=_fmt_bound(bounds.max))
        )

    if value < bounds.min:
        return ValidationResult.fail(
            "too-small", messages.too_small.format(min=_fmt_bound(bounds.min))
        )

    return ValidationResult.ok()


# -------------------- Public validators --------------------

def validate_weight(raw: Raw) -> ValidationResult:
    """Validate a weight (kg) as typed by the user or already numeric.

    Note that numeric zero is falsy and is therefore reported as missing, while
    the string "0" is reported as non-positive.
    """
    return _validate_measure(raw, IMC_VALIDATION_RULES.peso, _PESO_MESSAGES)


def validate_height(raw: Raw) -> ValidationResult:
    """Validate a height (metres); same rules as `validate_weight`."""
    return _validate_measure(raw, IMC_VALIDATION_RULES.altura, _ALTURA_MESSAGES)


def validate_imc_form(height_raw: Raw, weight_raw: Raw) -> ValidationResult:
    """Validate the BMI form: height first, then weight.

    When both fields are wrong the height error is the one reported.
    """
    height = validate_height(height_raw)
    if not height.is_valid:
        return height
    weight = validate_weight(weight_raw)
    if not weight.is_valid:
        return weight
    return ValidationResult.ok()


# -------------------- Credential forms --------------------

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def validate_login_form(email: str, password: str) -> ValidationResult:
    if not email or not password:
        return ValidationResult.fail("required", "Por favor, completa todos los campos")
    if not is_valid_email(email):
        return ValidationResult.fail("invalid-email", "Por favor, ingresa un email válido")
    return ValidationResult.ok()


def validate_registration_form(
    nombre: str,
    apellido: str,
    email: str,
    password: str,
    confirm_password: str,
) -> Dict[str, str]:
    """Return a field -> message map; an empty map means the form is valid.

    A password/confirmation mismatch replaces any other password error.
    """
    errors: Dict[str, str] = {}

    nombre = (nombre or "").strip()
    if not nombre:
        errors["nombre"] = "El nombre es requerido"
    elif len(nombre) < MIN_NAME_LENGTH:
        errors["nombre"] = f"El nombre debe tener al menos {MIN_NAME_LENGTH} caracteres"

    apellido = (apellido or "").strip()
    if not apellido:
        errors["apellido"] = "El apellido es requerido"
    elif len(apellido) < MIN_NAME_LENGTH:
        errors["apellido"] = f"El apellido debe tener al menos {MIN_NAME_LENGTH} caracteres"

    if not (email or "").strip():
        errors["email"] = "El email es requerido"
    elif not is_valid_email(email):
        errors["email"] = "El email no tiene un formato válido"

    if not password:
        errors["password"] = "La contraseña es requerida"
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = (
            f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
        )

    if password != confirm_password:
        errors["password"] = "Las contraseñas no coinciden"

    return errors


__all__ = [
    "ValidationResult",
    "Bounds",
    "ImcValidationRules",
    "IMC_VALIDATION_RULES",
    "parse_number",
    "validate_weight",
    "validate_height",
    "validate_imc_form",
    "is_valid_email",
    "validate_login_form",
    "validate_registration_form",
]
