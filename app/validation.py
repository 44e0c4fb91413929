from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from app.auth import MIN_PASSWORD_LENGTH

Translator = Callable[..., str]

# Default English strings for backward compatibility when translator is not provided.
_VALIDATION_EN = {
    "validation.field_required": "{field} is required",
    "validation.field_number": "{field} must be a number",
    "validation.field_finite": "{field} must be a finite number",
    "validation.field_integer": "{field} must be an integer",
    "validation.email_required": "email is required",
    "validation.email_format": "email is not valid",
    "validation.password_short": "password must have at least {n} characters",
    "validation.password_mismatch": "passwords do not match",
}

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _tr(translator: Translator | None, key: str, **kwargs: Any) -> str:
    if translator is None:
        raw = _VALIDATION_EN.get(key, key)
        return raw.format(**kwargs) if kwargs else raw
    return translator(key, **kwargs)


@dataclass(frozen=True)
class ValidationResult:
    errors: list[str]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def is_finite(value: Any) -> bool:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(num)


def validate_numbers(
    data: dict[str, Any],
    fields: Iterable[str],
    *,
    integer_fields: Iterable[str] = (),
    translator: Translator | None = None,
) -> list[str]:
    """
    Form-level check only: present, numeric and finite.
    Physical ranges are not enforced; the core propagates NaN/Infinity.
    """
    errors: list[str] = []
    integer_fields = set(integer_fields)
    for field in fields:
        val = data.get(field)
        if val is None or val == "":
            errors.append(_tr(translator, "validation.field_required", field=field))
            continue
        try:
            num = float(val)
        except (TypeError, ValueError):
            errors.append(_tr(translator, "validation.field_number", field=field))
            continue
        if not math.isfinite(num):
            errors.append(_tr(translator, "validation.field_finite", field=field))
        elif field in integer_fields and not num.is_integer():
            errors.append(_tr(translator, "validation.field_integer", field=field))
    return errors


def validate_email(email: str | None, *, translator: Translator | None = None) -> list[str]:
    text = (email or "").strip()
    if not text:
        return [_tr(translator, "validation.email_required")]
    if not EMAIL_RE.match(text):
        return [_tr(translator, "validation.email_format")]
    return []


def validate_password(
    password: str | None,
    *,
    confirm: str | None = None,
    translator: Translator | None = None,
) -> list[str]:
    errors: list[str] = []
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(_tr(translator, "validation.password_short", n=MIN_PASSWORD_LENGTH))
    if confirm is not None and confirm != password:
        errors.append(_tr(translator, "validation.password_mismatch"))
    return errors


def validate_credentials(
    email: str | None,
    password: str | None,
    *,
    confirm: str | None = None,
    translator: Translator | None = None,
) -> ValidationResult:
    errors = validate_email(email, translator=translator)
    errors += validate_password(password, confirm=confirm, translator=translator)
    return ValidationResult(errors=errors)

