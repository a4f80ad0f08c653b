from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum single amount: ₹99,99,999.99 (999,999,999 paise)
MAX_AMOUNT_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate room number)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_integer(key: str, value: Any) -> int:
    # bool is an int subclass; floats and "1e3" / "1.0" strings are refused
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(key: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_integer(key, value)

    if isinstance(coltype, Boolean):
        # "false" and 0 are not flags
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be true or false")
        return value

    if isinstance(coltype, (String, Text)):
        # Floors and similar labels arrive as numbers from some clients
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Check a JSON body against the policy allowlist and the model's columns.

    Create (partial=False) also requires every required_on_create field;
    patch (partial=True) only looks at the keys sent. Returns the coerced
    patch dict.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted((policy.required_on_create or set()) - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    patch: dict = {}

    for key, raw in payload.items():
        if key not in policy.writable_fields or key not in cols:
            raise ValidationError(f"Field not allowed: {key}")
        col = cols[key]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coerce_value(key, col, raw)
        if isinstance(value, str):
            if value == "" and not col.nullable:
                raise ValidationError(f"{key} cannot be blank")
            max_len = getattr(col.type, "length", None)
            if max_len and len(value) > max_len:
                raise ValidationError(f"{key} exceeds max length {max_len}")
        patch[key] = value

    return patch


def require_amount(value: Any, field: str = "amount_cents", *, allow_zero: bool = False) -> int:
    """
    Validate a money amount in minor units.

    Accepts ints and digit strings; rejects floats so rounding never
    happens silently.
    """
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{field} must be an integer number of paise")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise ValidationError(f"{field} must be an integer number of paise")
        value = int(stripped)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer number of paise")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValidationError(f"{field} must be {'>= 0' if allow_zero else '> 0'}")
    if value > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS}")
    return value


def enforce_rules_room(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    """
    if "room_number" in patch and patch["room_number"] is not None:
        if patch["room_number"] <= 0:
            raise ValidationError("room_number must be > 0")

    if "floor" in patch and patch["floor"] is not None:
        if not patch["floor"].isdigit():
            raise ValidationError("floor must be a whole number")
