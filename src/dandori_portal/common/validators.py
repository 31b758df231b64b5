from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name}は必須です", required=[field_name])
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name}は{min_len}文字以上で入力してください")
    return value


def require_fields(payload: Mapping[str, Any], fields: Iterable[str]) -> None:
    """Raise ValidationError listing every missing/blank field."""
    missing = [f for f in fields if payload.get(f) in (None, "", [])]
    if missing:
        raise ValidationError(f"{', '.join(missing)}は必須です", required=missing)


def require_positive(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}は数値で入力してください")
    if number <= 0:
        raise ValidationError(f"{field_name}は0より大きい値を入力してください")
    return number


def to_int(value: Any, field_name: str, *, default: Optional[int] = None, minimum: Optional[int] = None) -> int:
    if value in (None, ""):
        if default is None:
            raise ValidationError(f"{field_name}は必須です", required=[field_name])
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}は整数で入力してください")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field_name}は{minimum}以上で入力してください")
    return number


def to_float(value: Any, field_name: str, *, default: float = 0.0) -> float:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}は数値で入力してください")


def parse_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name}は {allowed} のいずれかである必要があります")


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
