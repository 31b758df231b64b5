"""Row <-> domain dataclass mapping.

Repositories keep ORM rows inside the persistence layer and hand frozen
dataclasses to services. Field names of the dataclass match column names;
enum-typed fields are converted from the stored string values.
"""

from __future__ import annotations

import dataclasses
import types
from enum import Enum
from functools import lru_cache
from typing import Any, Mapping, Optional, Type, TypeVar, Union, get_args, get_origin, get_type_hints

T = TypeVar("T")


def _enum_type(tp: Any) -> Optional[type]:
    if isinstance(tp, type) and issubclass(tp, Enum):
        return tp
    if get_origin(tp) in (Union, types.UnionType):
        for arg in get_args(tp):
            if isinstance(arg, type) and issubclass(arg, Enum):
                return arg
    return None


@lru_cache(maxsize=None)
def _field_plan(model_cls: type) -> tuple[tuple[str, Optional[type]], ...]:
    hints = get_type_hints(model_cls)
    return tuple((f.name, _enum_type(hints.get(f.name))) for f in dataclasses.fields(model_cls))


def row_to_model(model_cls: Type[T], row: Any, **overrides: Any) -> T:
    values: dict[str, Any] = {}
    for name, enum_cls in _field_plan(model_cls):
        if name in overrides:
            values[name] = overrides[name]
            continue
        raw = getattr(row, name)
        if enum_cls is not None and raw is not None and not isinstance(raw, enum_cls):
            raw = enum_cls(raw)
        values[name] = raw
    return model_cls(**values)


def assign_columns(row: Any, values: Mapping[str, Any]) -> None:
    for key, value in values.items():
        if isinstance(value, Enum):
            value = value.value
        setattr(row, key, value)


def model_field_names(model_cls: type) -> frozenset[str]:
    return frozenset(f.name for f in dataclasses.fields(model_cls))
