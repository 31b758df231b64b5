from __future__ import annotations

import dataclasses
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from flask.json.provider import DefaultJSONProvider


def to_jsonable(value: Any) -> Any:
    """Recursively convert dataclasses/enums/dates into JSON-friendly values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


class PortalJSONProvider(DefaultJSONProvider):
    """ISO dates instead of Flask's HTTP-date default; enum values; dataclasses as dicts."""

    def dumps(self, obj: Any, **kwargs: Any) -> str:
        return super().dumps(to_jsonable(obj), **kwargs)
