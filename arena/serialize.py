"""Canonical JSON for reports, event logs and digests."""

from __future__ import annotations

import dataclasses
import hashlib
import json
import math
from enum import Enum
from pathlib import PurePath
from typing import Any, Mapping

from .errors import ReportFormatError


def to_serializable(value: Any) -> Any:
    """Reduce `value` to JSON primitives.

    Objects with a `to_dict()` method choose their own wire shape; other
    dataclasses are flattened field by field. NaN and infinities are rejected
    so every document stays strict JSON.
    """
    if isinstance(value, Enum):
        value = value.value
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Cannot serialize non-finite float {value!r}.")
        return value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_serializable(to_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {item.name: to_serializable(getattr(value, item.name)) for item in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(key): to_serializable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_serializable(item) for item in value]
    if isinstance(value, PurePath):
        return value.as_posix()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable.")


def json_dumps(value: Any, *, indent: int | None = None) -> str:
    """Encode with sorted keys; compact unless `indent` is given."""
    return json.dumps(
        to_serializable(value),
        sort_keys=True,
        ensure_ascii=True,
        separators=(",", ":") if indent is None else None,
        indent=indent,
        allow_nan=False,
    )


def load_json_object(text: str, source: str = "document") -> dict[str, Any]:
    """Decode `text`, which must hold a single JSON object."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportFormatError(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise ReportFormatError(f"{source} must be a JSON object, not {type(document).__name__}.")
    return document


def digest(value: Any) -> str:
    """SHA256 hex digest of the canonical encoding."""
    return hashlib.sha256(json_dumps(value).encode("utf-8")).hexdigest()
