"""Environment settings, with optional ``.env`` support."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")


def parse_dotenv(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines; handles ``export`` prefixes, comments and matching quotes."""
    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        if key:
            values[key] = value
    return values


@lru_cache(maxsize=None)
def load_dotenv(path: str = ".env") -> int:
    """Copy variables from `path` that are not already set; runs once per path.

    Returns the number of variables added.
    """
    dotenv_path = Path(path)
    if not dotenv_path.is_file():
        return 0
    added = 0
    for key, value in parse_dotenv(dotenv_path.read_text(encoding="utf-8")).items():
        if key not in os.environ:
            os.environ[key] = value
            added += 1
    return added


def getenv_any(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty variable among `names`."""
    load_dotenv()
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return default


def _getenv_as(name: str, default: T, cast: Callable[[str], T], kind: str) -> T:
    raw = getenv_any(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be {kind}; received {raw!r}.") from exc


def getenv_float(name: str, default: float) -> float:
    return _getenv_as(name, default, float, "a number")


def getenv_int(name: str, default: int) -> int:
    return _getenv_as(name, default, int, "an integer")
