"""Input helpers shared by the CLI commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from httpunwrap.exceptions import InvalidUsageError

STDIN_MARKER = "-"


def read_source(source: str) -> bytes:
    """Read a file path, or stdin when *source* is ``-``."""
    if source == STDIN_MARKER:
        return sys.stdin.buffer.read()
    path = Path(source).expanduser()
    if not path.is_file():
        raise InvalidUsageError(f"File not found: {path}")
    return path.read_bytes()


def load_json(text: str | bytes, what: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidUsageError(f"{what} is not valid JSON: {exc}") from exc


def parse_pairs(values: list[str] | None, separator: str, what: str) -> dict[str, str]:
    """Turn ``["a=1", "b=2"]`` into ``{"a": "1", "b": "2"}``."""
    pairs: dict[str, str] = {}
    for value in values or []:
        key, sep, rest = value.partition(separator)
        if not sep or not key.strip():
            raise InvalidUsageError(f"Invalid {what} {value!r}, expected NAME{separator}VALUE")
        pairs[key.strip()] = rest.strip() if separator == ":" else rest
    return pairs
