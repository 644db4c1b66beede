"""Decoder for ``application/x-www-form-urlencoded`` bodies.

Follows conventional query-string semantics: ``+`` is a space, keys and
values are percent-decoded, and bracketed keys expand into nested
mappings::

    >>> parse_query_string("user[name]=ada&user[langs][]=en&user[langs][]=fr")
    {'user': {'name': 'ada', 'langs': {'0': 'en', '1': 'fr'}}}

List-style ``[]`` keys append under the next integer index, so every
decoded value is a ``str`` or a ``dict``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional
from urllib.parse import unquote_plus

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

_SEGMENT_PATTERN = re.compile(r"\[([^\]]*)\]")
_INDEX_PATTERN = re.compile(r"^(0|-?[1-9][0-9]*)$")


def parse_query_string(
    text: str,
    encoding: str = "utf-8",
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, Any]:
    """Parse a ``&``-joined ``key=value`` string into a nested mapping.

    Args:
        text: The encoded form body or query string (without ``?``).
        encoding: Character set used when percent-decoding.
        max_depth: Maximum number of bracket segments per key. Pairs
            nested deeper are discarded.

    Returns:
        The decoded mapping. Repeated plain keys keep the last value;
        pairs with an empty key are ignored; a pair without ``=`` maps to
        ``""``.
    """
    result: dict[str, Any] = {}
    for pair in text.split("&"):
        if not pair:
            continue
        raw_key, _, raw_value = pair.partition("=")
        key = unquote_plus(raw_key, encoding=encoding).lstrip(" ")
        value = unquote_plus(raw_value, encoding=encoding)

        path = _split_key(key)
        if not path:
            continue
        if len(path) - 1 > max_depth:
            logger.debug("Dropping form field %r: nesting exceeds %d", key, max_depth)
            continue
        _assign(result, path, value)
    return result


def _split_key(key: str) -> list[str]:
    """Split ``a[b][]`` into ``["a", "b", ""]``.

    A key without a matching ``]`` is returned whole; a key that starts
    with ``[`` has no usable name and yields an empty list.
    """
    start = key.find("[")
    if start == -1:
        return [key] if key else []
    if start == 0:
        return []

    segments = [key[:start]]
    pos = start
    while pos < len(key) and key[pos] == "[":
        match = _SEGMENT_PATTERN.match(key, pos)
        if match is None:
            break
        segments.append(match.group(1))
        pos = match.end()

    if len(segments) == 1:
        return [key]
    return segments


def _assign(target: dict[str, Any], path: list[str], value: str) -> None:
    node = target
    key = path[0]
    for segment in path[1:]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
        key = segment if segment != "" else str(_next_index(node))
    node[key] = value


def _next_index(node: dict[str, Any]) -> int:
    highest: Optional[int] = None
    for key in node:
        if _INDEX_PATTERN.match(key):
            index = int(key)
            if highest is None or index > highest:
                highest = index
    return 0 if highest is None or highest < 0 else highest + 1
