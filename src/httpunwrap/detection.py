"""Two-stage payload format detection.

Stage 1 looks at the ``Content-Type`` header; stage 2 sniffs the body and
runs only when the header is empty or names none of the known formats.
Both stages are pure functions of their input and never raise: a payload
that matches nothing is classified :attr:`~PayloadFormat.UNKNOWN` and the
caller returns it raw.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from httpunwrap.models import PayloadFormat

# Checked in this order; the first substring found in the header wins.
_CONTENT_TYPE_KEYWORDS = (
    ("json", PayloadFormat.JSON),
    ("urlencoded", PayloadFormat.URLENCODED),
    ("xml", PayloadFormat.XML),
)

_JSON_PATTERN = re.compile(rb"^\s*\{.*\}\s*$", re.IGNORECASE | re.DOTALL)
_URLENCODED_PATTERN = re.compile(rb"^([^=&])+=[^=&]+(&[^=&]+=[^=&]+)*$")
_XML_PATTERN = re.compile(rb"^\s*<.*>\s*$", re.DOTALL)

_CHARSET_PATTERN = re.compile(r"charset\s*=\s*[\"']?([^;\"'\s]+)", re.IGNORECASE)


def detect_format_by_content_type(content_type: Optional[str]) -> Optional[PayloadFormat]:
    """Classify a payload from its ``Content-Type`` header.

    This is a case-insensitive substring search, not a strict MIME match,
    so ``application/vnd.api+json``, ``application/x-www-form-urlencoded``
    and ``text/xml`` are all recognised.

    Args:
        content_type: The raw header value. ``None`` and ``""`` are
            treated the same.

    Returns:
        The detected format, or ``None`` if the header is empty or names
        none of the known formats.
    """
    if not content_type:
        return None
    lowered = content_type.lower()
    for keyword, fmt in _CONTENT_TYPE_KEYWORDS:
        if keyword in lowered:
            return fmt
    return None


def detect_format_by_content(content: Union[bytes, str]) -> Optional[PayloadFormat]:
    """Classify a payload by the shape of its text.

    Patterns are tried in priority order json, urlencoded, xml:

    * a body wrapped in ``{`` ... ``}`` is JSON;
    * one or more ``key=value`` pairs joined by ``&`` is form data;
    * a body wrapped in ``<`` ... ``>`` is XML.

    Args:
        content: The raw body. ``str`` input is encoded as UTF-8 first.

    Returns:
        The detected format, or ``None`` if no pattern matches.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    if _JSON_PATTERN.match(content):
        return PayloadFormat.JSON
    if _URLENCODED_PATTERN.match(content):
        return PayloadFormat.URLENCODED
    if _XML_PATTERN.match(content):
        return PayloadFormat.XML
    return None


def detect_format(content_type: Optional[str], content: Union[bytes, str]) -> PayloadFormat:
    """Classify a payload, header first and body second.

    The header wins whenever it names a known format, even if the body
    would sniff differently (``application/json`` with ``<a>1</a>`` is
    JSON).

    Args:
        content_type: The ``Content-Type`` header value, possibly empty.
        content: The raw body.

    Returns:
        The detected :class:`~httpunwrap.models.PayloadFormat`;
        ``UNKNOWN`` when neither stage matches.
    """
    fmt = detect_format_by_content_type(content_type)
    if fmt is None:
        fmt = detect_format_by_content(content)
    return fmt if fmt is not None else PayloadFormat.UNKNOWN


def extract_charset(content_type: Optional[str]) -> Optional[str]:
    """Return the ``charset`` parameter of a ``Content-Type`` header.

    Example::

        >>> extract_charset('text/xml; charset="GBK"')
        'GBK'

    Returns:
        The charset name with surrounding quotes removed, or ``None``.
    """
    if not content_type:
        return None
    match = _CHARSET_PATTERN.search(content_type)
    return match.group(1) if match else None
