"""Response unwrapping: detect the payload format and decode it.

This module bridges the transport and the codecs. It reads the body and the
``Content-Type`` header from a response, classifies the body with
:func:`~httpunwrap.detection.detect_format`, and dispatches to the matching
decoder:

* ``json`` -- :func:`json.loads`;
* ``urlencoded`` -- :func:`~httpunwrap.codec.querystring.parse_query_string`;
* ``xml`` -- :func:`~httpunwrap.codec.xmldoc.xml_to_value`, using the
  header's ``charset``; without one the document's own declaration
  applies, defaulting to UTF-8;
* ``unknown`` -- the raw body is returned untouched.

An empty body is returned as-is without running detection.

The result is a :class:`~httpunwrap.models.DecodedPayload`, which records
the detected format next to the value so that callers can tell a decoded
structure from a raw body that could not be classified.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, Protocol, Union

from httpunwrap.codec.querystring import parse_query_string
from httpunwrap.codec.xmldoc import xml_to_value
from httpunwrap.detection import detect_format, extract_charset
from httpunwrap.exceptions import MalformedPayloadError
from httpunwrap.models import DecodedPayload, PayloadFormat

logger = logging.getLogger(__name__)

_DEFAULT_CHARSET = "utf-8"


class ResponseLike(Protocol):
    """Anything with a byte body and case-insensitive headers.

    Satisfied by :class:`httpx.Response` and
    :class:`~httpunwrap.models.RawResponse`.
    """

    @property
    def content(self) -> bytes: ...

    @property
    def headers(self) -> Any: ...


def decode_payload(content: Union[bytes, str], content_type: str = "") -> DecodedPayload:
    """Detect and decode a single body.

    Args:
        content: The raw body. ``str`` input is encoded as UTF-8.
        content_type: The ``Content-Type`` header value, possibly empty.

    Returns:
        A :class:`~httpunwrap.models.DecodedPayload`. Its ``format`` is
        ``None`` for an empty body and ``UNKNOWN`` when detection failed;
        in both cases ``data`` is the raw body.

    Raises:
        MalformedPayloadError: If the body was detected as JSON or XML but
            does not parse.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    content_type = content_type or ""

    if not content:
        return DecodedPayload(format=None, data=content, content=content, content_type=content_type)

    fmt = detect_format(content_type, content)
    logger.debug("Detected %s payload (%d bytes, content-type %r)", fmt.value, len(content), content_type)

    if fmt == PayloadFormat.JSON:
        data = _decode_json(content)
    elif fmt == PayloadFormat.URLENCODED:
        data = _decode_urlencoded(content, extract_charset(content_type))
    elif fmt == PayloadFormat.XML:
        data = xml_to_value(content, encoding=extract_charset(content_type))
    else:
        data = content

    return DecodedPayload(format=fmt, data=data, content=content, content_type=content_type)


def unwrap_response(response: ResponseLike) -> DecodedPayload:
    """Decode the body of *response* (see :func:`decode_payload`)."""
    return decode_payload(response.content, response.headers.get("Content-Type") or "")


def unwrap(response: ResponseLike) -> Any:
    """Return only the decoded value of *response*.

    Undetected and empty bodies come back as ``bytes``; use
    :func:`unwrap_response` when the caller needs to know which case it got.
    """
    return unwrap_response(response).data


def _decode_json(content: bytes) -> Any:
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedPayloadError(
            f"Invalid JSON payload: {exc}",
            content=content,
            format=PayloadFormat.JSON,
        ) from exc


def _decode_urlencoded(content: bytes, charset: str | None) -> dict[str, Any]:
    """Decode a form body.

    Form data has no well-formedness rules to enforce, so bytes that are
    invalid in the charset become U+FFFD and a warning is logged instead
    of raising.
    """
    encoding = charset or _DEFAULT_CHARSET
    try:
        codecs.lookup(encoding)
    except LookupError:
        logger.warning("Unknown charset %r, decoding form data as UTF-8", charset)
        encoding = _DEFAULT_CHARSET

    try:
        text = content.decode(encoding)
    except UnicodeDecodeError as exc:
        logger.warning(
            "Form data is not valid %s (%s), replacing undecodable bytes", encoding, exc.reason
        )
        text = content.decode(encoding, errors="replace")
    return parse_query_string(text, encoding=encoding)
