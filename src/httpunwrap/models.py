"""Data shapes shared across all httpunwrap modules.

The models fall into two groups:

**Configuration models** -- Pydantic models validated from the user's
config directory, the project-local config file, environment variables and
CLI flags: :class:`ClientConfig` and :class:`GlobalConfig`.

**Payload models** -- plain dataclasses and enums produced per call by the
detection and decoding pipeline: :class:`PayloadFormat`,
:class:`RawResponse`, :class:`DecodedPayload` and
:class:`RepeatedElements`. They are never shared between calls.

A *canonical value* is the format-agnostic structure every decoder
converges to: a ``str``, a ``dict`` mapping string keys to canonical
values, or a ``list`` of canonical values. JSON decoding additionally keeps
the numbers, booleans and ``None`` that :func:`json.loads` produces.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class ClientConfig(BaseModel):
    """Settings for :class:`~httpunwrap.client.HttpClient`.

    Replaces capability probing on a host object with explicit fields that
    default to fixed values. ``http_options`` is merged over the defaults
    when the underlying :class:`httpx.Client` is built, so any keyword that
    ``httpx.Client`` accepts (``headers``, ``follow_redirects``, ...) can
    be supplied there.

    Example::

        ClientConfig(base_url="https://api.example.com", timeout=10.0)
    """

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(default="", description="Base URL prepended to endpoints")
    timeout: float = Field(default=5.0, ge=0, description="Request timeout in seconds")
    connect_timeout: float = Field(
        default=5.0, ge=0, description="Connection timeout in seconds"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(
        default=0, ge=0, description="Retries on 5xx and network errors"
    )
    http_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments for the httpx client",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/httpunwrap/config.json``.

    Loaded by :func:`~httpunwrap.config.load_global_config`. See
    :func:`~httpunwrap.config.resolve_config` for the precedence chain.
    """

    model_config = ConfigDict(extra="forbid")

    client: ClientConfig = Field(default_factory=ClientConfig)


# --- Payloads ---


class PayloadFormat(str, enum.Enum):
    """Wire formats the detector can classify a body as.

    Computed per call and never persisted. ``UNKNOWN`` is a valid terminal
    outcome, not an error: the body is handed back raw.
    """

    JSON = "json"
    URLENCODED = "urlencoded"
    XML = "xml"
    UNKNOWN = "unknown"


class RepeatedElements(list):
    """Values of sibling XML elements that share one tag name, in document order.

    Produced by :func:`~httpunwrap.codec.xmldoc.decode_element` when a tag
    repeats under the same parent, and rendered back by
    :func:`~httpunwrap.codec.xmldoc.build_xml` as one sibling per entry
    named after the key.
    """


CanonicalValue = Union[str, dict[str, Any], list[Any]]


@dataclass
class RawResponse:
    """Minimal response shape consumed by the unwrapper.

    Anything exposing ``content`` (bytes) and ``headers`` (case-insensitive
    mapping) works, so :class:`httpx.Response` is accepted directly. This
    dataclass covers bodies that did not come from ``httpx`` (files, other
    transports, tests).

    Attributes:
        content: The raw body.
        headers: Response headers. Plain dicts are converted to
            :class:`httpx.Headers` so lookups are case-insensitive.
    """

    content: bytes = b""
    headers: httpx.Headers = field(default_factory=httpx.Headers)

    def __post_init__(self) -> None:
        if isinstance(self.content, str):
            self.content = self.content.encode("utf-8")
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)


@dataclass
class DecodedPayload:
    """Tagged outcome of unwrapping one response body.

    Attributes:
        format: The detected format, or ``None`` when the body was empty
            and detection never ran.
        data: The canonical value for structured formats, or the raw body
            bytes when the format was not detected.
        content: The raw body exactly as received.
        content_type: The ``Content-Type`` header line (may be empty).
    """

    format: Optional[PayloadFormat]
    data: Any
    content: bytes = b""
    content_type: str = ""

    @property
    def is_structured(self) -> bool:
        """True when a decoder produced :attr:`data`."""
        return self.format in (
            PayloadFormat.JSON,
            PayloadFormat.URLENCODED,
            PayloadFormat.XML,
        )

    @property
    def is_raw(self) -> bool:
        """True when :attr:`data` is the untouched body (empty or undetected)."""
        return not self.is_structured
