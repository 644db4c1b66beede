"""httpunwrap -- one canonical structure for JSON, form and XML HTTP responses.

Many HTTP APIs (payment gateways, legacy SOAP-ish services, OAuth token
endpoints) answer in JSON, ``application/x-www-form-urlencoded`` or XML,
and do not always say which in ``Content-Type``. This package detects the
format from the header or, failing that, from the body, and decodes it into
nested ``dict`` / ``list`` / ``str`` values. It also encodes such values
into XML documents for outbound requests.

Typical use::

    from httpunwrap import HttpClient, ClientConfig

    with HttpClient(ClientConfig(base_url="https://api.example.com")) as client:
        payload = client.post_xml("/pay/unifiedorder", {"out_trade_no": "42"})
        payload.data["return_code"]

Modules:
    detection: Two-stage payload format detection.
    unwrapper: Detection plus dispatch to the decoders.
    codec: Query-string and XML codecs.
    client: ``httpx``-backed sync and async clients returning decoded payloads.
    models: Pydantic configuration models and payload dataclasses.
    config: XDG-aware configuration loading for the CLI.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
    app: Typer CLI.
"""

__version__ = "0.1.0"

from httpunwrap.client import AsyncHttpClient, HttpClient  # noqa: E402
from httpunwrap.codec import decode_element, encode_xml, parse_query_string  # noqa: E402
from httpunwrap.detection import detect_format  # noqa: E402
from httpunwrap.exceptions import MalformedPayloadError, UnwrapError  # noqa: E402
from httpunwrap.models import (  # noqa: E402
    ClientConfig,
    DecodedPayload,
    PayloadFormat,
    RawResponse,
    RepeatedElements,
)
from httpunwrap.unwrapper import decode_payload, unwrap, unwrap_response  # noqa: E402

__all__ = [
    "AsyncHttpClient",
    "ClientConfig",
    "DecodedPayload",
    "HttpClient",
    "MalformedPayloadError",
    "PayloadFormat",
    "RawResponse",
    "RepeatedElements",
    "UnwrapError",
    "__version__",
    "decode_element",
    "decode_payload",
    "detect_format",
    "encode_xml",
    "parse_query_string",
    "unwrap",
    "unwrap_response",
]
