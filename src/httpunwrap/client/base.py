"""Pieces shared by :class:`~httpunwrap.client.HttpClient` and
:class:`~httpunwrap.client.AsyncHttpClient`.

Everything here is transport-agnostic: building the ``httpx`` client
options from a :class:`~httpunwrap.models.ClientConfig`, shaping request
bodies for the convenience verbs, and turning a finished
:class:`httpx.Response` into a :class:`~httpunwrap.models.DecodedPayload`
or a typed HTTP error.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from httpunwrap.codec.xmldoc import XML_DECLARATION, encode_xml
from httpunwrap.exceptions import ClientError, MalformedPayloadError, ServerError
from httpunwrap.models import ClientConfig, DecodedPayload
from httpunwrap.unwrapper import unwrap_response

XML_CONTENT_TYPE = "application/xml; charset=UTF-8"

RETRYABLE_ERRORS = (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError)

_MESSAGE_KEYS = ("message", "error", "detail", "errmsg", "msg", "return_msg")


class ClientBase:
    """Configuration and response handling common to both clients.

    Args:
        config: Connection settings. Defaults to ``ClientConfig()`` (no
            base URL, 5 s timeouts, no retries).
        transport: Optional ``httpx`` transport handed to the client when it
            is built, e.g. :class:`httpx.MockTransport` in tests or a custom
            transport stack.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.BaseTransport | httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._transport = transport
        self._owns_client = True

    @property
    def config(self) -> ClientConfig:
        """The active connection settings."""
        return self._config

    def _client_options(self) -> dict[str, Any]:
        """Keyword arguments for the ``httpx`` client constructor.

        ``http_options`` from the config override the defaults.
        """
        config = self._config
        options: dict[str, Any] = {
            "base_url": config.base_url,
            "timeout": httpx.Timeout(config.timeout, connect=config.connect_timeout),
            "verify": config.verify_ssl,
        }
        options.update(config.http_options)
        if self._transport is not None:
            options["transport"] = self._transport
        return options

    # ------------------------------------------------------------------ #
    # Request option builders
    # ------------------------------------------------------------------ #

    @staticmethod
    def _get_options(
        query: Optional[Mapping[str, Any]],
        headers: Optional[Mapping[str, str]],
    ) -> dict[str, Any]:
        return {"params": dict(query or {}), "headers": dict(headers or {})}

    @staticmethod
    def _post_options(params: Any, headers: Optional[Mapping[str, str]]) -> dict[str, Any]:
        """Mappings are sent as form fields, anything else as the raw body."""
        options: dict[str, Any] = {"headers": dict(headers or {})}
        if isinstance(params, Mapping):
            options["data"] = dict(params)
        else:
            options["content"] = params
        return options

    @staticmethod
    def _json_options(params: Any, headers: Optional[Mapping[str, str]]) -> dict[str, Any]:
        return {"headers": dict(headers or {}), "json": params}

    @staticmethod
    def _xml_options(data: Any, headers: Optional[Mapping[str, str]]) -> dict[str, Any]:
        merged_headers = {"Content-Type": XML_CONTENT_TYPE}
        merged_headers.update(headers or {})
        return {"headers": merged_headers, "content": xml_body(data)}

    # ------------------------------------------------------------------ #
    # Response handling
    # ------------------------------------------------------------------ #

    @staticmethod
    def _finish(response: httpx.Response) -> DecodedPayload:
        """Decode *response*, raising a typed error for 4xx / 5xx statuses."""
        status = response.status_code
        if status < 400:
            return unwrap_response(response)

        try:
            payload: Optional[DecodedPayload] = unwrap_response(response)
        except MalformedPayloadError:
            payload = None

        msg = _error_message(payload, response)
        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status >= 500:
            raise ServerError(full_msg, status_code=status, payload=payload)
        raise ClientError(full_msg, status_code=status, payload=payload)


def xml_body(data: Any) -> str | bytes:
    """Serialise *data* into an XML request body.

    Strings and bytes are assumed to be XML already. Element trees are
    serialised with an XML declaration. Anything else goes through
    :func:`~httpunwrap.codec.xmldoc.encode_xml`.
    """
    if isinstance(data, (str, bytes)):
        return data
    if isinstance(data, ET.ElementTree):
        data = data.getroot()
    if isinstance(data, ET.Element):
        return f"{XML_DECLARATION}\n{ET.tostring(data, encoding='unicode')}\n"
    return encode_xml(data)


def _error_message(payload: Optional[DecodedPayload], response: httpx.Response) -> str:
    if payload is not None and payload.is_structured:
        detail = payload.data
        if isinstance(detail, dict):
            for key in _MESSAGE_KEYS:
                value = detail.get(key)
                if isinstance(value, str) and value:
                    return value
            return ""
        return str(detail)
    return response.text[:200] if response.content else ""
