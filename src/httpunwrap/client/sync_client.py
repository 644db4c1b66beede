"""Synchronous HTTP client that returns decoded payloads.

This module provides :class:`HttpClient`, a thin wrapper over
:class:`httpx.Client` whose request methods hand every response to
:func:`~httpunwrap.unwrapper.unwrap_response`. Callers get a
:class:`~httpunwrap.models.DecodedPayload` whatever format the server
answered in, instead of an ``httpx.Response``. On top of that it layers:

- **Convenience verbs** -- :meth:`~HttpClient.get`, form / raw
  :meth:`~HttpClient.post`, :meth:`~HttpClient.post_json` and
  :meth:`~HttpClient.post_xml` (bodies encoded with
  :func:`~httpunwrap.codec.xmldoc.encode_xml`).
- **Error mapping** -- 4xx raises :class:`~httpunwrap.exceptions.ClientError`,
  5xx raises :class:`~httpunwrap.exceptions.ServerError`.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...), ``max_retries`` times.

See Also:
    :class:`~httpunwrap.client.async_client.AsyncHttpClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from httpunwrap.client.base import RETRYABLE_ERRORS, ClientBase
from httpunwrap.exceptions import ConnectionError_
from httpunwrap.models import ClientConfig, DecodedPayload
from httpunwrap.output import get_output


class HttpClient(ClientBase):
    """Synchronous HTTP client that decodes JSON, form and XML responses.

    The underlying :class:`httpx.Client` is created lazily on first use, or
    supplied up front with :meth:`set_http_client`. Use the client as a
    context manager (or call :meth:`close`) to release connections.

    Args:
        config: Connection settings (base URL, timeouts, retries, extra
            ``httpx`` options).
        transport: Optional :class:`httpx.BaseTransport` for the lazily
            built client.

    Example::

        with HttpClient(ClientConfig(base_url="https://api.example.com")) as client:
            payload = client.get("/orders", {"status": "paid"})
            if payload.is_structured:
                print(payload.data["total"])
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(config, transport)
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpClient:
        self.get_http_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
        self._client = None
        self._owns_client = True

    # ------------------------------------------------------------------ #
    # Underlying httpx client
    # ------------------------------------------------------------------ #

    def get_http_client(self) -> httpx.Client:
        """Return the :class:`httpx.Client`, building it from the config on first use."""
        if self._client is None:
            self._client = httpx.Client(**self._client_options())
            self._owns_client = True
        return self._client

    def set_http_client(self, client: httpx.Client) -> HttpClient:
        """Use a caller-owned :class:`httpx.Client`. It is not closed by :meth:`close`."""
        self._client = client
        self._owns_client = False
        return self

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(self, method: str, endpoint: str, **options: Any) -> DecodedPayload:
        """Send a request and decode the response body.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            endpoint: URL or path relative to the configured ``base_url``.
            **options: Forwarded to :meth:`httpx.Client.request`
                (``params``, ``headers``, ``data``, ``json``, ``content``...).

        Returns:
            The decoded :class:`~httpunwrap.models.DecodedPayload`.

        Raises:
            ClientError: On 4xx.
            ServerError: On 5xx after all retries are exhausted.
            ConnectionError_: On network / timeout errors after all retries.
            MalformedPayloadError: If a JSON or XML body does not parse.
        """
        response = self._execute_with_retry(method.upper(), endpoint, options)
        return self._finish(response)

    def get(
        self,
        endpoint: str,
        query: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DecodedPayload:
        """Send a GET request with *query* as the query string."""
        return self.request("GET", endpoint, **self._get_options(query, headers))

    def post(
        self,
        endpoint: str,
        params: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DecodedPayload:
        """Send a POST request.

        A mapping is sent as ``application/x-www-form-urlencoded`` fields;
        a ``str`` or ``bytes`` value is sent as the raw body.
        """
        return self.request("POST", endpoint, **self._post_options(params, headers))

    def post_json(
        self,
        endpoint: str,
        params: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DecodedPayload:
        """Send a POST request with a JSON body."""
        return self.request("POST", endpoint, **self._json_options(params, headers))

    def post_xml(
        self,
        endpoint: str,
        data: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DecodedPayload:
        """Send a POST request with an XML body.

        *data* may be a canonical value or object (encoded with
        :func:`~httpunwrap.codec.xmldoc.encode_xml`), an
        :class:`~xml.etree.ElementTree.Element`, or an XML string.
        ``Content-Type: application/xml; charset=UTF-8`` is set unless
        *headers* overrides it.
        """
        return self.request("POST", endpoint, **self._xml_options(data, headers))

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _execute_with_retry(
        self,
        method: str,
        endpoint: str,
        options: dict[str, Any],
    ) -> httpx.Response:
        """Execute the request, retrying 5xx responses and network errors.

        The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        client = self.get_http_client()
        max_retries = self._config.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                response = client.request(method, endpoint, **options)
            except RETRYABLE_ERRORS as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue

            return response

        raise AssertionError("unreachable")  # pragma: no cover
