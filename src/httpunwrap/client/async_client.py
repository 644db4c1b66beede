"""Asynchronous HTTP client -- mirrors :class:`~httpunwrap.client.sync_client.HttpClient` API.

This module provides :class:`AsyncHttpClient`, the non-blocking
counterpart to :class:`~httpunwrap.client.sync_client.HttpClient`. It wraps
:class:`httpx.AsyncClient` and offers the same feature set -- decoded
payloads, convenience verbs, error mapping and retry with exponential
backoff -- but uses ``await`` and :func:`asyncio.sleep`.

Decoding itself is synchronous and CPU-bound; only the network call is
awaited.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from httpunwrap.client.base import RETRYABLE_ERRORS, ClientBase
from httpunwrap.exceptions import ConnectionError_
from httpunwrap.models import ClientConfig, DecodedPayload
from httpunwrap.output import get_output


class AsyncHttpClient(ClientBase):
    """Asynchronous HTTP client that decodes JSON, form and XML responses.

    Args:
        config: Connection settings (base URL, timeouts, retries, extra
            ``httpx`` options).
        transport: Optional :class:`httpx.AsyncBaseTransport` for the
            lazily built client.

    Example::

        async with AsyncHttpClient(config) as client:
            payload = await client.post_xml("/pay/orderquery", {"out_trade_no": "42"})
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config, transport)
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncHttpClient:
        self.get_http_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
        self._owns_client = True

    # ------------------------------------------------------------------ #
    # Underlying httpx client
    # ------------------------------------------------------------------ #

    def get_http_client(self) -> httpx.AsyncClient:
        """Return the :class:`httpx.AsyncClient`, building it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(**self._client_options())
            self._owns_client = True
        return self._client

    def set_http_client(self, client: httpx.AsyncClient) -> AsyncHttpClient:
        """Use a caller-owned :class:`httpx.AsyncClient`. It is not closed by :meth:`aclose`."""
        self._client = client
        self._owns_client = False
        return self

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(self, method: str, endpoint: str, **options: Any) -> DecodedPayload:
        """Send a request and decode the response body.

        Behaves identically to
        :meth:`~httpunwrap.client.sync_client.HttpClient.request` but is
        non-blocking.
        """
        response = await self._execute_with_retry(method.upper(), endpoint, options)
        return self._finish(response)

    async def get(
        self,
        endpoint: str,
        query: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DecodedPayload:
        """Send an async GET request with *query* as the query string."""
        return await self.request("GET", endpoint, **self._get_options(query, headers))

    async def post(
        self,
        endpoint: str,
        params: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DecodedPayload:
        """Send an async POST request (mapping as form fields, str/bytes as raw body)."""
        return await self.request("POST", endpoint, **self._post_options(params, headers))

    async def post_json(
        self,
        endpoint: str,
        params: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DecodedPayload:
        """Send an async POST request with a JSON body."""
        return await self.request("POST", endpoint, **self._json_options(params, headers))

    async def post_xml(
        self,
        endpoint: str,
        data: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> DecodedPayload:
        """Send an async POST request with an XML body."""
        return await self.request("POST", endpoint, **self._xml_options(data, headers))

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _execute_with_retry(
        self,
        method: str,
        endpoint: str,
        options: dict[str, Any],
    ) -> httpx.Response:
        client = self.get_http_client()
        max_retries = self._config.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                response = await client.request(method, endpoint, **options)
            except RETRYABLE_ERRORS as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
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
                await asyncio.sleep(delay)
                continue

            return response

        raise AssertionError("unreachable")  # pragma: no cover
