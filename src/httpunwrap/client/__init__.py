"""HTTP client module for httpunwrap.

Provides synchronous and asynchronous HTTP clients that wrap :mod:`httpx`
and decode every response body into a
:class:`~httpunwrap.models.DecodedPayload`, regardless of whether the
server answered with JSON, form data or XML.

Classes:
    :class:`HttpClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncHttpClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.

Example::

    from httpunwrap.client import HttpClient

    with HttpClient(ClientConfig(base_url="https://api.example.com")) as client:
        payload = client.get("/status")
"""

from httpunwrap.client.async_client import AsyncHttpClient
from httpunwrap.client.sync_client import HttpClient

__all__ = ["HttpClient", "AsyncHttpClient"]
