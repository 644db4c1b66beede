"""``httpunwrap fetch`` -- send one request and print the decoded response.

The request is sent with :class:`~httpunwrap.client.HttpClient`, so the
response goes through the same detection and decoding as library callers
get. The detected format is reported on stderr and the decoded value on
stdout.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from httpunwrap.client import HttpClient
from httpunwrap.client.base import XML_CONTENT_TYPE
from httpunwrap.codec.xmldoc import encode_xml
from httpunwrap.commands._io import load_json, parse_pairs, read_source
from httpunwrap.config import resolve_config
from httpunwrap.exceptions import HTTPStatusError, InvalidUsageError, UnwrapError
from httpunwrap.output import debug, error, render_payload


def fetch_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL, or path relative to the configured base URL."),
    method: Optional[str] = typer.Option(
        None, "--method", "-X", help="HTTP method. Defaults to GET, or POST when a body is given."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter as key=value. Repeatable."
    ),
    form: Optional[list[str]] = typer.Option(
        None, "--form", "-F", help="Form field as key=value. Repeatable."
    ),
    json_body: Optional[str] = typer.Option(
        None, "--json-body", help="JSON request body."
    ),
    xml_source: Optional[str] = typer.Option(
        None, "--xml", help="JSON file ('-' for stdin) to encode and send as an XML body."
    ),
) -> None:
    """Send a request and print the decoded response body.

    Example::

        httpunwrap fetch https://api.example.com/status
        httpunwrap --base-url https://pay.example.com fetch /orderquery --xml order.json
    """
    obj = ctx.obj or {}
    try:
        headers = parse_pairs(header, ":", "header")
        options = _build_options(
            headers,
            parse_pairs(param, "=", "query parameter"),
            parse_pairs(form, "=", "form field"),
            json_body,
            xml_source,
        )
        config = resolve_config(
            cli_base_url=obj.get("base_url"),
            cli_timeout=obj.get("timeout"),
            config_path=obj.get("config_path"),
        )
    except UnwrapError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    has_body = any(key in options for key in ("data", "json", "content"))
    verb = (method or ("POST" if has_body else "GET")).upper()
    debug(f"{verb} {url} (base URL {config.client.base_url or '-'})")

    try:
        with HttpClient(config.client) as client:
            payload = client.request(verb, url, **options)
    except HTTPStatusError as exc:
        error(str(exc))
        if exc.payload is not None and exc.payload.content:
            render_payload(exc.payload)
        raise typer.Exit(code=exc.exit_code) from None
    except UnwrapError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    render_payload(payload)


def _build_options(
    headers: dict[str, str],
    params: dict[str, str],
    form: dict[str, str],
    json_body: Optional[str],
    xml_source: Optional[str],
) -> dict[str, Any]:
    bodies = [b for b in (form, json_body, xml_source) if b]
    if len(bodies) > 1:
        raise InvalidUsageError("Use only one of --form, --json-body and --xml")

    options: dict[str, Any] = {"headers": headers}
    if params:
        options["params"] = params
    if form:
        options["data"] = form
    elif json_body is not None:
        options["json"] = load_json(json_body, "--json-body")
    elif xml_source is not None:
        value = load_json(read_source(xml_source), "--xml input")
        options["content"] = encode_xml(value)
        if not any(name.lower() == "content-type" for name in headers):
            headers["Content-Type"] = XML_CONTENT_TYPE
    return options
