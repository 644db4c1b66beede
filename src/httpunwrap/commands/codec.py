"""Offline codec commands -- detect, decode and encode payloads from files.

These commands run the same pipeline the HTTP clients use, without any
network traffic, which makes them handy for checking how a captured
response body will be classified and decoded:

* ``httpunwrap detect FILE`` -- print the detected format.
* ``httpunwrap decode FILE`` -- print the canonical value.
* ``httpunwrap to-xml FILE`` -- encode a JSON document as XML.

``FILE`` may be ``-`` to read from stdin.
"""

from __future__ import annotations

import typer

from httpunwrap.codec.xmldoc import DEFAULT_ROOT_TAG, encode_xml
from httpunwrap.commands._io import load_json, read_source
from httpunwrap.detection import detect_format
from httpunwrap.exceptions import UnwrapError
from httpunwrap.output import error, print_data, render_payload
from httpunwrap.unwrapper import decode_payload


def detect_command(
    source: str = typer.Argument(..., help="File to inspect, or '-' for stdin."),
    content_type: str = typer.Option(
        "", "--content-type", "-t", help="Content-Type header to detect with."
    ),
) -> None:
    """Print the format a payload is detected as.

    Example::

        httpunwrap detect response.bin
        echo 'a=1&b=2' | httpunwrap detect -
    """
    try:
        content = read_source(source)
    except UnwrapError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    print_data(detect_format(content_type, content).value)


def decode_command(
    source: str = typer.Argument(..., help="File to decode, or '-' for stdin."),
    content_type: str = typer.Option(
        "", "--content-type", "-t", help="Content-Type header to decode with."
    ),
) -> None:
    """Decode a payload and print the canonical value.

    Undetected payloads are printed unchanged.

    Example::

        httpunwrap decode notify.xml --content-type "text/xml; charset=UTF-8"
    """
    try:
        payload = decode_payload(read_source(source), content_type)
    except UnwrapError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    render_payload(payload)


def to_xml_command(
    source: str = typer.Argument(..., help="JSON file to encode, or '-' for stdin."),
    root: str = typer.Option(
        DEFAULT_ROOT_TAG, "--root", help="Name of the enclosing root element."
    ),
) -> None:
    """Encode a JSON document as an XML request body.

    Example::

        httpunwrap to-xml order.json > order.xml
    """
    try:
        value = load_json(read_source(source), "Input")
        document = encode_xml(value, root_tag=root)
    except UnwrapError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    print_data(document.rstrip("\n"))
