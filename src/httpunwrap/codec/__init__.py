"""Payload codecs used by the response unwrapper.

Modules:
    querystring: ``application/x-www-form-urlencoded`` decoding with
        bracket-key nesting.
    xmldoc: XML decoding to canonical values and XML document encoding.

JSON needs no codec of its own; :func:`json.loads` already produces
canonical values.
"""

from httpunwrap.codec.querystring import parse_query_string
from httpunwrap.codec.xmldoc import (
    build_xml,
    decode_element,
    encode_xml,
    parse_xml,
    xml_to_value,
)

__all__ = [
    "build_xml",
    "decode_element",
    "encode_xml",
    "parse_query_string",
    "parse_xml",
    "xml_to_value",
]
