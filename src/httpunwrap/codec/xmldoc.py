"""XML decoding to canonical values and encoding of canonical values to XML.

Decoding rules (:func:`decode_element`):

- Child elements become mapping entries keyed by tag name (namespace URIs
  are stripped), in order of first appearance.
- Sibling tags that repeat accumulate into a :class:`RepeatedElements`
  list in document order. Nothing is dropped.
- A leaf element resolves to its stripped text. An empty element
  (``<a/>`` or ``<a></a>``) resolves to ``""``.
- Attributes are kept under ``"@attributes"``; text next to attributes is
  kept under ``"#text"``. Text interleaved with child elements is ignored.

Encoding rules (:func:`build_xml`):

- Mapping entries become child elements named after the key.
- Integer-like keys cannot be tag names: scalars and mappings under them
  become ``<item>``, opaque objects are inlined into the parent.
- List-like values (lists, or mappings keyed only by integers) under a
  named key are inlined into the parent with the same integer-key rules,
  without a wrapper element.
- :class:`RepeatedElements` under a named key becomes one sibling per
  entry, all named after the key, which makes decoded documents encode
  back to the same element structure.
- Opaque objects (dataclasses, pydantic models, plain objects) become an
  element named after their class, holding their public fields.
- ``"@attributes"`` and ``"#text"`` entries are written back as attributes
  and text of the enclosing element.
"""

from __future__ import annotations

import enum
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel

from httpunwrap.exceptions import EncodeError, MalformedPayloadError
from httpunwrap.models import PayloadFormat, RepeatedElements

logger = logging.getLogger(__name__)

ATTRIBUTES_KEY = "@attributes"
TEXT_KEY = "#text"
ITEM_TAG = "item"
DEFAULT_ROOT_TAG = "xml"
DEFAULT_MAX_DEPTH = 256

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_INDEX_PATTERN = re.compile(r"^(0|-?[1-9][0-9]*)$")
_NAME_PATTERN = re.compile(r"^[^\W\d][\w.\-]*(:[^\W\d][\w.\-]*)?$")


# ---------------------------------------------------------------------------
# XML -> canonical value
# ---------------------------------------------------------------------------


def parse_xml(content: Union[bytes, str], encoding: Optional[str] = None) -> ET.Element:
    """Parse an XML document and return its root element.

    Args:
        content: The raw document.
        encoding: Character set to decode *content* with, normally the
            ``charset`` of the response. When ``None`` the parser honours
            the XML declaration and falls back to UTF-8. An unknown
            charset is logged and replaced by UTF-8.

    Raises:
        MalformedPayloadError: If the document is not well-formed or cannot
            be decoded with *encoding*.
    """
    raw = content.encode("utf-8") if isinstance(content, str) else content
    source: Union[bytes, str] = content
    if encoding and isinstance(content, bytes):
        try:
            source = content.decode(encoding)
        except LookupError:
            logger.warning("Unknown charset %r, decoding XML as UTF-8", encoding)
            source = content
        except UnicodeDecodeError as exc:
            raise MalformedPayloadError(
                f"XML payload is not valid {encoding}: {exc}",
                content=raw,
                format=PayloadFormat.XML,
            ) from exc

    try:
        return ET.fromstring(source)
    except ET.ParseError as exc:
        raise MalformedPayloadError(
            f"Invalid XML payload: {exc}",
            content=raw,
            format=PayloadFormat.XML,
        ) from exc


def decode_element(element: ET.Element, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Flatten an element into a canonical value (see module docstring).

    The element's own tag is not part of the result; for a document root
    the caller gets the mapping of its children.

    Args:
        element: The element to decode.
        max_depth: Maximum element nesting below *element*.

    Raises:
        MalformedPayloadError: If nesting exceeds *max_depth*.
    """
    return _decode(element, max_depth, 0)


def _decode(element: ET.Element, max_depth: int, depth: int) -> Any:
    if depth > max_depth:
        raise MalformedPayloadError(
            f"XML nesting exceeds the maximum depth of {max_depth}",
            format=PayloadFormat.XML,
        )

    result: dict[str, Any] = {}
    attributes = {_local_name(name): value for name, value in element.attrib.items()}
    if attributes:
        result[ATTRIBUTES_KEY] = attributes

    has_children = False
    for child in element:
        has_children = True
        tag = _local_name(child.tag)
        value = _decode(child, max_depth, depth + 1)
        if tag not in result:
            result[tag] = value
        elif isinstance(result[tag], RepeatedElements):
            result[tag].append(value)
        else:
            result[tag] = RepeatedElements([result[tag], value])

    if has_children:
        return result

    text = (element.text or "").strip()
    if not attributes:
        return text
    if text:
        result[TEXT_KEY] = text
    return result


def xml_to_value(
    content: Union[bytes, str],
    encoding: Optional[str] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Parse *content* and decode its root element in one step."""
    return decode_element(parse_xml(content, encoding), max_depth=max_depth)


def _local_name(tag: str) -> str:
    """Remove a namespace URI prefix: ``{urn:x}Name`` becomes ``Name``."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


# ---------------------------------------------------------------------------
# Canonical value -> XML
# ---------------------------------------------------------------------------


def encode_xml(value: Any, root_tag: str = DEFAULT_ROOT_TAG) -> str:
    """Render *value* as an XML document under a synthetic root element.

    The result is suitable as a request body sent with
    ``Content-Type: application/xml; charset=UTF-8``.

    Example::

        encode_xml({"return_code": "SUCCESS", "ids": ["a", "b"]})
        # <?xml version="1.0" encoding="UTF-8"?>
        # <xml><return_code>SUCCESS</return_code><item>a</item><item>b</item></xml>

    Raises:
        EncodeError: If a key or class name is not a valid XML name.
    """
    root = ET.Element(_check_name(root_tag))
    build_xml(root, value)
    return f"{XML_DECLARATION}\n{ET.tostring(root, encoding='unicode')}\n"


def build_xml(parent: ET.Element, data: Any) -> None:
    """Append *data* to *parent*, recursing depth-first."""
    if isinstance(data, (Mapping, list, tuple)):
        for name, value in _entries(data):
            _build_entry(parent, name, value)
    elif _is_object(data):
        child = _append_child(parent, type(data).__name__)
        build_xml(child, _object_fields(data))
    else:
        _append_text(parent, _to_text(data))


def _build_entry(parent: ET.Element, name: Any, value: Any) -> None:
    if _is_index(name):
        if _is_object(value):
            build_xml(parent, value)
        else:
            build_xml(_append_child(parent, ITEM_TAG), value)
        return

    if name == ATTRIBUTES_KEY and isinstance(value, Mapping):
        for attr_name, attr_value in value.items():
            parent.set(_check_name(str(attr_name)), _to_text(attr_value))
        return
    if name == TEXT_KEY:
        _append_text(parent, _to_text(value))
        return

    if isinstance(value, RepeatedElements):
        for item in value:
            build_xml(_append_child(parent, name), item)
    elif _is_list_like(value):
        build_xml(parent, value)
    else:
        build_xml(_append_child(parent, name), value)


def _entries(data: Union[Mapping, list, tuple]) -> Iterable[tuple[Any, Any]]:
    if isinstance(data, Mapping):
        return data.items()
    return enumerate(data)


def _is_index(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    return isinstance(key, str) and _INDEX_PATTERN.match(key) is not None


def _is_list_like(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    if isinstance(value, Mapping):
        return len(value) > 0 and all(_is_index(key) for key in value)
    return False


def _is_object(value: Any) -> bool:
    if isinstance(value, (Mapping, list, tuple, str, bytes, enum.Enum, type)):
        return False
    return is_dataclass(value) or isinstance(value, BaseModel) or hasattr(value, "__dict__")


def _object_fields(obj: Any) -> dict[str, Any]:
    """Public fields of *obj*, in declaration order where the type has one."""
    if isinstance(obj, BaseModel):
        return {name: getattr(obj, name) for name in type(obj).model_fields}
    if is_dataclass(obj):
        return {f.name: getattr(obj, f.name) for f in fields(obj)}
    return {name: value for name, value in vars(obj).items() if not name.startswith("_")}


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, enum.Enum):
        return _to_text(value.value)
    return str(value)


def _check_name(name: str) -> str:
    if not _NAME_PATTERN.match(name):
        raise EncodeError(f"Cannot use {name!r} as an XML name")
    return name


def _append_child(parent: ET.Element, name: Any) -> ET.Element:
    return ET.SubElement(parent, _check_name(str(name)))


def _append_text(parent: ET.Element, text: str) -> None:
    if not text:
        return
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text
