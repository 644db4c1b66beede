"""Tests for XML decoding and encoding."""

from __future__ import annotations

import enum
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from httpunwrap.codec.xmldoc import (
    XML_DECLARATION,
    build_xml,
    decode_element,
    encode_xml,
    parse_xml,
    xml_to_value,
)
from httpunwrap.exceptions import EncodeError, MalformedPayloadError
from httpunwrap.models import PayloadFormat, RepeatedElements


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _body(document: str) -> str:
    """Strip the declaration and the synthetic root from an encoded document."""
    assert document.startswith(XML_DECLARATION + "\n")
    root = document[len(XML_DECLARATION) + 1 :].rstrip("\n")
    assert root.startswith("<xml>") and root.endswith("</xml>")
    return root[len("<xml>") : -len("</xml>")]


def _shape(element: ET.Element) -> tuple:
    """Element names, nesting and stripped text, ignoring attributes."""
    return (
        element.tag,
        (element.text or "").strip(),
        [_shape(child) for child in element],
    )


@dataclass
class Coupon:
    id: str
    fee: int


class Refund(BaseModel):
    refund_id: str
    amount: int


class Status(enum.Enum):
    PAID = "paid"


class Legacy:
    def __init__(self) -> None:
        self.code = "A1"
        self._secret = "hidden"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class TestDecode:
    def test_flat_document(self) -> None:
        assert xml_to_value(b"<xml><code>0</code><msg>ok</msg></xml>") == {
            "code": "0",
            "msg": "ok",
        }

    def test_nested_elements(self) -> None:
        value = xml_to_value("<r><order><id>7</id><amount>3</amount></order></r>")
        assert value == {"order": {"id": "7", "amount": "3"}}

    def test_leaf_text_is_stripped(self) -> None:
        assert xml_to_value("<r><a>\n   padded  \n</a></r>") == {"a": "padded"}

    def test_cdata(self) -> None:
        assert xml_to_value("<r><a><![CDATA[<b>&amp;</b>]]></a></r>") == {"a": "<b>&amp;</b>"}

    @pytest.mark.parametrize("empty", ["<a/>", "<a></a>", "<a>   </a>"])
    def test_empty_element_is_empty_string(self, empty: str) -> None:
        assert xml_to_value(f"<r>{empty}</r>") == {"a": ""}

    def test_empty_document_root(self) -> None:
        assert xml_to_value("<xml/>") == ""

    def test_repeated_siblings_accumulate(self) -> None:
        value = xml_to_value("<r><item>a</item><item>b</item><item>c</item></r>")
        assert value == {"item": ["a", "b", "c"]}
        assert isinstance(value["item"], RepeatedElements)

    def test_repeated_mappings_keep_document_order(self) -> None:
        value = xml_to_value(
            "<r><coupon><id>1</id></coupon><other>x</other><coupon><id>2</id></coupon></r>"
        )
        assert list(value) == ["coupon", "other"]
        assert value["coupon"] == [{"id": "1"}, {"id": "2"}]

    def test_single_child_is_not_a_list(self) -> None:
        value = xml_to_value("<r><item>a</item></r>")
        assert value == {"item": "a"}

    def test_attributes_and_text(self) -> None:
        value = xml_to_value('<r><amount currency="CNY">10</amount></r>')
        assert value == {"amount": {"@attributes": {"currency": "CNY"}, "#text": "10"}}

    def test_attributes_with_children(self) -> None:
        value = xml_to_value('<r version="2"><a>1</a></r>')
        assert value == {"@attributes": {"version": "2"}, "a": "1"}

    def test_attributes_without_text(self) -> None:
        assert xml_to_value('<r><a id="1"/></r>') == {"a": {"@attributes": {"id": "1"}}}

    def test_namespaces_are_stripped(self) -> None:
        document = (
            '<s:Envelope xmlns:s="urn:soap"><s:Body>'
            '<Result xmlns="urn:app" xmlns:x="urn:x" x:ref="9">ok</Result>'
            "</s:Body></s:Envelope>"
        )
        assert xml_to_value(document) == {
            "Body": {"Result": {"@attributes": {"ref": "9"}, "#text": "ok"}}
        }

    def test_mixed_text_beside_children_is_ignored(self) -> None:
        assert xml_to_value("<r>lead<a>1</a>tail</r>") == {"a": "1"}

    def test_decode_element_directly(self) -> None:
        element = ET.fromstring("<r><a>1</a></r>")
        assert decode_element(element) == {"a": "1"}

    def test_fixture_document(self, notify_xml: bytes) -> None:
        value = xml_to_value(notify_xml)
        assert value["return_code"] == "SUCCESS"
        assert value["total_fee"] == "1"
        assert value["attach"] == ""
        assert value["coupons"]["coupon"] == [
            {"id": "c-1", "fee": "10"},
            {"id": "c-2", "fee": "20"},
        ]


class TestDecodeErrors:
    @pytest.mark.parametrize("content", [b"<a><b></a>", b"<a>", b"not xml", b"<a></a><b></b>"])
    def test_malformed_document(self, content: bytes) -> None:
        with pytest.raises(MalformedPayloadError) as exc_info:
            xml_to_value(content)
        assert exc_info.value.format == PayloadFormat.XML
        assert exc_info.value.content == content

    def test_depth_limit(self) -> None:
        with pytest.raises(MalformedPayloadError, match="maximum depth of 1"):
            xml_to_value("<r><a><b>1</b></a></r>", max_depth=1)

    def test_depth_limit_not_reached(self) -> None:
        assert xml_to_value("<r><a><b>1</b></a></r>", max_depth=2) == {"a": {"b": "1"}}

    def test_wrong_charset_bytes(self) -> None:
        with pytest.raises(MalformedPayloadError):
            parse_xml(b"<r>\xff\xfe</r>", encoding="utf-8")


class TestCharset:
    def test_explicit_charset(self) -> None:
        content = "<r><name>中文</name></r>".encode("gbk")
        assert xml_to_value(content, encoding="gbk") == {"name": "中文"}

    def test_declaration_used_without_charset(self) -> None:
        content = '<?xml version="1.0" encoding="ISO-8859-1"?><r><a>é</a></r>'.encode("latin-1")
        assert xml_to_value(content) == {"a": "é"}

    def test_defaults_to_utf8(self) -> None:
        assert xml_to_value("<r><a>é</a></r>".encode("utf-8")) == {"a": "é"}

    def test_unknown_charset_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="httpunwrap.codec.xmldoc"):
            value = xml_to_value(b"<r><a>1</a></r>", encoding="x-no-such-charset")
        assert value == {"a": "1"}
        assert "x-no-such-charset" in caplog.text


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestEncode:
    def test_document_envelope(self) -> None:
        document = encode_xml({"a": "1"})
        assert document == f'{XML_DECLARATION}\n<xml><a>1</a></xml>\n'

    def test_integer_keyed_mapping_is_inlined(self) -> None:
        document = encode_xml({"foo": "bar", "list": {0: "a", 1: "b"}})
        assert _body(document) == "<foo>bar</foo><item>a</item><item>b</item>"
        assert "<list>" not in document

    def test_string_integer_keys_are_inlined(self) -> None:
        assert _body(encode_xml({"ids": {"0": "x", "1": "y"}})) == "<item>x</item><item>y</item>"

    def test_list_is_inlined(self) -> None:
        assert _body(encode_xml({"tags": ["new", "gift"]})) == "<item>new</item><item>gift</item>"

    def test_top_level_list(self) -> None:
        assert _body(encode_xml(["a", {"b": "c"}])) == "<item>a</item><item><b>c</b></item>"

    def test_nested_mapping(self) -> None:
        value = {"order": {"id": "7", "detail": {"qty": 2}}}
        assert _body(encode_xml(value)) == "<order><id>7</id><detail><qty>2</qty></detail></order>"

    def test_mixed_keys_keep_wrapper(self) -> None:
        value = {"list": {0: "a", "name": "b"}}
        assert _body(encode_xml(value)) == "<list><item>a</item><name>b</name></list>"

    def test_empty_list_and_mapping(self) -> None:
        assert _body(encode_xml({"a": [], "b": {}})) == "<a /><b />"

    def test_repeated_elements_become_siblings(self) -> None:
        value = {"coupon": RepeatedElements([{"id": "1"}, {"id": "2"}])}
        assert _body(encode_xml(value)) == (
            "<coupon><id>1</id></coupon><coupon><id>2</id></coupon>"
        )

    def test_attributes_and_text(self) -> None:
        value = {"amount": {"@attributes": {"currency": "CNY"}, "#text": "10"}}
        assert _body(encode_xml(value)) == '<amount currency="CNY">10</amount>'

    def test_text_escaping(self) -> None:
        assert _body(encode_xml({"q": "a<b & c"})) == "<q>a&lt;b &amp; c</q>"

    def test_custom_root(self) -> None:
        document = encode_xml({"a": "1"}, root_tag="request")
        assert document.endswith("<request><a>1</a></request>\n")


class TestEncodeScalars:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, "<v>true</v>"),
            (False, "<v>false</v>"),
            (None, "<v />"),
            (42, "<v>42</v>"),
            (1.5, "<v>1.5</v>"),
            (b"raw", "<v>raw</v>"),
            (Status.PAID, "<v>paid</v>"),
        ],
    )
    def test_scalar_text(self, value: object, expected: str) -> None:
        assert _body(encode_xml({"v": value})) == expected

    def test_scalar_root(self) -> None:
        assert _body(encode_xml("hello")) == "hello"


class TestEncodeObjects:
    def test_dataclass_under_named_key(self) -> None:
        document = encode_xml({"coupon": Coupon(id="c-1", fee=10)})
        assert _body(document) == "<coupon><Coupon><id>c-1</id><fee>10</fee></Coupon></coupon>"

    def test_objects_under_integer_keys_are_inlined(self) -> None:
        document = encode_xml([Coupon(id="c-1", fee=10), Coupon(id="c-2", fee=20)])
        assert _body(document) == (
            "<Coupon><id>c-1</id><fee>10</fee></Coupon>"
            "<Coupon><id>c-2</id><fee>20</fee></Coupon>"
        )

    def test_pydantic_model(self) -> None:
        document = encode_xml(Refund(refund_id="r-1", amount=5))
        assert _body(document) == "<Refund><refund_id>r-1</refund_id><amount>5</amount></Refund>"

    def test_plain_object_skips_private_attributes(self) -> None:
        assert _body(encode_xml([Legacy()])) == "<Legacy><code>A1</code></Legacy>"


class TestEncodeErrors:
    @pytest.mark.parametrize("key", ["bad name", "1abc", "", "a<b", "-x"])
    def test_invalid_key(self, key: str) -> None:
        with pytest.raises(EncodeError):
            encode_xml({key: "v"})

    def test_invalid_attribute_name(self) -> None:
        with pytest.raises(EncodeError):
            encode_xml({"a": {"@attributes": {"bad name": "1"}}})

    def test_invalid_root(self) -> None:
        with pytest.raises(EncodeError):
            encode_xml({"a": "1"}, root_tag="0")


class TestBuildXml:
    def test_appends_to_existing_element(self) -> None:
        root = ET.Element("request")
        build_xml(root, {"a": "1", "b": ["x"]})
        assert ET.tostring(root, encoding="unicode") == "<request><a>1</a><item>x</item></request>"

    def test_text_after_children_goes_to_tail(self) -> None:
        root = ET.Element("r")
        build_xml(root, {"a": "1", "#text": "tail"})
        assert ET.tostring(root, encoding="unicode") == "<r><a>1</a>tail</r>"


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    @pytest.mark.parametrize(
        "document",
        [
            "<xml><code>0</code><msg>ok</msg></xml>",
            "<xml><a><b><c>deep</c></b></a><d>x</d></xml>",
            "<xml><row><v>1</v></row><row><v>2</v></row><row><v>3</v></row></xml>",
            "<xml><empty/><full>x</full></xml>",
        ],
    )
    def test_decode_then_encode_preserves_structure(self, document: str) -> None:
        encoded = encode_xml(xml_to_value(document))
        assert _shape(ET.fromstring(encoded)) == _shape(ET.fromstring(document))

    def test_fixture_round_trip(self, notify_xml: bytes) -> None:
        encoded = encode_xml(xml_to_value(notify_xml))
        assert _shape(ET.fromstring(encoded)) == _shape(ET.fromstring(notify_xml))

    def test_attributes_survive_round_trip(self) -> None:
        document = '<xml><amount currency="CNY">10</amount></xml>'
        encoded = encode_xml(xml_to_value(document))
        assert _body(encoded) == '<amount currency="CNY">10</amount>'
