"""Tests for the value/restriction codec."""

from __future__ import annotations

import logging

import pytest

from idsauthor.codec.tree import parse_fragment
from idsauthor.codec.values import decode, encode, encode_text, escape_literal, first_text, unescape_literal
from idsauthor.config import XS_NAMESPACE
from idsauthor.models import Absent, Bounds, Contains, Enumeration, Length, Pattern, Simple


# ---------------------------------------------------------------------------
# Bijection
# ---------------------------------------------------------------------------

class TestBijection:
    @pytest.mark.parametrize(
        "value",
        [
            Absent(),
            Simple(value="x"),
            Contains(value="y"),
            Pattern(value="^a.*"),
            Enumeration(values=("a", "b", "c")),
            Bounds(min="10", max="20", min_exclusive=False, max_exclusive=True),
            Length.exact(5),
            Length(min=0, max=255),
        ],
    )
    def test_decode_encode(self, value):
        assert decode(encode(value)) == value

    def test_contains_with_regex_characters(self):
        value = Contains(value="a.b (x)*")
        assert decode(encode(value)) == value

    def test_pattern_with_class_stays_pattern(self):
        value = Pattern(value=".*[0-9].*")
        assert decode(encode(value)) == value

    def test_pattern_of_contains_shape_reads_as_contains(self):
        assert decode(encode(Pattern(value=".*abc.*"))) == Contains(value="abc")


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------

class TestEncode:
    def test_absent_is_omitted(self):
        assert encode(Absent()) is None

    def test_empty_simple_is_omitted(self):
        assert encode(Simple(value="")) is None

    def test_simple_value(self):
        node = encode(Simple(value="30"))
        assert node.name == "value"
        assert node.child("simpleValue").text == "30"

    def test_contains_pattern(self):
        node = encode(Contains(value="a.b"))
        restriction = node.child("restriction", XS_NAMESPACE)
        assert restriction.children[0].attr("value") == ".*a\\.b.*"

    def test_numeric_bounds_use_double(self):
        node = encode(Bounds(min="10", max="20"))
        assert node.child("restriction", XS_NAMESPACE).attr("base") == "xs:double"

    def test_text_bounds_use_string(self):
        node = encode(Bounds(min="a", max="m"))
        assert node.child("restriction", XS_NAMESPACE).attr("base") == "xs:string"

    def test_exclusive_bound_names(self):
        node = encode(Bounds(min="0", max="1", min_exclusive=True, max_exclusive=True))
        names = [c.name for c in node.child("restriction", XS_NAMESPACE).children]
        assert names == ["minExclusive", "maxExclusive"]

    def test_length_range(self):
        node = encode(Length(min=2, max=8))
        names = [c.name for c in node.child("restriction", XS_NAMESPACE).children]
        assert names == ["minLength", "maxLength"]

    def test_custom_tag(self):
        assert encode(Simple(value="x"), tag="name").name == "name"

    def test_encode_text_always_emits(self):
        node = encode_text("name", "")
        assert node.child("simpleValue") is not None


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------

def _value(inner: str):
    return parse_fragment(f"<ids:value>{inner}</ids:value>")


class TestDecode:
    def test_none(self):
        assert decode(None) == Absent()

    def test_enumeration_wins_over_pattern(self):
        node = _value(
            '<xs:restriction base="xs:string">'
            '<xs:pattern value="A.*"/>'
            '<xs:enumeration value="A"/><xs:enumeration value="B"/>'
            "</xs:restriction>"
        )
        assert decode(node) == Enumeration(values=("A", "B"))

    def test_bare_text(self):
        assert decode(_value("42")) == Simple(value="42")

    def test_empty_simple_value(self):
        assert decode(_value("<ids:simpleValue/>")) == Absent()

    def test_inclusive_bounds(self):
        node = _value(
            '<xs:restriction base="xs:double">'
            '<xs:minInclusive value="1"/><xs:maxInclusive value="9"/>'
            "</xs:restriction>"
        )
        assert decode(node) == Bounds(min="1", max="9")

    def test_unknown_restriction_degrades(self, caplog):
        node = _value('<xs:restriction base="xs:decimal"><xs:totalDigits value="3"/></xs:restriction>')
        with caplog.at_level(logging.WARNING, logger="idsauthor"):
            assert decode(node) == Absent()
        assert any("Unrecognised restriction" in r.message for r in caplog.records)

    def test_unknown_child_degrades(self, caplog):
        with caplog.at_level(logging.WARNING, logger="idsauthor"):
            assert decode(_value("<ids:something>x</ids:something>")) == Absent()
        assert caplog.records

    def test_bad_length_ignored(self, caplog):
        node = _value('<xs:restriction base="xs:string"><xs:length value="-3"/></xs:restriction>')
        with caplog.at_level(logging.WARNING, logger="idsauthor"):
            assert decode(node) == Absent()


class TestFirstText:
    def test_simple(self):
        assert first_text(_value("<ids:simpleValue> IfcWall </ids:simpleValue>")) == "IfcWall"

    def test_enumeration(self):
        node = _value(
            '<xs:restriction base="xs:string"><xs:enumeration value="IFCWALL"/>'
            '<xs:enumeration value="IFCSLAB"/></xs:restriction>'
        )
        assert first_text(node) == "IFCWALL"

    def test_none(self):
        assert first_text(None) is None


class TestLiteralEscaping:
    def test_round_trip(self):
        text = r"a.b|c(d)[e]{f}^g*h+i?\j"
        assert unescape_literal(escape_literal(text)) == text

    def test_dollar_is_literal(self):
        assert escape_literal("$5") == "$5"

    def test_unescaped_meta_is_not_literal(self):
        assert unescape_literal("a.b") is None
