"""Value/restriction codec.

Turns a :mod:`restriction <idsauthor.models.restriction>` into the content of
an IDS value element and back::

    <ids:value><ids:simpleValue>30</ids:simpleValue></ids:value>

    <ids:value>
      <xs:restriction base="xs:string">
        <xs:enumeration value="A"/>
        <xs:enumeration value="B"/>
      </xs:restriction>
    </ids:value>

:func:`encode` and :func:`decode` are total.  Content that cannot be
recognised decodes to :class:`~idsauthor.models.restriction.Absent` and is
logged; the import carries on.
"""

from __future__ import annotations

import logging
import re

from idsauthor.codec.tree import XmlNode, element
from idsauthor.config import XS_NAMESPACE
from idsauthor.models.restriction import (
    Absent,
    Bounds,
    Contains,
    Enumeration,
    Length,
    Pattern,
    Simple,
)

logger = logging.getLogger(__name__)

# Characters with a meaning in XSD regular expressions outside a char class.
# "$" is a literal in XSD and "\$" is not a legal escape.
_REGEX_META = set("\\|.?*+(){}[]^")
_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def escape_literal(text: str) -> str:
    """Escape *text* so that it matches itself inside an XSD pattern."""
    return "".join("\\" + ch if ch in _REGEX_META else ch for ch in text)


def unescape_literal(text: str) -> str | None:
    """Inverse of :func:`escape_literal`; None if *text* is not a pure literal."""
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            if i + 1 >= len(text) or text[i + 1] not in _REGEX_META:
                return None
            out.append(text[i + 1])
            i += 2
            continue
        if ch in _REGEX_META:
            return None
        out.append(ch)
        i += 1
    return "".join(out)


def _xs(name: str, value: str) -> XmlNode:
    return element(name, namespace=XS_NAMESPACE, attributes={"value": value})


def _restriction(base: str, facets: list[XmlNode]) -> XmlNode:
    return element(
        "restriction",
        namespace=XS_NAMESPACE,
        attributes={"base": base},
        children=facets,
    )


def _is_number(s: str | None) -> bool:
    return s is None or bool(_NUMBER.match(s.strip()))


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------

def encode(restriction: Absent | Simple | Contains | Pattern | Enumeration | Bounds | Length, tag: str = "value") -> XmlNode | None:
    """Build the ``<ids:{tag}>`` element for *restriction*.

    Returns None for :class:`Absent` and for restrictions with no content;
    the caller omits the element, which in IDS means "value must exist".
    """
    if restriction.is_empty():
        return None

    if isinstance(restriction, Simple):
        content = element("simpleValue", text=restriction.value)
    elif isinstance(restriction, Contains):
        pattern = f".*{escape_literal(restriction.value)}.*"
        content = _restriction("xs:string", [_xs("pattern", pattern)])
    elif isinstance(restriction, Pattern):
        content = _restriction("xs:string", [_xs("pattern", restriction.value)])
    elif isinstance(restriction, Enumeration):
        content = _restriction("xs:string", [_xs("enumeration", v) for v in restriction.values])
    elif isinstance(restriction, Bounds):
        facets: list[XmlNode] = []
        if restriction.min:
            name = "minExclusive" if restriction.min_exclusive else "minInclusive"
            facets.append(_xs(name, restriction.min.strip()))
        if restriction.max:
            name = "maxExclusive" if restriction.max_exclusive else "maxInclusive"
            facets.append(_xs(name, restriction.max.strip()))
        base = "xs:double" if _is_number(restriction.min) and _is_number(restriction.max) else "xs:string"
        content = _restriction(base, facets)
    elif isinstance(restriction, Length):
        if restriction.is_exact:
            facets = [_xs("length", str(restriction.min))]
        else:
            facets = []
            if restriction.min is not None:
                facets.append(_xs("minLength", str(restriction.min)))
            if restriction.max is not None:
                facets.append(_xs("maxLength", str(restriction.max)))
        content = _restriction("xs:string", facets)
    else:
        return None

    return element(tag, children=[content])


def encode_text(tag: str, text: str) -> XmlNode:
    """``<ids:{tag}><ids:simpleValue>text</ids:simpleValue></ids:{tag}>``, always emitted."""
    return element(tag, children=[element("simpleValue", text=text)])


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------

def _values(restriction: XmlNode, facet: str) -> list[str]:
    return [
        v
        for v in (n.attr("value") for n in restriction.children_named(facet, XS_NAMESPACE))
        if v is not None
    ]


def _int(s: str) -> int | None:
    try:
        n = int(s.strip())
    except ValueError:
        return None
    return n if n >= 0 else None


def _decode_restriction(restriction: XmlNode) -> Absent | Contains | Pattern | Enumeration | Bounds | Length:
    enums = _values(restriction, "enumeration")
    if enums:
        if _values(restriction, "pattern"):
            logger.debug("Restriction has both enumeration and pattern; using enumeration")
        return Enumeration(values=tuple(enums))

    patterns = _values(restriction, "pattern")
    if patterns:
        if len(patterns) > 1:
            logger.debug("Restriction has %d patterns; keeping the first", len(patterns))
        p = patterns[0]
        if len(p) > 4 and p.startswith(".*") and p.endswith(".*"):
            literal = unescape_literal(p[2:-2])
            if literal:
                return Contains(value=literal)
        return Pattern(value=p)

    min_inc = _values(restriction, "minInclusive")
    min_exc = _values(restriction, "minExclusive")
    max_inc = _values(restriction, "maxInclusive")
    max_exc = _values(restriction, "maxExclusive")
    if min_inc or min_exc or max_inc or max_exc:
        return Bounds(
            min=(min_exc or min_inc)[0] if (min_exc or min_inc) else None,
            max=(max_exc or max_inc)[0] if (max_exc or max_inc) else None,
            min_exclusive=bool(min_exc),
            max_exclusive=bool(max_exc),
        )

    exact = [n for n in (_int(v) for v in _values(restriction, "length")) if n is not None]
    if exact:
        return Length.exact(exact[0])
    lo = [n for n in (_int(v) for v in _values(restriction, "minLength")) if n is not None]
    hi = [n for n in (_int(v) for v in _values(restriction, "maxLength")) if n is not None]
    if lo or hi:
        return Length(min=lo[0] if lo else None, max=hi[0] if hi else None)

    logger.warning(
        "Unrecognised restriction content %s; value dropped",
        [c.name for c in restriction.elements()],
    )
    return Absent()


def decode(node: XmlNode | None) -> Absent | Simple | Contains | Pattern | Enumeration | Bounds | Length:
    """Read the restriction held by an IDS value element.

    ``None`` or an element with neither text nor recognised children decodes
    to :class:`Absent`.  A pattern of the form ``.*<literal>.*`` reads as
    :class:`Contains`, whoever wrote it.
    """
    if node is None:
        return Absent()

    simple = node.child("simpleValue")
    if simple is not None:
        if simple.text:
            return Simple(value=simple.text)
        return Absent()

    restriction = node.child("restriction", XS_NAMESPACE)
    if restriction is not None:
        return _decode_restriction(restriction)

    text = node.text_value()
    if text is not None and not node.elements():
        return Simple(value=text)

    if node.elements():
        logger.warning(
            "Unrecognised value content in <%s>: %s; value dropped",
            node.name,
            [c.name for c in node.elements()],
        )
    return Absent()


def first_text(node: XmlNode | None) -> str | None:
    """Best single text for a name-like element.

    Prefers the simple value; falls back to the first enumeration value and
    then to the pattern, so a restricted name still yields something editable.
    """
    if node is None:
        return None
    simple = node.child("simpleValue")
    if simple is not None:
        return simple.text_value()
    restriction = node.child("restriction", XS_NAMESPACE)
    if restriction is not None:
        for facet in ("enumeration", "pattern"):
            values = _values(restriction, facet)
            if values:
                return values[0]
        return None
    return node.text_value()
