"""Typed intermediate XML tree.

The reader and writer never touch lxml elements directly; they work on
:class:`XmlNode` values whose lookups return ``None`` (or an empty list)
when something is absent.  Conversion to and from lxml happens only here.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from lxml import etree

from idsauthor.config import IDS_NAMESPACE, NSMAP

logger = logging.getLogger(__name__)

# Control characters, lone surrogates and U+FFFE/U+FFFF are not allowed in XML 1.0, even escaped.
_XML_INCOMPATIBLE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f]|[%s-%s%s%s]" % (chr(0xD800), chr(0xDFFF), chr(0xFFFE), chr(0xFFFF))
)
REPLACEMENT_CHARACTER = chr(0xFFFD)


@dataclass
class XmlNode:
    """An XML element or comment."""

    name: str = ""
    """Local name; empty for comments."""

    namespace: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    """Unqualified attributes by local name; qualified ones as ``{ns}local``."""

    children: list[XmlNode] = field(default_factory=list)
    text: str | None = None
    kind: Literal["element", "comment"] = "element"

    def _matches(self, name: str, namespace: str | None) -> bool:
        return (
            self.kind == "element"
            and self.name == name
            and (self.namespace is None or self.namespace == namespace)
        )

    def child(self, name: str, namespace: str | None = IDS_NAMESPACE) -> XmlNode | None:
        """First element child called *name*, in *namespace* or unqualified."""
        for c in self.children:
            if c._matches(name, namespace):
                return c
        return None

    def children_named(self, name: str, namespace: str | None = IDS_NAMESPACE) -> list[XmlNode]:
        return [c for c in self.children if c._matches(name, namespace)]

    def elements(self) -> list[XmlNode]:
        return [c for c in self.children if c.kind == "element"]

    def attr(self, name: str) -> str | None:
        return self.attributes.get(name)

    def text_value(self) -> str | None:
        """Stripped text, or None when there is none."""
        if self.text is None:
            return None
        s = self.text.strip()
        return s or None


def element(
    name: str,
    *,
    namespace: str | None = IDS_NAMESPACE,
    attributes: dict[str, str] | None = None,
    children: list[XmlNode] | None = None,
    text: str | None = None,
) -> XmlNode:
    return XmlNode(
        name=name,
        namespace=namespace,
        attributes=dict(attributes or {}),
        children=list(children or []),
        text=text,
    )


def comment(text: str) -> XmlNode:
    return XmlNode(kind="comment", text=text)


# ---------------------------------------------------------------------------
# lxml conversion
# ---------------------------------------------------------------------------

def _parser(encoding: str | None = None) -> etree.XMLParser:
    return etree.XMLParser(
        encoding=encoding,
        remove_blank_text=True,
        resolve_entities=False,
        no_network=True,
    )


def find_incompatible(text: str) -> list[str]:
    """Characters in *text* that XML 1.0 cannot carry, in order of appearance."""
    return _XML_INCOMPATIBLE.findall(text)


def _xml_safe(text: str) -> str:
    if not _XML_INCOMPATIBLE.search(text):
        return text
    logger.warning("Replacing characters XML cannot carry in %r", text)
    return _XML_INCOMPATIBLE.sub(REPLACEMENT_CHARACTER, text)


def from_lxml(el: etree._Element) -> XmlNode:
    """Convert an lxml element (and its subtree) to an :class:`XmlNode`."""
    if isinstance(el, etree._Comment):
        return comment(el.text or "")
    qname = etree.QName(el)
    attributes: dict[str, str] = {}
    for key, value in el.attrib.items():
        aq = etree.QName(key)
        attributes[aq.localname if aq.namespace is None else key] = value
    children = [
        from_lxml(c)
        for c in el
        if isinstance(c, etree._Comment) or isinstance(c.tag, str)
    ]
    return XmlNode(
        name=qname.localname,
        namespace=qname.namespace,
        attributes=attributes,
        children=children,
        text=el.text,
    )


def to_lxml(node: XmlNode, parent: etree._Element | None = None) -> etree._Element:
    """Build the lxml element for *node*, appending it to *parent* if given.

    Characters XML cannot carry are replaced with U+FFFD (and logged), so
    building never fails on model text.
    """
    if node.kind == "comment":
        c = etree.Comment(_xml_safe(node.text or ""))
        if parent is not None:
            parent.append(c)
        return c
    tag = f"{{{node.namespace}}}{node.name}" if node.namespace else node.name
    if parent is None:
        el = etree.Element(tag, nsmap=NSMAP)
    else:
        el = etree.SubElement(parent, tag)
    for key, value in node.attributes.items():
        el.set(key, _xml_safe(value))
    if node.text is not None:
        el.text = _xml_safe(node.text)
    for c in node.children:
        to_lxml(c, el)
    return el


def parse_document(text: str | bytes) -> XmlNode:
    """Parse a complete XML document.

    Bytes are decoded as their XML declaration says.  Text is already
    decoded, so any ``encoding=`` in its declaration is ignored.

    Raises :class:`lxml.etree.XMLSyntaxError` when *text* is not well-formed.
    """
    if isinstance(text, str):
        return from_lxml(etree.fromstring(text.encode("utf-8"), parser=_parser("utf-8")))
    return from_lxml(etree.fromstring(text, parser=_parser()))


def parse_fragment(text: str) -> XmlNode:
    """Parse a single element that may use the ``ids``/``xs`` prefixes undeclared."""
    decls = " ".join(f'xmlns:{prefix}="{uri}"' for prefix, uri in NSMAP.items())
    wrapper = parse_document(f"<fragment {decls}>{text}</fragment>")
    elements = wrapper.elements()
    if not elements:
        raise ValueError("Fragment contains no element")
    return elements[0]


def serialize(node: XmlNode) -> str:
    """Pretty-printed document text with an XML declaration."""
    data = etree.tostring(
        to_lxml(node),
        pretty_print=True,
        xml_declaration=True,
        encoding="UTF-8",
    )
    return data.decode("utf-8")
