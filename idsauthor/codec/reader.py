"""IDS XML import.

Reading is lenient: anything outside what the editor understands is logged
and skipped, and missing optional content takes its default.  Only input that
is not well-formed XML, or whose root is not ``{IDS}ids``, is rejected.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lxml import etree

from idsauthor.codec.sections import read_section_marker
from idsauthor.codec.tree import XmlNode, parse_document
from idsauthor.codec.values import decode, first_text
from idsauthor.config import (
    DEFAULT_IDS_TITLE,
    DEFAULT_IFC_VERSION,
    DEFAULT_SECTION_TITLE,
    IDS_NAMESPACE,
    IFC_RELATIONS,
    OPTIONALITIES,
    SUPPORTED_IFC_VERSIONS,
)
from idsauthor.models.document import (
    Applicability,
    IDSHeader,
    IDSRoot,
    IDSSection,
    IDSSpecification,
    Requirements,
)
from idsauthor.models.facets import (
    AttributeFacet,
    AttributeRequirement,
    ClassificationFacet,
    ClassificationRequirement,
    EntityFacet,
    EntityRequirement,
    MaterialFacet,
    MaterialRequirement,
    Optionality,
    PartOfFacet,
    PartOfRequirement,
    PropertyFacet,
    PropertyRequirement,
    new_id,
)

logger = logging.getLogger(__name__)

_HEADER_FIELDS = ("title", "copyright", "version", "description", "author", "date", "purpose", "milestone")


class IDSParseError(ValueError):
    """Raised when a document is not well-formed XML or not an IDS document."""


# ---------------------------------------------------------------------------
# Occurrence
# ---------------------------------------------------------------------------

def optionality_from_occurs(min_occurs: str | None, max_occurs: str | None) -> Optionality:
    """Map ``minOccurs``/``maxOccurs`` onto an optionality.

    ``max=0`` is prohibited, ``min=0`` with an unbounded (or missing) max is
    optional, and everything else is required.
    """
    lo = (min_occurs or "").strip()
    hi = (max_occurs or "").strip()
    if hi == "0":
        return "prohibited"
    if lo == "0" and hi in ("", "unbounded"):
        return "optional"
    if lo not in ("", "1") or hi not in ("", "unbounded"):
        logger.debug("Occurrence min=%r max=%r read as required", lo, hi)
    return "required"


def _cardinality(node: XmlNode) -> Optionality:
    value = (node.attr("cardinality") or "").strip().lower()
    if value in OPTIONALITIES:
        return value  # type: ignore[return-value]
    if value:
        logger.debug("Unknown cardinality %r read as required", value)
        return "required"
    # Pre-1.0 documents put occurrence attributes on each facet.
    if node.attr("minOccurs") is not None or node.attr("maxOccurs") is not None:
        return optionality_from_occurs(node.attr("minOccurs"), node.attr("maxOccurs"))
    return "required"


def _ifc_version(raw: str | None) -> str:
    tokens = (raw or "").split()
    if not tokens:
        return DEFAULT_IFC_VERSION
    if len(tokens) > 1:
        logger.info("Specification lists several IFC versions %s; keeping %s", tokens, tokens[0])
    version = tokens[0].upper()
    if version not in SUPPORTED_IFC_VERSIONS:
        logger.warning("Unsupported IFC version %r kept as written", tokens[0])
    return version


def _relation(raw: str | None) -> str | None:
    if not raw:
        return None
    relation = raw.strip().upper()
    if relation not in IFC_RELATIONS:
        logger.warning("Unknown partOf relation %r dropped", raw)
        return None
    return relation


# ---------------------------------------------------------------------------
# Facets
# ---------------------------------------------------------------------------

def _entity_fields(node: XmlNode) -> dict[str, str]:
    return {
        "ifc_class": first_text(node.child("name")) or "",
        "predefined_type": first_text(node.child("predefinedType")) or "",
    }


def _requirement_fields(node: XmlNode) -> dict[str, str]:
    return {
        "cardinality": _cardinality(node),
        "instructions": node.attr("instructions") or "",
    }


def _part_of_fields(node: XmlNode) -> dict:
    nested = node.child("entity")
    entity = EntityFacet(id=new_id("ent"), **_entity_fields(nested)) if nested is not None else EntityFacet(id=new_id("ent"))
    return {"relation": _relation(node.attr("relation")), "entity": entity}


def _classification_fields(node: XmlNode) -> dict:
    return {
        "system": first_text(node.child("system")) or "",
        "value": decode(node.child("value")),
        "uri": node.attr("uri") or "",
    }


def _attribute_fields(node: XmlNode) -> dict:
    return {
        "name": first_text(node.child("name")) or "",
        "value": decode(node.child("value")),
    }


def _property_fields(node: XmlNode) -> dict:
    return {
        "property_set": first_text(node.child("propertySet")) or "",
        "name": first_text(node.child("baseName")) or first_text(node.child("name")) or "",
        "datatype": node.attr("dataType") or node.attr("datatype") or "",
        "value": decode(node.child("value")),
    }


def _read_applicability(node: XmlNode | None) -> Applicability:
    if node is None:
        return Applicability()
    entities = node.children_named("entity")
    if len(entities) > 1:
        logger.warning("Applicability has %d entity facets; keeping the first", len(entities))
    return Applicability(
        entity=EntityFacet(id=new_id("ent"), **_entity_fields(entities[0])) if entities else None,
        part_of=tuple(
            PartOfFacet(id=new_id("part"), **_part_of_fields(n)) for n in node.children_named("partOf")
        ),
        classifications=tuple(
            ClassificationFacet(id=new_id("cls"), **_classification_fields(n))
            for n in node.children_named("classification")
        ),
        attributes=tuple(
            AttributeFacet(id=new_id("attr"), **_attribute_fields(n)) for n in node.children_named("attribute")
        ),
        properties=tuple(
            PropertyFacet(id=new_id("prop"), **_property_fields(n)) for n in node.children_named("property")
        ),
        materials=tuple(
            MaterialFacet(id=new_id("mat"), value=decode(n.child("value"))) for n in node.children_named("material")
        ),
    )


def _read_requirements(node: XmlNode | None) -> Requirements:
    if node is None:
        return Requirements()
    return Requirements(
        entities=tuple(
            EntityRequirement(
                id=new_id("ent"),
                instructions=n.attr("instructions") or "",
                **_entity_fields(n),
            )
            for n in node.children_named("entity")
        ),
        part_of=tuple(
            PartOfRequirement(id=new_id("part"), **_part_of_fields(n), **_requirement_fields(n))
            for n in node.children_named("partOf")
        ),
        classifications=tuple(
            ClassificationRequirement(id=new_id("cls"), **_classification_fields(n), **_requirement_fields(n))
            for n in node.children_named("classification")
        ),
        attributes=tuple(
            AttributeRequirement(id=new_id("attr"), **_attribute_fields(n), **_requirement_fields(n))
            for n in node.children_named("attribute")
        ),
        properties=tuple(
            PropertyRequirement(
                id=new_id("prop"),
                uri=n.attr("uri") or "",
                **_property_fields(n),
                **_requirement_fields(n),
            )
            for n in node.children_named("property")
        ),
        materials=tuple(
            MaterialRequirement(
                id=new_id("mat"),
                uri=n.attr("uri") or "",
                value=decode(n.child("value")),
                **_requirement_fields(n),
            )
            for n in node.children_named("material")
        ),
    )


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

def _read_header(info: XmlNode | None) -> IDSHeader:
    """Header text is kept as written, surrounding whitespace included."""
    if info is None:
        return IDSHeader(title=DEFAULT_IDS_TITLE)
    fields: dict[str, str] = {}
    for name in _HEADER_FIELDS:
        child = info.child(name)
        fields[name] = (child.text if child is not None else None) or ""
    fields["title"] = fields["title"] or DEFAULT_IDS_TITLE
    return IDSHeader(**fields)


def _read_specification(node: XmlNode, index: int) -> IDSSpecification:
    applicability = node.child("applicability")
    optionality: Optionality = "required"
    if applicability is not None:
        optionality = optionality_from_occurs(applicability.attr("minOccurs"), applicability.attr("maxOccurs"))
    return IDSSpecification(
        id=new_id("spec"),
        name=node.attr("name") or node.attr("title") or f"Specification {index}",
        description=node.attr("description") or "",
        identifier=node.attr("identifier") or "",
        instructions=node.attr("instructions") or "",
        ifc_version=_ifc_version(node.attr("ifcVersion")),
        optionality=optionality,
        applicability=_read_applicability(applicability),
        requirements=_read_requirements(node.child("requirements")),
    )


def _read_sections(specifications: XmlNode | None) -> list[IDSSection]:
    if specifications is None:
        return []
    # (title, description, specs) in document order
    drafts: list[tuple[str, str, list[IDSSpecification]]] = []
    index = 0
    for child in specifications.children:
        if child.kind == "comment":
            marker = read_section_marker(child)
            if marker is not None:
                drafts.append((marker["title"], marker["description"], []))
            continue
        if child.name != "specification":
            logger.debug("Skipping <%s> inside <specifications>", child.name)
            continue
        index += 1
        if not drafts:
            drafts.append((DEFAULT_SECTION_TITLE, "", []))
        drafts[-1][2].append(_read_specification(child, index))

    return [
        IDSSection(id=new_id("section"), title=title, description=description, specifications=tuple(specs))
        for title, description, specs in drafts
    ]


def from_xml(text: str | bytes) -> IDSRoot:
    """Parse IDS XML text into a fresh document with new ids.

    Raises
    ------
    IDSParseError
        If *text* is not well-formed XML or its root is not ``{IDS}ids``.
    """
    try:
        doc = parse_document(text)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise IDSParseError(f"Malformed XML: {exc}") from exc

    if doc.name != "ids" or doc.namespace != IDS_NAMESPACE:
        found = f"{{{doc.namespace}}}{doc.name}" if doc.namespace else doc.name
        raise IDSParseError(f"Not an IDS document: root element is <{found}>, expected <{{{IDS_NAMESPACE}}}ids>")

    root = IDSRoot(
        header=_read_header(doc.child("info")),
        sections=tuple(_read_sections(doc.child("specifications"))),
    )
    logger.info(
        "Imported IDS %r: %d sections, %d specifications",
        root.header.title,
        len(root.sections),
        sum(len(s.specifications) for s in root.sections),
    )
    return root


def read_ids_file(path: str | Path) -> IDSRoot:
    """Read an ``.ids``/``.xml`` file from disk."""
    return from_xml(Path(path).read_bytes())
