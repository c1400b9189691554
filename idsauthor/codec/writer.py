"""IDS XML export.

Usage::

    from idsauthor.codec import to_xml

    xml_text = to_xml(ids_root)

Export is deterministic and never modifies the model.  It does not check
that the document is complete; callers gate it with
:func:`idsauthor.validation.ensure_exportable`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from idsauthor.codec.sections import section_comment
from idsauthor.codec.tree import XmlNode, element, serialize
from idsauthor.codec.values import encode, encode_text
from idsauthor.config import (
    DEFAULT_IDS_TITLE,
    DEFAULT_IFC_VERSION,
    IDS_SCHEMA_LOCATION,
    XSI_NAMESPACE,
)
from idsauthor.models.document import (
    Applicability,
    IDSHeader,
    IDSRoot,
    IDSSpecification,
    Requirements,
)
from idsauthor.models.facets import (
    AttributeFacet,
    ClassificationFacet,
    EntityFacet,
    MaterialFacet,
    PartOfFacet,
    PropertyFacet,
)

logger = logging.getLogger(__name__)

# XSD order of the <ids:info> children
_HEADER_FIELDS = ("title", "copyright", "version", "description", "author", "date", "purpose", "milestone")

_OCCURS = {
    "required": ("1", "unbounded"),
    "optional": ("0", "unbounded"),
    "prohibited": ("0", "0"),
}


def _requirement_attrs(facet: object) -> dict[str, str]:
    """``cardinality``/``instructions`` for requirement facets; nothing otherwise."""
    attrs: dict[str, str] = {}
    cardinality = getattr(facet, "cardinality", None)
    if cardinality:
        attrs["cardinality"] = cardinality
    instructions = getattr(facet, "instructions", "")
    if instructions:
        attrs["instructions"] = instructions
    return attrs


def _append(children: list[XmlNode], node: XmlNode | None) -> None:
    if node is not None:
        children.append(node)


# ---------------------------------------------------------------------------
# Facets
# ---------------------------------------------------------------------------

def _entity(facet: EntityFacet) -> XmlNode:
    children = [encode_text("name", facet.ifc_class)]
    if facet.predefined_type:
        children.append(encode_text("predefinedType", facet.predefined_type))
    return element("entity", attributes=_requirement_attrs(facet), children=children)


def _part_of(facet: PartOfFacet) -> XmlNode:
    attrs: dict[str, str] = {}
    if facet.relation:
        attrs["relation"] = facet.relation
    attrs.update(_requirement_attrs(facet))
    # The nested entity never carries requirement attributes.
    nested = element("entity", children=_entity(facet.entity).children)
    return element("partOf", attributes=attrs, children=[nested])


def _classification(facet: ClassificationFacet) -> XmlNode:
    attrs: dict[str, str] = {}
    if facet.uri:
        attrs["uri"] = facet.uri
    attrs.update(_requirement_attrs(facet))
    children: list[XmlNode] = []
    _append(children, encode(facet.value))
    children.append(encode_text("system", facet.system))
    return element("classification", attributes=attrs, children=children)


def _attribute(facet: AttributeFacet) -> XmlNode:
    children = [encode_text("name", facet.name)]
    _append(children, encode(facet.value))
    return element("attribute", attributes=_requirement_attrs(facet), children=children)


def _property(facet: PropertyFacet) -> XmlNode:
    attrs: dict[str, str] = {}
    if facet.datatype:
        attrs["dataType"] = facet.datatype
    uri = getattr(facet, "uri", "")
    if uri:
        attrs["uri"] = uri
    attrs.update(_requirement_attrs(facet))
    children = [
        encode_text("propertySet", facet.property_set),
        encode_text("baseName", facet.name),
    ]
    _append(children, encode(facet.value))
    return element("property", attributes=attrs, children=children)


def _material(facet: MaterialFacet) -> XmlNode:
    attrs: dict[str, str] = {}
    uri = getattr(facet, "uri", "")
    if uri:
        attrs["uri"] = uri
    attrs.update(_requirement_attrs(facet))
    children: list[XmlNode] = []
    _append(children, encode(facet.value))
    return element("material", attributes=attrs, children=children)


def _facets(group: Applicability | Requirements) -> list[XmlNode]:
    children: list[XmlNode] = []
    if isinstance(group, Applicability):
        if group.entity is not None:
            children.append(_entity(group.entity))
    else:
        children.extend(_entity(e) for e in group.entities)
    children.extend(_part_of(p) for p in group.part_of)
    children.extend(_classification(c) for c in group.classifications)
    children.extend(_attribute(a) for a in group.attributes)
    children.extend(_property(p) for p in group.properties)
    children.extend(_material(m) for m in group.materials)
    return children


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

def _info(header: IDSHeader) -> XmlNode:
    children: list[XmlNode] = []
    for name in _HEADER_FIELDS:
        value = getattr(header, name)
        if name == "title":
            value = value or DEFAULT_IDS_TITLE
        if value:
            children.append(element(name, text=value))
    return element("info", children=children)


def _specification(spec: IDSSpecification, index: int) -> XmlNode:
    attrs = {
        "name": spec.name or f"Specification {index}",
        "ifcVersion": spec.ifc_version or DEFAULT_IFC_VERSION,
    }
    if spec.identifier:
        attrs["identifier"] = spec.identifier
    if spec.description:
        attrs["description"] = spec.description
    if spec.instructions:
        attrs["instructions"] = spec.instructions

    min_occurs, max_occurs = _OCCURS[spec.optionality]
    children = [
        element(
            "applicability",
            attributes={"minOccurs": min_occurs, "maxOccurs": max_occurs},
            children=_facets(spec.applicability),
        )
    ]
    if not spec.requirements.is_empty():
        children.append(element("requirements", children=_facets(spec.requirements)))
    return element("specification", attributes=attrs, children=children)


def build_document(root: IDSRoot) -> XmlNode:
    """Build the XML tree for *root* without serialising it."""
    specifications = element("specifications")
    index = 0
    for section in root.sections:
        specifications.children.append(section_comment(section))
        for spec in section.specifications:
            index += 1
            specifications.children.append(_specification(spec, index))
    logger.debug("Exporting %d specifications in %d sections", index, len(root.sections))

    return element(
        "ids",
        attributes={f"{{{XSI_NAMESPACE}}}schemaLocation": IDS_SCHEMA_LOCATION},
        children=[_info(root.header), specifications],
    )


def to_xml(root: IDSRoot) -> str:
    """Serialise *root* as IDS XML text."""
    return serialize(build_document(root))


def write_ids_file(root: IDSRoot, path: str | Path) -> Path:
    """Write *root* to *path* as UTF-8 IDS XML and return the path."""
    out = Path(path)
    out.write_text(to_xml(root), encoding="utf-8")
    return out
