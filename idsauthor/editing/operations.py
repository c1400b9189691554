"""Copy-on-write editing operations.

Every function takes the current :class:`~idsauthor.models.IDSRoot` and
returns a new one.  Only the path from the root to the edited node is
rebuilt; every other section, specification and facet is shared with the
input, which is never modified.

Unknown ids raise :class:`KeyError`.  Invalid field values raise
:class:`pydantic.ValidationError` (a :class:`ValueError`).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Literal, TypeVar

from pydantic import BaseModel

from idsauthor.models.document import (
    Applicability,
    IDSRoot,
    IDSSection,
    IDSSpecification,
    Requirements,
    new_attribute,
    new_attribute_requirement,
    new_classification,
    new_classification_requirement,
    new_entity,
    new_entity_requirement,
    new_material,
    new_material_requirement,
    new_part_of,
    new_part_of_requirement,
    new_property,
    new_property_requirement,
    new_section,
    new_specification,
)
from idsauthor.models.facets import Facet
from idsauthor.models.restriction import restriction_from_operator

logger = logging.getLogger(__name__)

Scope = Literal["applicability", "requirements"]
FacetKind = Literal["entity", "part_of", "classification", "attribute", "property", "material"]

M = TypeVar("M", bound=BaseModel)

# Collection field on Applicability/Requirements for each facet kind
_COLLECTIONS: dict[str, str] = {
    "entity": "entities",
    "part_of": "part_of",
    "classification": "classifications",
    "attribute": "attributes",
    "property": "properties",
    "material": "materials",
}

_FACTORIES: dict[tuple[str, str], Callable[[], Facet]] = {
    ("applicability", "entity"): new_entity,
    ("applicability", "part_of"): new_part_of,
    ("applicability", "classification"): new_classification,
    ("applicability", "attribute"): new_attribute,
    ("applicability", "property"): new_property,
    ("applicability", "material"): new_material,
    ("requirements", "entity"): new_entity_requirement,
    ("requirements", "part_of"): new_part_of_requirement,
    ("requirements", "classification"): new_classification_requirement,
    ("requirements", "attribute"): new_attribute_requirement,
    ("requirements", "property"): new_property_requirement,
    ("requirements", "material"): new_material_requirement,
}


def _replace(model: M, **changes: Any) -> M:
    """Return a validated copy of *model* with *changes* applied.

    Field values that are not changed are passed through as-is, so nested
    models keep their identity.
    """
    fields = type(model).model_fields
    unknown = sorted(set(changes) - set(fields))
    if unknown:
        raise ValueError(f"Unknown {type(model).__name__} field(s): {', '.join(unknown)}")
    if "id" in changes and changes["id"] != getattr(model, "id", None):
        raise ValueError("Ids cannot be changed")
    data = {name: getattr(model, name) for name in fields}
    data.update(changes)
    return type(model).model_validate(data)


def _with_sections(root: IDSRoot, sections: list[IDSSection]) -> IDSRoot:
    return _replace(root, sections=tuple(sections))


def _section_index(root: IDSRoot, section_id: str) -> int:
    for i, section in enumerate(root.sections):
        if section.id == section_id:
            return i
    raise KeyError(f"No section with id {section_id!r}")


def _spec_position(root: IDSRoot, spec_id: str) -> tuple[int, int]:
    for i, section in enumerate(root.sections):
        for j, spec in enumerate(section.specifications):
            if spec.id == spec_id:
                return i, j
    raise KeyError(f"No specification with id {spec_id!r}")


def _map_spec(root: IDSRoot, spec_id: str, fn: Callable[[IDSSpecification], IDSSpecification]) -> IDSRoot:
    i, j = _spec_position(root, spec_id)
    section = root.sections[i]
    specs = list(section.specifications)
    specs[j] = fn(specs[j])
    sections = list(root.sections)
    sections[i] = _replace(section, specifications=tuple(specs))
    return _with_sections(root, sections)


# ---------------------------------------------------------------------------
# Header and sections
# ---------------------------------------------------------------------------

def update_header(root: IDSRoot, **changes: Any) -> IDSRoot:
    """Set header fields (``title``, ``author``, ``date``, ...)."""
    return _replace(root, header=_replace(root.header, **changes))


def add_section(root: IDSRoot, section: IDSSection | None = None) -> IDSRoot:
    """Append *section*, or a new section holding one default specification."""
    section = section if section is not None else new_section()
    if any(s.id == section.id for s in root.sections):
        raise ValueError(f"Section id {section.id!r} already exists")
    logger.debug("Adding section %s", section.id)
    return _with_sections(root, [*root.sections, section])


def remove_section(root: IDSRoot, section_id: str) -> IDSRoot:
    i = _section_index(root, section_id)
    sections = list(root.sections)
    del sections[i]
    return _with_sections(root, sections)


def update_section(root: IDSRoot, section_id: str, **changes: Any) -> IDSRoot:
    """Set section fields such as ``title`` and ``description``."""
    if "specifications" in changes:
        raise ValueError("Use the specification operations to change a section's specifications")
    i = _section_index(root, section_id)
    sections = list(root.sections)
    sections[i] = _replace(sections[i], **changes)
    return _with_sections(root, sections)


# ---------------------------------------------------------------------------
# Specifications
# ---------------------------------------------------------------------------

def add_specification(root: IDSRoot, section_id: str, spec: IDSSpecification | None = None) -> IDSRoot:
    """Append *spec* (or a new default specification) to a section."""
    spec = spec if spec is not None else new_specification()
    if any(s.id == spec.id for _sec, s in root.iter_specifications()):
        raise ValueError(f"Specification id {spec.id!r} already exists")
    i = _section_index(root, section_id)
    sections = list(root.sections)
    sections[i] = _replace(sections[i], specifications=(*sections[i].specifications, spec))
    return _with_sections(root, sections)


def remove_specification(root: IDSRoot, spec_id: str) -> IDSRoot:
    i, j = _spec_position(root, spec_id)
    section = root.sections[i]
    specs = list(section.specifications)
    del specs[j]
    sections = list(root.sections)
    sections[i] = _replace(section, specifications=tuple(specs))
    return _with_sections(root, sections)


def update_specification(root: IDSRoot, spec_id: str, **changes: Any) -> IDSRoot:
    """Set specification fields.

    ``name`` and ``title`` are the same value; setting either sets both.
    """
    if "name" in changes or "title" in changes:
        display = changes.get("name", changes.get("title"))
        changes = {**changes, "name": display, "title": display}
    return _map_spec(root, spec_id, lambda spec: _replace(spec, **changes))


# ---------------------------------------------------------------------------
# Facets
# ---------------------------------------------------------------------------

def _check_kind(scope: str, kind: str) -> None:
    if scope not in ("applicability", "requirements"):
        raise ValueError(f"Unknown scope {scope!r}")
    if kind not in _COLLECTIONS:
        raise ValueError(f"Unknown facet kind {kind!r}")


def _group(spec: IDSSpecification, scope: Scope) -> Applicability | Requirements:
    return spec.applicability if scope == "applicability" else spec.requirements


def _with_group(spec: IDSSpecification, scope: Scope, group: Applicability | Requirements) -> IDSSpecification:
    return _replace(spec, **{scope: group})


def _facet_field(group: Applicability | Requirements, kind: str) -> str:
    if kind == "entity" and isinstance(group, Applicability):
        return "entity"
    return _COLLECTIONS[kind]


def add_facet(
    root: IDSRoot,
    spec_id: str,
    scope: Scope,
    kind: FacetKind,
    facet: Facet | None = None,
) -> IDSRoot:
    """Add a facet of *kind* to the applicability or requirements of a specification.

    Raises
    ------
    ValueError
        If the applicability already has an entity facet, or *facet* is not
        of the class expected for *scope* and *kind*.
    """
    _check_kind(scope, kind)
    factory = _FACTORIES[(scope, kind)]
    facet = facet if facet is not None else factory()
    expected = type(factory())
    if not isinstance(facet, expected):
        raise ValueError(f"{scope} {kind} facet must be a {expected.__name__}, got {type(facet).__name__}")

    def edit(spec: IDSSpecification) -> IDSSpecification:
        group = _group(spec, scope)
        field = _facet_field(group, kind)
        if field == "entity":
            if group.entity is not None:
                raise ValueError("Applicability already has an entity facet")
            return _with_group(spec, scope, _replace(group, entity=facet))
        return _with_group(spec, scope, _replace(group, **{field: (*getattr(group, field), facet)}))

    return _map_spec(root, spec_id, edit)


def remove_facet(root: IDSRoot, spec_id: str, scope: Scope, kind: FacetKind, facet_id: str) -> IDSRoot:
    _check_kind(scope, kind)

    def edit(spec: IDSSpecification) -> IDSSpecification:
        group = _group(spec, scope)
        field = _facet_field(group, kind)
        if field == "entity":
            if group.entity is None or group.entity.id != facet_id:
                raise KeyError(f"No entity facet with id {facet_id!r}")
            return _with_group(spec, scope, _replace(group, entity=None))
        items = getattr(group, field)
        kept = tuple(f for f in items if f.id != facet_id)
        if len(kept) == len(items):
            raise KeyError(f"No {kind} facet with id {facet_id!r}")
        return _with_group(spec, scope, _replace(group, **{field: kept}))

    return _map_spec(root, spec_id, edit)


def update_facet(
    root: IDSRoot,
    spec_id: str,
    scope: Scope,
    kind: FacetKind,
    facet_id: str,
    **changes: Any,
) -> IDSRoot:
    """Set fields of one facet, e.g. ``update_facet(..., ifc_class="IfcWall")``."""
    _check_kind(scope, kind)

    def edit(spec: IDSSpecification) -> IDSSpecification:
        group = _group(spec, scope)
        field = _facet_field(group, kind)
        if field == "entity":
            if group.entity is None or group.entity.id != facet_id:
                raise KeyError(f"No entity facet with id {facet_id!r}")
            return _with_group(spec, scope, _replace(group, entity=_replace(group.entity, **changes)))
        items = list(getattr(group, field))
        for n, f in enumerate(items):
            if f.id == facet_id:
                items[n] = _replace(f, **changes)
                return _with_group(spec, scope, _replace(group, **{field: tuple(items)}))
        raise KeyError(f"No {kind} facet with id {facet_id!r}")

    return _map_spec(root, spec_id, edit)


def set_facet_value(
    root: IDSRoot,
    spec_id: str,
    scope: Scope,
    kind: FacetKind,
    facet_id: str,
    operator: str | None,
    value: Any = None,
) -> IDSRoot:
    """Set a facet's value from the ``(operator, value)`` pair the form edits."""
    return update_facet(root, spec_id, scope, kind, facet_id, value=restriction_from_operator(operator, value))


def find_specification(root: IDSRoot, spec_id: str) -> IDSSpecification:
    i, j = _spec_position(root, spec_id)
    return root.sections[i].specifications[j]


def find_facet(root: IDSRoot, spec_id: str, scope: Scope, kind: FacetKind, facet_id: str) -> Facet:
    _check_kind(scope, kind)
    group = _group(find_specification(root, spec_id), scope)
    field = _facet_field(group, kind)
    if field == "entity":
        if group.entity is not None and group.entity.id == facet_id:
            return group.entity
    else:
        for f in getattr(group, field):
            if f.id == facet_id:
                return f
    raise KeyError(f"No {kind} facet with id {facet_id!r}")
