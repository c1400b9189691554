"""IDS document model: header, sections and specifications.

The whole document is an immutable tree of frozen pydantic models.  Edits
(see :mod:`idsauthor.editing`) build a new root and share every untouched
branch with the previous one, so a snapshot handed out earlier is never
changed in place.
"""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from idsauthor.config import (
    DEFAULT_IDS_TITLE,
    DEFAULT_IDS_VERSION,
    DEFAULT_IFC_VERSION,
    DEFAULT_RELATION,
    NEW_SECTION_TITLE,
    NEW_SPECIFICATION_NAME,
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


def _check_unique(items: Iterable[Any], what: str) -> None:
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Duplicate {what} id: {item.id}")
        seen.add(item.id)


class Applicability(BaseModel):
    """Facets selecting the elements a specification applies to."""

    model_config = ConfigDict(frozen=True)

    entity: EntityFacet | None = None
    part_of: tuple[PartOfFacet, ...] = ()
    classifications: tuple[ClassificationFacet, ...] = ()
    attributes: tuple[AttributeFacet, ...] = ()
    properties: tuple[PropertyFacet, ...] = ()
    materials: tuple[MaterialFacet, ...] = ()

    @model_validator(mode="after")
    def _unique_ids(self) -> Applicability:
        for name in ("part_of", "classifications", "attributes", "properties", "materials"):
            _check_unique(getattr(self, name), name)
        return self

    def is_empty(self) -> bool:
        return self.entity is None and not any(
            (self.part_of, self.classifications, self.attributes, self.properties, self.materials)
        )


class Requirements(BaseModel):
    """Facets applicable elements must satisfy."""

    model_config = ConfigDict(frozen=True)

    entities: tuple[EntityRequirement, ...] = ()
    part_of: tuple[PartOfRequirement, ...] = ()
    classifications: tuple[ClassificationRequirement, ...] = ()
    attributes: tuple[AttributeRequirement, ...] = ()
    properties: tuple[PropertyRequirement, ...] = ()
    materials: tuple[MaterialRequirement, ...] = ()

    @model_validator(mode="after")
    def _unique_ids(self) -> Requirements:
        for name in ("entities", "part_of", "classifications", "attributes", "properties", "materials"):
            _check_unique(getattr(self, name), name)
        return self

    def is_empty(self) -> bool:
        return not any(
            (self.entities, self.part_of, self.classifications, self.attributes, self.properties, self.materials)
        )


class IDSSpecification(BaseModel):
    """One rule: applicability filter plus requirements."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("spec"))
    name: str = ""
    title: str = ""
    """Legacy alias of :attr:`name`; always kept equal to it."""
    description: str = ""
    identifier: str = ""
    instructions: str = ""
    ifc_version: str = DEFAULT_IFC_VERSION
    optionality: Optionality = "required"
    applicability: Applicability = Field(default_factory=Applicability)
    requirements: Requirements = Field(default_factory=Requirements)

    @model_validator(mode="before")
    @classmethod
    def _sync_name_title(cls, data: Any) -> Any:
        if isinstance(data, dict):
            display = data.get("name") or data.get("title") or ""
            data = {**data, "name": display, "title": display}
        return data

    @property
    def display_name(self) -> str:
        return (self.name or self.title).strip()


class IDSSection(BaseModel):
    """Editor-side grouping of specifications."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("section"))
    title: str = ""
    description: str = ""
    specifications: tuple[IDSSpecification, ...] = ()

    @model_validator(mode="after")
    def _unique_ids(self) -> IDSSection:
        _check_unique(self.specifications, "specification")
        return self


class IDSHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = DEFAULT_IDS_TITLE
    description: str = ""
    author: str = ""
    date: str = ""
    """ISO-8601 date."""
    version: str = ""
    copyright: str = ""
    purpose: str = ""
    milestone: str = ""


class IDSRoot(BaseModel):
    """Top-level IDS document."""

    model_config = ConfigDict(frozen=True)

    header: IDSHeader = Field(default_factory=IDSHeader)
    sections: tuple[IDSSection, ...] = ()

    @model_validator(mode="after")
    def _unique_ids(self) -> IDSRoot:
        _check_unique(self.sections, "section")
        return self

    def iter_specifications(self) -> Iterable[tuple[IDSSection, IDSSpecification]]:
        """Yield every ``(section, specification)`` pair in document order."""
        for section in self.sections:
            for spec in section.specifications:
                yield section, spec


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def new_entity() -> EntityFacet:
    return EntityFacet(id=new_id("ent"))


def new_classification() -> ClassificationFacet:
    return ClassificationFacet(id=new_id("cls"))


def new_attribute() -> AttributeFacet:
    return AttributeFacet(id=new_id("attr"))


def new_property() -> PropertyFacet:
    return PropertyFacet(id=new_id("prop"))


def new_material() -> MaterialFacet:
    return MaterialFacet(id=new_id("mat"))


def new_part_of() -> PartOfFacet:
    return PartOfFacet(id=new_id("part"), relation=DEFAULT_RELATION, entity=new_entity())


def new_entity_requirement() -> EntityRequirement:
    return EntityRequirement(id=new_id("ent"))


def new_classification_requirement() -> ClassificationRequirement:
    return ClassificationRequirement(id=new_id("cls"))


def new_attribute_requirement() -> AttributeRequirement:
    return AttributeRequirement(id=new_id("attr"))


def new_property_requirement() -> PropertyRequirement:
    return PropertyRequirement(id=new_id("prop"))


def new_material_requirement() -> MaterialRequirement:
    return MaterialRequirement(id=new_id("mat"))


def new_part_of_requirement() -> PartOfRequirement:
    return PartOfRequirement(id=new_id("part"), relation=DEFAULT_RELATION, entity=new_entity())


def new_specification() -> IDSSpecification:
    return IDSSpecification(
        id=new_id("spec"),
        name=NEW_SPECIFICATION_NAME,
        ifc_version=DEFAULT_IFC_VERSION,
        optionality="required",
    )


def new_section() -> IDSSection:
    """A new section holding one default specification."""
    return IDSSection(
        id=new_id("section"),
        title=NEW_SECTION_TITLE,
        specifications=(new_specification(),),
    )


def new_ids() -> IDSRoot:
    """The document a user starts from."""
    return IDSRoot(
        header=IDSHeader(title=DEFAULT_IDS_TITLE, version=DEFAULT_IDS_VERSION),
        sections=(new_section(),),
    )


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------

def _comparable_data(data: Any) -> Any:
    if isinstance(data, dict):
        out = {k: _comparable_data(v) for k, v in data.items() if k != "id"}
        if out.get("operator") == "bounds":
            # The flag of an open bound is never written.
            out["min_exclusive"] = bool(out["min"]) and out["min_exclusive"]
            out["max_exclusive"] = bool(out["max"]) and out["max_exclusive"]
        return out
    if isinstance(data, list):
        return [_comparable_data(v) for v in data]
    return data


def comparable(model: BaseModel) -> dict[str, Any]:
    """Dump *model* with every ``id`` removed.

    Two documents that differ only in their generated ids compare equal.
    The exclusivity flag of an open bound is dropped to ``False`` as well,
    matching what an XML round trip gives back.
    """
    return _comparable_data(model.model_dump(mode="json"))
