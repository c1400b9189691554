"""Facet models: the typed constraint units of a specification.

Applicability facets select model elements; requirement facets add
``cardinality`` and ``instructions`` (and ``uri`` where the IDS schema
allows one) on top of the same fields.
"""

from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from idsauthor.config import IFC_RELATIONS
from idsauthor.models.restriction import Absent, Restriction

Optionality = Literal["required", "optional", "prohibited"]


def new_id(prefix: str = "id") -> str:
    """Return a fresh id, unique for the lifetime of an open document."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class Facet(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("facet"))
    """Addressing token for editors; never serialised."""


class EntityFacet(Facet):
    """IFC class (and optional predefined type) of the element."""

    ifc_class: str = ""
    predefined_type: str = ""
    uri: str = ""
    """Dictionary URI resolved for the class; editor-side only."""


class ClassificationFacet(Facet):
    system: str = ""
    value: Restriction = Field(default_factory=Absent)
    uri: str = ""


class AttributeFacet(Facet):
    name: str = ""
    value: Restriction = Field(default_factory=Absent)


class PropertyFacet(Facet):
    property_set: str = ""
    name: str = ""
    datatype: str = ""
    """IFC simple type name, e.g. ``IFCLABEL``."""
    value: Restriction = Field(default_factory=Absent)

    @field_validator("datatype")
    @classmethod
    def _upper_datatype(cls, v: str) -> str:
        return v.strip().upper()


class MaterialFacet(Facet):
    value: Restriction = Field(default_factory=Absent)


class PartOfFacet(Facet):
    relation: str | None = None
    entity: EntityFacet = Field(default_factory=EntityFacet)

    @field_validator("relation")
    @classmethod
    def _known_relation(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        v = v.strip().upper()
        if v not in IFC_RELATIONS:
            raise ValueError(f"Unknown partOf relation: {v}")
        return v


class _RequirementMixin(BaseModel):
    model_config = ConfigDict(frozen=True)

    cardinality: Optionality = "required"
    instructions: str = ""


class EntityRequirement(EntityFacet):
    instructions: str = ""


class ClassificationRequirement(ClassificationFacet, _RequirementMixin):
    pass


class AttributeRequirement(AttributeFacet, _RequirementMixin):
    pass


class PropertyRequirement(PropertyFacet, _RequirementMixin):
    uri: str = ""


class MaterialRequirement(MaterialFacet, _RequirementMixin):
    uri: str = ""


class PartOfRequirement(PartOfFacet, _RequirementMixin):
    pass
