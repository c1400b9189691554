"""IDS document model, facets, and restriction values."""

from idsauthor.models.document import (
    Applicability,
    IDSHeader,
    IDSRoot,
    IDSSection,
    IDSSpecification,
    Requirements,
    comparable,
    new_attribute,
    new_attribute_requirement,
    new_classification,
    new_classification_requirement,
    new_entity,
    new_entity_requirement,
    new_ids,
    new_material,
    new_material_requirement,
    new_part_of,
    new_part_of_requirement,
    new_property,
    new_property_requirement,
    new_section,
    new_specification,
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
from idsauthor.models.restriction import (
    Absent,
    Bounds,
    Contains,
    Enumeration,
    Length,
    Pattern,
    Restriction,
    Simple,
    add_enumeration_values,
    format_bounds,
    join_enumeration,
    parse_bounds,
    restriction_from_operator,
    split_enumeration,
)

__all__ = [
    "Absent",
    "Applicability",
    "AttributeFacet",
    "AttributeRequirement",
    "Bounds",
    "ClassificationFacet",
    "ClassificationRequirement",
    "Contains",
    "EntityFacet",
    "EntityRequirement",
    "Enumeration",
    "IDSHeader",
    "IDSRoot",
    "IDSSection",
    "IDSSpecification",
    "Length",
    "MaterialFacet",
    "MaterialRequirement",
    "Optionality",
    "PartOfFacet",
    "PartOfRequirement",
    "Pattern",
    "PropertyFacet",
    "PropertyRequirement",
    "Requirements",
    "Restriction",
    "Simple",
    "add_enumeration_values",
    "comparable",
    "format_bounds",
    "join_enumeration",
    "new_attribute",
    "new_attribute_requirement",
    "new_classification",
    "new_classification_requirement",
    "new_entity",
    "new_entity_requirement",
    "new_id",
    "new_ids",
    "new_material",
    "new_material_requirement",
    "new_part_of",
    "new_part_of_requirement",
    "new_property",
    "new_property_requirement",
    "new_section",
    "new_specification",
    "parse_bounds",
    "restriction_from_operator",
    "split_enumeration",
]
