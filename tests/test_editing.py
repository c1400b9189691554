"""Tests for the copy-on-write editing operations."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from idsauthor.editing import (
    add_facet,
    add_section,
    add_specification,
    find_facet,
    find_specification,
    remove_facet,
    remove_section,
    remove_specification,
    set_facet_value,
    update_facet,
    update_header,
    update_section,
    update_specification,
)
from idsauthor.models import (
    Bounds,
    ClassificationFacet,
    Enumeration,
    EntityFacet,
    IDSRoot,
    PropertyRequirement,
    Simple,
    comparable,
    new_ids,
    new_section,
    new_specification,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _spec_id(root: IDSRoot) -> str:
    return root.sections[0].specifications[0].id


def _two_sections() -> IDSRoot:
    root = new_ids()
    return add_section(root, new_section())


# ---------------------------------------------------------------------------
# Copy-on-write
# ---------------------------------------------------------------------------

class TestCopyOnWrite:
    def test_input_not_modified(self):
        root = new_ids()
        before = comparable(root)
        update_header(root, title="Changed")
        add_facet(root, _spec_id(root), "requirements", "property")
        assert comparable(root) == before

    def test_untouched_branches_are_shared(self):
        root = _two_sections()
        spec_id = _spec_id(root)
        edited = update_specification(root, spec_id, description="Walls only")
        assert edited is not root
        assert edited.header is root.header
        assert edited.sections[1] is root.sections[1]
        assert edited.sections[0] is not root.sections[0]
        assert edited.sections[0].specifications[0].applicability is root.sections[0].specifications[0].applicability

    def test_facet_edit_shares_sibling_facets(self):
        root = new_ids()
        spec_id = _spec_id(root)
        root = add_facet(root, spec_id, "requirements", "property")
        root = add_facet(root, spec_id, "requirements", "property")
        first, second = find_specification(root, spec_id).requirements.properties
        edited = update_facet(root, spec_id, "requirements", "property", second.id, name="FireRating")
        props = find_specification(edited, spec_id).requirements.properties
        assert props[0] is first
        assert props[1].name == "FireRating"


# ---------------------------------------------------------------------------
# Header and sections
# ---------------------------------------------------------------------------

class TestHeaderAndSections:
    def test_update_header(self):
        root = update_header(new_ids(), title="Walls", author="a@example.com")
        assert root.header.title == "Walls"
        assert root.header.author == "a@example.com"

    def test_unknown_header_field(self):
        with pytest.raises(ValueError):
            update_header(new_ids(), colour="red")

    def test_add_default_section(self):
        root = add_section(new_ids())
        assert len(root.sections) == 2
        assert len(root.sections[1].specifications) == 1

    def test_duplicate_section_rejected(self):
        root = new_ids()
        with pytest.raises(ValueError):
            add_section(root, root.sections[0])

    def test_update_and_remove_section(self):
        root = _two_sections()
        second = root.sections[1].id
        root = update_section(root, second, title="Doors", description="Door rules")
        assert root.sections[1].title == "Doors"
        root = remove_section(root, second)
        assert second not in [s.id for s in root.sections]

    def test_specifications_not_editable_through_section(self):
        root = new_ids()
        with pytest.raises(ValueError):
            update_section(root, root.sections[0].id, specifications=())

    def test_unknown_section(self):
        with pytest.raises(KeyError):
            remove_section(new_ids(), "section-missing")


# ---------------------------------------------------------------------------
# Specifications
# ---------------------------------------------------------------------------

class TestSpecifications:
    def test_add_and_remove(self):
        root = new_ids()
        spec = new_specification()
        root = add_specification(root, root.sections[0].id, spec)
        assert find_specification(root, spec.id) is spec
        root = remove_specification(root, spec.id)
        with pytest.raises(KeyError):
            find_specification(root, spec.id)

    def test_section_may_become_empty(self):
        root = new_ids()
        root = remove_specification(root, _spec_id(root))
        assert root.sections[0].specifications == ()

    def test_name_and_title_stay_equal(self):
        root = new_ids()
        spec_id = _spec_id(root)
        root = update_specification(root, spec_id, name="Wall rules")
        spec = find_specification(root, spec_id)
        assert spec.name == spec.title == "Wall rules"
        root = update_specification(root, spec_id, title="Renamed")
        spec = find_specification(root, spec_id)
        assert spec.name == spec.title == "Renamed"

    def test_invalid_optionality(self):
        root = new_ids()
        with pytest.raises(ValidationError):
            update_specification(root, _spec_id(root), optionality="sometimes")

    def test_id_cannot_change(self):
        root = new_ids()
        with pytest.raises(ValueError):
            update_specification(root, _spec_id(root), id="spec-other")

    def test_unknown_specification(self):
        with pytest.raises(KeyError):
            update_specification(new_ids(), "spec-missing", name="x")


# ---------------------------------------------------------------------------
# Facets
# ---------------------------------------------------------------------------

class TestFacets:
    def test_single_applicability_entity(self):
        root = new_ids()
        spec_id = _spec_id(root)
        root = add_facet(root, spec_id, "applicability", "entity", EntityFacet(ifc_class="IFCWALL"))
        with pytest.raises(ValueError):
            add_facet(root, spec_id, "applicability", "entity")

    def test_requirements_allow_several_entities(self):
        root = new_ids()
        spec_id = _spec_id(root)
        root = add_facet(root, spec_id, "requirements", "entity")
        root = add_facet(root, spec_id, "requirements", "entity")
        assert len(find_specification(root, spec_id).requirements.entities) == 2

    def test_remove_entity(self):
        root = new_ids()
        spec_id = _spec_id(root)
        entity = EntityFacet(ifc_class="IFCWALL")
        root = add_facet(root, spec_id, "applicability", "entity", entity)
        root = remove_facet(root, spec_id, "applicability", "entity", entity.id)
        assert find_specification(root, spec_id).applicability.entity is None

    def test_wrong_facet_class(self):
        root = new_ids()
        with pytest.raises(ValueError):
            add_facet(root, _spec_id(root), "requirements", "classification", ClassificationFacet())

    def test_requirement_class_accepted(self):
        root = new_ids()
        spec_id = _spec_id(root)
        prop = PropertyRequirement(property_set="Pset_WallCommon", name="IsExternal", cardinality="optional")
        root = add_facet(root, spec_id, "requirements", "property", prop)
        assert find_facet(root, spec_id, "requirements", "property", prop.id).cardinality == "optional"

    def test_unknown_kind(self):
        root = new_ids()
        with pytest.raises(ValueError):
            add_facet(root, _spec_id(root), "requirements", "colour")

    def test_unknown_facet(self):
        root = new_ids()
        with pytest.raises(KeyError):
            remove_facet(root, _spec_id(root), "requirements", "property", "prop-missing")

    def test_invalid_relation(self):
        root = new_ids()
        spec_id = _spec_id(root)
        root = add_facet(root, spec_id, "applicability", "part_of")
        part = find_specification(root, spec_id).applicability.part_of[0]
        with pytest.raises(ValueError):
            update_facet(root, spec_id, "applicability", "part_of", part.id, relation="IFCRELFRIENDS")

    def test_relation_normalised(self):
        root = new_ids()
        spec_id = _spec_id(root)
        root = add_facet(root, spec_id, "applicability", "part_of")
        part = find_specification(root, spec_id).applicability.part_of[0]
        root = update_facet(root, spec_id, "applicability", "part_of", part.id, relation="IfcRelNests")
        assert find_facet(root, spec_id, "applicability", "part_of", part.id).relation == "IFCRELNESTS"


class TestSetFacetValue:
    def _with_property(self):
        root = new_ids()
        spec_id = _spec_id(root)
        root = add_facet(root, spec_id, "requirements", "property")
        prop_id = find_specification(root, spec_id).requirements.properties[0].id
        return root, spec_id, prop_id

    def test_bounds(self):
        root, spec_id, prop_id = self._with_property()
        root = set_facet_value(root, spec_id, "requirements", "property", prop_id, "bounds", "[10..20)")
        value = find_facet(root, spec_id, "requirements", "property", prop_id).value
        assert value == Bounds(min="10", max="20", max_exclusive=True)

    def test_enumeration(self):
        root, spec_id, prop_id = self._with_property()
        root = set_facet_value(root, spec_id, "requirements", "property", prop_id, "in", "REI30, REI60")
        value = find_facet(root, spec_id, "requirements", "property", prop_id).value
        assert value == Enumeration(values=("REI30", "REI60"))

    def test_equals(self):
        root, spec_id, prop_id = self._with_property()
        root = set_facet_value(root, spec_id, "requirements", "property", prop_id, "equals", "TRUE")
        assert find_facet(root, spec_id, "requirements", "property", prop_id).value == Simple(value="TRUE")

    def test_unknown_operator(self):
        root, spec_id, prop_id = self._with_property()
        with pytest.raises(ValueError):
            set_facet_value(root, spec_id, "requirements", "property", prop_id, "near", "1")
