"""Editing operations on an IDS document; each returns a new root."""

from idsauthor.editing.operations import (
    FacetKind,
    Scope,
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

__all__ = [
    "FacetKind",
    "Scope",
    "add_facet",
    "add_section",
    "add_specification",
    "find_facet",
    "find_specification",
    "remove_facet",
    "remove_section",
    "remove_specification",
    "set_facet_value",
    "update_facet",
    "update_header",
    "update_section",
    "update_specification",
]
