"""Facet workflows backed by bSDD lookups.

Each workflow reads a facet, asks the provider for the best matching class
and returns a new root with the facet updated.  When nothing is found (or
the lookup fails) the root is returned unchanged.
"""

from __future__ import annotations

import logging

from idsauthor.bsdd.client import BsddProvider
from idsauthor.bsdd.models import BsddClass
from idsauthor.config import IFC43_DICTIONARY_URI, MIN_SEARCH_TERM_LENGTH
from idsauthor.editing.operations import Scope, find_facet, update_facet
from idsauthor.models.document import IDSRoot

logger = logging.getLogger(__name__)


def _first_hit(provider: BsddProvider, term: str, dictionaries: list[str]) -> BsddClass | None:
    result = provider.search_classes(term, dictionaries, limit=1)
    return result.results[0] if result.results else None


def _with_ifc(dictionaries: list[str] | None) -> list[str]:
    dicts = list(dictionaries or [])
    if IFC43_DICTIONARY_URI not in dicts:
        dicts.append(IFC43_DICTIONARY_URI)
    return dicts


def apply_entity_uri(
    root: IDSRoot,
    provider: BsddProvider,
    spec_id: str,
    scope: Scope,
    entity_id: str,
) -> IDSRoot:
    """Resolve the entity's IFC class in the IFC 4.3 dictionary and store its URI."""
    facet = find_facet(root, spec_id, scope, "entity", entity_id)
    ifc_class = facet.ifc_class.strip()
    if not ifc_class:
        return root
    hit = _first_hit(provider, ifc_class.upper(), [IFC43_DICTIONARY_URI])
    if hit is None or not hit.uri:
        logger.debug("No bSDD class found for %s", ifc_class)
        return root
    return update_facet(root, spec_id, scope, "entity", entity_id, uri=hit.uri)


def apply_predefined_type(
    root: IDSRoot,
    provider: BsddProvider,
    spec_id: str,
    scope: Scope,
    entity_id: str,
    predefined_type: str,
    dictionaries: list[str] | None = None,
) -> IDSRoot:
    """Set the entity's predefined type, then resolve a URI for the pair.

    ``IFCWALLSHEAR`` style codes are tried before the bare class.  The
    predefined type is set even if no URI is found.
    """
    root = update_facet(root, spec_id, scope, "entity", entity_id, predefined_type=predefined_type or "")
    facet = find_facet(root, spec_id, scope, "entity", entity_id)
    ifc_class = facet.ifc_class.strip().upper()
    predef = (predefined_type or "").strip().upper()
    if not ifc_class or not predef:
        return root

    dicts = _with_ifc(dictionaries)
    for term in (f"{ifc_class}{predef}", ifc_class):
        hit = _first_hit(provider, term, dicts)
        if hit is not None and hit.uri:
            return update_facet(root, spec_id, scope, "entity", entity_id, uri=hit.uri)
    logger.debug("No bSDD class found for %s/%s", ifc_class, predef)
    return root


def classification_candidates(system: str, code: str, name: str = "") -> list[str]:
    """Search terms tried in turn for a classification, most specific first."""
    raw = [code, name, f"{name} {code}".strip(), system, f"{system} {name}".strip()]
    out: list[str] = []
    for term in (t.strip() for t in raw):
        if len(term) >= MIN_SEARCH_TERM_LENGTH and term not in out:
            out.append(term)
    return out


def apply_classification(
    root: IDSRoot,
    provider: BsddProvider,
    spec_id: str,
    scope: Scope,
    classification_id: str,
    dictionaries: list[str] | None = None,
    name: str = "",
) -> IDSRoot:
    """Fill system, value and URI of a classification from the first bSDD hit."""
    facet = find_facet(root, spec_id, scope, "classification", classification_id)
    code = facet.value.as_value() if facet.value.operator == "equals" else ""
    candidates = classification_candidates(facet.system, code or "", name)
    if not candidates:
        return root

    for term in candidates:
        hit = _first_hit(provider, term, list(dictionaries or []))
        if hit is None:
            continue
        logger.debug("Classification %s resolved by %r to %s", classification_id, term, hit.uri)
        return update_facet(
            root,
            spec_id,
            scope,
            "classification",
            classification_id,
            system=hit.dictionary_uri or hit.dictionary_name or facet.system,
            value={"operator": "equals", "value": hit.reference_code or hit.name or code},
            uri=hit.uri,
        )
    return root
