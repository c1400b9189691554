"""buildingSMART Data Dictionary (bSDD) lookups and the IFC class catalogue."""

from idsauthor.bsdd.catalog import CatalogCache, IfcCatalog
from idsauthor.bsdd.client import (
    DEFAULT_LIBRARIES,
    BsddProvider,
    GraphqlBsddProvider,
    RestBsddProvider,
    create_provider,
    dictionary_uri_of,
    rank_classes,
)
from idsauthor.bsdd.lookups import (
    apply_classification,
    apply_entity_uri,
    apply_predefined_type,
    classification_candidates,
)
from idsauthor.bsdd.models import (
    BsddClass,
    BsddClassDetail,
    BsddClassProperty,
    BsddLibrary,
    BsddSearchResult,
)

__all__ = [
    "DEFAULT_LIBRARIES",
    "BsddClass",
    "BsddClassDetail",
    "BsddClassProperty",
    "BsddLibrary",
    "BsddProvider",
    "BsddSearchResult",
    "CatalogCache",
    "GraphqlBsddProvider",
    "IfcCatalog",
    "RestBsddProvider",
    "apply_classification",
    "apply_entity_uri",
    "apply_predefined_type",
    "classification_candidates",
    "create_provider",
    "dictionary_uri_of",
    "rank_classes",
]
