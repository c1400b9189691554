"""idsauthor: authoring core for buildingSMART IDS 1.0 documents."""

__version__ = "0.1.0"

from idsauthor.api.session import IdsSession
from idsauthor.bsdd.catalog import CatalogCache, IfcCatalog
from idsauthor.bsdd.client import create_provider
from idsauthor.codec.reader import IDSParseError, from_xml, read_ids_file
from idsauthor.codec.writer import to_xml, write_ids_file
from idsauthor.config import configure_logging, load_config
from idsauthor.ifc.tester import ModelValidationResult, run_ifctester
from idsauthor.models.document import (
    IDSHeader,
    IDSRoot,
    IDSSection,
    IDSSpecification,
    new_ids,
    new_section,
    new_specification,
)
from idsauthor.validation.validator import (
    ExportBlockedError,
    ExportValidator,
    ensure_exportable,
    validate,
)

__all__ = [
    "__version__",
    # Facade
    "IdsSession",
    # Model
    "IDSHeader",
    "IDSRoot",
    "IDSSection",
    "IDSSpecification",
    "new_ids",
    "new_section",
    "new_specification",
    # XML
    "IDSParseError",
    "from_xml",
    "read_ids_file",
    "to_xml",
    "write_ids_file",
    # Validation
    "ExportBlockedError",
    "ExportValidator",
    "ensure_exportable",
    "validate",
    # Collaborators
    "CatalogCache",
    "IfcCatalog",
    "ModelValidationResult",
    "create_provider",
    "run_ifctester",
    # Config
    "configure_logging",
    "load_config",
]
