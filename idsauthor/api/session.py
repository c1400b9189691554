"""IdsSession: the single entry point an editor front end talks to.

Usage::

    from idsauthor import IdsSession
    from idsauthor.editing import update_header

    session = IdsSession()
    session.apply(update_header, title="Walls")
    session.xml                         # live preview
    session.download("out/")            # writes out/Walls.ids
    session.validate_model("model.ifc")
    session.import_file("other.ids")
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable

from idsauthor.bsdd.catalog import CatalogCache, IfcCatalog
from idsauthor.bsdd.client import BsddProvider, create_provider
from idsauthor.bsdd.lookups import apply_classification, apply_entity_uri, apply_predefined_type
from idsauthor.bsdd.models import BsddClassProperty, BsddLibrary, BsddSearchResult
from idsauthor.codec.reader import IDSParseError, from_xml
from idsauthor.codec.writer import to_xml
from idsauthor.config import DEFAULT_IDS_TITLE, IFC43_DICTIONARY_URI, load_config
from idsauthor.editing.operations import Scope
from idsauthor.ifc.tester import ModelValidationResult, run_ifctester
from idsauthor.models.document import IDSRoot, new_ids
from idsauthor.validation.rules.base import ValidationIssue
from idsauthor.validation.validator import ExportValidator

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def export_filename(title: str) -> str:
    """File name for a download: the title with path characters replaced."""
    stem = _UNSAFE_FILENAME.sub("_", title).strip(" .") or DEFAULT_IDS_TITLE
    return f"{stem}.ids"


class IdsSession:
    """Owns the open document and wires it to the outside world.

    The document is only ever replaced, never changed in place: every edit
    goes through :meth:`apply` with one of the
    :mod:`idsauthor.editing` operations.

    Parameters
    ----------
    root:
        Document to start from; a new document if omitted.
    config:
        Settings from :func:`idsauthor.config.load_config`.
    provider:
        bSDD provider; built from *config* on first use if omitted.
    catalog:
        Shared IFC catalogue cache.  When omitted and ``IDSAUTHOR_IFC_CATALOG``
        names a file, the session creates its own.
    """

    def __init__(
        self,
        root: IDSRoot | None = None,
        *,
        config: dict[str, str] | None = None,
        provider: BsddProvider | None = None,
        catalog: CatalogCache | None = None,
        validator: ExportValidator | None = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.root = root if root is not None else new_ids()
        self.validator = validator or ExportValidator()
        self._provider = provider
        if catalog is None and self.config.get("IDSAUTHOR_IFC_CATALOG"):
            catalog = CatalogCache(self.config["IDSAUTHOR_IFC_CATALOG"])
        self._catalog_cache = catalog
        self._catalog: IfcCatalog | None = None
        self.dictionaries: list[str] = [IFC43_DICTIONARY_URI]
        """bSDD dictionaries searched by the class and classification lookups."""

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def apply(self, operation: Callable[..., IDSRoot], *args: Any, **kwargs: Any) -> IDSRoot:
        """Run an editing operation on the current document and keep the result.

        If the operation raises, the current document is kept.
        """
        self.root = operation(self.root, *args, **kwargs)
        return self.root

    def new_document(self) -> IDSRoot:
        self.root = new_ids()
        return self.root

    @property
    def xml(self) -> str:
        """Preview of the current document as IDS XML, without validation."""
        return to_xml(self.root)

    def import_xml(self, text: str | bytes) -> IDSRoot:
        """Replace the document with one parsed from *text*.

        Raises
        ------
        IDSParseError
            ``"Failed to import: ..."``; the current document is kept.
        """
        try:
            root = from_xml(text)
        except IDSParseError as exc:
            logger.warning("Import failed: %s", exc)
            raise IDSParseError(f"Failed to import: {exc}") from exc
        self.root = root
        return root

    def import_file(self, path: str | Path) -> IDSRoot:
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            raise IDSParseError(f"Failed to import: {exc}") from exc
        return self.import_xml(data)

    # ------------------------------------------------------------------
    # Validation and export
    # ------------------------------------------------------------------

    def validate(self) -> list[ValidationIssue]:
        """All issues that would block export."""
        return self.validator.validate(self.root)

    def export(self) -> str:
        """Validated IDS XML.

        Raises
        ------
        ExportBlockedError
            With every issue found; no XML is produced.
        """
        self.validator.ensure_exportable(self.root)
        return to_xml(self.root)

    def download(self, directory: str | Path) -> Path:
        """Write the validated document to ``<directory>/<title>.ids``."""
        xml_text = self.export()
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        out = out_dir / export_filename(self.root.header.title)
        out.write_text(xml_text, encoding="utf-8")
        logger.info("Wrote %s", out)
        return out

    def validate_model(self, ifc_path: str | Path) -> ModelValidationResult:
        """Check an IFC model against the current document.

        Raises :class:`ExportBlockedError` before anything runs if the
        document does not pass validation.
        """
        xml_text = self.export()
        return run_ifctester(xml_text, ifc_path)

    # ------------------------------------------------------------------
    # bSDD and the IFC catalogue
    # ------------------------------------------------------------------

    @property
    def provider(self) -> BsddProvider:
        if self._provider is None:
            self._provider = create_provider(self.config)
        return self._provider

    def fetch_libraries(self, include_test: bool = False) -> list[BsddLibrary]:
        return self.provider.fetch_libraries(include_test)

    def search_classes(self, term: str, limit: int = 20) -> BsddSearchResult:
        return self.provider.search_classes(term, self.dictionaries, limit)

    def class_properties(self, class_uri: str, **kwargs: Any) -> list[BsddClassProperty]:
        return self.provider.class_properties(class_uri, **kwargs)

    def resolve_entity_uri(self, spec_id: str, scope: Scope, entity_id: str) -> IDSRoot:
        return self.apply(apply_entity_uri, self.provider, spec_id, scope, entity_id)

    def set_predefined_type(self, spec_id: str, scope: Scope, entity_id: str, predefined_type: str) -> IDSRoot:
        return self.apply(
            apply_predefined_type,
            self.provider,
            spec_id,
            scope,
            entity_id,
            predefined_type,
            self.dictionaries,
        )

    def resolve_classification(self, spec_id: str, scope: Scope, classification_id: str, name: str = "") -> IDSRoot:
        return self.apply(
            apply_classification,
            self.provider,
            spec_id,
            scope,
            classification_id,
            self.dictionaries,
            name,
        )

    @property
    def catalog(self) -> IfcCatalog | None:
        """The IFC catalogue, acquired from the cache on first use."""
        if self._catalog is None and self._catalog_cache is not None:
            self._catalog = self._catalog_cache.acquire()
        return self._catalog

    def predefined_types(self, ifc_class: str) -> list[str]:
        catalog = self.catalog
        return catalog.predefined_types(ifc_class) if catalog is not None else []

    def close(self) -> None:
        """Release the catalogue if this session acquired it."""
        if self._catalog is not None and self._catalog_cache is not None:
            self._catalog_cache.release()
        self._catalog = None

    def __enter__(self) -> IdsSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
