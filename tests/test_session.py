"""Tests for the IdsSession facade."""

from __future__ import annotations

import json

import pytest

from idsauthor import IdsSession
from idsauthor.api import export_filename
from idsauthor.api import session as session_mod
from idsauthor.bsdd import BsddClass, BsddProvider, BsddSearchResult, CatalogCache, IfcCatalog, RestBsddProvider
from idsauthor.codec import IDSParseError, to_xml
from idsauthor.config import IFC43_DICTIONARY_URI
from idsauthor.editing import add_facet, find_facet, update_header, update_specification
from idsauthor.ifc import ModelValidationResult
from idsauthor.models import EntityFacet, comparable, new_ids
from idsauthor.validation import ExportBlockedError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

CONFIG = {"BSDD_TRANSPORT": "rest", "IDSAUTHOR_IFC_CATALOG": ""}


class _Provider(BsddProvider):
    def __init__(self, hits=None):
        super().__init__()
        self.hits = hits or {}
        self.searches = []

    @property
    def name(self):
        return "rest"

    def fetch_libraries(self, include_test=False):
        return []

    def search_classes(self, term, dictionaries, limit=20):
        self.searches.append((term, list(dictionaries), limit))
        return BsddSearchResult(results=self.hits.get(term, []), transport="rest")

    def get_class(self, uri):
        return None

    def class_properties(self, class_uri, **kwargs):
        return []


def _spec_id(session: IdsSession) -> str:
    return session.root.sections[0].specifications[0].id


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class TestDocument:
    def test_starts_with_new_document(self):
        session = IdsSession(config=CONFIG)
        assert len(session.root.sections) == 1
        assert session.root.header.title == "Untitled IDS"

    def test_apply_replaces_root(self):
        session = IdsSession(config=CONFIG)
        before = session.root
        after = session.apply(update_header, title="Walls")
        assert session.root is after
        assert before.header.title == "Untitled IDS"

    def test_failed_operation_keeps_root(self):
        session = IdsSession(config=CONFIG)
        before = session.root
        with pytest.raises(KeyError):
            session.apply(update_specification, "spec-missing", name="x")
        assert session.root is before

    def test_xml_preview_skips_validation(self):
        session = IdsSession(config=CONFIG)
        session.apply(update_header, title="")
        assert "<ids:ids" in session.xml

    def test_new_document(self):
        session = IdsSession(config=CONFIG)
        session.apply(update_header, title="Walls")
        session.new_document()
        assert session.root.header.title == "Untitled IDS"


class TestImport:
    def test_import_round_trip(self):
        source = update_header(new_ids(), title="Imported")
        session = IdsSession(config=CONFIG)
        root = session.import_xml(to_xml(source))
        assert session.root is root
        assert comparable(root) == comparable(source)

    def test_failed_import_keeps_document(self):
        session = IdsSession(config=CONFIG)
        before = session.root
        with pytest.raises(IDSParseError) as info:
            session.import_xml("<ids:ids")
        assert str(info.value).startswith("Failed to import:")
        assert session.root is before

    def test_not_an_ids_document(self):
        session = IdsSession(config=CONFIG)
        with pytest.raises(IDSParseError):
            session.import_xml("<html/>")

    def test_import_file(self, tmp_path):
        path = tmp_path / "walls.ids"
        path.write_text(to_xml(update_header(new_ids(), title="From file")), encoding="utf-8")
        session = IdsSession(config=CONFIG)
        assert session.import_file(path).header.title == "From file"

    def test_import_missing_file(self, tmp_path):
        session = IdsSession(config=CONFIG)
        with pytest.raises(IDSParseError, match="Failed to import"):
            session.import_file(tmp_path / "missing.ids")


# ---------------------------------------------------------------------------
# Validation and export
# ---------------------------------------------------------------------------

class TestExport:
    def test_export_valid(self):
        session = IdsSession(config=CONFIG)
        assert session.validate() == []
        assert session.export().startswith("<?xml")

    def test_export_blocked(self):
        session = IdsSession(config=CONFIG)
        session.apply(update_specification, _spec_id(session), name="")
        with pytest.raises(ExportBlockedError) as info:
            session.export()
        assert info.value.messages == ["Specification name is required."]

    def test_text_xml_cannot_carry(self):
        session = IdsSession(config=CONFIG)
        session.apply(update_header, title="Walls\x0b")
        assert "<ids:ids" in session.xml
        with pytest.raises(ExportBlockedError) as info:
            session.export()
        assert info.value.messages == ["Text contains characters that cannot be written to XML."]

    def test_download(self, tmp_path):
        session = IdsSession(config=CONFIG)
        session.apply(update_header, title="Walls: phase 1")
        out = session.download(tmp_path / "out")
        assert out.name == "Walls_ phase 1.ids"
        assert out.read_text(encoding="utf-8") == session.export()

    def test_download_blocked_writes_nothing(self, tmp_path):
        session = IdsSession(config=CONFIG)
        session.apply(update_header, title=" ")
        with pytest.raises(ExportBlockedError):
            session.download(tmp_path)
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Walls", "Walls.ids"),
            ("a/b\\c", "a_b_c.ids"),
            ("  ", "Untitled IDS.ids"),
        ],
    )
    def test_export_filename(self, title, expected):
        assert export_filename(title) == expected


class TestValidateModel:
    def test_runs_on_exported_xml(self, monkeypatch, tmp_path):
        calls = []

        def fake_run(xml_text, ifc_path):
            calls.append((xml_text, ifc_path))
            return ModelValidationResult(ok=True, summary="1/1 specifications passed")

        monkeypatch.setattr(session_mod, "run_ifctester", fake_run)
        session = IdsSession(config=CONFIG)
        result = session.validate_model(tmp_path / "model.ifc")
        assert result.ok
        assert calls == [(session.export(), tmp_path / "model.ifc")]

    def test_blocked_before_running(self, monkeypatch, tmp_path):
        calls = []
        monkeypatch.setattr(session_mod, "run_ifctester", lambda *args: calls.append(args))
        session = IdsSession(config=CONFIG)
        session.apply(update_header, title="")
        with pytest.raises(ExportBlockedError):
            session.validate_model(tmp_path / "model.ifc")
        assert calls == []


# ---------------------------------------------------------------------------
# bSDD and catalogue
# ---------------------------------------------------------------------------

class TestCollaborators:
    def test_provider_from_config(self):
        assert isinstance(IdsSession(config=CONFIG).provider, RestBsddProvider)

    def test_search_uses_session_dictionaries(self):
        provider = _Provider()
        session = IdsSession(config=CONFIG, provider=provider)
        session.dictionaries.append("https://d.test/uniclass")
        session.search_classes("wall", limit=5)
        assert provider.searches == [("wall", [IFC43_DICTIONARY_URI, "https://d.test/uniclass"], 5)]

    def test_resolve_entity_uri(self):
        uri = f"{IFC43_DICTIONARY_URI}/class/IfcWall"
        provider = _Provider({"IFCWALL": [BsddClass(name="IfcWall", reference_code="IfcWall", uri=uri)]})
        session = IdsSession(config=CONFIG, provider=provider)
        entity = EntityFacet(ifc_class="IfcWall")
        spec_id = _spec_id(session)
        session.apply(add_facet, spec_id, "applicability", "entity", entity)
        session.resolve_entity_uri(spec_id, "applicability", entity.id)
        assert find_facet(session.root, spec_id, "applicability", "entity", entity.id).uri == uri

    def test_catalog_from_config(self, tmp_path):
        path = tmp_path / "ifc.json"
        path.write_text(
            json.dumps(
                {"classes": {"IfcWall": {"attributes": {"explicit": [
                    {"name": "PredefinedType", "enumValues": ["SHEAR"]}
                ]}}}}
            ),
            encoding="utf-8",
        )
        with IdsSession(config={**CONFIG, "IDSAUTHOR_IFC_CATALOG": str(path)}) as session:
            assert session.predefined_types("IfcWall") == ["SHEAR"]

    def test_no_catalog(self):
        session = IdsSession(config=CONFIG)
        assert session.catalog is None
        assert session.predefined_types("IfcWall") == []

    def test_shared_cache_released_on_close(self):
        cache = CatalogCache(loader=lambda: IfcCatalog({"IfcDoor": ["GATE"]}))
        first = IdsSession(config=CONFIG, catalog=cache)
        second = IdsSession(config=CONFIG, catalog=cache)
        assert first.catalog is second.catalog
        assert cache.refcount == 2
        first.close()
        assert cache.is_loaded
        second.close()
        assert not cache.is_loaded

    def test_close_without_catalog_use(self):
        cache = CatalogCache(loader=lambda: IfcCatalog({}))
        IdsSession(config=CONFIG, catalog=cache).close()
        assert cache.refcount == 0
