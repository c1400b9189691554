"""Tests for the IFC class catalogue and its shared cache."""

from __future__ import annotations

import json

import pytest

from idsauthor.bsdd import CatalogCache, IfcCatalog


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

CATALOG = {
    "classes": {
        "IfcWall": {
            "name": "IfcWall",
            "attributes": {
                "explicit": [
                    {"name": "Tag"},
                    {"name": "PredefinedType", "enumValues": ["MOVABLE", "PARAPET", "shear"]},
                ]
            },
        },
        "IfcDoor": {
            "attributes": {"explicit": [{"name": "PredefinedType", "enumValues": ["DOOR", "GATE"]}]},
        },
        "IfcBuilding": {"attributes": {"explicit": []}},
    }
}


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "ifc_classes.json"
    path.write_text(json.dumps(CATALOG), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# IfcCatalog
# ---------------------------------------------------------------------------

class TestIfcCatalog:
    def test_load(self, catalog_file):
        catalog = IfcCatalog.load(catalog_file)
        assert len(catalog) == 3
        assert catalog.classes == ["IFCBUILDING", "IFCDOOR", "IFCWALL"]

    def test_predefined_types(self):
        catalog = IfcCatalog.from_dict(CATALOG)
        assert catalog.predefined_types("IfcWall") == ["MOVABLE", "PARAPET", "SHEAR"]
        assert catalog.predefined_types("IFCBUILDING") == []
        assert catalog.predefined_types("IfcUnknown") == []

    def test_contains_is_case_insensitive(self):
        catalog = IfcCatalog.from_dict(CATALOG)
        assert "ifcdoor" in catalog
        assert "IfcWindow" not in catalog

    def test_allowed_filter(self):
        catalog = IfcCatalog.from_dict(CATALOG, allowed=["IFCWALL", "ifcdoor"])
        assert catalog.classes == ["IFCDOOR", "IFCWALL"]

    def test_returned_list_is_a_copy(self):
        catalog = IfcCatalog.from_dict(CATALOG)
        catalog.predefined_types("IfcDoor").append("X")
        assert catalog.predefined_types("IfcDoor") == ["DOOR", "GATE"]


# ---------------------------------------------------------------------------
# CatalogCache
# ---------------------------------------------------------------------------

class TestCatalogCache:
    def test_lazy_load(self, catalog_file):
        cache = CatalogCache(catalog_file)
        assert not cache.is_loaded
        catalog = cache.acquire()
        assert cache.is_loaded
        assert "IfcWall" in catalog

    def test_shared_between_holders(self):
        loads = []

        def loader():
            loads.append(1)
            return IfcCatalog.from_dict(CATALOG)

        cache = CatalogCache(loader=loader)
        first = cache.acquire()
        second = cache.acquire()
        assert first is second
        assert cache.refcount == 2
        assert len(loads) == 1

    def test_dropped_with_last_release_and_reloaded(self):
        loads = []

        def loader():
            loads.append(1)
            return IfcCatalog.from_dict(CATALOG)

        cache = CatalogCache(loader=loader)
        cache.acquire()
        cache.acquire()
        cache.release()
        assert cache.is_loaded
        cache.release()
        assert not cache.is_loaded
        cache.acquire()
        assert len(loads) == 2

    def test_over_release(self):
        cache = CatalogCache(loader=lambda: IfcCatalog({}))
        with pytest.raises(RuntimeError):
            cache.release()

    def test_context_manager(self, catalog_file):
        cache = CatalogCache(catalog_file)
        with cache as catalog:
            assert catalog.predefined_types("IfcDoor") == ["DOOR", "GATE"]
            assert cache.refcount == 1
        assert cache.refcount == 0
        assert not cache.is_loaded

    def test_needs_source(self):
        with pytest.raises(ValueError):
            CatalogCache()
