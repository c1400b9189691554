"""IFC class catalogue: class names and their predefined types.

The catalogue is read from a JSON file of the form::

    {"classes": {"IfcWall": {"name": "IfcWall", "attributes": {"explicit": [
        {"name": "PredefinedType", "enumValues": ["MOVABLE", "PARAPET", ...]}
    ]}}}}

Loading it is comparatively slow, so the application owns one
:class:`CatalogCache` and hands it to whoever needs the catalogue; the cache
loads on first :meth:`~CatalogCache.acquire` and drops the data when the
last holder releases it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)


class IfcCatalog:
    """Upper-case IFC class names mapped to their predefined types."""

    def __init__(self, predefined_types: dict[str, list[str]]) -> None:
        self._predefs = {k.upper(): [v.upper() for v in vals] for k, vals in predefined_types.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any], allowed: Iterable[str] | None = None) -> IfcCatalog:
        """Build from the decoded JSON.

        Parameters
        ----------
        data:
            Decoded catalogue JSON.
        allowed:
            Optional class names to keep, e.g. the classes published in the
            IFC 4.3 bSDD dictionary.  Compared case-insensitively.
        """
        keep = {a.upper() for a in allowed} if allowed is not None else None
        predefs: dict[str, list[str]] = {}
        for class_name, info in (data.get("classes") or {}).items():
            if keep is not None and class_name.upper() not in keep:
                continue
            explicit = ((info or {}).get("attributes") or {}).get("explicit") or []
            values: list[str] = []
            for attr in explicit:
                if str(attr.get("name", "")).lower() == "predefinedtype":
                    values = [str(v) for v in attr.get("enumValues") or []]
                    break
            predefs[class_name] = values
        return cls(predefs)

    @classmethod
    def load(cls, path: str | Path, allowed: Iterable[str] | None = None) -> IfcCatalog:
        """Read a catalogue JSON file."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        catalog = cls.from_dict(data, allowed)
        logger.info("Loaded IFC catalogue with %d classes from %s", len(catalog), path)
        return catalog

    def __len__(self) -> int:
        return len(self._predefs)

    def __contains__(self, ifc_class: object) -> bool:
        return isinstance(ifc_class, str) and ifc_class.upper() in self._predefs

    @property
    def classes(self) -> list[str]:
        """Sorted upper-case class names."""
        return sorted(self._predefs)

    def predefined_types(self, ifc_class: str) -> list[str]:
        """Predefined types of *ifc_class*; empty for unknown classes."""
        return list(self._predefs.get(ifc_class.upper(), []))


class CatalogCache:
    """Lazily loaded, reference-counted holder of an :class:`IfcCatalog`.

    Usage::

        cache = CatalogCache("ifc_classes.json")
        with cache as catalog:
            catalog.predefined_types("IfcWall")
    """

    def __init__(
        self,
        path: str | Path | None = None,
        loader: Callable[[], IfcCatalog] | None = None,
    ) -> None:
        if loader is None:
            if path is None:
                raise ValueError("CatalogCache needs a path or a loader")
            loader = lambda: IfcCatalog.load(path)  # noqa: E731
        self._loader = loader
        self._catalog: IfcCatalog | None = None
        self._refs = 0

    @property
    def refcount(self) -> int:
        return self._refs

    @property
    def is_loaded(self) -> bool:
        return self._catalog is not None

    def acquire(self) -> IfcCatalog:
        """Return the catalogue, loading it on first use."""
        if self._catalog is None:
            self._catalog = self._loader()
        self._refs += 1
        return self._catalog

    def release(self) -> None:
        """Give back one reference; the data is dropped with the last one."""
        if self._refs == 0:
            raise RuntimeError("CatalogCache.release() called more often than acquire()")
        self._refs -= 1
        if self._refs == 0:
            logger.debug("Releasing IFC catalogue")
            self._catalog = None

    def __enter__(self) -> IfcCatalog:
        return self.acquire()

    def __exit__(self, *exc: object) -> None:
        self.release()
