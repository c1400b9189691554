"""bSDD providers: class search and lookups over REST or GraphQL.

Usage::

    from idsauthor.bsdd import create_provider

    provider = create_provider(load_config())
    hits = provider.search_classes("wall", [IFC43_DICTIONARY_URI], limit=5)

A provider never raises for a remote failure: HTTP errors, timeouts and
undecodable payloads are logged at WARNING and an empty result is returned.
"""

from __future__ import annotations

import abc
import logging
from typing import Any
from urllib.parse import urlsplit

import requests

from idsauthor.bsdd.models import (
    BsddClass,
    BsddClassDetail,
    BsddClassProperty,
    BsddLibrary,
    BsddSearchResult,
)
from idsauthor.config import IFC43_DICTIONARY_URI, MIN_SEARCH_TERM_LENGTH, load_config

logger = logging.getLogger(__name__)

# Returned when the dictionary list cannot be fetched, so IFC stays selectable.
DEFAULT_LIBRARIES = [BsddLibrary(uri=IFC43_DICTIONARY_URI, name="IFC (default)", code="IFC")]


def _text(data: dict[str, Any], *keys: str) -> str:
    """First non-empty value among *keys*, as text."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def _items(data: Any, *keys: str) -> list[dict[str, Any]]:
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return [d for d in value if isinstance(d, dict)]
    return []


def _is_property_set(item: BsddClass) -> bool:
    code = item.reference_code.lower()
    name = item.name.lower()
    return (
        code.startswith("pset_")
        or code.startswith("qto_")
        or name.startswith("property set")
        or name.startswith("quantity set")
    )


def _score(item: BsddClass, term: str) -> int:
    name = item.name.lower()
    code = item.reference_code.lower()
    s = 0
    if code == term:
        s += 1000
    if name == term:
        s += 900
    if code.startswith(term):
        s += 500
    if name.startswith(term):
        s += 400
    if term in code:
        s += 200
    if term in name:
        s += 100
    if code.startswith("ifc"):
        s += 50
    return s


def rank_classes(items: list[BsddClass], term: str, limit: int | None = None) -> list[BsddClass]:
    """Drop property/quantity sets and non-matches, then order by relevance.

    Exact code and name matches come first, then prefixes, then substrings;
    IFC entity codes get a small bonus.  Ties are broken by name.
    """
    t = term.strip().lower()
    kept = [
        it
        for it in items
        if not _is_property_set(it) and (t in it.name.lower() or t in it.reference_code.lower())
    ]
    kept.sort(key=lambda it: (-_score(it, t), it.name.lower()))
    return kept[:limit] if limit is not None else kept


def dictionary_uri_of(class_uri: str) -> str | None:
    """``https://host/uri/org/dict/1.0/class/X`` -> ``https://host/uri/org/dict/1.0``."""
    parts = urlsplit(class_uri)
    if not parts.scheme or not parts.netloc:
        return None
    segments = [p for p in parts.path.split("/") if p]
    for i, seg in enumerate(segments):
        if seg.lower() == "class" and i > 0:
            return f"{parts.scheme}://{parts.netloc}/" + "/".join(segments[:i])
    return None


class BsddProvider(abc.ABC):
    """Base class for bSDD transports."""

    def __init__(
        self,
        *,
        language: str = "EN",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.language = language
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Transport name, ``"rest"`` or ``"graphql"``."""

    @abc.abstractmethod
    def fetch_libraries(self, include_test: bool = False) -> list[BsddLibrary]:
        """List the dictionaries that can be searched."""

    @abc.abstractmethod
    def search_classes(self, term: str, dictionaries: list[str], limit: int = 20) -> BsddSearchResult:
        """Search classes in *dictionaries* (all dictionaries if empty, where supported)."""

    @abc.abstractmethod
    def get_class(self, uri: str) -> BsddClassDetail | None:
        """Fetch one class by URI."""

    @abc.abstractmethod
    def class_properties(
        self,
        class_uri: str,
        *,
        property_set: str | None = None,
        search_text: str | None = None,
        offset: int = 0,
        limit: int = 500,
    ) -> list[BsddClassProperty]:
        """List the properties of a class."""

    def _empty(self) -> BsddSearchResult:
        return BsddSearchResult(results=[], total_count=None, transport=self.name)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# REST
# ---------------------------------------------------------------------------

class RestBsddProvider(BsddProvider):
    """The public bSDD REST API."""

    def __init__(self, base_url: str = "https://api.bsdd.buildingsmart.org", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "rest"

    def _get(self, path: str, params: dict[str, Any] | list[tuple[str, Any]]) -> Any:
        """GET *path* and return the decoded JSON, or None on any failure."""
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout, headers={"Accept": "application/json"})
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("bSDD request %s failed: %s", path, exc)
            return None

    def fetch_libraries(self, include_test: bool = False) -> list[BsddLibrary]:
        data = self._get("/api/Dictionary/v1", {"IncludeTestDictionaries": str(include_test).lower()})
        libs = [
            BsddLibrary(
                uri=_text(d, "uri", "Uri"),
                name=_text(d, "name", "Name") or "Unnamed",
                code=_text(d, "code", "Code"),
                version=_text(d, "version", "Version"),
            )
            for d in _items(data, "dictionaries", "results", "Results")
        ]
        if not libs:
            logger.info("No bSDD dictionaries available; using the IFC default")
            return list(DEFAULT_LIBRARIES)
        return libs

    def search_classes(self, term: str, dictionaries: list[str], limit: int = 20) -> BsddSearchResult:
        trimmed = (term or "").strip()
        if len(trimmed) < MIN_SEARCH_TERM_LENGTH:
            return self._empty()
        params: list[tuple[str, Any]] = [
            ("SearchText", trimmed),
            ("LanguageCode", self.language),
            ("Limit", limit),
        ]
        params.extend(("DictionaryUris", d) for d in dictionaries)
        data = self._get("/api/Class/Search/v1", params)
        if data is None:
            return self._empty()
        hits = [
            BsddClass(
                name=_text(d, "name", "referenceCode", "code") or "Class",
                reference_code=_text(d, "referenceCode", "code"),
                uri=_text(d, "uri"),
                dictionary_uri=_text(d, "dictionaryUri"),
                dictionary_name=_text(d, "dictionaryName"),
            )
            for d in _items(data, "classes", "results", "Results")
        ]
        total = data.get("totalCount") if isinstance(data, dict) else None
        return BsddSearchResult(
            results=rank_classes(hits, trimmed, limit),
            total_count=int(total) if isinstance(total, (int, float)) else len(hits),
            transport="rest",
        )

    def get_class(self, uri: str) -> BsddClassDetail | None:
        if not uri:
            return None
        data = self._get("/api/Class/v1", {"Uri": uri, "languageCode": self.language})
        if not isinstance(data, dict):
            return None
        return BsddClassDetail(
            name=_text(data, "name", "referenceCode", "code") or "Class",
            reference_code=_text(data, "referenceCode", "code"),
            uri=_text(data, "uri") or uri,
            dictionary_uri=_text(data, "dictionaryUri"),
            description=_text(data, "definition", "description"),
        )

    def class_properties(
        self,
        class_uri: str,
        *,
        property_set: str | None = None,
        search_text: str | None = None,
        offset: int = 0,
        limit: int = 500,
    ) -> list[BsddClassProperty]:
        if not class_uri:
            return []
        params: dict[str, Any] = {
            "ClassUri": class_uri,
            "Offset": offset,
            "Limit": limit,
            "languageCode": self.language,
        }
        # The service rejects SearchText together with PropertySet.
        if property_set:
            params["PropertySet"] = property_set
        elif search_text:
            params["SearchText"] = search_text
        data = self._get("/api/Class/Properties/v1", params)
        return [_class_property(d) for d in _items(data, "classProperties", "properties")]


def _class_property(d: dict[str, Any]) -> BsddClassProperty:
    return BsddClassProperty(
        property_set=_text(d, "propertySet"),
        name=_text(d, "name", "propertyName", "propertyCode", "code"),
        code=_text(d, "propertyCode", "code"),
        datatype=_text(d, "dataType"),
        allowed_values=[
            _text(v, "value", "code") for v in _items(d.get("allowedValues")) if _text(v, "value", "code")
        ],
    )


# ---------------------------------------------------------------------------
# GraphQL
# ---------------------------------------------------------------------------

class GraphqlBsddProvider(BsddProvider):
    """The bSDD GraphQL endpoint.

    Searches each dictionary in one request using aliased ``dictionary``
    fields.  The endpoint has no dictionary listing, so
    :meth:`fetch_libraries` returns an empty list.
    """

    def __init__(self, url: str = "https://test.bsdd.buildingsmart.org/graphql/", token: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.url = url
        self.token = token

    @property
    def name(self) -> str:
        return "graphql"

    def _post(self, query: str, variables: dict[str, Any]) -> dict[str, Any] | None:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            resp = self.session.post(
                self.url,
                json={"query": query, "variables": variables},
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("bSDD GraphQL request failed: %s", exc)
            return None
        if not isinstance(payload, dict):
            logger.warning("bSDD GraphQL returned %s instead of an object", type(payload).__name__)
            return None
        if payload.get("errors"):
            messages = [e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in payload["errors"]]
            logger.warning("bSDD GraphQL errors: %s", "; ".join(messages))
            return None
        data = payload.get("data")
        return data if isinstance(data, dict) else None

    def fetch_libraries(self, include_test: bool = False) -> list[BsddLibrary]:
        return []

    def search_classes(self, term: str, dictionaries: list[str], limit: int = 20) -> BsddSearchResult:
        trimmed = (term or "").strip()
        if len(trimmed) < MIN_SEARCH_TERM_LENGTH or not dictionaries:
            return self._empty()

        variables: dict[str, Any] = {"searchText": trimmed, "languageCode": self.language}
        fields: list[str] = []
        for i, uri in enumerate(dictionaries):
            variables[f"u{i}"] = uri
            fields.append(
                f"d{i}: dictionary(uri: $u{i}) {{ uri name "
                "classSearch(searchText: $searchText, languageCode: $languageCode) { name code uri } }"
            )
        declared = ", ".join(f"$u{i}: String!" for i in range(len(dictionaries)))
        query = (
            f"query Search($searchText: String!, $languageCode: String!, {declared}) {{\n  "
            + "\n  ".join(fields)
            + "\n}"
        )

        data = self._post(query, variables)
        if data is None:
            return self._empty()

        hits: list[BsddClass] = []
        for block in data.values():
            if not isinstance(block, dict):
                continue
            for r in _items(block.get("classSearch")):
                hits.append(
                    BsddClass(
                        name=_text(r, "name", "code") or "Class",
                        reference_code=_text(r, "code"),
                        uri=_text(r, "uri"),
                        dictionary_uri=_text(block, "uri"),
                        dictionary_name=_text(block, "name"),
                    )
                )
        ranked = rank_classes(hits, trimmed)
        return BsddSearchResult(results=ranked[:limit], total_count=len(ranked), transport="graphql")

    def get_class(self, uri: str) -> BsddClassDetail | None:
        dictionary = dictionary_uri_of(uri)
        if dictionary is None:
            return None
        query = """query ($dictionaryUri: String!, $uri: String!, $languageCode: String!) {
  dictionary(uri: $dictionaryUri) {
    uri
    class(uri: $uri, languageCode: $languageCode, includeChildren: false) { name code uri definition }
  }
}"""
        data = self._post(query, {"dictionaryUri": dictionary, "uri": uri, "languageCode": self.language})
        cls = ((data or {}).get("dictionary") or {}).get("class")
        if not isinstance(cls, dict):
            return None
        return BsddClassDetail(
            name=_text(cls, "name", "code") or "Class",
            reference_code=_text(cls, "code"),
            uri=_text(cls, "uri") or uri,
            dictionary_uri=dictionary,
            description=_text(cls, "definition"),
        )

    def class_properties(
        self,
        class_uri: str,
        *,
        property_set: str | None = None,
        search_text: str | None = None,
        offset: int = 0,
        limit: int = 500,
    ) -> list[BsddClassProperty]:
        dictionary = dictionary_uri_of(class_uri)
        if dictionary is None:
            return []
        query = """query ($dictionaryUri: String!, $uri: String!, $languageCode: String!) {
  dictionary(uri: $dictionaryUri) {
    class(uri: $uri, languageCode: $languageCode, includeChildren: false) {
      properties { propertySet code name dataType allowedValues { code value } }
    }
  }
}"""
        data = self._post(query, {"dictionaryUri": dictionary, "uri": class_uri, "languageCode": self.language})
        cls = ((data or {}).get("dictionary") or {}).get("class") or {}
        props = [_class_property(p) for p in _items(cls.get("properties") if isinstance(cls, dict) else None)]
        if property_set:
            props = [p for p in props if p.property_set == property_set]
        elif search_text:
            needle = search_text.lower()
            props = [p for p in props if needle in p.name.lower() or needle in p.code.lower()]
        return props[offset:offset + limit]


def create_provider(config: dict[str, str] | None = None, session: requests.Session | None = None) -> BsddProvider:
    """Build the provider selected by ``BSDD_TRANSPORT`` (``rest`` or ``graphql``)."""
    cfg = config if config is not None else load_config()
    try:
        timeout = float(cfg.get("BSDD_TIMEOUT", "10"))
    except ValueError:
        logger.warning("Invalid BSDD_TIMEOUT %r; using 10s", cfg.get("BSDD_TIMEOUT"))
        timeout = 10.0
    common: dict[str, Any] = {"language": cfg.get("BSDD_LANG", "EN"), "timeout": timeout, "session": session}

    transport = cfg.get("BSDD_TRANSPORT", "rest").strip().lower()
    if transport == "graphql":
        return GraphqlBsddProvider(url=cfg.get("BSDD_GQL_URL", ""), token=cfg.get("BSDD_GQL_TOKEN", ""), **common)
    if transport != "rest":
        logger.warning("Unknown BSDD_TRANSPORT %r; using rest", transport)
    return RestBsddProvider(base_url=cfg.get("BSDD_API_URL", "https://api.bsdd.buildingsmart.org"), **common)
