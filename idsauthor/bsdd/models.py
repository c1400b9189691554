"""Pydantic records returned by the bSDD providers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class BsddLibrary(BaseModel):
    """A bSDD dictionary."""

    uri: str = ""
    name: str = ""
    code: str = ""
    version: str = ""


class BsddClass(BaseModel):
    """One class search hit."""

    name: str = ""
    reference_code: str = ""
    uri: str = ""
    dictionary_uri: str = ""
    dictionary_name: str = ""


class BsddClassDetail(BsddClass):
    description: str = ""


class BsddClassProperty(BaseModel):
    """A property a class lists in bSDD."""

    property_set: str = ""
    name: str = ""
    code: str = ""
    datatype: str = ""
    allowed_values: list[str] = Field(default_factory=list)


class BsddSearchResult(BaseModel):
    results: list[BsddClass] = Field(default_factory=list)
    total_count: int | None = None
    """Total hits reported by the service, when it reports one."""
    transport: Literal["rest", "graphql"] | None = None
