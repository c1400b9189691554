"""Restriction values: the constraint attached to a facet's value.

A restriction is one of a small set of shapes, discriminated by its
``operator``:

==========  ===============  =======================================
operator    model            meaning
==========  ===============  =======================================
present     :class:`Absent`  facet must exist, no value constraint
equals      :class:`Simple`  value equals the given text
contains    :class:`Contains` value contains the given text
matches     :class:`Pattern` value matches an XSD regular expression
in          :class:`Enumeration` value is one of a list
bounds      :class:`Bounds`  value lies within a numeric/string range
length      :class:`Length`  value length is exact or within a range
==========  ===============  =======================================

The helpers at the bottom of this module convert to and from the single-line
text the facet editor works with (``[10..20)``, ``a, b, c``, ``0..255``).
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from idsauthor.config import MAX_STRING_LENGTH

_ENUM_SPLIT = re.compile(r"\s*,\s*")
_DIGITS = re.compile(r"^\d+$")


class _RestrictionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    def is_empty(self) -> bool:
        """Return True when the restriction carries no constraint text."""
        return False


class Absent(_RestrictionBase):
    """The facet must be present; its value is unconstrained."""

    operator: Literal["present"] = "present"

    def is_empty(self) -> bool:
        return True

    def as_value(self) -> None:
        return None


class Simple(_RestrictionBase):
    """Exact match against a single value."""

    operator: Literal["equals"] = "equals"
    value: str = ""

    def is_empty(self) -> bool:
        return self.value == ""

    def as_value(self) -> str:
        return self.value


class Contains(_RestrictionBase):
    """Substring match, written to XML as a ``.*literal.*`` pattern."""

    operator: Literal["contains"] = "contains"
    value: str = ""

    def is_empty(self) -> bool:
        return self.value == ""

    def as_value(self) -> str:
        return self.value


class Pattern(_RestrictionBase):
    """XSD regular expression."""

    operator: Literal["matches"] = "matches"
    value: str = ""

    def is_empty(self) -> bool:
        return self.value == ""

    def as_value(self) -> str:
        return self.value


class Enumeration(_RestrictionBase):
    """Ordered list of allowed values. Duplicates are kept as given."""

    operator: Literal["in"] = "in"
    values: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not self.values

    def as_value(self) -> list[str]:
        return list(self.values)


class Bounds(_RestrictionBase):
    """Range restriction; either bound may be open."""

    operator: Literal["bounds"] = "bounds"
    min: str | None = None
    max: str | None = None
    min_exclusive: bool = False
    max_exclusive: bool = False

    def is_empty(self) -> bool:
        return not self.min and not self.max

    def as_value(self) -> str:
        return format_bounds(self)


class Length(_RestrictionBase):
    """String length restriction. ``min == max`` means an exact length."""

    operator: Literal["length"] = "length"
    min: Annotated[int, Field(ge=0)] | None = None
    max: Annotated[int, Field(ge=0)] | None = None

    @property
    def is_exact(self) -> bool:
        return self.min is not None and self.min == self.max

    def is_empty(self) -> bool:
        return self.min is None and self.max is None

    def as_value(self) -> str:
        return self.to_text()

    def to_text(self) -> str:
        """Render as ``"5"`` (exact) or ``"min..max"`` (range)."""
        if self.is_exact:
            return str(self.min)
        lo = self.min if self.min is not None else 0
        hi = self.max if self.max is not None else MAX_STRING_LENGTH
        return f"{lo}..{hi}"

    @classmethod
    def from_text(cls, text: str) -> Length:
        """Parse ``"5"`` or ``"min..max"``; omitted bounds take the defaults."""
        core = _strip_brackets(text.strip())
        if not core:
            return cls(min=0, max=0)
        if _DIGITS.match(core):
            n = int(core)
            return cls(min=n, max=n)
        parts = core.split("..", 1)
        lo = re.sub(r"[^0-9]", "", parts[0])
        hi = re.sub(r"[^0-9]", "", parts[1]) if len(parts) > 1 else ""
        return cls(
            min=int(lo) if lo else 0,
            max=int(hi) if hi else MAX_STRING_LENGTH,
        )

    @classmethod
    def exact(cls, n: int) -> Length:
        return cls(min=n, max=n)


Restriction = Annotated[
    Union[Absent, Simple, Contains, Pattern, Enumeration, Bounds, Length],
    Field(discriminator="operator"),
]

OPERATORS = ("present", "equals", "contains", "matches", "in", "bounds", "length")


# ---------------------------------------------------------------------------
# Editor text helpers
# ---------------------------------------------------------------------------

def _strip_brackets(s: str) -> str:
    return re.sub(r"[\])]+$", "", re.sub(r"^[\[(]+", "", s))


def parse_bounds(text: str) -> Bounds:
    """Parse the bracketed range notation used by the facet editor.

    ``[`` / ``]`` mark inclusive bounds and ``(`` / ``)`` exclusive ones::

        >>> parse_bounds("[10..20)")
        Bounds(operator='bounds', min='10', max='20', min_exclusive=False, max_exclusive=True)
    """
    raw = text.strip()
    if not raw:
        return Bounds()
    min_exclusive = raw.startswith("(")
    max_exclusive = raw.endswith(")")
    parts = _strip_brackets(raw).split("..", 1)
    lo = parts[0].strip()
    hi = parts[1].strip() if len(parts) > 1 else ""
    return Bounds(
        min=lo or None,
        max=hi or None,
        min_exclusive=min_exclusive,
        max_exclusive=max_exclusive,
    )


def format_bounds(bounds: Bounds) -> str:
    """Inverse of :func:`parse_bounds`. Returns ``""`` when both bounds are open."""
    lo = (bounds.min or "").strip()
    hi = (bounds.max or "").strip()
    if not lo and not hi:
        return ""
    left = "(" if bounds.min_exclusive else "["
    right = ")" if bounds.max_exclusive else "]"
    return f"{left}{lo}..{hi}{right}"


def split_enumeration(text: str) -> list[str]:
    """Split ``"a, b ,c"`` into ``["a", "b", "c"]``."""
    return [p.strip() for p in _ENUM_SPLIT.split(text) if p.strip()]


def join_enumeration(values: tuple[str, ...] | list[str]) -> str:
    return ", ".join(values)


def add_enumeration_values(enumeration: Enumeration, text: str) -> Enumeration:
    """Append comma-separated *text* to *enumeration*, skipping values already present."""
    merged = list(enumeration.values)
    for part in split_enumeration(text):
        if part not in merged:
            merged.append(part)
    return Enumeration(values=tuple(merged))


def restriction_from_operator(operator: str | None, value: Any = None) -> Absent | Simple | Contains | Pattern | Enumeration | Bounds | Length:
    """Build a restriction from the ``(operator, value)`` pair the form UI edits.

    List values are accepted for every operator; single-value operators keep
    the first element.
    """
    if operator in (None, "", "present"):
        return Absent()
    if operator == "in":
        if isinstance(value, (list, tuple)):
            return Enumeration(values=tuple(str(v) for v in value))
        return Enumeration(values=tuple(split_enumeration(str(value or ""))))

    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    text = "" if value is None else str(value)

    if operator == "equals":
        return Simple(value=text)
    if operator == "contains":
        return Contains(value=text)
    if operator == "matches":
        return Pattern(value=text)
    if operator == "bounds":
        return parse_bounds(text)
    if operator == "length":
        return Length.from_text(text)
    raise ValueError(f"Unknown restriction operator: {operator!r}")
