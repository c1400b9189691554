"""Section markers.

IDS has no notion of sections, so each section is written as a comment in
``<ids:specifications>`` just before its specifications::

    <!-- idsauthor:section {"title": "Walls", "description": ""} -->

Tools that follow the schema ignore comments.  Hyphens in the JSON payload
are written as ``\\u002d`` because XML comments may not contain ``--``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from idsauthor.codec.tree import XmlNode, comment
from idsauthor.models.document import IDSSection

logger = logging.getLogger(__name__)

SECTION_MARKER = "idsauthor:section"


def section_comment(section: IDSSection) -> XmlNode:
    payload = json.dumps(
        {"title": section.title, "description": section.description},
        ensure_ascii=False,
    ).replace("-", "\\u002d")
    return comment(f" {SECTION_MARKER} {payload} ")


def read_section_marker(node: XmlNode) -> dict[str, str] | None:
    """Return ``{"title", "description"}`` if *node* is a section marker comment."""
    if node.kind != "comment":
        return None
    text = (node.text or "").strip()
    if not text.startswith(SECTION_MARKER):
        return None
    try:
        data: Any = json.loads(text[len(SECTION_MARKER):].strip())
    except json.JSONDecodeError:
        logger.debug("Ignoring malformed section marker: %s", text)
        return None
    if not isinstance(data, dict):
        return None
    return {
        "title": str(data.get("title") or ""),
        "description": str(data.get("description") or ""),
    }
