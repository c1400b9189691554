"""Pre-export validation.

Checks the minimum a document needs before it is exported or sent to the
model validator: a header title, a name on every specification, and a
supported IFC version.
"""

from idsauthor.validation.rules.base import ValidationIssue, ValidationRule
from idsauthor.validation.validator import (
    ExportBlockedError,
    ExportValidator,
    ensure_exportable,
    validate,
)

__all__ = [
    "ExportBlockedError",
    "ExportValidator",
    "ValidationIssue",
    "ValidationRule",
    "ensure_exportable",
    "validate",
]
