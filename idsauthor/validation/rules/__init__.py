"""Export validation rules."""

from idsauthor.validation.rules.base import ValidationIssue, ValidationRule
from idsauthor.validation.rules.document import (
    DocumentRules,
    HeaderTitleRequired,
    SpecificationNameRequired,
    SupportedIfcVersion,
    XmlCompatibleText,
)

__all__ = [
    "DocumentRules",
    "HeaderTitleRequired",
    "SpecificationNameRequired",
    "SupportedIfcVersion",
    "ValidationIssue",
    "ValidationRule",
    "XmlCompatibleText",
]
