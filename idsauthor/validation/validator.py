"""ExportValidator: the gate in front of export and model validation.

Usage::

    from idsauthor.validation import ensure_exportable

    ensure_exportable(root)   # raises ExportBlockedError with every issue
    xml_text = to_xml(root)
"""

from __future__ import annotations

import logging

from idsauthor.models.document import IDSRoot
from idsauthor.validation.rules.base import ValidationIssue, ValidationRule
from idsauthor.validation.rules.document import DocumentRules

logger = logging.getLogger(__name__)


class ExportBlockedError(Exception):
    """Raised when a document has issues that block export."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = list(issues)
        super().__init__("; ".join(i.message for i in self.issues) or "Export blocked")

    @property
    def messages(self) -> list[str]:
        return [i.message for i in self.issues]


class ExportValidator:
    """Rule registry run before a document leaves the editor.

    Loads the built-in rules on init.  Additional rules can be registered
    via :meth:`add_rule`.
    """

    def __init__(self) -> None:
        self.rules: list[ValidationRule] = []
        self._load_default_rules()

    def _load_default_rules(self) -> None:
        self.rules.extend(DocumentRules.all_rules())

    def add_rule(self, rule: ValidationRule) -> None:
        """Register an additional rule."""
        self.rules.append(rule)

    def validate(self, root: IDSRoot) -> list[ValidationIssue]:
        """Run every rule and return all issues found, in rule order."""
        issues: list[ValidationIssue] = []
        for rule in self.rules:
            try:
                issues.extend(rule.check(root))
            except Exception:
                logger.warning("Rule %s failed", rule.name, exc_info=True)
                issues.append(
                    ValidationIssue(
                        rule_name=rule.name,
                        severity="error",
                        message=f"Rule {rule.name} could not be checked.",
                    )
                )
        logger.debug("Validation found %d issues", len(issues))
        return issues

    def ensure_exportable(self, root: IDSRoot) -> None:
        """Raise :class:`ExportBlockedError` if any error-level issue exists."""
        issues = self.validate(root)
        blocking = [i for i in issues if i.severity == "error"]
        if blocking:
            raise ExportBlockedError(blocking)


def validate(root: IDSRoot) -> list[ValidationIssue]:
    """Validate *root* with the built-in rules."""
    return ExportValidator().validate(root)


def ensure_exportable(root: IDSRoot) -> None:
    """Raise :class:`ExportBlockedError` unless *root* passes the built-in rules."""
    ExportValidator().ensure_exportable(root)
