"""Abstract ValidationRule interface."""

from __future__ import annotations

import abc
from typing import Any

from idsauthor.models.document import IDSRoot


class ValidationIssue:
    """A single problem found by a rule."""

    def __init__(
        self,
        rule_name: str,
        severity: str,
        message: str,
        target_id: str = "",
        suggestion: str = "",
    ) -> None:
        self.rule_name = rule_name
        self.severity = severity  # "error", "warning", "info"
        self.message = message
        self.target_id = target_id
        self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_name": self.rule_name,
            "severity": self.severity,
            "message": self.message,
            "target_id": self.target_id,
            "suggestion": self.suggestion,
        }

    def __repr__(self) -> str:
        return f"ValidationIssue({self.rule_name!r}, {self.message!r})"


class ValidationRule(abc.ABC):
    """Base class for all export rules."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Short rule identifier."""

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """Human-readable description."""

    @abc.abstractmethod
    def check(self, root: IDSRoot) -> list[ValidationIssue]:
        """Run this rule against a document.

        Parameters
        ----------
        root:
            The document about to be exported.  Rules must not modify it.

        Returns list of issues (empty if passing).
        """
