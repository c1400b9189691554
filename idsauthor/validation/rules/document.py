"""Document rules: the minimum a document needs before it can be exported."""

from __future__ import annotations

from typing import Iterator

from idsauthor.codec.tree import find_incompatible
from idsauthor.config import SUPPORTED_IFC_VERSIONS
from idsauthor.models.document import IDSRoot
from idsauthor.validation.rules.base import ValidationIssue, ValidationRule


class HeaderTitleRequired(ValidationRule):
    """The header title must be non-blank."""

    @property
    def name(self) -> str:
        return "header.title_required"

    @property
    def description(self) -> str:
        return "The IDS header must have a title."

    def check(self, root: IDSRoot) -> list[ValidationIssue]:
        if root.header.title.strip():
            return []
        return [
            ValidationIssue(
                rule_name=self.name,
                severity="error",
                message="Header title is required.",
                suggestion="Enter a title in the document header.",
            )
        ]


class SpecificationNameRequired(ValidationRule):
    """Every specification needs a display name."""

    @property
    def name(self) -> str:
        return "specification.name_required"

    @property
    def description(self) -> str:
        return "Every specification must have a name."

    def check(self, root: IDSRoot) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for section, spec in root.iter_specifications():
            if spec.display_name:
                continue
            issues.append(
                ValidationIssue(
                    rule_name=self.name,
                    severity="error",
                    message="Specification name is required.",
                    target_id=spec.id,
                    suggestion=f"Name the unnamed specification in section '{section.title}'.",
                )
            )
        return issues


class SupportedIfcVersion(ValidationRule):
    """Every specification targets an IFC schema the exporter knows."""

    @property
    def name(self) -> str:
        return "specification.ifc_version_supported"

    @property
    def description(self) -> str:
        return "Specification IFC versions must be supported."

    def check(self, root: IDSRoot) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for _section, spec in root.iter_specifications():
            if spec.ifc_version in SUPPORTED_IFC_VERSIONS:
                continue
            issues.append(
                ValidationIssue(
                    rule_name=self.name,
                    severity="error",
                    message=(
                        "Specification IFC version must be one of: "
                        + ", ".join(SUPPORTED_IFC_VERSIONS)
                        + "."
                    ),
                    target_id=spec.id,
                    suggestion=f"'{spec.display_name or spec.id}' uses {spec.ifc_version or 'no version'}.",
                )
            )
        return issues


def _strings(data) -> Iterator[str]:
    if isinstance(data, str):
        yield data
    elif isinstance(data, dict):
        for value in data.values():
            yield from _strings(value)
    elif isinstance(data, (list, tuple)):
        for value in data:
            yield from _strings(value)


class XmlCompatibleText(ValidationRule):
    """No text may hold characters XML 1.0 cannot carry.

    The writer would replace them, so exporting would silently change the
    document.
    """

    @property
    def name(self) -> str:
        return "document.xml_compatible_text"

    @property
    def description(self) -> str:
        return "Document text must only use characters XML can carry."

    def _issue(self, where: str, target_id: str, found: list[str]) -> ValidationIssue:
        codes = ", ".join(sorted({f"U+{ord(c):04X}" for c in found}))
        return ValidationIssue(
            rule_name=self.name,
            severity="error",
            message="Text contains characters that cannot be written to XML.",
            target_id=target_id,
            suggestion=f"Remove {codes} from {where}.",
        )

    def check(self, root: IDSRoot) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        found = [c for text in _strings(root.header.model_dump()) for c in find_incompatible(text)]
        if found:
            issues.append(self._issue("the document header", "", found))
        for section in root.sections:
            found = [c for text in (section.title, section.description) for c in find_incompatible(text)]
            if found:
                issues.append(self._issue(f"section '{section.title}'", section.id, found))
            for spec in section.specifications:
                found = [c for text in _strings(spec.model_dump()) for c in find_incompatible(text)]
                if found:
                    issues.append(self._issue(f"'{spec.display_name or spec.id}'", spec.id, found))
        return issues


class DocumentRules:
    """Collection of all built-in document rules."""

    @staticmethod
    def all_rules() -> list[ValidationRule]:
        return [
            HeaderTitleRequired(),
            SpecificationNameRequired(),
            SupportedIfcVersion(),
            XmlCompatibleText(),
        ]
