"""Check an IFC model against exported IDS XML with IfcTester.

Wraps ifcopenshell and ifctester when available.  When they are not
installed, or anything goes wrong while validating, the result has
``ok=False`` and a readable summary; this module never raises.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Runtime detection of ifcopenshell/ifctester
_HAS_IFCTESTER = False
try:
    import ifcopenshell
    from ifctester import ids as ids_mod
    from ifctester import reporter as ids_reporter

    _HAS_IFCTESTER = True
except ImportError:
    pass


class SpecificationResult(BaseModel):
    """Outcome of one IDS specification."""

    name: str = ""
    passed: bool = False
    applicable_count: int = 0
    failed_count: int = 0


class ModelValidationResult(BaseModel):
    ok: bool = False
    summary: str = ""
    results: list[SpecificationResult] = Field(default_factory=list)
    details: Any = None
    """IfcTester JSON report, or the error text on failure."""


def is_available() -> bool:
    """Return True if ifcopenshell and ifctester can be used."""
    return _HAS_IFCTESTER


def _spec_result(spec: Any) -> SpecificationResult:
    applicable = getattr(spec, "applicable_entities", None) or []
    failed = getattr(spec, "failed_entities", None) or []
    return SpecificationResult(
        name=str(getattr(spec, "name", "") or ""),
        passed=bool(getattr(spec, "status", False)),
        applicable_count=len(applicable),
        failed_count=len(failed),
    )


def run_ifctester(ids_xml: str, ifc_path: str | Path) -> ModelValidationResult:
    """Validate the IFC file at *ifc_path* against *ids_xml*.

    Parameters
    ----------
    ids_xml:
        Exported IDS document text.
    ifc_path:
        Path to the building model.
    """
    if not _HAS_IFCTESTER:
        return ModelValidationResult(
            ok=False,
            summary="IfcTester IDS not available",
            details="Install the 'ifc' extra (ifcopenshell, ifctester) to validate models.",
        )

    path = Path(ifc_path)
    if not path.is_file():
        return ModelValidationResult(ok=False, summary="IFC file not found", details=str(path))

    try:
        with tempfile.TemporaryDirectory(prefix="ids-") as tmp:
            ids_path = Path(tmp) / "spec.ids"
            ids_path.write_text(ids_xml, encoding="utf-8")
            spec = ids_mod.open(str(ids_path))
            model = ifcopenshell.open(str(path))
            spec.validate(model)
            report = ids_reporter.Json(spec)
            report.report()
            details = json.loads(report.to_string())
    except Exception as exc:
        logger.warning("IfcTester validation failed: %s", exc, exc_info=True)
        return ModelValidationResult(ok=False, summary="Validation failed", details=str(exc))

    results = [_spec_result(s) for s in getattr(spec, "specifications", [])]
    passed = sum(1 for r in results if r.passed)
    ok = all(r.passed for r in results)
    summary = f"{passed}/{len(results)} specifications passed"
    logger.info("IfcTester on %s: %s", path.name, summary)
    return ModelValidationResult(ok=ok, summary=summary, results=results, details=details)
