"""IFC model validation against exported IDS documents."""

from idsauthor.ifc.tester import ModelValidationResult, SpecificationResult, is_available, run_ifctester

__all__ = ["ModelValidationResult", "SpecificationResult", "is_available", "run_ifctester"]
