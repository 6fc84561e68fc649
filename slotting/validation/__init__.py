"""Validation of warehouse records."""

from .warehouse_validator import ValidationIssue, ValidationSeverity, WarehouseValidator

__all__ = [
    "ValidationIssue",
    "ValidationSeverity",
    "WarehouseValidator",
]
