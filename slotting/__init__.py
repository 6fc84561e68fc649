"""Warehouse slot allocation and inventory reconciliation engine."""

__version__ = "1.0.0"
