"""Readers for warehouse spreadsheets."""

from .unload_parser import UnloadPlan, UnloadSheetParser, parse_unload_sheets
from .outbound_parser import OutboundSheetParser
from .inventory_count_parser import InventoryCountParser

__all__ = [
    "UnloadPlan",
    "UnloadSheetParser",
    "parse_unload_sheets",
    "OutboundSheetParser",
    "InventoryCountParser",
]
