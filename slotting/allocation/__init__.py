"""Slot allocation module.

This module decides where unloaded freight is stored.

Key components:
- classify: Maps a destination to its zone category
- SlotAssigner: Assigns demand lines to locations against a simulated warehouse
- AllocationConfig: Thresholds and forced-zone layout used by the assigner
"""

from .destination_classifier import ZoneCategory, classify, normalize_destination_code
from .allocation_config import AllocationConfig
from .simulation import LocationState, SimulationState
from .slot_assigner import AssignmentPlan, SlotAssigner, assign

__all__ = [
    "ZoneCategory",
    "classify",
    "normalize_destination_code",
    "AllocationConfig",
    "LocationState",
    "SimulationState",
    "AssignmentPlan",
    "SlotAssigner",
    "assign",
]
