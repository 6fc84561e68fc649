"""Data models for the warehouse slotting engine."""

from .location import (
    Location,
    ZoneType,
    build_default_location,
    generate_default_locations,
)
from .demand import AllocationMode, AssignedLine, DemandLine, SubAssignment
from .outbound import OutboundLine
from .audit_log import LogEntry

__all__ = [
    # Locations
    "Location",
    "ZoneType",
    "build_default_location",
    "generate_default_locations",
    # Inbound
    "AllocationMode",
    "AssignedLine",
    "DemandLine",
    "SubAssignment",
    # Outbound
    "OutboundLine",
    # Audit
    "LogEntry",
]
