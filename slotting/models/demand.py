"""Demand line models for inbound slot assignment."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional


class AllocationMode(str, Enum):
    """How an unload batch was entered.

    AUTOMATIC batches come from imported unload sheets and apply the forced
    zone layout for private/platform freight. MANUAL batches are typed in by
    an operator and skip that restriction.
    """
    AUTOMATIC = "automatic"
    MANUAL = "manual"


@dataclass(frozen=True)
class SubAssignment:
    """Part of a demand line placed in one location.

    Attributes:
        location: Location code
        pallets: Pallets placed in this location
        cartons: Cartons placed in this location
    """
    location: str
    pallets: int
    cartons: int = 0

    def __post_init__(self):
        """Validate sub-assignment."""
        if self.pallets <= 0:
            raise ValueError(f"Sub-assignment pallets must be positive: {self.pallets}")
        if self.cartons < 0:
            raise ValueError(f"Sub-assignment cartons cannot be negative: {self.cartons}")


@dataclass
class DemandLine:
    """One shipment line to be stored after unloading.

    Attributes:
        destination: Destination the goods are bound for (e.g., "XLX7", "住宅地址")
        pallets: Pallet count, must be positive
        cartons: Optional carton count
        container_id: Shipping container the goods arrived in
        sequence_index: Position in the source batch, used to order results
        location: Pre-assigned location(s), comma separated, from a prior export
        assignments: Pre-assigned split placements from a prior export
        so_number: Shipping order number carried through for export
        shipping_mark: Shipping mark carried through for export
        weight: Gross weight carried through for export
        volume: Volume carried through for export
    """
    destination: str
    pallets: int
    cartons: Optional[int] = None
    container_id: str = ""
    sequence_index: int = 0
    location: Optional[str] = None
    assignments: List[SubAssignment] = field(default_factory=list)
    so_number: str = ""
    shipping_mark: str = ""
    weight: float = 0.0
    volume: float = 0.0

    def __post_init__(self):
        """Validate demand line."""
        if self.destination is None or not str(self.destination).strip():
            raise ValueError("Demand line destination cannot be empty")
        self.destination = str(self.destination).strip()
        if self.pallets is None or self.pallets <= 0:
            raise ValueError(f"Demand line pallets must be positive: {self.pallets}")
        if self.cartons is not None and self.cartons < 0:
            raise ValueError(f"Demand line cartons cannot be negative: {self.cartons}")
        if self.location is not None:
            self.location = self.location.strip() or None

    @property
    def is_preassigned(self) -> bool:
        """True if the line already carries a location from a prior export."""
        return bool(self.location) or bool(self.assignments)

    def location_codes(self) -> List[str]:
        """Split the pre-assigned location string into codes."""
        if not self.location:
            return []
        codes = []
        for part in self.location.replace("，", ",").split(","):
            part = part.strip()
            if part and part not in codes:
                codes.append(part)
        return codes


@dataclass
class AssignedLine:
    """Result of slot assignment for one demand line.

    Attributes:
        line: The demand line as submitted
        assignments: Placements, empty if the line could not be stored
        category: Zone category the destination classified as
        used_fallback: True if the line went to the buffer/suspense fallback pool
        preassigned: True if the line bypassed assignment with an existing location
    """
    line: DemandLine
    assignments: List[SubAssignment] = field(default_factory=list)
    category: Optional[str] = None
    used_fallback: bool = False
    preassigned: bool = False

    @property
    def location(self) -> str:
        """Comma-joined location codes, empty string if unassigned."""
        return ", ".join(a.location for a in self.assignments)

    @property
    def is_assigned(self) -> bool:
        """True if at least one location received the line."""
        return len(self.assignments) > 0

    @property
    def is_split(self) -> bool:
        """True if the line was spread over more than one location."""
        return len(self.assignments) > 1

    @property
    def destination(self) -> str:
        return self.line.destination

    @property
    def pallets(self) -> int:
        return self.line.pallets

    @property
    def sequence_index(self) -> int:
        return self.line.sequence_index

    @property
    def assigned_pallets(self) -> int:
        """Total pallets placed across all assignments."""
        return sum(a.pallets for a in self.assignments)

    def as_demand_line(self) -> DemandLine:
        """Return the demand line with its placements, ready for re-export."""
        return replace(
            self.line,
            location=self.location or None,
            assignments=list(self.assignments),
        )

    def __str__(self) -> str:
        """String representation."""
        target = self.location or "UNASSIGNED"
        return f"#{self.sequence_index} {self.destination} x{self.pallets} -> {target}"
