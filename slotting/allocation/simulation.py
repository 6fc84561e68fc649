"""Working copy of warehouse occupancy used during one assignment batch.

Slot assignment must see the effect of earlier lines in the same batch
without touching the caller's Location objects. The arena holds one mutable
LocationState per location code and is discarded when the batch finishes.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.location import Location, ZoneType
from .destination_classifier import normalize_destination_code


@dataclass
class LocationState:
    """Mutable occupancy of a single location during a batch.

    Attributes:
        code: Location code
        zone_type: Zone type of the location
        max_pallets: Capacity, None for unbounded
        used_pallets: Pallets occupied, including assignments made in this batch
        destinations: Destination tags, including tags added in this batch
        max_destinations: Tag budget, None for unbounded
        order: Position of the location in the caller's list
    """
    code: str
    zone_type: ZoneType
    max_pallets: Optional[int]
    used_pallets: int
    destinations: List[str] = field(default_factory=list)
    max_destinations: Optional[int] = None
    order: int = 0

    @classmethod
    def from_location(cls, location: Location, order: int = 0) -> "LocationState":
        return cls(
            code=location.code,
            zone_type=location.zone_type,
            max_pallets=location.max_pallets,
            used_pallets=location.current_pallets,
            destinations=list(location.destination_tags),
            max_destinations=location.max_destination_tags,
            order=order,
        )

    @property
    def remaining(self) -> Optional[int]:
        """Free pallet slots, None if unbounded."""
        if self.max_pallets is None:
            return None
        return max(self.max_pallets - self.used_pallets, 0)

    @property
    def utilization(self) -> float:
        if not self.max_pallets:
            return 1.0
        return self.used_pallets / self.max_pallets

    def has_destination(self, normalized_destination: str) -> bool:
        return any(
            normalize_destination_code(tag) == normalized_destination
            for tag in self.destinations
        )

    def can_fit(self, pallets: int) -> bool:
        """True if the location has room for all pallets."""
        return self.max_pallets is None or self.remaining >= pallets

    def can_accept_destination(self, normalized_destination: str) -> bool:
        """True if the destination is already here or the tag budget has room."""
        if self.has_destination(normalized_destination):
            return True
        return self.max_destinations is None or len(self.destinations) < self.max_destinations

    def occupy(self, destination: str, pallets: int) -> None:
        """Record pallets of a destination as stored here."""
        self.used_pallets += pallets
        if not self.has_destination(normalize_destination_code(destination)):
            self.destinations.append(destination)


def natural_key(code: str) -> Tuple:
    """Sort key that orders "A2" before "A10"."""
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
        for part in re.split(r"(\d+)", code)
        if part
    )


class SimulationState:
    """Arena of LocationState records keyed by location code."""

    def __init__(self, locations: Iterable[Location]):
        self._states: Dict[str, LocationState] = {}
        for order, location in enumerate(locations):
            # First record wins if a code is duplicated; the validator reports duplicates
            if location.code not in self._states:
                self._states[location.code] = LocationState.from_location(location, order)

    def __contains__(self, code: str) -> bool:
        return code in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, code: str) -> Optional[LocationState]:
        return self._states.get(code)

    def all(self) -> List[LocationState]:
        """All states in the caller's original order."""
        return list(self._states.values())

    def occupy(self, code: str, destination: str, pallets: int) -> bool:
        """
        Record an occupancy against a location.

        Args:
            code: Location code
            destination: Destination stored
            pallets: Pallets stored

        Returns:
            False if the code is not part of the arena
        """
        state = self._states.get(code)
        if state is None:
            return False
        state.occupy(destination, pallets)
        return True

    def snapshot(self) -> Dict[str, Tuple[int, Tuple[str, ...]]]:
        """Immutable view of used pallets and tags per location."""
        return {
            code: (state.used_pallets, tuple(state.destinations))
            for code, state in self._states.items()
        }
