"""Apply physical stock-take counts to location records."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..models.location import Location

logger = logging.getLogger(__name__)


@dataclass
class InventoryCount:
    """
    One counted location from a stock-take sheet.

    Attributes:
        location: Location code
        pallets: Counted pallets
        max_pallets: Capacity to set (None keeps the current capacity)
        destination: Destination written on the count sheet (informational)
    """
    location: str
    pallets: int
    max_pallets: Optional[int] = None
    destination: Optional[str] = None

    def __post_init__(self):
        """Validate count."""
        self.location = (self.location or "").strip()
        if not self.location:
            raise ValueError("Inventory count needs a location code")
        if self.pallets < 0:
            raise ValueError(f"Counted pallets cannot be negative: {self.pallets} at {self.location}")
        if self.max_pallets is not None and self.max_pallets < 0:
            raise ValueError(f"Capacity cannot be negative: {self.max_pallets} at {self.location}")


def apply_inventory_counts(
    counts: Sequence[InventoryCount],
    locations: Sequence[Location],
) -> Tuple[List[Location], List[str], List[str]]:
    """
    Overwrite pallet counts (and capacity when given) from a stock-take.

    Destination tags and cartons are left as they are; run the warehouse
    validator afterwards to find locations whose tags no longer match.

    Args:
        counts: Counted locations; later counts for the same code win
        locations: Current location records (not modified)

    Returns:
        (updated locations, codes updated, codes not found)
    """
    updated = [loc.model_copy(deep=True) for loc in locations]
    by_code = {}
    for loc in updated:
        by_code.setdefault(loc.code, loc)

    changed: List[str] = []
    unknown: List[str] = []

    for count in counts:
        location = by_code.get(count.location)
        if location is None:
            if count.location not in unknown:
                unknown.append(count.location)
            continue

        location.current_pallets = count.pallets
        if count.max_pallets is not None:
            location.max_pallets = count.max_pallets
        if count.location not in changed:
            changed.append(count.location)

    if unknown:
        logger.warning(f"Stock-take contains {len(unknown)} unknown locations: {', '.join(unknown)}")
    logger.info(f"Stock-take updated {len(changed)} locations")
    return updated, changed, unknown
