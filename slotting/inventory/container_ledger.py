"""Container ledger: which shipping containers each destination's stock came from.

The ledger maps destination -> container id -> ContainerStats. It is derived
bookkeeping kept alongside the location records for traceability; location
occupancy remains the source of truth.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from ..allocation.destination_classifier import normalize_destination_code
from ..models.location import Location

logger = logging.getLogger(__name__)


@dataclass
class ContainerStats:
    """Pallets and cartons of one destination that arrived in one container."""
    pallets: int = 0
    cartons: int = 0

    def __post_init__(self):
        """Validate container stats."""
        if self.pallets < 0 or self.cartons < 0:
            raise ValueError(
                f"Container stats cannot be negative: pallets={self.pallets}, cartons={self.cartons}"
            )

    @classmethod
    def coerce(cls, value: Union["ContainerStats", Dict, int, float]) -> "ContainerStats":
        """Build stats from a stored value; a bare number is a legacy pallet count."""
        if isinstance(value, ContainerStats):
            return cls(value.pallets, value.cartons)
        if isinstance(value, dict):
            return cls(int(value.get("pallets", 0) or 0), int(value.get("cartons", 0) or 0))
        return cls(pallets=int(value), cartons=0)


class ContainerLedger:
    """
    Per-destination record of pallets and cartons by source container.

    Iteration order of containers within a destination is insertion order,
    which is the order used for FIFO deductions.

    Example:
        ledger = ContainerLedger()
        ledger.add("XLX7", "MSCU1234567", pallets=10, cartons=500)
        ledger.deduct_fifo("XLX7", pallets=4)
    """

    def __init__(self, entries: Optional[Dict[str, Dict[str, ContainerStats]]] = None):
        self._entries: Dict[str, Dict[str, ContainerStats]] = {}
        for destination, containers in (entries or {}).items():
            for container_id, stats in containers.items():
                self.add(destination, container_id, **vars(ContainerStats.coerce(stats)))

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Dict[str, Union[Dict, int]]]]) -> "ContainerLedger":
        """
        Build a ledger from its stored form.

        Legacy ledgers stored a bare pallet count per container; those values
        are normalized to ContainerStats with zero cartons.

        Args:
            raw: Mapping destination -> container id -> stats dict or pallet count

        Returns:
            ContainerLedger
        """
        return cls(raw or {})

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, int]]]:
        """Serializable form of the ledger."""
        return {
            destination: {
                container_id: {"pallets": stats.pallets, "cartons": stats.cartons}
                for container_id, stats in containers.items()
            }
            for destination, containers in self._entries.items()
        }

    def copy(self) -> "ContainerLedger":
        """Independent copy of the ledger."""
        return ContainerLedger(self._entries)

    def __contains__(self, destination: str) -> bool:
        return destination in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if isinstance(other, ContainerLedger):
            return self.to_dict() == other.to_dict()
        return NotImplemented

    def destinations(self) -> List[str]:
        return list(self._entries.keys())

    def containers_for(self, destination: str) -> Dict[str, ContainerStats]:
        """Containers recorded for a destination (copy, in FIFO order)."""
        return {
            container_id: ContainerStats(stats.pallets, stats.cartons)
            for container_id, stats in self._entries.get(destination, {}).items()
        }

    def find_destination(self, destination: str) -> Optional[str]:
        """
        Find the ledger key for a destination.

        Args:
            destination: Destination as written on an outbound line

        Returns:
            Exact key if present, else the first key that normalizes identically
        """
        keys = self.matching_destinations(destination)
        return keys[0] if keys else None

    def matching_destinations(self, destination: str) -> List[str]:
        """
        All ledger keys for a destination.

        Ledgers written before keys were normalized on intake can hold the
        same destination under several spellings ("XLX7", "Amazon-XLX7").

        Returns:
            The exact key first (if present), then every other key that
            normalizes identically, in insertion order
        """
        keys = [destination] if destination in self._entries else []
        wanted = normalize_destination_code(destination or "")
        if wanted:
            keys.extend(
                key for key in self._entries
                if key != destination and normalize_destination_code(key) == wanted
            )
        return keys

    def total_pallets(self, destination: str) -> int:
        return sum(stats.pallets for stats in self._entries.get(destination, {}).values())

    def has_container(self, container_id: str) -> bool:
        """True if the container appears under any destination (case-insensitive)."""
        wanted = (container_id or "").strip().lower()
        if not wanted:
            return False
        return any(
            cid.lower() == wanted
            for containers in self._entries.values()
            for cid in containers
        )

    def add(self, destination: str, container_id: str, pallets: int, cartons: int = 0) -> None:
        """
        Merge pallets and cartons into a (destination, container) entry.

        Args:
            destination: Destination key
            container_id: Container number
            pallets: Pallets to add
            cartons: Cartons to add
        """
        if not destination or not container_id:
            raise ValueError("Ledger entries need both a destination and a container id")
        containers = self._entries.setdefault(destination, {})
        current = containers.get(container_id, ContainerStats())
        containers[container_id] = ContainerStats(
            pallets=current.pallets + int(pallets),
            cartons=current.cartons + int(cartons or 0),
        )
        self._prune(destination, container_id)

    def deduct_container(
        self,
        destination: str,
        container_id: str,
        pallets: int,
        cartons: int = 0,
    ) -> Tuple[int, int]:
        """
        Deduct from one named container of a destination.

        The container id is matched case-insensitively. Deductions are
        clamped at the recorded amounts.

        Returns:
            (pallets deducted, cartons deducted)
        """
        containers = self._entries.get(destination, {})
        wanted = container_id.strip().lower()
        key = next((cid for cid in containers if cid.lower() == wanted), None)
        if key is None:
            logger.debug(f"Container {container_id} not recorded for {destination}")
            return 0, 0

        stats = containers[key]
        take_pallets = min(stats.pallets, max(int(pallets), 0))
        take_cartons = min(stats.cartons, max(int(cartons or 0), 0))
        containers[key] = ContainerStats(stats.pallets - take_pallets, stats.cartons - take_cartons)
        self._prune(destination, key)
        return take_pallets, take_cartons

    def deduct_fifo(self, destination: str, pallets: int, cartons: int = 0) -> Tuple[int, int]:
        """
        Deduct from a destination's containers, oldest entry first.

        Pallets and cartons are exhausted independently: each container gives
        up as many pallets and as many cartons as it holds until each amount
        is covered. Containers reaching zero pallets are removed.

        Returns:
            (pallets deducted, cartons deducted)
        """
        containers = self._entries.get(destination, {})
        remaining_pallets = max(int(pallets), 0)
        remaining_cartons = max(int(cartons or 0), 0)
        taken_pallets = taken_cartons = 0

        for key in list(containers.keys()):
            if remaining_pallets <= 0 and remaining_cartons <= 0:
                break
            stats = containers[key]
            take_pallets = min(stats.pallets, remaining_pallets)
            take_cartons = min(stats.cartons, remaining_cartons)
            containers[key] = ContainerStats(stats.pallets - take_pallets, stats.cartons - take_cartons)
            remaining_pallets -= take_pallets
            remaining_cartons -= take_cartons
            taken_pallets += take_pallets
            taken_cartons += take_cartons

        for key in list(containers.keys()):
            self._prune(destination, key)

        if remaining_pallets > 0:
            logger.debug(f"Ledger for {destination} short by {remaining_pallets} pallets")
        return taken_pallets, taken_cartons

    def remove_container(self, container_id: str) -> int:
        """
        Remove a container from every destination.

        Returns:
            Number of destination entries removed
        """
        wanted = (container_id or "").strip().lower()
        removed = 0
        for destination in list(self._entries.keys()):
            containers = self._entries[destination]
            for cid in [c for c in containers if c.lower() == wanted]:
                del containers[cid]
                removed += 1
            if not containers:
                del self._entries[destination]
        return removed

    def check_consistency(self, locations: Iterable[Location]) -> Dict[str, Tuple[int, int]]:
        """
        Compare ledger totals with the stock held at locations.

        Args:
            locations: Current location records

        Keys that normalize to the same destination are checked together and
        reported under the first of them.

        Returns:
            Mapping destination -> (ledger pallets, location pallets) for every
            destination whose ledger total exceeds the pallets at locations
            holding that destination
        """
        locations = list(locations)
        groups: Dict[str, List[str]] = {}
        for key in self._entries:
            groups.setdefault(normalize_destination_code(key) or key, []).append(key)

        problems = {}
        for keys in groups.values():
            ledger_total = sum(self.total_pallets(key) for key in keys)
            stock = sum(loc.current_pallets for loc in locations if loc.has_destination(keys[0]))
            if ledger_total > stock:
                problems[keys[0]] = (ledger_total, stock)
        return problems

    def to_dataframe(self) -> pd.DataFrame:
        """Flat table of the ledger (destination, container_id, pallets, cartons)."""
        rows = [
            {
                "destination": destination,
                "container_id": container_id,
                "pallets": stats.pallets,
                "cartons": stats.cartons,
            }
            for destination, containers in self._entries.items()
            for container_id, stats in containers.items()
        ]
        return pd.DataFrame(rows, columns=["destination", "container_id", "pallets", "cartons"])

    def _prune(self, destination: str, container_id: str) -> None:
        """Drop a zero-pallet container and an empty destination."""
        containers = self._entries.get(destination)
        if containers is None:
            return
        stats = containers.get(container_id)
        if stats is not None and stats.pallets <= 0:
            del containers[container_id]
        if not containers:
            del self._entries[destination]

    def __str__(self) -> str:
        """String representation."""
        count = sum(len(c) for c in self._entries.values())
        return f"ContainerLedger({len(self._entries)} destinations, {count} entries)"


LedgerLike = Union[ContainerLedger, Dict[str, Dict[str, Union[Dict, int]]], None]


def as_ledger(ledger: LedgerLike) -> ContainerLedger:
    """Copy a ledger or build one from its stored dict form."""
    if isinstance(ledger, ContainerLedger):
        return ledger.copy()
    return ContainerLedger.from_dict(ledger)


def record(
    ledger: LedgerLike,
    destination: str,
    container_id: str,
    pallets: int,
    cartons: int = 0,
) -> ContainerLedger:
    """
    Record an intake in the ledger without modifying the input.

    Args:
        ledger: Current ledger (ContainerLedger or stored dict form)
        destination: Destination key
        container_id: Container number
        pallets: Pallets received
        cartons: Cartons received

    Returns:
        New ContainerLedger with the intake merged in
    """
    updated = as_ledger(ledger)
    updated.add(destination, container_id, pallets, cartons)
    return updated
