"""Outbound reconciliation: deduct shipped stock from locations and the ledger.

For each outbound line the reconciler:
1. Rejects incomplete lines (no location, no destination, less than one whole pallet)
2. Finds the location by exact code
3. Finds the location's tag for the destination (ignoring cosmetic prefixes)
4. Deducts pallets (clamped at stock) and cartons (explicit or proportional)
5. Clears tags and cartons of a location that reaches zero pallets
6. Deducts the container ledger, by named container or FIFO

Every rejected line is reported with a reason; nothing raises.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.audit_log import LogEntry
from ..models.location import Location
from ..models.outbound import OutboundLine
from .container_ledger import ContainerLedger, LedgerLike, as_ledger

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    """Why an outbound line was not applied."""
    MISSING_LOCATION = "missing_location"
    MISSING_DESTINATION = "missing_destination"
    INVALID_PALLETS = "invalid_pallets"
    UNKNOWN_LOCATION = "unknown_location"
    DESTINATION_NOT_AT_LOCATION = "destination_not_at_location"


@dataclass
class SkippedLine:
    """An outbound line that was not applied.

    Attributes:
        index: Position of the line in the batch
        line: The outbound line
        reason: Reason category
        detail: Human-readable explanation
    """
    index: int
    line: OutboundLine
    reason: SkipReason
    detail: str


@dataclass
class ReconciliationReport:
    """
    Summary of an outbound reconciliation.

    Attributes:
        pallets_deducted: Pallets removed from locations
        cartons_deducted: Cartons removed from locations
        processed_lines: Number of lines applied
        skipped: Lines not applied, with reasons
        log: Audit lines for the applied deductions
    """
    pallets_deducted: int = 0
    cartons_deducted: int = 0
    processed_lines: int = 0
    skipped: List[SkippedLine] = field(default_factory=list)
    log: List[LogEntry] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def skipped_by_reason(self) -> Dict[SkipReason, int]:
        """Count skipped lines per reason."""
        counts: Dict[SkipReason, int] = {}
        for skipped in self.skipped:
            counts[skipped.reason] = counts.get(skipped.reason, 0) + 1
        return counts

    def __str__(self) -> str:
        """String representation."""
        issues = f" {self.skipped_count} rows had issues." if self.skipped else ""
        return f"Deducted {self.pallets_deducted} pallets from {self.processed_lines} rows.{issues}"


def _as_count(value) -> Optional[int]:
    """Whole pallet/carton count (fractions truncated), or None for missing or non-numeric values."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return math.floor(number)


class OutboundReconciler:
    """
    Applies outbound lines to a location snapshot and container ledger.

    Example:
        reconciler = OutboundReconciler(locations, ledger)
        report = reconciler.reconcile(outbound_lines)
        locations, ledger = reconciler.locations, reconciler.ledger
    """

    def __init__(self, locations: Sequence[Location], ledger: LedgerLike = None, now: Optional[datetime] = None):
        """
        Initialize reconciler with copies of the current state.

        Args:
            locations: Current location records (not modified)
            ledger: Current container ledger (not modified)
            now: Timestamp for audit lines (default: current time)
        """
        self.locations: List[Location] = [loc.model_copy(deep=True) for loc in locations]
        self.ledger: ContainerLedger = as_ledger(ledger)
        self.now = now or datetime.now()
        self._by_code: Dict[str, Location] = {}
        for loc in self.locations:
            self._by_code.setdefault(loc.code, loc)

    def reconcile(self, outbound_lines: Sequence[OutboundLine]) -> ReconciliationReport:
        """
        Apply every outbound line in order.

        Args:
            outbound_lines: Shipped lines

        Returns:
            ReconciliationReport with totals, skipped lines and audit lines
        """
        report = ReconciliationReport()
        for index, line in enumerate(outbound_lines):
            skipped = self._apply_line(index, line, report)
            if skipped is not None:
                report.skipped.append(skipped)
                logger.warning(f"Outbound line {index} skipped: {skipped.detail}")

        logger.info(str(report))
        return report

    def _apply_line(self, index: int, line: OutboundLine, report: ReconciliationReport) -> Optional[SkippedLine]:
        """Apply one line; return a SkippedLine if it was rejected."""
        code = (line.location or "").strip()
        destination = (line.destination or "").strip()
        requested = _as_count(line.pallets)

        if not code:
            return SkippedLine(index, line, SkipReason.MISSING_LOCATION, "No location given")
        if not destination:
            return SkippedLine(index, line, SkipReason.MISSING_DESTINATION, f"No destination given for {code}")
        if requested is None or requested <= 0:
            return SkippedLine(
                index, line, SkipReason.INVALID_PALLETS,
                f"Pallet count {line.pallets!r} for {destination} at {code} is not at least one whole pallet",
            )

        location = self._by_code.get(code)
        if location is None:
            return SkippedLine(index, line, SkipReason.UNKNOWN_LOCATION, f"Location {code} not found")

        tag = location.find_tag(destination)
        if tag is None:
            return SkippedLine(
                index, line, SkipReason.DESTINATION_NOT_AT_LOCATION,
                f"{destination} is not stored at {code} (tags: {', '.join(location.destination_tags) or 'none'})",
            )

        pallets, cartons = self._deduct_location(location, tag, requested, _as_count(line.cartons))
        self._deduct_ledger(destination, tag, line.container_id, pallets, cartons)

        report.pallets_deducted += pallets
        report.cartons_deducted += cartons
        report.processed_lines += 1
        report.log.append(LogEntry(
            time=self.now,
            text=f"Deducted {pallets} pallets for {destination} from {code}",
            location=code,
            container_id=(line.container_id or "").strip() or None,
        ))
        return None

    def _deduct_location(
        self,
        location: Location,
        tag: str,
        requested: int,
        explicit_cartons: Optional[int],
    ) -> Tuple[int, int]:
        """Deduct pallets and cartons from a location; clear it when empty."""
        current_pallets = location.current_pallets
        current_cartons = location.current_cartons
        pallets = min(current_pallets, requested)

        if explicit_cartons is not None:
            cartons = min(max(explicit_cartons, 0), current_cartons)
        elif current_pallets > 0:
            cartons = min(math.ceil(pallets / current_pallets * current_cartons), current_cartons)
        else:
            cartons = 0

        location.current_pallets = current_pallets - pallets
        location.current_cartons = current_cartons - cartons

        if location.current_pallets == 0:
            location.destination_tags = [t for t in location.destination_tags if t != tag]
            if location.destination_tags:
                logger.info(
                    f"{location.code} emptied; clearing remaining tags {location.destination_tags}"
                )
            location.destination_tags = []
            location.current_cartons = 0

        return pallets, cartons

    def _deduct_ledger(
        self,
        destination: str,
        tag: str,
        container_id: Optional[str],
        pallets: int,
        cartons: int,
    ) -> None:
        """
        Deduct from the named container, or FIFO across the destination's containers.

        Every ledger key that names the same destination is used, in order,
        until the deduction is covered.
        """
        keys = self.ledger.matching_destinations(destination)
        keys += [k for k in self.ledger.matching_destinations(tag) if k not in keys]
        if not keys:
            logger.debug(f"No ledger entries for {destination}")
            return

        container_id = (container_id or "").strip()
        remaining_pallets, remaining_cartons = pallets, cartons
        for key in keys:
            if remaining_pallets <= 0 and remaining_cartons <= 0:
                break
            if container_id:
                taken_pallets, taken_cartons = self.ledger.deduct_container(
                    key, container_id, remaining_pallets, remaining_cartons
                )
            else:
                taken_pallets, taken_cartons = self.ledger.deduct_fifo(key, remaining_pallets, remaining_cartons)
            remaining_pallets -= taken_pallets
            remaining_cartons -= taken_cartons


def reconcile(
    outbound_lines: Sequence[OutboundLine],
    locations: Sequence[Location],
    ledger: LedgerLike = None,
) -> Tuple[List[Location], ContainerLedger, ReconciliationReport]:
    """
    Deduct shipped stock from locations and the container ledger.

    Args:
        outbound_lines: Shipped lines, applied in order
        locations: Current location records (not modified)
        ledger: Current container ledger (not modified)

    Returns:
        (updated locations, updated ledger, report)
    """
    reconciler = OutboundReconciler(locations, ledger)
    report = reconciler.reconcile(outbound_lines)
    return reconciler.locations, reconciler.ledger, report
