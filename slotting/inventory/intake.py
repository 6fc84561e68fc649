"""Commit an assignment plan to location records and the container ledger."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..models.audit_log import LogEntry
from ..models.demand import AssignedLine
from ..models.location import Location
from .container_ledger import ContainerLedger, LedgerLike, as_ledger

logger = logging.getLogger(__name__)


class DuplicateContainerError(ValueError):
    """Raised when a container that is already in the ledger is unloaded again."""

    def __init__(self, container_id: str):
        self.container_id = container_id
        super().__init__(f"Container {container_id} has already been recorded in the ledger")


@dataclass
class IntakeResult:
    """
    Outcome of committing assigned lines.

    Attributes:
        locations: Updated location records (copies)
        ledger: Updated container ledger (copy)
        log: Audit lines, one per placement
        unknown_locations: Codes in the plan that match no location
    """
    locations: List[Location]
    ledger: ContainerLedger
    log: List[LogEntry] = field(default_factory=list)
    unknown_locations: List[str] = field(default_factory=list)


def apply_assignments(
    assigned_lines: Sequence[AssignedLine],
    locations: Sequence[Location],
    ledger: LedgerLike = None,
    now: Optional[datetime] = None,
    reject_duplicate_containers: bool = False,
) -> IntakeResult:
    """
    Store assigned lines in their locations and record them in the ledger.

    Only pallets that actually received a location are recorded in the
    ledger, so the ledger never claims more stock than the locations hold.

    Args:
        assigned_lines: Result of slot assignment
        locations: Current location records (not modified)
        ledger: Current container ledger (not modified)
        now: Timestamp for audit lines (default: current time)
        reject_duplicate_containers: Raise if a batch container is already in the ledger

    Returns:
        IntakeResult with updated copies and audit lines

    Raises:
        DuplicateContainerError: If reject_duplicate_containers is set and a
            container of the batch is already recorded
    """
    now = now or datetime.now()
    updated_ledger = as_ledger(ledger)

    if reject_duplicate_containers:
        for container_id in {a.line.container_id for a in assigned_lines if a.line.container_id}:
            if updated_ledger.has_container(container_id):
                raise DuplicateContainerError(container_id)

    updated = [loc.model_copy(deep=True) for loc in locations]
    by_code: Dict[str, Location] = {}
    for loc in updated:
        by_code.setdefault(loc.code, loc)

    log: List[LogEntry] = []
    unknown: List[str] = []

    for assigned in assigned_lines:
        line = assigned.line
        stored_pallets = stored_cartons = 0

        for placement in assigned.assignments:
            location = by_code.get(placement.location)
            if location is None:
                if placement.location not in unknown:
                    unknown.append(placement.location)
                logger.warning(f"Cannot store {line.destination} in unknown location {placement.location}")
                continue

            location.current_pallets += placement.pallets
            location.current_cartons += placement.cartons
            if location.find_tag(line.destination) is None:
                location.destination_tags.append(line.destination)

            stored_pallets += placement.pallets
            stored_cartons += placement.cartons
            log.append(LogEntry(
                time=now,
                text=f"Assigned {placement.pallets} pallets for {line.destination} to {location.code}",
                location=location.code,
                container_id=line.container_id or None,
            ))

        if line.container_id and stored_pallets > 0:
            # Another spelling of the destination keeps its existing ledger key
            key = updated_ledger.find_destination(line.destination) or line.destination
            updated_ledger.add(key, line.container_id, stored_pallets, stored_cartons)

    logger.info(
        f"Committed {sum(a.assigned_pallets for a in assigned_lines)} pallets "
        f"from {len(assigned_lines)} lines"
    )
    return IntakeResult(locations=updated, ledger=updated_ledger, log=log, unknown_locations=unknown)
