"""Slot assignment for unloaded shipment lines.

This module decides which storage location receives each demand line of an
unload batch, based on:
- Destination category (Amazon main/buffer, express, platform, private, ...)
- Zone compatibility of each location
- Remaining pallet capacity and destination-tag budget
- Consolidation with stock already held for the same destination

Assignment runs against a simulation of the warehouse so that each line sees
the space taken by earlier lines in the same batch. The caller's Location
objects are never modified; use inventory.intake.apply_assignments to commit.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.demand import AllocationMode, AssignedLine, DemandLine, SubAssignment
from ..models.location import Location, ZoneType
from .allocation_config import AllocationConfig
from .destination_classifier import ZoneCategory, classify, normalize_destination_code
from .simulation import LocationState, SimulationState, natural_key

logger = logging.getLogger(__name__)


# Zone types each category may be stored in (Amazon main is resolved per batch)
CATEGORY_ZONES: Dict[ZoneCategory, Tuple[ZoneType, ...]] = {
    ZoneCategory.AMAZON_MAIN: (ZoneType.AMAZON_MAIN_A, ZoneType.AMAZON_MAIN_BC),
    ZoneCategory.AMAZON_BUFFER: (ZoneType.AMAZON_BUFFER,),
    ZoneCategory.SHEIN: (ZoneType.SHEIN,),
    ZoneCategory.PLATFORM: (ZoneType.PLATFORM,),
    ZoneCategory.PRIVATE: (ZoneType.PRIVATE,),
    ZoneCategory.EXPRESS: (ZoneType.EXPRESS,),
    ZoneCategory.HIGH_VALUE: (ZoneType.HIGH_VALUE,),
    ZoneCategory.SUSPENSE: (ZoneType.SUSPENSE,),
}

FORCED_CATEGORIES = (ZoneCategory.PRIVATE, ZoneCategory.PLATFORM)


@dataclass
class AssignmentPlan:
    """
    Complete slot assignment for one batch.

    Attributes:
        lines: Assigned lines ordered by sequence_index
        unassigned: Lines no location could take
        infeasibilities: Messages describing each unassigned line
        final_state: Used pallets and tags per location after the batch
    """
    lines: List[AssignedLine]
    unassigned: List[AssignedLine] = field(default_factory=list)
    infeasibilities: List[str] = field(default_factory=list)
    final_state: Dict[str, Tuple[int, Tuple[str, ...]]] = field(default_factory=dict)

    def is_feasible(self) -> bool:
        """Check if every line received a location."""
        return len(self.unassigned) == 0

    @property
    def total_pallets(self) -> int:
        return sum(line.pallets for line in self.lines)

    @property
    def assigned_pallets(self) -> int:
        return sum(line.assigned_pallets for line in self.lines)

    def __str__(self) -> str:
        """String representation."""
        status = "FEASIBLE" if self.is_feasible() else f"INFEASIBLE ({len(self.unassigned)} unassigned)"
        return (
            f"AssignmentPlan: {len(self.lines)} lines, "
            f"{self.assigned_pallets}/{self.total_pallets} pallets placed - {status}"
        )


class SlotAssigner:
    """
    Assigns demand lines to storage locations.

    Example:
        assigner = SlotAssigner(locations)
        plan = assigner.plan(lines, AllocationMode.AUTOMATIC)

        for line in plan.lines:
            print(line.destination, "->", line.location or "UNASSIGNED")
    """

    def __init__(self, locations: Sequence[Location], config: Optional[AllocationConfig] = None):
        """
        Initialize slot assigner.

        Args:
            locations: Current location snapshot (not modified)
            config: Assignment settings (default: AllocationConfig())
        """
        self.locations = list(locations)
        self.config = config or AllocationConfig()

    def plan(
        self,
        lines: Sequence[DemandLine],
        mode: AllocationMode = AllocationMode.AUTOMATIC,
    ) -> AssignmentPlan:
        """
        Assign every demand line of a batch.

        Lines that already carry a location are kept as they are but still
        occupy space in the simulation before any other line is placed.
        Remaining lines are placed in input order.

        Args:
            lines: Demand lines of the batch
            mode: AUTOMATIC applies the forced private/platform zones, MANUAL does not

        Returns:
            AssignmentPlan with results ordered by sequence_index
        """
        mode = AllocationMode(mode)
        state = SimulationState(self.locations)
        results: List[AssignedLine] = []

        preassigned = [line for line in lines if line.is_preassigned]
        to_assign = [line for line in lines if not line.is_preassigned]

        for line in preassigned:
            results.append(self._occupy_preassigned(line, state))

        batch_totals: Dict[str, int] = defaultdict(int)
        for line in to_assign:
            batch_totals[normalize_destination_code(line.destination)] += line.pallets

        for line in to_assign:
            results.append(self._assign_line(line, state, mode, batch_totals))

        results.sort(key=lambda r: r.sequence_index)

        unassigned = [r for r in results if not r.is_assigned]
        infeasibilities = [
            f"Line {r.sequence_index} ({r.pallets} pallets to {r.destination}, "
            f"category {r.category}) could not be assigned to any location"
            for r in unassigned
        ]
        for message in infeasibilities:
            logger.warning(message)

        plan = AssignmentPlan(
            lines=results,
            unassigned=unassigned,
            infeasibilities=infeasibilities,
            final_state=state.snapshot(),
        )
        logger.info(str(plan))
        return plan

    def _occupy_preassigned(self, line: DemandLine, state: SimulationState) -> AssignedLine:
        """Register a round-tripped line in the simulation without reassigning it."""
        if line.assignments:
            placements = list(line.assignments)
        else:
            placements = _spread_exactly(line.location_codes(), line.pallets, line.cartons or 0)

        for placement in placements:
            if not state.occupy(placement.location, line.destination, placement.pallets):
                logger.warning(
                    f"Pre-assigned location {placement.location} for line {line.sequence_index} "
                    f"is not a known location; occupancy ignored"
                )

        return AssignedLine(
            line=line,
            assignments=placements,
            category=classify(line.destination).value,
            preassigned=True,
        )

    def _assign_line(
        self,
        line: DemandLine,
        state: SimulationState,
        mode: AllocationMode,
        batch_totals: Dict[str, int],
    ) -> AssignedLine:
        """Place one line, trying the regular pool, the fallback pool, then a split."""
        category = classify(line.destination)
        norm_dest = normalize_destination_code(line.destination)
        cartons = line.cartons or 0

        zones = self._zones_for(category, batch_totals.get(norm_dest, line.pallets))
        pool = self._candidate_pool(category, state, mode)
        candidates = self._rank(
            [s for s in pool if s.zone_type in zones and self._eligible(s, norm_dest, line.pallets)],
            norm_dest,
        )
        used_fallback = False

        if not candidates:
            candidates = self._rank(
                [
                    s for s in state.all()
                    if s.zone_type in self.config.fallback_zone_types
                    and self._eligible(s, norm_dest, line.pallets)
                ],
                norm_dest,
            )
            used_fallback = bool(candidates)

        if candidates:
            best = candidates[0]
            best.occupy(line.destination, line.pallets)
            logger.debug(
                f"Line {line.sequence_index}: {line.pallets} pallets of {line.destination} "
                f"-> {best.code}{' (fallback)' if used_fallback else ''}"
            )
            return AssignedLine(
                line=line,
                assignments=[SubAssignment(location=best.code, pallets=line.pallets, cartons=cartons)],
                category=category.value,
                used_fallback=used_fallback,
            )

        if self.config.allow_split:
            assignments = self._split(line, norm_dest, zones, pool, state)
            if assignments:
                return AssignedLine(
                    line=line,
                    assignments=assignments,
                    category=category.value,
                )

        return AssignedLine(line=line, category=category.value)

    def _zones_for(self, category: ZoneCategory, batch_total: int) -> Tuple[ZoneType, ...]:
        """Zone types a category may use; large main batches are held to aisle A."""
        if category == ZoneCategory.AMAZON_MAIN and batch_total > self.config.main_zone_threshold:
            return (ZoneType.AMAZON_MAIN_A,)
        return CATEGORY_ZONES[category]

    def _candidate_pool(
        self,
        category: ZoneCategory,
        state: SimulationState,
        mode: AllocationMode,
    ) -> List[LocationState]:
        """Locations considered for a category before zone and capacity filtering."""
        if mode == AllocationMode.AUTOMATIC and category in FORCED_CATEGORIES:
            return [s for s in state.all() if self.config.is_forced_zone(s.code)]
        return state.all()

    @staticmethod
    def _eligible(location: LocationState, norm_dest: str, pallets: int) -> bool:
        return location.can_fit(pallets) and location.can_accept_destination(norm_dest)

    @staticmethod
    def _rank(candidates: List[LocationState], norm_dest: str) -> List[LocationState]:
        """
        Order candidates best first.

        Locations already holding the destination come first and are packed
        fullest-first; other locations are spread emptiest-first, then by the
        fewest existing destination tags.
        """
        def key(s: LocationState):
            if s.has_destination(norm_dest):
                return (0, -s.utilization, 0, natural_key(s.code))
            return (1, s.utilization, len(s.destinations), natural_key(s.code))

        return sorted(candidates, key=key)

    def _split(
        self,
        line: DemandLine,
        norm_dest: str,
        zones: Tuple[ZoneType, ...],
        pool: List[LocationState],
        state: SimulationState,
    ) -> List[SubAssignment]:
        """Spread a line over partially free locations if together they can hold it."""
        def has_room(s: LocationState) -> bool:
            return (s.remaining is None or s.remaining > 0) and s.can_accept_destination(norm_dest)

        primary = self._rank([s for s in pool if s.zone_type in zones and has_room(s)], norm_dest)
        primary_codes = {s.code for s in primary}
        fallback = self._rank(
            [
                s for s in state.all()
                if s.zone_type in self.config.fallback_zone_types
                and s.code not in primary_codes
                and has_room(s)
            ],
            norm_dest,
        )

        takes: List[Tuple[LocationState, int]] = []
        remaining = line.pallets
        for candidate in primary + fallback:
            if remaining <= 0:
                break
            room = remaining if candidate.remaining is None else min(candidate.remaining, remaining)
            takes.append((candidate, room))
            remaining -= room

        if remaining > 0:
            return []

        total_cartons = line.cartons or 0
        assignments = []
        for candidate, take in takes:
            candidate.occupy(line.destination, take)
            take_cartons = math.floor(take / line.pallets * total_cartons) if total_cartons else 0
            assignments.append([candidate.code, take, take_cartons])

        if total_cartons:
            assignments[0][2] += total_cartons - sum(a[2] for a in assignments)

        logger.debug(
            f"Line {line.sequence_index}: {line.pallets} pallets of {line.destination} "
            f"split over {', '.join(a[0] for a in assignments)}"
        )
        return [SubAssignment(location=code, pallets=p, cartons=c) for code, p, c in assignments]


def _spread_exactly(codes: List[str], pallets: int, cartons: int) -> List[SubAssignment]:
    """
    Spread a line over listed codes so the placements sum to its pallets.

    The first codes take one extra pallet each until the remainder is used;
    codes left with no pallets are dropped. Cartons go to the first placement.
    """
    if not codes:
        return []
    base, extra = divmod(pallets, len(codes))
    placements = []
    for i, code in enumerate(codes):
        share = base + 1 if i < extra else base
        if share > 0:
            placements.append(SubAssignment(location=code, pallets=share, cartons=0 if placements else cartons))
    return placements


def assign(
    lines: Sequence[DemandLine],
    locations: Sequence[Location],
    mode: AllocationMode = AllocationMode.AUTOMATIC,
    config: Optional[AllocationConfig] = None,
) -> List[AssignedLine]:
    """
    Assign a batch of demand lines to locations.

    Args:
        lines: Demand lines of the batch, in processing order
        locations: Current location snapshot (not modified)
        mode: AUTOMATIC or MANUAL allocation
        config: Optional assignment settings

    Returns:
        One AssignedLine per demand line, ordered by sequence_index
    """
    return SlotAssigner(locations, config).plan(lines, mode).lines
