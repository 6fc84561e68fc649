"""Tests for slot assignment.

Each test builds a small set of locations and checks which location a
demand line lands in, plus the batch-level guarantees (capacity, tag budget,
ordering, determinism).
"""

import pytest
from pydantic import ValidationError

from slotting.allocation import AllocationConfig, SlotAssigner, assign
from slotting.inventory import apply_assignments
from slotting.models import (
    AllocationMode,
    DemandLine,
    Location,
    SubAssignment,
    ZoneType,
    generate_default_locations,
)


def main_location(code, max_pallets=30, current=0, tags=None, max_tags=2, zone=ZoneType.AMAZON_MAIN_A):
    return Location(
        code=code,
        zone_type=zone,
        max_pallets=max_pallets,
        current_pallets=current,
        destination_tags=tags or [],
        max_destination_tags=max_tags,
    )


class TestConsolidation:
    """Tests for ranking of candidate locations."""

    def test_consolidation_beats_load_balancing(self, empty_main_location, consolidation_location):
        """Should put XLX7 with existing XLX7 stock rather than in the empty location."""
        # Arrange
        lines = [DemandLine(destination="XLX7", pallets=3)]

        # Act
        results = assign(lines, [empty_main_location, consolidation_location])

        # Assert
        assert results[0].location == "A02"
        assert not results[0].used_fallback

    def test_holders_packed_fullest_first(self):
        locations = [
            main_location("A01", current=10, tags=["XLX7"]),
            main_location("A02", current=20, tags=["XLX7"]),
        ]
        results = assign([DemandLine(destination="XLX7", pallets=2)], locations)
        assert results[0].location == "A02"

    def test_holder_matched_after_normalization(self):
        """Should treat 'Amazon-XLX7' stock as holding XLX7."""
        locations = [
            main_location("A01"),
            main_location("A02", current=5, tags=["Amazon-XLX7"]),
        ]
        results = assign([DemandLine(destination="XLX7", pallets=2)], locations)
        assert results[0].location == "A02"

    def test_non_holders_spread_emptiest_first(self):
        locations = [
            main_location("A01", current=20, tags=["MIT2"]),
            main_location("A02", current=5, tags=["GYR2"]),
        ]
        results = assign([DemandLine(destination="XLX7", pallets=2)], locations)
        assert results[0].location == "A02"

    def test_fewer_tags_breaks_utilization_tie(self):
        locations = [
            main_location("A01", tags=["MIT2"]),
            main_location("A02"),
        ]
        results = assign([DemandLine(destination="XLX7", pallets=2)], locations)
        assert results[0].location == "A02"

    def test_natural_code_order_breaks_remaining_ties(self):
        """Should prefer A2 over A10 when everything else is equal."""
        locations = [main_location("A10"), main_location("A2")]
        results = assign([DemandLine(destination="XLX7", pallets=2)], locations)
        assert results[0].location == "A2"


class TestEligibility:
    """Tests for capacity and tag-budget filtering."""

    def test_location_without_room_skipped(self):
        locations = [
            main_location("A01", max_pallets=30, current=28, tags=["XLX7"]),
            main_location("A02"),
        ]
        results = assign([DemandLine(destination="XLX7", pallets=3)], locations)
        assert results[0].location == "A02"

    def test_exhausted_tag_budget_skipped(self):
        """Should not add a new destination to a location at its tag limit."""
        locations = [
            main_location("A01", current=5, tags=["MIT2"], max_tags=1),
            main_location("A02", current=20, tags=["GYR2"], max_tags=2),
        ]
        results = assign([DemandLine(destination="XLX7", pallets=3)], locations)
        assert results[0].location == "A02"

    def test_exhausted_tag_budget_allows_same_destination(self):
        locations = [main_location("A01", current=5, tags=["XLX7"], max_tags=1)]
        results = assign([DemandLine(destination="XLX7", pallets=3)], locations)
        assert results[0].location == "A01"

    def test_unbounded_location_always_fits(self):
        locations = [main_location("A01", max_pallets=None, current=500, max_tags=None)]
        results = assign([DemandLine(destination="XLX7", pallets=40)], locations)
        assert results[0].location == "A01"

    def test_zone_must_match_category(self, forced_private_location):
        """Should never store Amazon main freight in a private location."""
        results = assign([DemandLine(destination="XLX7", pallets=2)], [forced_private_location])
        assert results[0].location == ""


class TestMainZoneThreshold:
    """Tests for restricting large Amazon main batches to aisle A."""

    @pytest.fixture
    def mixed_main_locations(self):
        return [
            main_location("A05", max_pallets=40, current=10, tags=["MIT2"]),
            main_location("B01", max_pallets=30, zone=ZoneType.AMAZON_MAIN_BC),
        ]

    def test_small_batch_may_use_secondary_main(self, mixed_main_locations):
        results = assign([DemandLine(destination="XLX7", pallets=5)], mixed_main_locations)
        assert results[0].location == "B01"

    def test_large_batch_restricted_to_primary_main(self, mixed_main_locations):
        results = assign([DemandLine(destination="XLX7", pallets=21)], mixed_main_locations)
        assert results[0].location == "A05"

    def test_threshold_uses_batch_total_per_destination(self, mixed_main_locations):
        """Should sum all lines of a destination, including prefixed spellings."""
        lines = [
            DemandLine(destination="XLX7", pallets=11, sequence_index=0),
            DemandLine(destination="Amazon-XLX7", pallets=11, sequence_index=1),
        ]
        results = assign(lines, mixed_main_locations)
        assert [r.location for r in results] == ["A05", "A05"]

    def test_threshold_is_configurable(self, mixed_main_locations):
        config = AllocationConfig(main_zone_threshold=4)
        results = assign([DemandLine(destination="XLX7", pallets=5)], mixed_main_locations, config=config)
        assert results[0].location == "A05"


class TestForcedZones:
    """Tests for the forced private/platform pool in automatic mode."""

    def test_private_forced_into_forced_aisles(self, forced_private_location, outside_private_location):
        """Should ignore a private location outside V/H/F/R/G05-G15 in automatic mode."""
        lines = [DemandLine(destination="住宅地址", pallets=2)]
        results = assign(lines, [outside_private_location, forced_private_location], AllocationMode.AUTOMATIC)
        assert results[0].location == "V10"
        assert results[0].category == "private"

    def test_manual_mode_uses_all_locations(self, forced_private_location, outside_private_location):
        lines = [DemandLine(destination="住宅地址", pallets=2)]
        results = assign(lines, [forced_private_location, outside_private_location], AllocationMode.MANUAL)
        assert results[0].location == "G20"

    def test_platform_forced_into_forced_aisles(self, forced_platform_location, outside_platform_location):
        """Should send 商业地址 to H03 even though B30 also holds platform freight."""
        lines = [DemandLine(destination="商业地址", pallets=2)]
        results = assign(lines, [outside_platform_location, forced_platform_location])
        assert results[0].location == "H03"
        assert results[0].category == "platform"

    def test_forced_pool_full_leaves_line_unassigned(self, outside_private_location):
        results = assign([DemandLine(destination="住宅地址", pallets=2)], [outside_private_location])
        assert results[0].location == ""

    def test_amazon_freight_not_forced(self, empty_main_location):
        """Should not apply the forced pool to Amazon destinations."""
        results = assign([DemandLine(destination="XLX7", pallets=2)], [empty_main_location])
        assert results[0].location == "A01"


class TestFallback:
    """Tests for the buffer/suspense fallback pool."""

    def test_falls_back_to_buffer(self, buffer_location):
        full_main = main_location("A01", max_pallets=30, current=30, tags=["MIT2"])
        results = assign([DemandLine(destination="XLX7", pallets=3)], [full_main, buffer_location])

        assert results[0].location == "D01"
        assert results[0].used_fallback

    def test_falls_back_to_suspense(self):
        office = Location(code="Office1", zone_type=ZoneType.SUSPENSE, max_pallets=50, max_destination_tags=10)
        results = assign([DemandLine(destination="住宅地址", pallets=3)], [office])

        assert results[0].location == "Office1"
        assert results[0].used_fallback

    def test_unassigned_when_nothing_fits(self, empty_main_location):
        """Should leave the line unassigned and report it."""
        plan = SlotAssigner([empty_main_location]).plan([DemandLine(destination="XLX7", pallets=31)])

        assert plan.lines[0].location == ""
        assert not plan.lines[0].is_assigned
        assert not plan.is_feasible()
        assert len(plan.unassigned) == 1
        assert "XLX7" in plan.infeasibilities[0]

    def test_custom_fallback_zones(self, empty_main_location):
        config = AllocationConfig(fallback_zone_types=(ZoneType.AMAZON_MAIN_A,))
        results = assign([DemandLine(destination="住宅地址", pallets=3)], [empty_main_location], config=config)
        assert results[0].location == "A01"


class TestBatchBehaviour:
    """Tests for how lines in one batch affect each other."""

    def test_later_lines_see_earlier_assignments(self):
        locations = [main_location("A01", max_pallets=4), main_location("A02", max_pallets=4)]
        lines = [
            DemandLine(destination="XLX7", pallets=3, sequence_index=0),
            DemandLine(destination="MIT2", pallets=3, sequence_index=1),
        ]
        results = assign(lines, locations)
        assert [r.location for r in results] == ["A01", "A02"]

    def test_same_destination_consolidates_within_batch(self):
        locations = [main_location("A01"), main_location("A02")]
        lines = [
            DemandLine(destination="XLX7", pallets=2, sequence_index=0),
            DemandLine(destination="XLX7", pallets=2, sequence_index=1),
        ]
        results = assign(lines, locations)
        assert [r.location for r in results] == ["A01", "A01"]

    def test_results_ordered_by_sequence_index(self, empty_main_location):
        lines = [
            DemandLine(destination="XLX7", pallets=1, sequence_index=5),
            DemandLine(destination="MIT2", pallets=1, sequence_index=1),
        ]
        results = assign(lines, [empty_main_location])
        assert [r.sequence_index for r in results] == [1, 5]

    def test_caller_locations_not_modified(self, empty_main_location, consolidation_location):
        assign([DemandLine(destination="XLX7", pallets=3)], [empty_main_location, consolidation_location])

        assert consolidation_location.current_pallets == 25
        assert empty_main_location.destination_tags == []

    def test_final_state_snapshot(self, empty_main_location):
        plan = SlotAssigner([empty_main_location]).plan([DemandLine(destination="XLX7", pallets=3)])
        assert plan.final_state["A01"] == (3, ("XLX7",))

    def test_deterministic(self, small_warehouse):
        lines = [
            DemandLine(destination="XLX7", pallets=3, sequence_index=0),
            DemandLine(destination="住宅地址", pallets=2, sequence_index=1),
            DemandLine(destination="LGB6", pallets=4, sequence_index=2),
            DemandLine(destination="商业地址", pallets=1, sequence_index=3),
        ]
        assert assign(lines, small_warehouse) == assign(lines, small_warehouse)

    def test_plan_summary(self, empty_main_location):
        plan = SlotAssigner([empty_main_location]).plan([DemandLine(destination="XLX7", pallets=3)])

        assert plan.is_feasible()
        assert plan.total_pallets == 3
        assert plan.assigned_pallets == 3
        assert "FEASIBLE" in str(plan)


class TestPreassignedLines:
    """Tests for lines that already carry a location."""

    def test_preassigned_line_kept_and_occupies_space(self):
        locations = [main_location("A01", max_pallets=4), main_location("A02", max_pallets=4)]
        lines = [
            DemandLine(destination="MIT2", pallets=3, sequence_index=1),
            DemandLine(destination="XLX7", pallets=3, sequence_index=0, location="A01"),
        ]

        results = assign(lines, locations)

        assert results[0].location == "A01"
        assert results[0].preassigned
        assert results[1].location == "A02"

    def test_comma_separated_location_spread_evenly(self):
        """Should spread the line so the placements add up to its pallets."""
        locations = [main_location("A01"), main_location("A02")]
        line = DemandLine(destination="XLX7", pallets=3, cartons=30, location="A01，A02")

        plan = SlotAssigner(locations).plan([line])

        assigned = plan.lines[0]
        assert assigned.location == "A01, A02"
        assert [(a.location, a.pallets, a.cartons) for a in assigned.assignments] == [
            ("A01", 2, 30),
            ("A02", 1, 0),
        ]
        assert assigned.assigned_pallets == line.pallets
        assert plan.final_state["A01"][0] == 2
        assert plan.final_state["A02"][0] == 1

    def test_spread_drops_codes_without_pallets(self):
        locations = [main_location("A01"), main_location("A02"), main_location("A03")]
        line = DemandLine(destination="XLX7", pallets=2, location="A01, A02, A03")

        plan = SlotAssigner(locations).plan([line])

        assert plan.lines[0].location == "A01, A02"
        assert plan.final_state["A03"][0] == 0

    def test_round_tripped_line_commits_its_own_pallets(self):
        locations = [main_location("A01"), main_location("A02")]
        line = DemandLine(destination="XLX7", pallets=5, cartons=50, container_id="C1", location="A01, A02")

        result = apply_assignments(assign([line], locations), locations)

        assert sum(loc.current_pallets for loc in result.locations) == 5
        assert sum(loc.current_cartons for loc in result.locations) == 50
        assert result.ledger.total_pallets("XLX7") == 5

    def test_explicit_sub_assignments_used_as_given(self):
        locations = [main_location("A01"), main_location("A02")]
        line = DemandLine(
            destination="XLX7",
            pallets=5,
            assignments=[SubAssignment("A01", 4, 40), SubAssignment("A02", 1, 10)],
        )

        plan = SlotAssigner(locations).plan([line])

        assert plan.lines[0].assignments == line.assignments
        assert plan.final_state["A01"][0] == 4
        assert plan.final_state["A02"][0] == 1

    def test_unknown_preassigned_code_ignored(self, empty_main_location):
        results = assign([DemandLine(destination="XLX7", pallets=2, location="Z99")], [empty_main_location])
        assert results[0].location == "Z99"
        assert results[0].preassigned


class TestSplitting:
    """Tests for the optional split of lines over several locations."""

    @pytest.fixture
    def two_small_locations(self):
        return [main_location("A01", max_pallets=4), main_location("A02", max_pallets=4)]

    def test_no_split_by_default(self, two_small_locations):
        results = assign([DemandLine(destination="XLX7", pallets=6, cartons=60)], two_small_locations)
        assert results[0].location == ""

    def test_split_when_enabled(self, two_small_locations):
        config = AllocationConfig(allow_split=True)
        results = assign([DemandLine(destination="XLX7", pallets=6, cartons=61)], two_small_locations, config=config)

        line = results[0]
        assert line.is_split
        assert line.location == "A01, A02"
        assert [(a.location, a.pallets) for a in line.assignments] == [("A01", 4), ("A02", 2)]
        # Remainder of the carton rounding goes to the first placement
        assert [a.cartons for a in line.assignments] == [41, 20]

    def test_split_only_if_combined_room_suffices(self, two_small_locations):
        config = AllocationConfig(allow_split=True)
        plan = SlotAssigner(two_small_locations, config).plan([DemandLine(destination="XLX7", pallets=9)])

        assert plan.lines[0].location == ""
        assert plan.final_state["A01"] == (0, ())


class TestInvariants:
    """Batch-level guarantees on the standard layout."""

    def test_capacity_and_tag_budget_respected(self):
        locations = generate_default_locations()
        destinations = ["XLX7", "MIT2", "LGB6", "住宅地址", "商业地址", "FedEx", "SHEIN", "$ 手表", "中转", "GYR2"]
        lines = [
            DemandLine(destination=destinations[i % len(destinations)], pallets=(i % 7) + 1, sequence_index=i)
            for i in range(120)
        ]

        results = assign(lines, locations)
        updated = apply_assignments(results, locations).locations

        for loc in updated:
            if loc.max_pallets is not None:
                assert loc.current_pallets <= loc.max_pallets, loc.code
            if loc.max_destination_tags is not None:
                assert len(loc.destination_tags) <= loc.max_destination_tags, loc.code

    def test_assigned_zone_matches_category_or_fallback(self):
        locations = generate_default_locations()
        by_code = {loc.code: loc for loc in locations}
        lines = [DemandLine(destination="XLX7", pallets=5, sequence_index=i) for i in range(10)]

        for result in assign(lines, locations):
            zone = by_code[result.location].zone_type
            if result.used_fallback:
                assert zone in (ZoneType.AMAZON_BUFFER, ZoneType.SUSPENSE)
            else:
                assert zone == ZoneType.AMAZON_MAIN_A


class TestAllocationConfig:
    """Tests for AllocationConfig validation."""

    def test_defaults(self):
        config = AllocationConfig()
        assert config.main_zone_threshold == 20
        assert config.forced_zone_prefixes == ("V", "H", "F", "R")
        assert not config.allow_split

    @pytest.mark.parametrize("code,expected", [
        ("V10", True), ("H01", True), ("F11", True), ("R34", True),
        ("G05", True), ("G15", True), ("G04", False), ("G16", False),
        ("A01", False), ("Office1", False), ("", False),
    ])
    def test_forced_zone_membership(self, code, expected):
        assert AllocationConfig().is_forced_zone(code) is expected

    def test_prefixes_upper_cased(self):
        assert AllocationConfig(forced_zone_prefixes=("v", " h ")).forced_zone_prefixes == ("V", "H")

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            AllocationConfig(forced_range_start=15, forced_range_end=5)

    def test_config_is_frozen(self):
        config = AllocationConfig()
        with pytest.raises(ValidationError):
            config.allow_split = True


class TestDemandLineValidation:
    """Tests for DemandLine construction."""

    def test_empty_destination_rejected(self):
        with pytest.raises(ValueError, match="destination"):
            DemandLine(destination="  ", pallets=1)

    @pytest.mark.parametrize("pallets", [0, -2])
    def test_non_positive_pallets_rejected(self, pallets):
        with pytest.raises(ValueError, match="pallets"):
            DemandLine(destination="XLX7", pallets=pallets)
