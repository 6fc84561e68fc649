"""Tests for the container ledger."""

import pandas as pd
import pytest

from slotting.inventory import ContainerLedger, ContainerStats, record
from slotting.models import Location, ZoneType


@pytest.fixture
def fifo_ledger():
    """Ledger with two XLX7 containers in arrival order."""
    ledger = ContainerLedger()
    ledger.add("XLX7", "C1", pallets=10, cartons=100)
    ledger.add("XLX7", "C2", pallets=5, cartons=50)
    return ledger


class TestContainerStats:
    """Tests for ContainerStats."""

    def test_negative_values_rejected(self):
        with pytest.raises(ValueError):
            ContainerStats(pallets=-1)

    def test_legacy_number_coerced(self):
        assert ContainerStats.coerce(7) == ContainerStats(pallets=7, cartons=0)

    def test_dict_coerced(self):
        assert ContainerStats.coerce({"pallets": 3, "cartons": 30}) == ContainerStats(3, 30)


class TestLedgerLoading:
    """Tests for building a ledger from its stored form."""

    def test_legacy_bare_counts_normalized(self):
        """Should read a bare pallet count as pallets with zero cartons."""
        ledger = ContainerLedger.from_dict({"XLX7": {"C1": 10, "C2": {"pallets": 5, "cartons": 50}}})

        assert ledger.to_dict() == {
            "XLX7": {
                "C1": {"pallets": 10, "cartons": 0},
                "C2": {"pallets": 5, "cartons": 50},
            }
        }

    def test_zero_pallet_entries_pruned(self):
        ledger = ContainerLedger.from_dict({"XLX7": {"C1": {"pallets": 0, "cartons": 5}}, "MIT2": {}})
        assert len(ledger) == 0

    def test_empty_input(self):
        assert len(ContainerLedger.from_dict(None)) == 0


class TestRecord:
    """Tests for recording intake."""

    def test_record_is_pure(self):
        stored = {"XLX7": {"C1": {"pallets": 2, "cartons": 20}}}

        updated = record(stored, "XLX7", "C1", 3, 30)

        assert stored == {"XLX7": {"C1": {"pallets": 2, "cartons": 20}}}
        assert updated.containers_for("XLX7") == {"C1": ContainerStats(5, 50)}

    def test_record_new_destination(self):
        updated = record(ContainerLedger(), "MIT2", "C9", 4)
        assert updated.total_pallets("MIT2") == 4

    def test_add_requires_destination_and_container(self):
        with pytest.raises(ValueError):
            ContainerLedger().add("XLX7", "", 3)

    def test_copy_is_independent(self, fifo_ledger):
        copy = fifo_ledger.copy()
        copy.add("XLX7", "C1", 1)

        assert fifo_ledger.total_pallets("XLX7") == 15
        assert copy != fifo_ledger


class TestDeductions:
    """Tests for ledger deductions."""

    def test_fifo_consumes_oldest_first(self, fifo_ledger):
        """Should empty C1 before touching C2."""
        taken = fifo_ledger.deduct_fifo("XLX7", pallets=12)

        assert taken == (12, 0)
        assert fifo_ledger.containers_for("XLX7") == {"C2": ContainerStats(3, 50)}

    def test_fifo_pallets_and_cartons_independent(self):
        ledger = ContainerLedger()
        ledger.add("XLX7", "C1", pallets=2, cartons=10)
        ledger.add("XLX7", "C2", pallets=5, cartons=50)

        taken = ledger.deduct_fifo("XLX7", pallets=3, cartons=30)

        assert taken == (3, 30)
        assert ledger.containers_for("XLX7") == {"C2": ContainerStats(4, 30)}

    def test_fifo_clamped(self, fifo_ledger):
        taken = fifo_ledger.deduct_fifo("XLX7", pallets=40)

        assert taken == (15, 0)
        assert "XLX7" not in fifo_ledger

    def test_deduct_named_container_case_insensitive(self, fifo_ledger):
        taken = fifo_ledger.deduct_container("XLX7", "c2", pallets=2, cartons=20)

        assert taken == (2, 20)
        assert fifo_ledger.containers_for("XLX7")["C2"] == ContainerStats(3, 30)

    def test_deduct_named_container_clamped_and_pruned(self, fifo_ledger):
        taken = fifo_ledger.deduct_container("XLX7", "C2", pallets=9)

        assert taken == (5, 0)
        assert list(fifo_ledger.containers_for("XLX7")) == ["C1"]

    def test_deduct_unknown_container_is_noop(self, fifo_ledger):
        assert fifo_ledger.deduct_container("XLX7", "C7", pallets=1) == (0, 0)
        assert fifo_ledger.total_pallets("XLX7") == 15


class TestLookups:
    """Tests for container and destination lookups."""

    def test_has_container_case_insensitive(self, fifo_ledger):
        assert fifo_ledger.has_container("c1")
        assert not fifo_ledger.has_container("C3")
        assert not fifo_ledger.has_container("")

    def test_find_destination_normalized(self):
        ledger = ContainerLedger()
        ledger.add("Amazon-XLX7", "C1", 3)

        assert ledger.find_destination("XLX7") == "Amazon-XLX7"
        assert ledger.find_destination("Amazon-XLX7") == "Amazon-XLX7"
        assert ledger.find_destination("MIT2") is None

    def test_matching_destinations_exact_first(self):
        ledger = ContainerLedger.from_dict({"Amazon-XLX7": {"C1": 3}, "MIT2": {"C2": 1}, "XLX7": {"C3": 2}})

        assert ledger.matching_destinations("XLX7") == ["XLX7", "Amazon-XLX7"]
        assert ledger.matching_destinations("fba xlx7") == ["Amazon-XLX7", "XLX7"]
        assert ledger.matching_destinations("GYR2") == []

    def test_remove_container_everywhere(self):
        ledger = ContainerLedger()
        ledger.add("XLX7", "C1", 3)
        ledger.add("MIT2", "C1", 2)
        ledger.add("MIT2", "C2", 2)

        removed = ledger.remove_container("c1")

        assert removed == 2
        assert ledger.destinations() == ["MIT2"]
        assert list(ledger.containers_for("MIT2")) == ["C2"]


class TestConsistency:
    """Tests for ledger versus location stock."""

    def test_consistent_ledger(self, fifo_ledger):
        locations = [Location(code="A01", zone_type=ZoneType.AMAZON_MAIN_A, current_pallets=15, destination_tags=["XLX7"])]
        assert fifo_ledger.check_consistency(locations) == {}

    def test_ledger_exceeding_stock_reported(self, fifo_ledger):
        locations = [
            Location(code="A01", zone_type=ZoneType.AMAZON_MAIN_A, current_pallets=6, destination_tags=["XLX7"]),
            Location(code="A02", zone_type=ZoneType.AMAZON_MAIN_A, current_pallets=4, destination_tags=["Amazon-XLX7"]),
        ]
        assert fifo_ledger.check_consistency(locations) == {"XLX7": (15, 10)}

    def test_to_dataframe(self, fifo_ledger):
        df = fifo_ledger.to_dataframe()

        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["destination", "container_id", "pallets", "cartons"]
        assert df["pallets"].sum() == 15
        assert list(df["container_id"]) == ["C1", "C2"]
