"""Pytest configuration and shared fixtures."""

import pytest
from datetime import datetime

from slotting.models import Location, ZoneType


@pytest.fixture
def now():
    """Fixed timestamp for audit log entries."""
    return datetime(2025, 3, 14, 9, 30)


@pytest.fixture
def empty_main_location():
    """Fixture for an empty primary Amazon main location."""
    return Location(
        code="A01",
        zone_type=ZoneType.AMAZON_MAIN_A,
        max_pallets=30,
        max_destination_tags=2,
    )


@pytest.fixture
def consolidation_location():
    """Fixture for a primary main location already holding XLX7."""
    return Location(
        code="A02",
        zone_type=ZoneType.AMAZON_MAIN_A,
        max_pallets=30,
        current_pallets=25,
        current_cartons=500,
        destination_tags=["XLX7"],
        max_destination_tags=2,
    )


@pytest.fixture
def buffer_location():
    """Fixture for an empty Amazon buffer location."""
    return Location(
        code="D01",
        zone_type=ZoneType.AMAZON_BUFFER,
        max_pallets=12,
        max_destination_tags=3,
    )


@pytest.fixture
def forced_private_location():
    """Fixture for a private location inside the forced aisles."""
    return Location(
        code="V10",
        zone_type=ZoneType.PRIVATE,
        max_pallets=4,
        max_destination_tags=3,
    )


@pytest.fixture
def outside_private_location():
    """Fixture for a private location outside the forced G range."""
    return Location(
        code="G20",
        zone_type=ZoneType.PRIVATE,
        max_pallets=16,
        max_destination_tags=3,
    )


@pytest.fixture
def forced_platform_location():
    """Fixture for a platform location inside the forced aisles."""
    return Location(
        code="H03",
        zone_type=ZoneType.PLATFORM,
        max_pallets=9,
        max_destination_tags=3,
    )


@pytest.fixture
def outside_platform_location():
    """Fixture for a platform location outside the forced aisles."""
    return Location(
        code="B30",
        zone_type=ZoneType.PLATFORM,
        max_pallets=16,
        max_destination_tags=3,
    )


@pytest.fixture
def small_warehouse(
    empty_main_location,
    consolidation_location,
    buffer_location,
    forced_private_location,
    outside_private_location,
    forced_platform_location,
):
    """Fixture for a small mixed warehouse."""
    return [
        empty_main_location,
        consolidation_location,
        buffer_location,
        forced_private_location,
        outside_private_location,
        forced_platform_location,
    ]
