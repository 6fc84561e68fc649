"""Tunable settings for slot assignment."""

from typing import Tuple
from pydantic import BaseModel, Field, field_validator, model_validator

from .. import constants
from ..models.location import ZoneType


class AllocationConfig(BaseModel):
    """
    Settings that shape slot assignment.

    Attributes:
        main_zone_threshold: Batch pallets per destination above which Amazon
            main freight is restricted to aisle A
        forced_zone_prefixes: Aisle prefixes that private/platform freight is
            forced into in automatic mode
        forced_range_prefix: Aisle with a numbered sub-range in the forced pool
        forced_range_start: First location number of the forced sub-range
        forced_range_end: Last location number of the forced sub-range
        fallback_zone_types: Zone types tried when no regular candidate fits
        allow_split: Spread a line over several partially free locations when
            no single location can take it
    """
    main_zone_threshold: int = Field(
        constants.MAIN_ZONE_THRESHOLD_PALLETS, ge=0,
        description="Pallets per destination before main freight is held to aisle A",
    )
    forced_zone_prefixes: Tuple[str, ...] = Field(
        constants.FORCED_ZONE_PREFIXES,
        description="Aisles in the forced private/platform pool",
    )
    forced_range_prefix: str = Field(constants.FORCED_RANGE_PREFIX, min_length=1)
    forced_range_start: int = Field(constants.FORCED_RANGE_START, ge=0)
    forced_range_end: int = Field(constants.FORCED_RANGE_END, ge=0)
    fallback_zone_types: Tuple[ZoneType, ...] = Field(
        (ZoneType.AMAZON_BUFFER, ZoneType.SUSPENSE),
        description="Zone types of the overflow pool",
    )
    allow_split: bool = Field(False, description="Split lines across locations when nothing fits whole")

    model_config = {"frozen": True}

    @field_validator('forced_zone_prefixes')
    @classmethod
    def upper_prefixes(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Normalize aisle prefixes to upper case."""
        return tuple(p.strip().upper() for p in v if p.strip())

    @model_validator(mode='after')
    def range_is_ordered(self):
        """Validate the forced sub-range bounds."""
        if self.forced_range_start > self.forced_range_end:
            raise ValueError(
                f"forced_range_start ({self.forced_range_start}) must not exceed "
                f"forced_range_end ({self.forced_range_end})"
            )
        return self

    def is_forced_zone(self, code: str) -> bool:
        """
        Check if a location code belongs to the forced private/platform pool.

        Args:
            code: Location code

        Returns:
            True for codes in a forced aisle or the forced numbered sub-range
        """
        if not code:
            return False
        prefix = code[0].upper()
        if prefix in self.forced_zone_prefixes:
            return True
        if prefix == self.forced_range_prefix.upper():
            try:
                num = int(code[1:])
            except ValueError:
                return False
            return self.forced_range_start <= num <= self.forced_range_end
        return False
