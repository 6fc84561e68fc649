"""Location data model for warehouse storage bins."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class ZoneType(str, Enum):
    """Category of a storage location.

    The zone type decides which destination categories a location may hold.
    """
    AMAZON_MAIN_A = "amz-main-A"
    AMAZON_MAIN_BC = "amz-main-BC"
    AMAZON_BUFFER = "amz-buffer"
    SHEIN = "shein"
    PRIVATE = "private"
    PLATFORM = "platform"
    EXPRESS = "express"
    SUSPENSE = "suspense"
    HIGH_VALUE = "highvalue"

    @classmethod
    def _missing_(cls, value):
        # Older layouts spell the Shein zone "sehin" and vary in case
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "sehin":
                return cls.SHEIN
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class Location(BaseModel):
    """
    Represents a single storage location (bin) in the warehouse.

    Attributes:
        code: Unique location code (e.g., "A12"), immutable once created
        zone_type: Zone category governing which destinations may be stored
        max_pallets: Pallet capacity, None for unbounded
        current_pallets: Pallets currently stored
        current_cartons: Cartons currently stored
        destination_tags: Destinations currently stored here (no duplicates)
        max_destination_tags: Maximum number of distinct destinations, None for unbounded
        note: Free-text description of the location
    """
    code: str = Field(..., min_length=1, description="Unique location code", frozen=True)
    zone_type: ZoneType = Field(..., description="Zone category")
    max_pallets: Optional[int] = Field(None, ge=0, description="Pallet capacity")
    current_pallets: int = Field(0, ge=0, description="Pallets currently stored")
    current_cartons: int = Field(0, ge=0, description="Cartons currently stored")
    destination_tags: List[str] = Field(default_factory=list, description="Destinations stored here")
    max_destination_tags: Optional[int] = Field(None, ge=0, description="Maximum distinct destinations")
    note: str = Field("", description="Location description")

    @field_validator('code')
    @classmethod
    def strip_code(cls, v: str) -> str:
        """Ensure location code is not just whitespace."""
        if not v.strip():
            raise ValueError("Location code cannot be whitespace only")
        return v.strip()

    @field_validator('zone_type', mode='before')
    @classmethod
    def coerce_zone_type(cls, v):
        """Accept legacy and case-variant zone type strings."""
        if isinstance(v, str):
            return ZoneType(v)
        return v

    @field_validator('destination_tags')
    @classmethod
    def unique_tags(cls, v: List[str]) -> List[str]:
        """Drop blank and duplicate tags, preserving order."""
        tags = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    @property
    def remaining_capacity(self) -> Optional[int]:
        """Free pallet slots, or None if the location is unbounded."""
        if self.max_pallets is None:
            return None
        return self.max_pallets - self.current_pallets

    @property
    def utilization(self) -> float:
        """Fraction of pallet capacity in use (unbounded locations count as full)."""
        if not self.max_pallets:
            return 1.0
        return self.current_pallets / self.max_pallets

    @property
    def is_over_capacity(self) -> bool:
        """True if stored pallets exceed capacity (only possible via manual edits)."""
        return self.max_pallets is not None and self.current_pallets > self.max_pallets

    @property
    def tag_budget_exhausted(self) -> bool:
        """True if no further distinct destination may be added."""
        return (
            self.max_destination_tags is not None
            and len(self.destination_tags) >= self.max_destination_tags
        )

    def has_destination(self, destination: str) -> bool:
        """
        Check if location holds a destination, ignoring cosmetic prefixes.

        Args:
            destination: Destination to look for

        Returns:
            True if a tag normalizes to the same code
        """
        return self.find_tag(destination) is not None

    def find_tag(self, destination: str) -> Optional[str]:
        """Return the stored tag matching destination after normalization."""
        from ..allocation.destination_classifier import normalize_destination_code

        wanted = normalize_destination_code(destination)
        if not wanted:
            return None
        for tag in self.destination_tags:
            if normalize_destination_code(tag) == wanted:
                return tag
        return None

    def __str__(self) -> str:
        """String representation."""
        capacity = self.max_pallets if self.max_pallets is not None else "∞"
        return (
            f"{self.code} [{self.zone_type.value}] "
            f"{self.current_pallets}/{capacity} pallets, tags={self.destination_tags}"
        )


# Aisle ranges of the physical warehouse (prefix, first number, last number)
DEFAULT_AISLES = (
    ("A", 0, 54),
    ("B", 0, 33),
    ("C", 0, 33),
    ("D", 0, 33),
    ("E", 1, 17),
    ("F", 0, 11),
    ("G", 0, 18),
    ("H", 1, 42),
    ("V", 9, 65),
    ("R", 34, 42),
)

OFFICE_CODE = "Office1"


def build_default_location(code: str) -> Location:
    """
    Build a location with the zone, capacity and tag budget of the standard layout.

    Args:
        code: Location code such as "A12", "V30" or "Office1"

    Returns:
        Empty Location configured for its aisle
    """
    if code == OFFICE_CODE:
        return Location(
            code=code,
            zone_type=ZoneType.SUSPENSE,
            max_pallets=50,
            max_destination_tags=10,
            note="暂扣留仓，仓储上架，大货中转",
        )

    prefix = code[0].upper()
    try:
        num = int(code[1:])
    except ValueError:
        num = -1

    zone_type, note, allowed, max_pallets = ZoneType.SUSPENSE, "", 3, 10

    if prefix == "A":
        if code == "A00":
            zone_type, note, allowed, max_pallets = ZoneType.EXPRESS, "FedEx 快递区", 5, 10
        elif code == "A12":
            zone_type, note, allowed, max_pallets = ZoneType.EXPRESS, "UPS 快递区", 5, 10
        elif 45 <= num <= 54:
            zone_type, note, allowed, max_pallets = ZoneType.SHEIN, "希音专属区", 1, 30
        else:
            zone_type, note, allowed, max_pallets = ZoneType.AMAZON_MAIN_A, "亚马逊主区域 (A)", 2, 30
    elif prefix in ("B", "C"):
        zone_type, note, allowed, max_pallets = ZoneType.AMAZON_MAIN_BC, f"亚马逊主区 ({prefix})", 2, 16
    elif prefix in ("D", "E"):
        zone_type, note, allowed, max_pallets = ZoneType.AMAZON_BUFFER, f"亚马逊偏仓 ({prefix})", 3, 12
    elif prefix == "F":
        zone_type, note, allowed, max_pallets = ZoneType.PLATFORM, "平台类 (F)", 3, 16
    elif prefix == "G":
        if 0 <= num <= 4:
            zone_type, note, allowed, max_pallets = ZoneType.AMAZON_BUFFER, "偏仓 Amazon (G)", 3, 12
        else:
            zone_type, note, allowed, max_pallets = ZoneType.PRIVATE, "私人地址 (G)", 3, 16
            if num > 12:
                max_pallets = 8
    elif prefix == "H":
        zone_type, note, allowed, max_pallets = ZoneType.PLATFORM, "平台类 (H)", 3, 9
        if num > 21:
            max_pallets = 7
    elif prefix == "V":
        zone_type, note, allowed, max_pallets = ZoneType.PRIVATE, "私人地址 (V)", 3, 4
        if num > 27:
            max_pallets = 3
        if num > 48:
            max_pallets = 7
    elif prefix == "R":
        zone_type, note, allowed, max_pallets = ZoneType.HIGH_VALUE, "贵品区域 (R)", 3, 14

    return Location(
        code=code,
        zone_type=zone_type,
        max_pallets=max_pallets,
        max_destination_tags=allowed,
        note=note,
    )


def generate_default_locations() -> List[Location]:
    """Generate every location of the standard warehouse layout."""
    codes = [OFFICE_CODE]
    for prefix, first, last in DEFAULT_AISLES:
        codes.extend(f"{prefix}{num:02d}" for num in range(first, last + 1))
    return [build_default_location(code) for code in codes]
