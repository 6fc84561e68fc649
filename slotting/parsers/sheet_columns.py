"""Header keyword patterns and cell helpers shared by the sheet parsers.

Warehouse sheets come from several customers and mix Chinese and English
headers, so columns are located by keyword rather than by exact name.
"""

import math
import re
from typing import Any, List, Optional, Sequence

# Unload sheets
UNLOAD_HEADER_MARKERS = ("派送地址", "目的地")
DESTINATION_COLUMN = re.compile(r"派送地址|目的地|destination|dest", re.IGNORECASE)
PALLET_COLUMN = re.compile(r"PB数量|PB数|板数|预计板数|托盘|pallet", re.IGNORECASE)
LOCATION_COLUMN = re.compile(r"库位安排|Location Arrangement", re.IGNORECASE)
SO_COLUMN = re.compile(r"^SO$", re.IGNORECASE)
SHIPPING_MARK_COLUMN = re.compile(r"唛头|mark", re.IGNORECASE)
CARTON_COLUMN = re.compile(r"箱数|carton|ctn|pcs", re.IGNORECASE)
WEIGHT_COLUMN = re.compile(r"重量|weight|wt", re.IGNORECASE)
VOLUME_COLUMN = re.compile(r"体积|volume|vol|cbm", re.IGNORECASE)
CONTAINER_LABEL = re.compile(r"柜号|container|cntr", re.IGNORECASE)

# Outbound sheets
OUTBOUND_HEADER = re.compile(r"库位|area|目的地|destination", re.IGNORECASE)
OUTBOUND_LOCATION_COLUMN = re.compile(r"库位|area", re.IGNORECASE)
OUTBOUND_PALLET_COLUMN = re.compile(r"板数|托盘|pallets", re.IGNORECASE)
OUTBOUND_DESTINATION_COLUMN = re.compile(r"目的地|destination", re.IGNORECASE)
OUTBOUND_CONTAINER_COLUMN = re.compile(r"柜号|container", re.IGNORECASE)
OUTBOUND_CARTON_COLUMN = re.compile(r"箱数|件数|items|carton|ctn|pcs", re.IGNORECASE)

# Stock-take sheets
COUNT_LOCATION_COLUMN = re.compile(r"location|库位|bin", re.IGNORECASE)
COUNT_PALLET_COLUMN = re.compile(r"pallet|托盘|quantity|数量", re.IGNORECASE)
COUNT_CAPACITY_COLUMN = re.compile(r"max|capacity|容量|最大", re.IGNORECASE)
COUNT_DESTINATION_COLUMN = re.compile(r"destination|目的地|dest", re.IGNORECASE)


def cell_text(value: Any) -> str:
    """Cell value as stripped text ('' for empty cells)."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def to_number(value: Any) -> Optional[float]:
    """Numeric cell value, or None if the cell is empty or not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return None if math.isnan(number) else number


def find_column(headers: Sequence[str], pattern: re.Pattern, exclude: Optional[re.Pattern] = None) -> Optional[int]:
    """Index of the first header matching pattern (and not exclude), or None."""
    for idx, header in enumerate(headers):
        if exclude is not None and exclude.search(header):
            continue
        if pattern.search(header):
            return idx
    return None


def is_blank_row(row: Sequence[Any]) -> bool:
    return all(cell_text(v) == "" for v in row)


def row_value(row: Sequence[Any], idx: Optional[int]) -> Any:
    """Cell at idx, or None if the column is absent or the row is short."""
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def header_texts(row: Sequence[Any]) -> List[str]:
    return [cell_text(v) for v in row]
