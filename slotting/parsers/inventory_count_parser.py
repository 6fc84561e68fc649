"""Parser for stock-take count sheets."""

import math
from pathlib import Path
from typing import List
import warnings

import pandas as pd

from ..inventory.stocktake import InventoryCount
from .sheet_columns import (
    COUNT_CAPACITY_COLUMN,
    COUNT_DESTINATION_COLUMN,
    COUNT_LOCATION_COLUMN,
    COUNT_PALLET_COLUMN,
    cell_text,
    find_column,
    to_number,
)


class InventoryCountParser:
    """Parser for stock-take sheets.

    Expected file format:
    - Sheet: First sheet, first row is the header
    - Columns:
        - Location / 库位 / bin: Location code
        - Pallets / 托盘 / quantity / 数量: Counted pallets
        - Max / capacity / 容量 / 最大 (optional): New capacity
        - Destination / 目的地 (optional): Informational only

    A capacity header such as "Max Pallets" is never taken as the pallet
    count column.
    """

    def __init__(self, file_path: Path | str):
        """Initialize inventory count parser.

        Args:
            file_path: Path to stock-take Excel file

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self.file_path = Path(file_path)
        if not self.file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

    def parse(self, sheet_name: str | int = 0) -> List[InventoryCount]:
        """Parse stock-take file.

        Args:
            sheet_name: Sheet name or index (default: 0 for first sheet)

        Returns:
            List of InventoryCount in sheet order

        Raises:
            ValueError: If the location or pallet column is missing
        """
        df = pd.read_excel(
            self.file_path,
            sheet_name=sheet_name,
            engine="openpyxl"
        )

        headers = [str(c).strip() for c in df.columns]
        loc_idx = find_column(headers, COUNT_LOCATION_COLUMN)
        pallet_idx = find_column(headers, COUNT_PALLET_COLUMN, exclude=COUNT_CAPACITY_COLUMN)
        max_idx = find_column(headers, COUNT_CAPACITY_COLUMN)
        dest_idx = find_column(headers, COUNT_DESTINATION_COLUMN)

        if loc_idx is None or pallet_idx is None:
            raise ValueError(
                f"Missing required columns: need Location/库位 and Pallets/数量, found {headers}"
            )

        counts = []
        invalid = 0
        for row in df.itertuples(index=False):
            location = cell_text(row[loc_idx])
            pallets = to_number(row[pallet_idx])
            if not location or pallets is None:
                continue

            max_pallets = to_number(row[max_idx]) if max_idx is not None else None
            destination = cell_text(row[dest_idx]) if dest_idx is not None else ""

            try:
                counts.append(InventoryCount(
                    location=location,
                    pallets=math.ceil(pallets),
                    max_pallets=math.ceil(max_pallets) if max_pallets else None,
                    destination=destination or None,
                ))
            except ValueError:
                invalid += 1

        if invalid > 0:
            warnings.warn(
                f"Skipped {invalid} stock-take rows with negative counts or capacities.",
                UserWarning
            )

        return counts
