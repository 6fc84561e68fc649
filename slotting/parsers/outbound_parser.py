"""Parser for outbound (shipped) sheets."""

from pathlib import Path
from typing import List, Optional
import warnings

import pandas as pd

from ..models.outbound import OutboundLine
from .sheet_columns import (
    OUTBOUND_CARTON_COLUMN,
    OUTBOUND_CONTAINER_COLUMN,
    OUTBOUND_DESTINATION_COLUMN,
    OUTBOUND_HEADER,
    OUTBOUND_LOCATION_COLUMN,
    OUTBOUND_PALLET_COLUMN,
    cell_text,
    find_column,
    header_texts,
    is_blank_row,
    row_value,
    to_number,
)

#: Rows searched for the header row
HEADER_SEARCH_ROWS = 10


class OutboundSheetParser:
    """
    Parser for outbound sheets.

    Expected sheet layout:
    - Header row within the first 10 rows containing 库位/area or 目的地/destination
    - Required: pallets column (板数/托盘/pallets)
    - Required: location column (库位/area) or destination column (目的地/destination)
    - Optional: container (柜号/container) and cartons (箱数/件数/items/carton) columns

    Rows with missing or non-positive pallets are skipped. All other rows are
    returned as they are; the reconciler decides whether they can be applied.
    """

    def __init__(self, file_path: Path | str, sheet_name: str | int = 0):
        """
        Initialize outbound parser.

        Args:
            file_path: Path to outbound Excel file
            sheet_name: Sheet name or index (default: first sheet)

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self.file_path = Path(file_path)
        if not self.file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        self.sheet_name = sheet_name

    def parse(self) -> List[OutboundLine]:
        """
        Parse outbound sheet.

        Returns:
            Outbound lines in sheet order

        Raises:
            ValueError: If the header row or the required columns are missing
        """
        df = pd.read_excel(
            self.file_path,
            sheet_name=self.sheet_name,
            header=None,
            dtype=object,
            engine="openpyxl"
        )
        rows = df.values.tolist()
        if not rows:
            raise ValueError(f"Outbound sheet in {self.file_path.name} is empty")

        header_idx: Optional[int] = None
        for idx, row in enumerate(rows[:HEADER_SEARCH_ROWS]):
            if any(OUTBOUND_HEADER.search(text) for text in header_texts(row)):
                header_idx = idx
                break
        if header_idx is None:
            raise ValueError(f"Could not find header row in the first {HEADER_SEARCH_ROWS} rows of outbound sheet")

        headers = header_texts(rows[header_idx])
        loc_idx = find_column(headers, OUTBOUND_LOCATION_COLUMN)
        pallet_idx = find_column(headers, OUTBOUND_PALLET_COLUMN)
        dest_idx = find_column(headers, OUTBOUND_DESTINATION_COLUMN)
        container_idx = find_column(headers, OUTBOUND_CONTAINER_COLUMN)
        carton_idx = find_column(headers, OUTBOUND_CARTON_COLUMN)

        if pallet_idx is None:
            raise ValueError(f"Missing pallets column (板数/托盘/pallets) in outbound sheet: {headers}")
        if loc_idx is None and dest_idx is None:
            raise ValueError(f"Outbound sheet needs a location or destination column: {headers}")

        lines = []
        skipped = 0
        for row in rows[header_idx + 1:]:
            if is_blank_row(row):
                continue

            pallets = to_number(row_value(row, pallet_idx))
            if pallets is None or pallets <= 0:
                skipped += 1
                continue

            cartons = to_number(row_value(row, carton_idx))
            lines.append(OutboundLine(
                location=cell_text(row_value(row, loc_idx)) or None,
                destination=cell_text(row_value(row, dest_idx)),
                pallets=pallets,
                cartons=int(round(cartons)) if cartons is not None else None,
                container_id=cell_text(row_value(row, container_idx)) or None,
            ))

        if skipped > 0:
            warnings.warn(
                f"Skipped {skipped} outbound rows with missing or non-positive pallet counts.",
                UserWarning
            )

        return lines
