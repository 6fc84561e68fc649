"""Parser for container unload sheets (one sheet per container)."""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
import warnings

from openpyxl import load_workbook

from ..constants import LOCATION_REMARK, PLACEHOLDER_DASH
from ..models.demand import DemandLine
from .sheet_columns import (
    CARTON_COLUMN,
    CONTAINER_LABEL,
    DESTINATION_COLUMN,
    LOCATION_COLUMN,
    PALLET_COLUMN,
    SHIPPING_MARK_COLUMN,
    SO_COLUMN,
    UNLOAD_HEADER_MARKERS,
    VOLUME_COLUMN,
    WEIGHT_COLUMN,
    cell_text,
    find_column,
    header_texts,
    is_blank_row,
    row_value,
    to_number,
)

#: Rows searched for the container number label
CONTAINER_SEARCH_ROWS = 15

#: Rows searched for the header row
HEADER_SEARCH_ROWS = 30


@dataclass
class UnloadPlan:
    """
    Demand lines read from one unload sheet, with enough layout information
    to write the assigned locations back into the same sheet.

    Attributes:
        source_file: Workbook the plan was read from
        sheet_name: Worksheet the plan was read from
        header_row: Worksheet row number (1-based) of the header
        headers: Header texts
        container_id: Container number found above the table ('' if none)
        lines: Demand lines; sequence_index is the worksheet row number of each group
    """
    source_file: Path
    sheet_name: str
    header_row: int
    headers: List[str]
    container_id: str = ""
    lines: List[DemandLine] = field(default_factory=list)

    @property
    def total_pallets(self) -> int:
        return sum(line.pallets for line in self.lines)

    @property
    def last_row(self) -> int:
        """Worksheet row number of the last data group (header row if none)."""
        return max([line.sequence_index for line in self.lines], default=self.header_row)

    def __str__(self) -> str:
        """String representation."""
        container = self.container_id or "unknown container"
        return f"UnloadPlan({container}: {len(self.lines)} lines, {self.total_pallets} pallets)"


class UnloadSheetParser:
    """
    Parser for unload sheets.

    Expected sheet layout:
    - Optional title and container label (e.g. "柜号: MSCU1234567") above the table
    - Header row containing 派送地址 / 目的地 / SO
    - One group per destination; a group may span several rows where only the
      first row carries the destination and pallet count (merged cells)
    - Optional 库位安排 column with locations from a previous export
    - Optional trailing remark row (库位按派) written by the exporter

    Continuation rows add their cartons, weight and volume to the group and
    merge any location they carry. Pallets are taken from the first row only.
    """

    def __init__(self, file_path: Path | str, sheet_name: Optional[str] = None):
        """
        Initialize parser with workbook path.

        Args:
            file_path: Path to the unload workbook (.xlsx or .xlsm)
            sheet_name: Worksheet to read (default: active sheet)

        Raises:
            FileNotFoundError: If file does not exist
            ValueError: If file is not .xlsx or .xlsm
        """
        self.file_path = Path(file_path)
        if not self.file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if self.file_path.suffix.lower() not in [".xlsm", ".xlsx"]:
            raise ValueError(f"File must be .xlsm or .xlsx: {file_path}")
        self.sheet_name = sheet_name

    def parse(self) -> UnloadPlan:
        """
        Parse the unload sheet.

        Returns:
            UnloadPlan with one DemandLine per destination group

        Raises:
            ValueError: If the sheet is empty, has no header row or no destination column
        """
        workbook = load_workbook(self.file_path, data_only=True, read_only=True)
        try:
            worksheet = workbook[self.sheet_name] if self.sheet_name else workbook.active
            sheet_name = worksheet.title
            rows = [list(r) for r in worksheet.iter_rows(min_row=1, values_only=True)]
        finally:
            workbook.close()

        if not rows or all(is_blank_row(r) for r in rows):
            raise ValueError(f"Sheet '{sheet_name}' in {self.file_path.name} is empty")

        container_id = self._find_container_id(rows)
        header_idx = self._find_header_row(rows)
        if header_idx is None:
            raise ValueError(
                f"Could not find header row (派送地址/目的地/SO) in the first "
                f"{HEADER_SEARCH_ROWS} rows of '{sheet_name}'"
            )

        headers = header_texts(rows[header_idx])
        columns = {
            "destination": find_column(headers, DESTINATION_COLUMN),
            "pallets": find_column(headers, PALLET_COLUMN),
            "location": find_column(headers, LOCATION_COLUMN),
            "so": find_column(headers, SO_COLUMN),
            "mark": find_column(headers, SHIPPING_MARK_COLUMN),
            "cartons": find_column(headers, CARTON_COLUMN),
            "weight": find_column(headers, WEIGHT_COLUMN),
            "volume": find_column(headers, VOLUME_COLUMN),
        }
        if columns["destination"] is None:
            raise ValueError(f"Missing destination column (派送地址/目的地) in '{sheet_name}': {headers}")

        groups = self._read_groups(rows, header_idx, columns)
        lines = [
            DemandLine(
                destination=g["destination"],
                pallets=g["pallets"],
                cartons=g["cartons"],
                container_id=container_id,
                sequence_index=g["row"],
                location=", ".join(g["locations"]) or None,
                so_number=g["so"],
                shipping_mark=g["mark"],
                weight=g["weight"],
                volume=g["volume"],
            )
            for g in groups
        ]

        return UnloadPlan(
            source_file=self.file_path,
            sheet_name=sheet_name,
            header_row=header_idx + 1,
            headers=headers,
            container_id=container_id,
            lines=lines,
        )

    @staticmethod
    def _find_container_id(rows: List[List[Any]]) -> str:
        """Container number from a 'label: value' cell or the cell after a label."""
        for row in rows[:CONTAINER_SEARCH_ROWS]:
            for idx, value in enumerate(row):
                text = cell_text(value)
                if not CONTAINER_LABEL.search(text):
                    continue
                if ":" in text or "：" in text:
                    parts = text.replace("：", ":").split(":")
                    if len(parts) > 1 and parts[1].strip():
                        return parts[1].strip()
                if idx < len(row) - 1:
                    next_text = cell_text(row[idx + 1])
                    if len(next_text) > 4:
                        return next_text
        return ""

    @staticmethod
    def _find_header_row(rows: List[List[Any]]) -> Optional[int]:
        for idx, row in enumerate(rows[:HEADER_SEARCH_ROWS]):
            texts = header_texts(row)
            if any(marker in text for text in texts for marker in UNLOAD_HEADER_MARKERS):
                return idx
            if any(text.upper() == "SO" for text in texts):
                return idx
        return None

    def _read_groups(
        self,
        rows: List[List[Any]],
        header_idx: int,
        columns: Dict[str, Optional[int]],
    ) -> List[Dict[str, Any]]:
        """Collapse data rows into destination groups."""
        groups: List[Dict[str, Any]] = []
        current: Optional[Dict[str, Any]] = None
        defaulted_pallets = 0

        for idx in range(header_idx + 1, len(rows)):
            row = rows[idx]
            if is_blank_row(row):
                continue

            destination = cell_text(row_value(row, columns["destination"]))
            location = cell_text(row_value(row, columns["location"]))
            if LOCATION_REMARK in destination or LOCATION_REMARK in location:
                continue

            cartons = to_number(row_value(row, columns["cartons"]))
            weight = to_number(row_value(row, columns["weight"]))
            volume = to_number(row_value(row, columns["volume"]))

            if destination and destination != PLACEHOLDER_DASH:
                pallets = to_number(row_value(row, columns["pallets"]))
                if pallets is None or pallets <= 0:
                    defaulted_pallets += 1
                    pallets = 1
                current = {
                    "row": idx + 1,
                    "destination": destination,
                    "pallets": math.ceil(pallets),
                    "cartons": int(round(cartons)) if cartons is not None and cartons >= 0 else None,
                    "weight": weight or 0.0,
                    "volume": volume or 0.0,
                    "so": cell_text(row_value(row, columns["so"])),
                    "mark": cell_text(row_value(row, columns["mark"])),
                    "locations": _split_locations(location),
                }
                groups.append(current)
            elif current is not None:
                if cartons is not None and cartons > 0:
                    current["cartons"] = (current["cartons"] or 0) + int(round(cartons))
                if weight is not None:
                    current["weight"] += weight
                if volume is not None:
                    current["volume"] += volume
                for code in _split_locations(location):
                    if code not in current["locations"]:
                        current["locations"].append(code)

        if defaulted_pallets > 0:
            warnings.warn(
                f"Found {defaulted_pallets} destination groups with missing or invalid pallet counts. "
                f"These were set to 1 pallet.",
                UserWarning
            )

        return groups


def _split_locations(text: str) -> List[str]:
    codes: List[str] = []
    for part in text.replace("，", ",").split(","):
        part = part.strip()
        if part and part not in codes:
            codes.append(part)
    return codes


def parse_unload_sheets(paths: Sequence[Path | str]) -> List[UnloadPlan]:
    """Parse several unload workbooks, one plan per file."""
    return [UnloadSheetParser(path).parse() for path in paths]
