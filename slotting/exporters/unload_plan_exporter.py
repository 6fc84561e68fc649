"""Write assigned locations back into an unload workbook.

The exporter reopens the workbook an UnloadPlan was read from, fills the
库位安排 column (adding it after the last header if the sheet has none),
appends a remark row and applies the warehouse print formatting: thin grid
borders, bold centered header and a large title in A1.
"""

from pathlib import Path
from typing import Dict, Optional, Sequence

from openpyxl import load_workbook
from openpyxl.styles import Alignment, Border, Font, Side

from ..constants import LOCATION_COLUMN_HEADER, LOCATION_REMARK, PLACEHOLDER_DASH
from ..models.demand import AssignedLine
from ..parsers.sheet_columns import (
    CARTON_COLUMN,
    DESTINATION_COLUMN,
    LOCATION_COLUMN,
    PALLET_COLUMN,
    find_column,
)
from ..parsers.unload_parser import UnloadPlan


THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)

HEADER_FONT = Font(bold=True)
HEADER_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
CENTER_ALIGNMENT = Alignment(horizontal='center', vertical='center')
TITLE_FONT = Font(name='Calibri', size=36, bold=True)


class UnloadPlanExporter:
    """
    Exports an assigned unload plan into a copy of its source workbook.

    Example:
        plan = UnloadSheetParser("MSCU1234567.xlsx").parse()
        assigned = assign(plan.lines, locations)
        UnloadPlanExporter(plan).export(assigned, "MSCU1234567_planned.xlsx")
    """

    def __init__(self, plan: UnloadPlan):
        self.plan = plan

    def export(self, assigned: Sequence[AssignedLine], output_path: Path | str) -> Path:
        """
        Write the assigned locations and save the workbook.

        Rows of lines that could not be assigned receive an empty location
        cell. Re-exporting a sheet that already has a remark row rewrites
        the remark row in the same place.

        Args:
            assigned: Assignment results for the plan's lines
            output_path: Destination .xlsx path

        Returns:
            Path of the written workbook
        """
        output_path = Path(output_path)
        plan = self.plan
        workbook = load_workbook(plan.source_file)
        worksheet = workbook[plan.sheet_name]

        headers = list(plan.headers)
        location_col = find_column(headers, LOCATION_COLUMN)
        if location_col is None:
            location_col = len(headers)
            while location_col > 0 and not headers[location_col - 1]:
                location_col -= 1
            worksheet.cell(row=plan.header_row, column=location_col + 1, value=LOCATION_COLUMN_HEADER)
        location_column = location_col + 1

        locations: Dict[int, str] = {line.sequence_index: line.location for line in assigned}
        for line in plan.lines:
            worksheet.cell(
                row=line.sequence_index,
                column=location_column,
                value=locations.get(line.sequence_index, line.location or ""),
            )

        remark_row = self._remark_row(worksheet, location_column)
        remark_cells = [
            (find_column(headers, DESTINATION_COLUMN), PLACEHOLDER_DASH),
            (find_column(headers, PALLET_COLUMN), PLACEHOLDER_DASH),
            (find_column(headers, CARTON_COLUMN), PLACEHOLDER_DASH),
            (location_col, LOCATION_REMARK),
        ]
        for col, value in remark_cells:
            if col is not None:
                worksheet.cell(row=remark_row, column=col + 1, value=value)

        self._apply_formatting(worksheet, remark_row, location_column)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(output_path)
        return output_path

    def _remark_row(self, worksheet, location_column: int) -> int:
        """Row for the remark: an existing remark row, else the row after the last group."""
        last_row = self.plan.last_row
        for row in range(self.plan.header_row + 1, worksheet.max_row + 1):
            value = worksheet.cell(row=row, column=location_column).value
            if value is not None and LOCATION_REMARK in str(value):
                return row
            # Continuation rows of the last group extend the table
            if row > last_row and any(
                cell.value not in (None, "")
                for cell in worksheet[row]
            ):
                last_row = row
        return last_row + 1

    def _apply_formatting(self, worksheet, remark_row: int, last_column: int) -> None:
        header_row = self.plan.header_row

        title = worksheet.cell(row=1, column=1)
        if header_row > 1 and title.value not in (None, ""):
            title.font = TITLE_FONT
            title.alignment = CENTER_ALIGNMENT

        for row in range(header_row, remark_row + 1):
            for col in range(1, last_column + 1):
                cell = worksheet.cell(row=row, column=col)
                cell.border = THIN_BORDER
                if row == header_row:
                    cell.font = HEADER_FONT
                    cell.alignment = HEADER_ALIGNMENT
                elif row == remark_row:
                    cell.alignment = CENTER_ALIGNMENT


def export_unload_plan(
    plan: UnloadPlan,
    assigned: Sequence[AssignedLine],
    output_path: Optional[Path | str] = None,
) -> Path:
    """
    Export an assigned unload plan next to its source workbook.

    Args:
        plan: Parsed unload plan
        assigned: Assignment results
        output_path: Destination path (default: '<source>_库位.xlsx' beside the source)

    Returns:
        Path of the written workbook
    """
    if output_path is None:
        source = plan.source_file
        output_path = source.with_name(f"{source.stem}_{LOCATION_COLUMN_HEADER}.xlsx")
    return UnloadPlanExporter(plan).export(assigned, output_path)
