"""
Command-line driver: assign storage locations for one or more unload sheets.

Usage:
    python run_allocation.py unload_sheet.xlsx [more_sheets.xlsx ...] [options]

Examples:
    # Plan one container against the empty standard layout
    python run_allocation.py "MSCU1234567.xlsx"

    # Start from a stock-take and plan two containers in order
    python run_allocation.py c1.xlsx c2.xlsx --stocktake "盘点.xlsx" --output-dir planned/

    # Operator-entered batch: no forced private/platform aisles
    python run_allocation.py manual.xlsx --manual

    # Store a container, then deduct what shipped
    python run_allocation.py c1.xlsx --outbound "出库单.xlsx"
"""

import argparse
import logging
import sys
from pathlib import Path

from slotting.allocation import AllocationConfig, SlotAssigner
from slotting.exporters import export_unload_plan
from slotting.inventory import (
    ContainerLedger,
    DuplicateContainerError,
    apply_assignments,
    apply_inventory_counts,
    reconcile,
)
from slotting.models import AllocationMode, generate_default_locations
from slotting.parsers import InventoryCountParser, OutboundSheetParser, UnloadSheetParser
from slotting.validation import ValidationSeverity, WarehouseValidator

logger = logging.getLogger("run_allocation")


def main(argv=None):
    """Main entry point for the slot allocation CLI."""
    parser = argparse.ArgumentParser(
        description="Assign warehouse locations to unload sheets and write them back",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_allocation.py MSCU1234567.xlsx
    python run_allocation.py c1.xlsx c2.xlsx --stocktake stock.xlsx --output-dir planned/
    python run_allocation.py manual.xlsx --manual --allow-split
    python run_allocation.py c1.xlsx --outbound shipped.xlsx
        """,
    )

    parser.add_argument(
        "unload_files",
        type=str,
        nargs="+",
        help="Unload sheets (.xlsx or .xlsm), planned in the given order",
    )

    parser.add_argument(
        "--stocktake",
        type=str,
        default=None,
        help="Stock-take sheet applied to the standard layout before planning",
    )

    parser.add_argument(
        "--outbound",
        type=str,
        action="append",
        default=[],
        help="Outbound sheet deducted after all unload sheets are stored (repeatable)",
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for planned workbooks (default: beside each input)",
    )

    parser.add_argument(
        "--manual",
        action="store_true",
        help="Manual allocation mode (private/platform freight not forced into V/H/F/R/G05-G15)",
    )

    parser.add_argument(
        "--allow-split",
        action="store_true",
        help="Split lines over several locations when no single location fits",
    )

    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Pallets per destination above which Amazon main freight is held to aisle A",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every assignment decision",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_values = {"allow_split": args.allow_split}
    if args.threshold is not None:
        config_values["main_zone_threshold"] = args.threshold
    config = AllocationConfig(**config_values)
    mode = AllocationMode.MANUAL if args.manual else AllocationMode.AUTOMATIC

    locations = generate_default_locations()
    ledger = ContainerLedger()

    try:
        if args.stocktake:
            counts = InventoryCountParser(args.stocktake).parse()
            locations, changed, unknown = apply_inventory_counts(counts, locations)
            print(f"📋 Stock-take: {len(changed)} locations updated, {len(unknown)} unknown")

        output_dir = Path(args.output_dir) if args.output_dir else None
        unassigned_total = 0

        for path in args.unload_files:
            plan = UnloadSheetParser(path).parse()
            print(f"\n🔄 {plan}")

            result = SlotAssigner(locations, config).plan(plan.lines, mode)
            for line in result.lines:
                marker = "↺" if line.preassigned else ("⚠" if not line.is_assigned else "✓")
                print(f"   {marker} {line}")

            intake = apply_assignments(result.lines, locations, ledger, reject_duplicate_containers=True)
            locations, ledger = intake.locations, intake.ledger
            unassigned_total += len(result.unassigned)

            output_path = None
            if output_dir is not None:
                output_path = output_dir / f"{Path(path).stem}_planned.xlsx"
            written = export_unload_plan(plan, result.lines, output_path)
            print(f"   💾 {written}")

        for path in args.outbound:
            outbound_lines = OutboundSheetParser(path).parse()
            locations, ledger, report = reconcile(outbound_lines, locations, ledger)
            print(f"\n📦 {Path(path).name}: {report}")
            for skipped in report.skipped:
                print(f"   ⚠ row {skipped.index + 1}: {skipped.detail}")

        issues = WarehouseValidator(locations, ledger).validate_all()
        for issue in issues:
            print(f"\n⚠️  [{issue.severity.value}] {issue.title}: {issue.description}")

        if unassigned_total:
            print(f"\n❌ {unassigned_total} lines could not be assigned")
            return 2
        if any(i.severity == ValidationSeverity.CRITICAL for i in issues):
            return 2

        print("\n✅ All lines assigned")
        return 0

    except DuplicateContainerError as e:
        print(f"\n❌ {e}; it was not stored twice", file=sys.stderr)
        return 1

    except (FileNotFoundError, ValueError) as e:
        print(f"\n❌ Allocation failed: {e}", file=sys.stderr)
        if args.verbose:
            logger.exception("Allocation failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
