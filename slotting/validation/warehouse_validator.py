"""Consistency checks for warehouse location records and the container ledger.

The engine never corrects manual edits that break its invariants; this module
surfaces them so an operator can fix the records before the next batch.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from ..inventory.container_ledger import ContainerLedger, LedgerLike, as_ledger
from ..models.location import Location


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ValidationIssue:
    """Represents a single validation issue.

    Attributes:
        id: Unique identifier for the issue type
        category: Category of validation (e.g., "Capacity", "Ledger")
        severity: Severity level
        title: Short title describing the issue
        description: Detailed description of the issue
        fix_guidance: How to fix the issue
        affected_data: Optional DataFrame of the affected records
        metadata: Additional metadata about the issue
    """
    id: str
    category: str
    severity: ValidationSeverity
    title: str
    description: str
    fix_guidance: str
    affected_data: Optional[pd.DataFrame] = None
    metadata: Optional[Dict[str, Any]] = None


class WarehouseValidator:
    """Validates location records and the container ledger.

    Checks:
    - Identity: location codes are unique
    - Capacity: stored pallets within capacity
    - Tags: destination count within budget, no tags on empty locations
    - Ledger: ledger totals not exceeding stock at locations
    """

    def __init__(self, locations: Sequence[Location], ledger: LedgerLike = None):
        """Initialize validator with data to validate.

        Args:
            locations: Location records
            ledger: Container ledger (ContainerLedger or stored dict form)
        """
        self.locations = list(locations)
        self.ledger: ContainerLedger = as_ledger(ledger)
        self.issues: List[ValidationIssue] = []

    def validate_all(self) -> List[ValidationIssue]:
        """Run all validation checks and return list of issues."""
        self.issues = []

        self.check_unique_codes()
        self.check_capacity()
        self.check_destination_tags()
        self.check_ledger()

        return self.issues

    def check_unique_codes(self):
        """Every location code must appear once."""
        counts = Counter(loc.code for loc in self.locations)
        duplicates = sorted(code for code, n in counts.items() if n > 1)
        if duplicates:
            self.issues.append(ValidationIssue(
                id="IDENT_001",
                category="Identity",
                severity=ValidationSeverity.CRITICAL,
                title="Duplicate location codes",
                description=f"{len(duplicates)} location codes appear more than once: {', '.join(duplicates)}",
                fix_guidance="Delete or rename the duplicate records; only the first is used for assignment.",
                affected_data=pd.DataFrame(
                    [{"code": code, "count": counts[code]} for code in duplicates]
                ),
                metadata={"codes": duplicates},
            ))

    def check_capacity(self):
        """Stored pallets must not exceed capacity."""
        over = [loc for loc in self.locations if loc.is_over_capacity]
        if over:
            self.issues.append(ValidationIssue(
                id="CAP_001",
                category="Capacity",
                severity=ValidationSeverity.WARNING,
                title="Locations over capacity",
                description=f"{len(over)} locations hold more pallets than their capacity.",
                fix_guidance="Move pallets out or raise the capacity after a physical check.",
                affected_data=pd.DataFrame([
                    {"code": loc.code, "current_pallets": loc.current_pallets, "max_pallets": loc.max_pallets}
                    for loc in over
                ]),
                metadata={"codes": [loc.code for loc in over]},
            ))

    def check_destination_tags(self):
        """Tag count within budget; empty locations hold no tags."""
        too_many = [
            loc for loc in self.locations
            if loc.max_destination_tags is not None and len(loc.destination_tags) > loc.max_destination_tags
        ]
        if too_many:
            self.issues.append(ValidationIssue(
                id="TAG_001",
                category="Tags",
                severity=ValidationSeverity.WARNING,
                title="Too many destinations in location",
                description=f"{len(too_many)} locations hold more destinations than allowed.",
                fix_guidance="Consolidate destinations so each location stays within its budget.",
                affected_data=pd.DataFrame([
                    {
                        "code": loc.code,
                        "destinations": ", ".join(loc.destination_tags),
                        "max_destination_tags": loc.max_destination_tags,
                    }
                    for loc in too_many
                ]),
                metadata={"codes": [loc.code for loc in too_many]},
            ))

        stale = [loc for loc in self.locations if loc.current_pallets == 0 and loc.destination_tags]
        if stale:
            self.issues.append(ValidationIssue(
                id="TAG_002",
                category="Tags",
                severity=ValidationSeverity.ERROR,
                title="Empty locations still tagged",
                description=f"{len(stale)} locations have no pallets but still list destinations.",
                fix_guidance="Clear the destination tags of these locations.",
                affected_data=pd.DataFrame([
                    {"code": loc.code, "destinations": ", ".join(loc.destination_tags)}
                    for loc in stale
                ]),
                metadata={"codes": [loc.code for loc in stale]},
            ))

    def check_ledger(self):
        """Ledger pallets per destination must not exceed stock held for it."""
        problems = self.ledger.check_consistency(self.locations)
        if problems:
            self.issues.append(ValidationIssue(
                id="LEDGER_001",
                category="Ledger",
                severity=ValidationSeverity.ERROR,
                title="Container ledger exceeds stock",
                description=(
                    f"{len(problems)} destinations have more pallets in the container ledger "
                    f"than at their locations."
                ),
                fix_guidance=(
                    "Remove shipped containers from the ledger, or re-run outbound "
                    "reconciliation for the missing outbound sheet."
                ),
                affected_data=pd.DataFrame([
                    {"destination": dest, "ledger_pallets": ledger_total, "location_pallets": stock}
                    for dest, (ledger_total, stock) in problems.items()
                ]),
                metadata={"destinations": list(problems.keys())},
            ))

    def get_summary_stats(self) -> Dict[str, Any]:
        """Counts of issues by severity and category."""
        stats = {
            'total_issues': len(self.issues),
            'by_severity': {
                severity.value: len([i for i in self.issues if i.severity == severity])
                for severity in ValidationSeverity
            },
            'by_category': {},
        }
        for issue in self.issues:
            stats['by_category'][issue.category] = stats['by_category'].get(issue.category, 0) + 1
        return stats

    def has_critical_issues(self) -> bool:
        return any(i.severity == ValidationSeverity.CRITICAL for i in self.issues)

    def has_errors_or_critical(self) -> bool:
        return any(
            i.severity in (ValidationSeverity.ERROR, ValidationSeverity.CRITICAL)
            for i in self.issues
        )
