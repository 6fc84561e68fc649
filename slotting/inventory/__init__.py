"""Inventory bookkeeping.

Key components:
- ContainerLedger: Which containers each destination's stock came from
- apply_assignments: Commits an assignment plan to locations and the ledger
- OutboundReconciler: Deducts shipped stock
- apply_inventory_counts: Applies stock-take counts
"""

from .container_ledger import ContainerLedger, ContainerStats, as_ledger, record
from .intake import DuplicateContainerError, IntakeResult, apply_assignments
from .outbound_reconciler import (
    OutboundReconciler,
    ReconciliationReport,
    SkippedLine,
    SkipReason,
    reconcile,
)
from .stocktake import InventoryCount, apply_inventory_counts

__all__ = [
    "ContainerLedger",
    "ContainerStats",
    "as_ledger",
    "record",
    "DuplicateContainerError",
    "IntakeResult",
    "apply_assignments",
    "OutboundReconciler",
    "ReconciliationReport",
    "SkippedLine",
    "SkipReason",
    "reconcile",
    "InventoryCount",
    "apply_inventory_counts",
]
