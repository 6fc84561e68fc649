"""Outbound shipment line model."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class OutboundLine:
    """One shipped line to be deducted from stock.

    Fields are not validated on construction: outbound sheets routinely
    contain incomplete rows, and the reconciler reports those instead of
    failing the whole batch.

    Attributes:
        location: Location code the goods were picked from
        destination: Destination the goods were stored under
        pallets: Pallets shipped
        cartons: Cartons shipped, None to deduct proportionally
        container_id: Container to deduct from, None for FIFO across containers
    """
    location: Optional[str]
    destination: Optional[str]
    pallets: Optional[float]
    cartons: Optional[int] = None
    container_id: Optional[str] = None

    def __str__(self) -> str:
        """String representation."""
        container = f" [{self.container_id}]" if self.container_id else ""
        return f"{self.location or '?'} {self.destination or '?'} x{self.pallets}{container}"
