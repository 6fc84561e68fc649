"""Audit log entries produced by engine operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class LogEntry:
    """A single operator-facing audit line.

    Attributes:
        time: When the change was made
        text: Human-readable description
        location: Location the change applies to, for per-location history
        container_id: Container the change applies to
    """
    time: datetime
    text: str
    location: Optional[str] = None
    container_id: Optional[str] = None

    def __str__(self) -> str:
        """String representation."""
        return f"[{self.time:%Y-%m-%d %H:%M:%S}] {self.text}"
