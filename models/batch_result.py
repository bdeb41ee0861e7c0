"""
Batch result data models.

A batch is one background run of print_multiple_photos. The batch thread
writes a BatchResult once when it finishes; routes read it back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, List, Optional

from models.print_job import PrintOutcome


class BatchStatus(Enum):
    """
    Status of a background print batch.

    Lifecycle:
        PENDING -> RUNNING -> (COMPLETED | PARTIAL | FAILED)
    """

    PENDING = "pending"
    RUNNING = "running"

    COMPLETED = "completed"
    """Every image was submitted."""

    PARTIAL = "partial"
    """Some images were submitted, some failed."""

    FAILED = "failed"
    """No image was submitted, or the batch itself raised."""


@dataclass
class BatchResult:
    """Result of one background print batch."""

    batch_id: str
    status: BatchStatus
    submitted_at: datetime
    finished_at: Optional[datetime] = None
    outcomes: List[PrintOutcome] = field(default_factory=list)
    notes: str = ""

    @property
    def succeeded_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.outcomes) - self.succeeded_count

    @classmethod
    def from_outcomes(
        cls,
        batch_id: str,
        submitted_at: datetime,
        outcomes: List[PrintOutcome]
    ) -> "BatchResult":
        """
        Create a finished result, deriving the status from the outcomes.

        Args:
            batch_id: Unique batch identifier
            submitted_at: When the batch was accepted
            outcomes: One PrintOutcome per image, in input order

        Returns:
            BatchResult in COMPLETED, PARTIAL or FAILED status
        """
        succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
        if outcomes and succeeded == len(outcomes):
            status = BatchStatus.COMPLETED
        elif succeeded:
            status = BatchStatus.PARTIAL
        else:
            status = BatchStatus.FAILED

        return cls(
            batch_id=batch_id,
            status=status,
            submitted_at=submitted_at,
            finished_at=datetime.now(timezone.utc),
            outcomes=list(outcomes),
            notes=f"{succeeded} of {len(outcomes)} images submitted.",
        )

    @classmethod
    def create_failed(
        cls,
        batch_id: str,
        submitted_at: datetime,
        error_message: str
    ) -> "BatchResult":
        """Create a result for a batch that raised before finishing."""
        return cls(
            batch_id=batch_id,
            status=BatchStatus.FAILED,
            submitted_at=submitted_at,
            finished_at=datetime.now(timezone.utc),
            outcomes=[],
            notes=error_message,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "batch_id": self.batch_id,
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "succeeded": self.succeeded_count,
            "failed": self.failed_count,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "notes": self.notes,
        }
