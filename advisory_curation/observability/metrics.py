"""
Metrics collection for match curation runs.

CurationMetrics tracks, for one batch of scanner matches:
- How many matches were seen, kept and rejected
- Rejections per reason
- Rejections per package ecosystem

Design decisions:
- Single metrics object per run for simplicity
- Defaultdict used for automatic initialization of counters
- Serializable to_dict() for logging and JSON output
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class CurationMetrics:
    """Counters for one curation run."""
    run_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None

    matches_total: int = 0
    matches_kept: int = 0
    matches_rejected: int = 0

    # Key: rejection reason, Value: count
    rejections_by_reason: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    # Key: package ecosystem, Value: count
    rejections_by_ecosystem: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_decision(self, ecosystem: str, accepted: bool, reason: str = ""):
        """
        Record one validator decision.

        Args:
            ecosystem: Package type of the matched package
            accepted: Whether the match was kept
            reason: Rejection reason (ignored for kept matches)
        """
        self.matches_total += 1
        if accepted:
            self.matches_kept += 1
            return
        self.matches_rejected += 1
        self.rejections_by_reason[reason] += 1
        self.rejections_by_ecosystem[ecosystem or "unknown"] += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to a JSON-serializable dictionary."""
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "matches_total": self.matches_total,
            "matches_kept": self.matches_kept,
            "matches_rejected": self.matches_rejected,
            "rejections_by_reason": dict(self.rejections_by_reason),
            "rejections_by_ecosystem": dict(self.rejections_by_ecosystem),
        }
