"""Submission outcomes and the per-run summary."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SubmissionOutcome(str, Enum):
    """Terminal outcome of one submission attempt."""

    SUBMITTED = "submitted"
    ALREADY_INDEXED = "already_indexed"
    SKIPPED = "skipped"
    FAILED = "failed"
    QUOTA_EXCEEDED = "quota_exceeded"


# Outcomes that count as a successful notification for accounting
SUCCESS_OUTCOMES = frozenset({
    SubmissionOutcome.SUBMITTED,
    SubmissionOutcome.ALREADY_INDEXED,
    SubmissionOutcome.SKIPPED,
})


@dataclass(frozen=True)
class SubmissionResult:
    """Exactly one result per attempted URL; retries collapse into it."""

    url: str
    outcome: SubmissionOutcome
    detail: Optional[str] = None
    attempts: int = 0

    @property
    def is_success(self) -> bool:
        return self.outcome in SUCCESS_OUTCOMES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "outcome": self.outcome.value,
            "detail": self.detail,
            "attempts": self.attempts,
        }


@dataclass
class BatchSummary:
    """
    Aggregate result of one pipeline run.

    Derived, never persisted. ``unprocessed`` is only non-zero when the run
    stopped early on quota exhaustion or a critical failure.
    """

    total_discovered: int = 0
    total_attempted: int = 0
    counts: Dict[SubmissionOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in SubmissionOutcome}
    )
    results: List[SubmissionResult] = field(default_factory=list)
    nothing_to_do: bool = False
    aborted_early: bool = False
    unprocessed: int = 0
    critical_failure: bool = False
    error: Optional[str] = None

    def record(self, result: SubmissionResult) -> None:
        """Add one terminal submission result to the running totals."""
        self.results.append(result)
        self.counts[result.outcome] += 1
        self.total_attempted += 1

    def count(self, outcome: SubmissionOutcome) -> int:
        return self.counts.get(outcome, 0)

    @property
    def succeeded(self) -> int:
        return sum(self.count(outcome) for outcome in SUCCESS_OUTCOMES)

    @property
    def exit_code(self) -> int:
        """
        Process exit status for one-shot mode.

        Quota exhaustion and per-URL failures are not fatal; only a critical
        failure that produced no successful submission is.
        """
        if self.critical_failure and self.succeeded == 0:
            return 1
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_discovered": self.total_discovered,
            "total_attempted": self.total_attempted,
            "counts": {outcome.value: n for outcome, n in self.counts.items()},
            "nothing_to_do": self.nothing_to_do,
            "aborted_early": self.aborted_early,
            "unprocessed": self.unprocessed,
            "critical_failure": self.critical_failure,
            "error": self.error,
            "results": [r.to_dict() for r in self.results],
        }
