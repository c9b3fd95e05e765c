"""Data models for discovered candidates and submission outcomes."""

from blog_indexer.models.candidate import CandidateItem, PrioritizedItem, SourceKind
from blog_indexer.models.submission import BatchSummary, SubmissionOutcome, SubmissionResult

__all__ = [
    "BatchSummary",
    "CandidateItem",
    "PrioritizedItem",
    "SourceKind",
    "SubmissionOutcome",
    "SubmissionResult",
]
