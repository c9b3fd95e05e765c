"""Process-lifetime state shared by all runs of the pipeline."""

from dataclasses import dataclass, field
from typing import Set


@dataclass
class SessionContext:
    """
    State that lives for one process (a one-shot invocation or a daemon).

    ``submitted_urls`` only grows; it is cleared only by a restart. Runs are
    sequential, so no locking is needed.
    """

    dedup_enabled: bool = True
    submitted_urls: Set[str] = field(default_factory=set)

    def already_submitted(self, url: str) -> bool:
        return self.dedup_enabled and url in self.submitted_urls

    def mark_submitted(self, url: str) -> None:
        if self.dedup_enabled:
            self.submitted_urls.add(url)
