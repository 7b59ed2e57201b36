"""
bug_filters.py - list filtering and status counts
Single responsibility: narrow a bug list by search text, status and severity.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional

from app.models.bug import Bug, BugStats

ALL = "all"


@dataclass
class BugFilter:
    search: str = ""
    status: Optional[str] = None
    severity: Optional[str] = None

    def matches(self, bug: Bug) -> bool:
        if self.status and self.status != ALL and bug.status != self.status:
            return False
        if self.severity and self.severity != ALL and bug.severity != self.severity:
            return False
        term = self.search.strip().lower()
        if term:
            haystack = [bug.title.lower(), bug.description.lower()]
            haystack.extend(tag.lower() for tag in bug.tags)
            return any(term in text for text in haystack)
        return True


def apply_filter(bugs: Iterable[Bug], bug_filter: Optional[BugFilter] = None) -> List[Bug]:
    if bug_filter is None:
        return list(bugs)
    return [bug for bug in bugs if bug_filter.matches(bug)]


def count_by_status(bugs: Iterable[Bug]) -> BugStats:
    stats = BugStats()
    for bug in bugs:
        stats.total += 1
        if bug.status == "open":
            stats.open += 1
        elif bug.status == "in-progress":
            stats.in_progress += 1
        elif bug.status == "resolved":
            stats.resolved += 1
    return stats
