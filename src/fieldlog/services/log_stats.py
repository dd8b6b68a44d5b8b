"""Summary statistics over activity logs."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from fieldlog.models import ActivityLog, ActivityStatus


@dataclass
class LogStats:
    """Counts by status, category and location."""

    total: int = 0
    status_counts: dict[str, int] = field(
        default_factory=lambda: {status.value: 0 for status in ActivityStatus}
    )
    category_counts: dict[str, int] = field(default_factory=dict)
    location_count: int = 0


def compute_log_stats(logs: Iterable[ActivityLog]) -> LogStats:
    """Count logs per status and category.

    Every status is present in ``status_counts``, zero if unused.
    Categories are listed most common first; blank categories count as
    "uncategorized".
    """
    stats = LogStats()
    categories: Counter[str] = Counter()
    locations: set[str] = set()

    for log in logs:
        stats.total += 1
        stats.status_counts[ActivityStatus(log.status).value] += 1
        categories[log.activity_category or "uncategorized"] += 1
        locations.add(log.location)

    stats.category_counts = dict(categories.most_common())
    stats.location_count = len(locations)
    return stats
