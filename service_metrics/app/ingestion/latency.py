"""
Task queue latency derived from the scheduler's task log.
"""

from datetime import datetime, timezone
from typing import Callable

from ..auth.filters import AccessFilter
from ..sources.base import IndexScheduler, TaskQuery, TaskStatus

PENDING_TASK_QUERY = TaskQuery(
    limit=1,
    reverse=True,
    statuses=frozenset({TaskStatus.ENQUEUED, TaskStatus.PROCESSING}),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QueueLatencyEstimator:
    """Seconds since the most recently enqueued pending task was enqueued.

    This measures how fresh the head of the queue is, not the worst-case
    wait of the oldest task. Returns 0.0 when nothing is pending. Clock
    skew can make the value negative; it is reported unchanged.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock

    def estimate(self, scheduler: IndexScheduler, access_filter: AccessFilter) -> float:
        tasks = scheduler.query_tasks(PENDING_TASK_QUERY, access_filter)
        if not tasks:
            return 0.0
        return (self.clock() - tasks[0].enqueued_at).total_seconds()
