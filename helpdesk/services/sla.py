"""
SLA deadline computation
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from helpdesk.models.schemas import Priority, utc_now

FIRST_RESPONSE_TARGETS = {
    Priority.CRITICAL: timedelta(hours=1),
    Priority.HIGH: timedelta(hours=4),
    Priority.MEDIUM: timedelta(hours=24),
    Priority.LOW: timedelta(hours=48),
}

RESOLUTION_TARGETS = {
    Priority.CRITICAL: timedelta(hours=4),
    Priority.HIGH: timedelta(hours=24),
    Priority.MEDIUM: timedelta(days=3),
    Priority.LOW: timedelta(days=7),
}


def compute_sla_deadlines(
    priority: Priority,
    now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    """Return (first_response_deadline, resolution_deadline) for a priority"""
    now = now or utc_now()
    return now + FIRST_RESPONSE_TARGETS[priority], now + RESOLUTION_TARGETS[priority]
