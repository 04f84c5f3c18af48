"""
Business impact scoring

Maps a customer-declared impact statement to a priority floor. The floor only
ever raises urgency: callers merge it with content analysis by taking the max.
"""
from datetime import datetime, timedelta
from typing import Optional

from helpdesk.models.schemas import (
    BlockingLevel,
    BusinessImpact,
    ImpactScope,
    Priority,
    utc_now,
)

BLOCKING_PRIORITY = {
    BlockingLevel.SYSTEM_DOWN: Priority.CRITICAL,
    BlockingLevel.COMPLETELY_BLOCKING: Priority.HIGH,
    BlockingLevel.PARTIALLY_BLOCKING: Priority.MEDIUM,
    BlockingLevel.NOT_BLOCKING: Priority.LOW,
}

SCOPE_PRIORITY = {
    ImpactScope.COMPANY: Priority.CRITICAL,
    ImpactScope.DEPARTMENT: Priority.HIGH,
    ImpactScope.TEAM: Priority.MEDIUM,
    ImpactScope.INDIVIDUAL: Priority.LOW,
}

DEADLINE_WINDOW = timedelta(hours=4)


def score_business_impact(
    impact: Optional[BusinessImpact],
    now: Optional[datetime] = None
) -> Priority:
    """
    Priority floor implied by a business impact statement.

    Args:
        impact: Declared impact, or None when the customer gave none
        now: Reference time for the deadline check (defaults to UTC now)

    Returns:
        Medium when no impact is given; otherwise the max of the blocking
        level, the impact scope, and High for a deadline within 4 hours
    """
    if impact is None:
        return Priority.MEDIUM

    now = now or utc_now()
    score = max(BLOCKING_PRIORITY[impact.blocking_level], SCOPE_PRIORITY[impact.impact_scope])

    if impact.urgent_deadline is not None and impact.urgent_deadline <= now + DEADLINE_WINDOW:
        score = max(score, Priority.HIGH)

    return Priority.from_score(score)


def merge_priority(business_priority: Priority, content_priority: Priority) -> Priority:
    """Business impact is a floor: the higher of the two always wins"""
    return Priority(max(business_priority, content_priority))
