"""
Escalation Service

Flags tickets that need immediate human attention. A ticket is only flagged
when an active admin exists to receive it.
"""
from datetime import datetime, timedelta
from typing import Optional

from helpdesk.models.pipeline import EscalationDecision
from helpdesk.models.schemas import (
    BlockingLevel,
    BusinessImpact,
    ImpactScope,
    Priority,
    utc_now,
)
from helpdesk.models.ticket import Ticket
from helpdesk.repositories.data_store import DataStore
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

ESCALATION_WINDOW = timedelta(hours=2)


class EscalationService:
    def __init__(self, store: DataStore, system_actor_id: int):
        self.store = store
        self.system_actor_id = system_actor_id

    @staticmethod
    def should_escalate(
        ticket: Ticket,
        business_impact: Optional[BusinessImpact] = None,
        now: Optional[datetime] = None
    ) -> EscalationDecision:
        """
        Evaluate escalation rules, most severe first.

        1. High or Critical priority with no agent assigned
        2. Company-wide scope or system down
        3. Urgent deadline within 2 hours
        """
        now = now or utc_now()

        if ticket.priority >= Priority.HIGH and ticket.assigned_agent_id is None:
            return EscalationDecision(
                should_escalate=True,
                reason=f"{ticket.priority.label} priority ticket with no agent assigned",
            )

        if business_impact is None:
            return EscalationDecision()

        if business_impact.impact_scope == ImpactScope.COMPANY:
            return EscalationDecision(should_escalate=True, reason="Company-wide business impact")

        if business_impact.blocking_level == BlockingLevel.SYSTEM_DOWN:
            return EscalationDecision(should_escalate=True, reason="System down reported")

        deadline = business_impact.urgent_deadline
        if deadline is not None and deadline <= now + ESCALATION_WINDOW:
            return EscalationDecision(
                should_escalate=True,
                reason=f"Urgent deadline {deadline.isoformat()} within 2 hours",
            )

        return EscalationDecision()

    async def escalate_if_needed(
        self,
        ticket: Ticket,
        business_impact: Optional[BusinessImpact] = None,
        now: Optional[datetime] = None
    ) -> EscalationDecision:
        """Evaluate and, when an admin is available, flag the ticket in place"""
        now = now or utc_now()
        decision = self.should_escalate(ticket, business_impact, now)
        if not decision.should_escalate:
            return decision

        admins = await self.store.get_admins()
        if not admins:
            logger.warning(
                f"Ticket {ticket.ticket_number} meets escalation criteria ({decision.reason}) "
                f"but no active admin exists; not flagged"
            )
            return decision

        ticket.is_escalated = True
        ticket.escalation_reason = decision.reason
        ticket.escalated_at = now
        ticket.escalated_by_id = self.system_actor_id
        decision.flagged = True

        logger.info(f"Escalated ticket {ticket.ticket_number}: {decision.reason}")
        return decision
