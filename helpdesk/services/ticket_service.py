"""
Ticket Service - ticket lifecycle orchestration

Entry point for ticket creation and the explicit operations that change a
ticket afterwards (status, priority, manual assignment, re-analysis, comments).

Creation contract: once the initial record is persisted the ticket is always
returned. Analysis, assignment and escalation are each best-effort; a failure
in one is logged and the pipeline moves on. If analysis never applied a
priority, the business-impact score alone sets it.
"""
import json
from datetime import datetime
from typing import Dict, List, Optional, Set

from helpdesk.config import Settings, get_settings
from helpdesk.models.pipeline import AgentSuggestion, AnalysisResult, AssignmentOutcome
from helpdesk.models.schemas import (
    AIInsight,
    AssignmentMethod,
    BusinessImpact,
    CreatedDetails,
    HistoryAction,
    Priority,
    TicketComment,
    TicketHistory,
    TicketStatus,
    UserRole,
    utc_now,
)
from helpdesk.models.ticket import Ticket, TicketCreate
from helpdesk.repositories.data_store import DataStore
from helpdesk.services import heuristics
from helpdesk.services.assignment import AssignmentService
from helpdesk.services.business_impact import score_business_impact
from helpdesk.services.escalation import EscalationService
from helpdesk.services.intelligence import TicketIntelligenceService
from helpdesk.services.llm_service import LLMService
from helpdesk.services.sla import compute_sla_deadlines
from helpdesk.utils.errors import InvalidArgumentError, InvalidTransitionError
from helpdesk.utils.logger import get_logger
from helpdesk.utils.validators import sanitize_input

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: Dict[TicketStatus, Set[TicketStatus]] = {
    TicketStatus.NEW: {TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED, TicketStatus.CLOSED},
    TicketStatus.IN_PROGRESS: {TicketStatus.NEW, TicketStatus.RESOLVED, TicketStatus.CLOSED},
    TicketStatus.RESOLVED: {TicketStatus.IN_PROGRESS, TicketStatus.CLOSED},
    TicketStatus.CLOSED: {TicketStatus.IN_PROGRESS},
}


class TicketService:
    """
    Orchestrates the ticket pipeline over a DataStore.

    Workflow for `create_ticket`:
    1. Generate ticket number and persist the initial record
    2. Analyze (category, priority, sentiment, SLA)
    3. Assign an agent
    4. Evaluate escalation
    5. Save the ticket and append a "Created" history entry
    """

    def __init__(
        self,
        store: DataStore,
        llm_service: Optional[LLMService] = None,
        settings: Optional[Settings] = None,
        system_actor_id: Optional[int] = None
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.llm = llm_service or LLMService(self.settings)
        self.system_actor_id = (
            system_actor_id if system_actor_id is not None else self.settings.system_actor_id
        )

        self.intelligence = TicketIntelligenceService(self.llm, store, self.settings)
        self.assignment = AssignmentService(self.llm, store)
        self.escalation = EscalationService(store, self.system_actor_id)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    async def create_ticket(self, data: TicketCreate, now: Optional[datetime] = None) -> Ticket:
        """
        Create a ticket and run the intelligent-processing pipeline on it.

        Raises:
            PersistenceError: If the initial insert or final save fails
        """
        now = now or utc_now()
        impact = data.business_impact

        ticket_number = await self.store.generate_ticket_number(now)
        ticket = await self.store.create_ticket(Ticket(
            ticket_number=ticket_number,
            customer_id=data.customer_id,
            category_id=data.category_id,
            title=data.title,
            description=data.description,
            business_impact_data=impact.model_dump_json() if impact else None,
            created_at=now,
            updated_at=now,
        ))
        logger.info(f"Created ticket {ticket.ticket_number} for customer {data.customer_id}")

        analysis = await self._run_analysis(ticket, impact, now)
        if analysis is None or not analysis.priority_applied:
            self._apply_fallback_priority(ticket, impact, now)

        outcome = await self._run_assignment(ticket, now)
        await self._run_escalation(ticket, impact, now)

        ticket.touch()
        ticket = await self.store.save_ticket(ticket)

        category_name = analysis.category.value if analysis and analysis.priority_applied else None
        await self.store.append_history(TicketHistory(
            ticket_id=ticket.id,
            user_id=data.customer_id,
            action=HistoryAction.CREATED,
            new_value=ticket.status.value,
            details=CreatedDetails(
                title=ticket.title,
                priority=ticket.priority.label,
                category=category_name,
                assignment_method=outcome.method if outcome else None,
                has_business_impact=impact is not None,
            ).model_dump_json(),
        ))

        return ticket

    async def _run_analysis(
        self,
        ticket: Ticket,
        impact: Optional[BusinessImpact],
        now: datetime
    ) -> Optional[AnalysisResult]:
        try:
            analysis = await self.intelligence.analyze(ticket, impact, now)
        except Exception as e:
            logger.error(f"Analysis step failed for ticket {ticket.ticket_number}: {e}", exc_info=True)
            return None

        if not analysis.completed:
            logger.warning(f"Analysis incomplete for ticket {ticket.ticket_number}: {analysis.error}")
        return analysis

    def _apply_fallback_priority(
        self,
        ticket: Ticket,
        impact: Optional[BusinessImpact],
        now: datetime
    ) -> None:
        priority = score_business_impact(impact, now)
        ticket.priority = priority
        self._apply_sla(ticket, priority, now)
        logger.info(f"Applied fallback priority {priority.label} to ticket {ticket.ticket_number}")

    @staticmethod
    def _apply_sla(ticket: Ticket, priority: Priority, now: datetime) -> None:
        first_response, resolution = compute_sla_deadlines(priority, now)
        ticket.first_response_deadline = first_response
        ticket.resolution_deadline = resolution
        ticket.due_date = resolution

    async def _run_assignment(self, ticket: Ticket, now: datetime) -> Optional[AssignmentOutcome]:
        try:
            return await self.assignment.assign(ticket, now)
        except Exception as e:
            logger.error(f"Assignment step failed for ticket {ticket.ticket_number}: {e}", exc_info=True)
            return None

    async def _run_escalation(
        self,
        ticket: Ticket,
        impact: Optional[BusinessImpact],
        now: datetime
    ) -> None:
        try:
            await self.escalation.escalate_if_needed(ticket, impact, now)
        except Exception as e:
            logger.error(f"Escalation step failed for ticket {ticket.ticket_number}: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Explicit operations
    # ------------------------------------------------------------------
    async def reanalyze_ticket(self, ticket_id: int, actor_id: int) -> AnalysisResult:
        """Re-run analysis with the ticket's stored business impact"""
        ticket = await self.store.get_ticket(ticket_id)
        old_priority = ticket.priority
        now = utc_now()

        analysis = await self.intelligence.analyze(ticket, ticket.business_impact, now)
        ticket.touch()
        await self.store.save_ticket(ticket)

        await self.store.append_history(TicketHistory(
            ticket_id=ticket.id,
            user_id=actor_id,
            action=HistoryAction.REANALYZED,
            old_value=old_priority.label,
            new_value=ticket.priority.label,
            details=json.dumps({
                "category": analysis.category.value,
                "completed": analysis.completed,
            }),
        ))
        return analysis

    async def update_status(self, ticket_id: int, status: TicketStatus, actor_id: int) -> Ticket:
        """
        Move a ticket to a new status.

        Raises:
            NotFoundError: Unknown ticket
            InvalidTransitionError: Transition not allowed, or it would break
                the agent/status pairing (InProgress needs an agent, New must
                have none)
        """
        ticket = await self.store.get_ticket(ticket_id)
        old_status = ticket.status

        if status == old_status:
            return ticket
        if status not in ALLOWED_TRANSITIONS[old_status]:
            raise InvalidTransitionError(f"Cannot move ticket from {old_status.value} to {status.value}")
        if status == TicketStatus.IN_PROGRESS and ticket.assigned_agent_id is None:
            raise InvalidTransitionError("Cannot start work on a ticket with no assigned agent")
        if status == TicketStatus.NEW and ticket.assigned_agent_id is not None:
            raise InvalidTransitionError("Cannot reopen as new while an agent is assigned")

        now = utc_now()
        ticket.status = status
        if status == TicketStatus.RESOLVED:
            ticket.resolved_at = now
        elif status == TicketStatus.CLOSED:
            ticket.closed_at = now
        ticket.touch()
        ticket = await self.store.save_ticket(ticket)

        await self.store.append_history(TicketHistory(
            ticket_id=ticket.id,
            user_id=actor_id,
            action=HistoryAction.STATUS_CHANGED,
            old_value=old_status.value,
            new_value=status.value,
        ))
        logger.info(f"Ticket {ticket.ticket_number} status {old_status.value} -> {status.value}")
        return ticket

    async def update_priority(self, ticket_id: int, priority: Priority, actor_id: int) -> Ticket:
        """Set priority explicitly and recompute SLA deadlines from now"""
        ticket = await self.store.get_ticket(ticket_id)
        old_priority = ticket.priority

        ticket.priority = priority
        self._apply_sla(ticket, priority, utc_now())
        ticket.touch()
        ticket = await self.store.save_ticket(ticket)

        await self.store.append_history(TicketHistory(
            ticket_id=ticket.id,
            user_id=actor_id,
            action=HistoryAction.PRIORITY_CHANGED,
            old_value=old_priority.label,
            new_value=priority.label,
        ))
        return ticket

    async def assign_ticket(self, ticket_id: int, agent_id: int, assigned_by: int) -> Ticket:
        """
        Manually assign a ticket to an agent.

        Raises:
            NotFoundError: Unknown ticket or user
            InvalidArgumentError: User is inactive or not an agent
        """
        ticket = await self.store.get_ticket(ticket_id)
        agent = await self.store.get_user(agent_id)
        if agent.role != UserRole.AGENT:
            raise InvalidArgumentError(f"User {agent_id} is not an agent")
        if not agent.is_active:
            raise InvalidArgumentError(f"Agent {agent_id} is not active")

        old_agent_id = ticket.assigned_agent_id
        now = utc_now()
        ticket.assigned_agent_id = agent.id
        ticket.assigned_at = now
        ticket.assignment_method = AssignmentMethod.MANUAL
        ticket.assignment_reason = f"Manually assigned by user {assigned_by}"
        if ticket.status == TicketStatus.NEW:
            ticket.status = TicketStatus.IN_PROGRESS
        ticket.touch()
        ticket = await self.store.save_ticket(ticket)

        await self.store.append_history(TicketHistory(
            ticket_id=ticket.id,
            user_id=assigned_by,
            action=HistoryAction.ASSIGNED,
            old_value=str(old_agent_id) if old_agent_id is not None else None,
            new_value=str(agent.id),
            details=json.dumps({"agent_name": agent.full_name}),
        ))
        logger.info(f"Ticket {ticket.ticket_number} manually assigned to agent {agent.id}")
        return ticket

    async def suggest_best_agent(self, ticket_id: int) -> Optional[AgentSuggestion]:
        ticket = await self.store.get_ticket(ticket_id)
        return await self.assignment.suggest(ticket)

    async def suggest_response(
        self,
        ticket_id: int,
        customer_message: str = "",
        is_internal: bool = False
    ) -> str:
        """Draft reply for an agent; falls back to a fixed template"""
        ticket = await self.store.get_ticket(ticket_id)
        result = await self.llm.draft_response(ticket.text, customer_message or ticket.description, is_internal)
        if result.available:
            return result.value
        return heuristics.draft_response_offline(is_internal)

    async def add_comment(
        self,
        ticket_id: int,
        user_id: int,
        text: str,
        is_internal: bool = False
    ) -> TicketComment:
        """
        Add a comment to a ticket and record it in the history.

        Raises:
            NotFoundError: Unknown ticket or user
            InvalidArgumentError: Empty comment, or a customer posting an
                internal note
        """
        ticket = await self.store.get_ticket(ticket_id)
        author = await self.store.get_user(user_id)

        text = sanitize_input(text or "")
        if not text:
            raise InvalidArgumentError("Comment text must not be empty")
        if is_internal and author.role == UserRole.CUSTOMER:
            raise InvalidArgumentError("Customers cannot add internal comments")

        comment = await self.store.add_comment(TicketComment(
            ticket_id=ticket.id,
            user_id=author.id,
            comment_text=text,
            is_internal=is_internal,
        ))

        ticket.touch()
        await self.store.save_ticket(ticket)

        await self.store.append_history(TicketHistory(
            ticket_id=ticket.id,
            user_id=author.id,
            action=HistoryAction.COMMENT_ADDED,
            new_value="Internal Comment" if is_internal else "Comment",
            details=json.dumps({"comment_length": len(text), "is_internal": is_internal}),
        ))
        logger.info(f"Comment added to ticket {ticket.ticket_number} by user {author.id}")
        return comment

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def get_ticket(self, ticket_id: int) -> Ticket:
        return await self.store.get_ticket(ticket_id)

    async def get_history(self, ticket_id: int) -> List[TicketHistory]:
        await self.store.get_ticket(ticket_id)
        return await self.store.get_history(ticket_id)

    async def get_insights(self, ticket_id: int) -> List[AIInsight]:
        await self.store.get_ticket(ticket_id)
        return await self.store.get_insights(ticket_id)

    async def get_comments(self, ticket_id: int, viewer_id: int) -> List[TicketComment]:
        """Comments oldest first; internal notes are hidden from customers"""
        await self.store.get_ticket(ticket_id)
        viewer = await self.store.get_user(viewer_id)
        return await self.store.get_comments(ticket_id, include_internal=viewer.role != UserRole.CUSTOMER)

    async def get_tickets_for_user(self, user_id: int) -> List[Ticket]:
        """
        Tickets visible to a user, newest first.

        Customers see the tickets they raised, agents the tickets assigned to
        them and admins every ticket.

        Raises:
            NotFoundError: Unknown user
        """
        user = await self.store.get_user(user_id)
        if user.role == UserRole.CUSTOMER:
            return await self.store.list_tickets(customer_id=user.id)
        if user.role == UserRole.AGENT:
            return await self.store.list_tickets(agent_id=user.id)
        return await self.store.list_tickets()
