"""
Assignment Service

Picks an agent for a ticket using ordered strategies:

1. Queue        - no active agents, ticket stays New
2. AI           - language model picks from the roster
3. CategoryMatch - specialist agents for the ticket's category, least busy
4. RoundRobin   - least busy agent overall, ties by roster order

Assignment never raises: model failures degrade to the fallbacks and data
store failures leave the ticket queued.
"""
import asyncio
from datetime import datetime
from typing import List, Optional, Tuple

from helpdesk.models.pipeline import AgentSuggestion, AssignmentOutcome
from helpdesk.models.schemas import (
    AnalysisSource,
    AssignmentMethod,
    RosterEntry,
    TicketStatus,
    utc_now,
)
from helpdesk.models.ticket import Ticket
from helpdesk.repositories.data_store import DataStore
from helpdesk.services import heuristics
from helpdesk.services.llm_service import LLMService
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

SPECIALIST_KEYWORDS = ("Technical", "Account", "Billing")
QUEUE_REASON = "no agents available"


class AssignmentService:
    def __init__(self, llm: LLMService, store: DataStore):
        self.llm = llm
        self.store = store

    async def get_roster(self) -> List[RosterEntry]:
        """Active agents with a live in-progress workload snapshot"""
        agents = await self.store.get_active_agents()
        workloads = await asyncio.gather(
            *(self.store.get_agent_workload(agent.id) for agent in agents)
        )
        return [
            RosterEntry(agent=agent, workload=workload)
            for agent, workload in zip(agents, workloads)
        ]

    async def _ai_pick(self, ticket: Ticket, roster: List[RosterEntry]) -> Optional[RosterEntry]:
        try:
            result = await self.llm.suggest_agent(ticket.text, roster)
        except Exception as e:
            logger.warning(f"AI agent suggestion failed for ticket {ticket.ticket_number}: {e}", exc_info=True)
            return None

        if not result.available:
            return None
        return roster[result.value - 1]

    async def _category_name(self, ticket: Ticket) -> Optional[str]:
        if ticket.category_id is None:
            return None
        for category in await self.store.get_categories():
            if category.id == ticket.category_id:
                return category.name
        return None

    @staticmethod
    def _specialists(category_name: str, roster: List[RosterEntry]) -> List[RosterEntry]:
        """Agents with a skill matching a specialist keyword in the category name"""
        name = category_name.lower()
        keywords = [k.lower() for k in SPECIALIST_KEYWORDS if k.lower() in name]
        if not keywords:
            return []

        return [
            entry for entry in roster
            if any(
                keyword in skill.lower()
                for skill in entry.agent.skill_names
                for keyword in keywords
            )
        ]

    async def _select(
        self,
        ticket: Ticket,
        roster: List[RosterEntry]
    ) -> Tuple[RosterEntry, AssignmentMethod, str]:
        entry = await self._ai_pick(ticket, roster)
        if entry is not None:
            return entry, AssignmentMethod.AI, f"AI selected {entry.agent.full_name}"

        category_name = await self._category_name(ticket)
        if category_name:
            specialists = self._specialists(category_name, roster)
            if specialists:
                entry = heuristics.suggest_agent_offline(specialists)
                return (
                    entry,
                    AssignmentMethod.CATEGORY_MATCH,
                    f"Category '{category_name}' matched skills of {entry.agent.full_name}",
                )

        entry = heuristics.suggest_agent_offline(roster)
        return entry, AssignmentMethod.ROUND_ROBIN, f"Least busy agent {entry.agent.full_name}"

    @staticmethod
    def _queue(ticket: Ticket, reason: str) -> AssignmentOutcome:
        ticket.assignment_method = AssignmentMethod.QUEUE
        ticket.assignment_reason = reason
        return AssignmentOutcome(method=AssignmentMethod.QUEUE, reason=reason)

    async def assign(self, ticket: Ticket, now: Optional[datetime] = None) -> AssignmentOutcome:
        """
        Assign the ticket in place and describe what happened.

        On success the ticket moves to InProgress with `assigned_at` set; a
        queued ticket keeps its status and has no agent.
        """
        now = now or utc_now()

        try:
            roster = await self.get_roster()
        except Exception as e:
            logger.error(f"Could not load agent roster for ticket {ticket.ticket_number}: {e}", exc_info=True)
            return self._queue(ticket, f"agent roster unavailable: {e}")

        if not roster:
            logger.info(f"Ticket {ticket.ticket_number} queued: {QUEUE_REASON}")
            return self._queue(ticket, QUEUE_REASON)

        try:
            entry, method, reason = await self._select(ticket, roster)
        except Exception as e:
            logger.error(f"Agent selection failed for ticket {ticket.ticket_number}: {e}", exc_info=True)
            entry = heuristics.suggest_agent_offline(roster)
            method, reason = AssignmentMethod.ROUND_ROBIN, f"Least busy agent {entry.agent.full_name}"

        workload = entry.workload + 1
        reason = f"{reason} (workload: {workload} in progress)"

        ticket.assigned_agent_id = entry.agent.id
        ticket.status = TicketStatus.IN_PROGRESS
        ticket.assigned_at = now
        ticket.assignment_method = method
        ticket.assignment_reason = reason

        logger.info(f"Assigned ticket {ticket.ticket_number} to agent {entry.agent.id} via {method.value}")
        return AssignmentOutcome(
            method=method,
            agent_id=entry.agent.id,
            agent_name=entry.agent.full_name,
            workload=workload,
            reason=reason,
            assigned_at=now,
        )

    async def suggest(self, ticket: Ticket) -> Optional[AgentSuggestion]:
        """Agent the model (or least-workload fallback) would pick, without assigning"""
        roster = await self.get_roster()
        if not roster:
            return None

        entry = await self._ai_pick(ticket, roster)
        source = AnalysisSource.AI
        if entry is None:
            entry = heuristics.suggest_agent_offline(roster)
            source = AnalysisSource.OFFLINE

        return AgentSuggestion(
            agent_id=entry.agent.id,
            agent_name=entry.agent.full_name,
            skills=entry.agent.skill_names,
            current_workload=entry.workload,
            source=source,
        )
