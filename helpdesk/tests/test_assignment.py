"""
Unit tests for AssignmentService

Tests:
- Queue when no agents are active
- AI pick from the roster
- Category match on specialist skills
- Round-robin by workload
- Failures degrade instead of raising
"""
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock

from helpdesk.models.schemas import AnalysisSource, AssignmentMethod, TicketStatus
from helpdesk.services.assignment import QUEUE_REASON, AssignmentService
from helpdesk.tests.conftest import completion
from helpdesk.utils.errors import PersistenceError

NOW = datetime(2025, 3, 14, 9, 0, tzinfo=timezone.utc)


async def give_workload(store, make_ticket, agent_id: int, count: int):
    for _ in range(count):
        await make_ticket(store, assigned_agent_id=agent_id, status=TicketStatus.IN_PROGRESS)


class TestQueue:

    @pytest.mark.asyncio
    async def test_no_agents(self, offline_llm, empty_store, make_ticket):
        service = AssignmentService(offline_llm, empty_store)
        ticket = await make_ticket(empty_store)

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.QUEUE
        assert outcome.agent_id is None
        assert outcome.reason == QUEUE_REASON
        assert ticket.status == TicketStatus.NEW
        assert ticket.assigned_agent_id is None
        assert ticket.assignment_method == AssignmentMethod.QUEUE

    @pytest.mark.asyncio
    async def test_inactive_agents_are_ignored(self, offline_llm, empty_store, tech_agent, make_ticket):
        empty_store.add_user(tech_agent.model_copy(update={"is_active": False}))
        service = AssignmentService(offline_llm, empty_store)
        ticket = await make_ticket(empty_store)

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.QUEUE

    @pytest.mark.asyncio
    async def test_roster_failure_queues(self, offline_llm, store, make_ticket):
        service = AssignmentService(offline_llm, store)
        ticket = await make_ticket(store)
        store.get_active_agents = AsyncMock(side_effect=PersistenceError("list active agents"))

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.QUEUE
        assert ticket.status == TicketStatus.NEW


class TestRoundRobin:

    @pytest.mark.asyncio
    async def test_least_busy_agent(self, offline_llm, store, make_ticket):
        await give_workload(store, make_ticket, 10, 3)
        service = AssignmentService(offline_llm, store)
        ticket = await make_ticket(store)

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.ROUND_ROBIN
        assert outcome.agent_id == 11
        assert outcome.workload == 1
        assert "workload: 1" in outcome.reason
        assert ticket.assigned_agent_id == 11
        assert ticket.status == TicketStatus.IN_PROGRESS
        assert ticket.assigned_at == NOW

    @pytest.mark.asyncio
    async def test_tie_goes_to_first_agent(self, offline_llm, store, make_ticket):
        service = AssignmentService(offline_llm, store)
        ticket = await make_ticket(store)

        outcome = await service.assign(ticket, NOW)

        assert outcome.agent_id == 10

    @pytest.mark.asyncio
    async def test_only_in_progress_counts(self, offline_llm, store, make_ticket):
        await make_ticket(store, assigned_agent_id=10, status=TicketStatus.RESOLVED)
        await give_workload(store, make_ticket, 11, 1)
        service = AssignmentService(offline_llm, store)
        ticket = await make_ticket(store)

        outcome = await service.assign(ticket, NOW)

        assert outcome.agent_id == 10


class TestCategoryMatch:

    @pytest.mark.asyncio
    async def test_specialist_preferred_over_less_busy(self, offline_llm, store, make_ticket):
        await give_workload(store, make_ticket, 11, 2)
        service = AssignmentService(offline_llm, store)
        ticket = await make_ticket(store, category_id=2)  # Billing Question

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.CATEGORY_MATCH
        assert outcome.agent_id == 11
        assert outcome.workload == 3
        assert "Billing Question" in outcome.reason

    @pytest.mark.asyncio
    async def test_no_specialist_keyword_falls_back(self, offline_llm, store, make_ticket):
        service = AssignmentService(offline_llm, store)
        ticket = await make_ticket(store, category_id=4)  # Feature Request

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.ROUND_ROBIN

    @pytest.mark.asyncio
    async def test_no_matching_skills_falls_back(self, offline_llm, store, make_ticket):
        service = AssignmentService(offline_llm, store)
        ticket = await make_ticket(store, category_id=1)  # Account Problem

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.ROUND_ROBIN


class TestAiAssignment:

    @pytest.mark.asyncio
    async def test_ai_pick(self, online_llm, mock_openai, store, make_ticket):
        mock_openai.chat.completions.create.return_value = completion("2")
        service = AssignmentService(online_llm, store)
        ticket = await make_ticket(store)

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.AI
        assert outcome.agent_id == 11
        assert ticket.status == TicketStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_invalid_index_falls_back(self, online_llm, mock_openai, store, make_ticket):
        mock_openai.chat.completions.create.return_value = completion("9")
        service = AssignmentService(online_llm, store)
        ticket = await make_ticket(store, category_id=5)  # Technical Issue

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.CATEGORY_MATCH
        assert outcome.agent_id == 10

    @pytest.mark.asyncio
    async def test_adapter_exception_falls_back(self, online_llm, store, make_ticket):
        online_llm.suggest_agent = AsyncMock(side_effect=RuntimeError("unexpected"))
        service = AssignmentService(online_llm, store)
        ticket = await make_ticket(store)

        outcome = await service.assign(ticket, NOW)

        assert outcome.method == AssignmentMethod.ROUND_ROBIN


class TestSuggest:

    @pytest.mark.asyncio
    async def test_offline_suggestion_does_not_assign(self, offline_llm, store, make_ticket):
        await give_workload(store, make_ticket, 10, 1)
        service = AssignmentService(offline_llm, store)
        ticket = await make_ticket(store)

        suggestion = await service.suggest(ticket)

        assert suggestion.agent_id == 11
        assert suggestion.source == AnalysisSource.OFFLINE
        assert suggestion.skills == ["Billing"]
        assert ticket.assigned_agent_id is None

    @pytest.mark.asyncio
    async def test_no_agents(self, offline_llm, empty_store, make_ticket):
        service = AssignmentService(offline_llm, empty_store)
        ticket = await make_ticket(empty_store)

        assert await service.suggest(ticket) is None


class TestInvariant:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("with_agents", [True, False])
    async def test_status_matches_agent(self, offline_llm, store, empty_store, make_ticket, with_agents):
        target = store if with_agents else empty_store
        service = AssignmentService(offline_llm, target)
        ticket = await make_ticket(target)

        await service.assign(ticket, NOW)

        if ticket.status == TicketStatus.IN_PROGRESS:
            assert ticket.assigned_agent_id is not None
        if ticket.assigned_agent_id is not None:
            assert ticket.status != TicketStatus.NEW
        assert (ticket.assigned_agent_id is not None) == with_agents
