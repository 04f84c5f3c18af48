"""
Unit tests for TicketIntelligenceService

Tests:
- Offline analysis path and insight confidences
- AI analysis path
- Business impact floor on the final priority
- Category application rules
- SLA deadlines and AI-analysis summary on the ticket
- Best-effort failure handling
"""
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock

from helpdesk.models.schemas import (
    AIAnalysisSummary,
    AnalysisSource,
    BlockingLevel,
    BusinessImpact,
    CategorizationData,
    ImpactScope,
    InsightType,
    Priority,
    PriorityData,
    SentimentData,
    TicketCategory,
)
from helpdesk.models.ticket import Ticket
from helpdesk.services.intelligence import TicketIntelligenceService
from helpdesk.tests.conftest import completion
from helpdesk.utils.errors import PersistenceError

NOW = datetime(2025, 3, 14, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def offline_service(offline_llm, store, settings):
    return TicketIntelligenceService(offline_llm, store, settings)


class TestOfflineAnalysis:

    @pytest.mark.asyncio
    async def test_system_down_scenario(self, offline_service, store, make_ticket):
        ticket = await make_ticket(store, title="System is completely down for all users!!!", description="")

        result = await offline_service.analyze(ticket, None, NOW)

        assert result.completed
        assert result.category == TicketCategory.TECHNICAL_ISSUE
        assert result.content_priority == Priority.CRITICAL
        assert result.final_priority == Priority.CRITICAL
        assert result.sentiment < 0.5
        assert result.category_source == AnalysisSource.OFFLINE
        assert ticket.priority == Priority.CRITICAL

    @pytest.mark.asyncio
    async def test_three_insights_with_offline_confidences(self, offline_service, store, make_ticket, settings):
        ticket = await make_ticket(store, title="Invoice wrong", description="Charged twice")

        await offline_service.analyze(ticket, None, NOW)

        insights = await store.get_insights(ticket.id)
        by_type = {insight.insight_type: insight for insight in insights}
        assert set(by_type) == {InsightType.CATEGORIZATION, InsightType.PRIORITY, InsightType.SENTIMENT}
        assert by_type[InsightType.CATEGORIZATION].confidence == settings.offline_categorization_confidence
        assert by_type[InsightType.PRIORITY].confidence == settings.offline_priority_confidence
        assert by_type[InsightType.SENTIMENT].confidence == settings.offline_sentiment_confidence

        categorization = by_type[InsightType.CATEGORIZATION].parse_data(CategorizationData)
        assert categorization.category == TicketCategory.BILLING_QUESTION
        assert categorization.source == AnalysisSource.OFFLINE

    @pytest.mark.asyncio
    async def test_applies_category_when_missing(self, offline_service, store, make_ticket):
        ticket = await make_ticket(store, title="Cannot login", description="password rejected")

        result = await offline_service.analyze(ticket, None, NOW)

        assert result.category_applied
        assert ticket.category_id == 1  # Account Problem

    @pytest.mark.asyncio
    async def test_keeps_existing_category(self, offline_service, store, make_ticket):
        ticket = await make_ticket(store, title="Cannot login", description="", category_id=4)

        result = await offline_service.analyze(ticket, None, NOW)

        assert not result.category_applied
        assert ticket.category_id == 4

    @pytest.mark.asyncio
    async def test_confidence_threshold_blocks_category(self, offline_llm, store, settings, make_ticket):
        strict = settings.model_copy(update={"offline_categorization_confidence": 0.7})
        service = TicketIntelligenceService(offline_llm, store, strict)
        ticket = await make_ticket(store, title="Cannot login", description="")

        result = await service.analyze(ticket, None, NOW)

        assert not result.category_applied
        assert ticket.category_id is None

    @pytest.mark.asyncio
    async def test_unknown_stored_category_is_skipped(self, offline_llm, empty_store, settings, make_ticket):
        empty_store.categories.clear()
        service = TicketIntelligenceService(offline_llm, empty_store, settings)
        ticket = await make_ticket(empty_store, title="Cannot login", description="")

        result = await service.analyze(ticket, None, NOW)

        assert result.completed
        assert not result.category_applied

    @pytest.mark.asyncio
    async def test_sla_and_summary(self, offline_service, store, make_ticket):
        ticket = await make_ticket(store, title="Please fix asap", description="blocking")

        result = await offline_service.analyze(ticket, None, NOW)

        assert ticket.priority == Priority.HIGH
        assert ticket.first_response_deadline == NOW + timedelta(hours=4)
        assert ticket.resolution_deadline == NOW + timedelta(hours=24)
        assert ticket.due_date == ticket.resolution_deadline
        assert result.resolution_deadline == ticket.resolution_deadline

        summary = AIAnalysisSummary.model_validate_json(ticket.ai_analysis)
        assert summary.suggested_priority == Priority.HIGH
        assert summary.analyzed_at == NOW
        assert "asap" in summary.urgency_indicators


class TestBusinessImpactFloor:

    @pytest.mark.asyncio
    async def test_floor_dominates_mundane_text(self, offline_service, store, make_ticket):
        ticket = await make_ticket(store, title="Change my avatar", description="Thanks")
        impact = BusinessImpact(blocking_level=BlockingLevel.SYSTEM_DOWN, impact_scope=ImpactScope.INDIVIDUAL)

        result = await offline_service.analyze(ticket, impact, NOW)

        assert result.content_priority == Priority.MEDIUM
        assert result.business_priority == Priority.CRITICAL
        assert ticket.priority == Priority.CRITICAL

        priority_insight = next(i for i in result.insights if i.insight_type == InsightType.PRIORITY)
        data = priority_insight.parse_data(PriorityData)
        assert data.priority == Priority.CRITICAL
        assert data.business_priority == Priority.CRITICAL

    @pytest.mark.asyncio
    async def test_floor_applies_even_when_ai_succeeds(self, online_llm, mock_openai, store, settings, make_ticket):
        mock_openai.chat.completions.create = AsyncMock(side_effect=[
            completion("General Inquiry"),
            completion("1"),
            completion("0.6"),
        ])
        service = TicketIntelligenceService(online_llm, store, settings)
        ticket = await make_ticket(store, title="Question", description="Small thing")
        impact = BusinessImpact(impact_scope=ImpactScope.DEPARTMENT)

        result = await service.analyze(ticket, impact, NOW)

        assert result.priority_source == AnalysisSource.AI
        assert result.content_priority == Priority.LOW
        assert ticket.priority == Priority.HIGH

    @pytest.mark.asyncio
    async def test_lower_floor_does_not_reduce(self, offline_service, store, make_ticket):
        ticket = await make_ticket(store, title="Production down", description="")

        result = await offline_service.analyze(ticket, BusinessImpact(), NOW)

        assert result.business_priority == Priority.LOW
        assert ticket.priority == Priority.CRITICAL


class TestAiAnalysis:

    @pytest.mark.asyncio
    async def test_ai_results_and_confidences(self, online_llm, mock_openai, store, settings, make_ticket):
        mock_openai.chat.completions.create = AsyncMock(side_effect=[
            completion("Bug Report"),
            completion("3"),
            completion("0.25"),
        ])
        service = TicketIntelligenceService(online_llm, store, settings)
        ticket = await make_ticket(store, title="Page shows stack trace", description="Since today")

        result = await service.analyze(ticket, None, NOW)

        assert result.category == TicketCategory.BUG_REPORT
        assert result.category_source == AnalysisSource.AI
        assert result.final_priority == Priority.HIGH
        assert result.sentiment == pytest.approx(0.25)
        assert ticket.category_id == 3

        by_type = {i.insight_type: i for i in result.insights}
        assert by_type[InsightType.CATEGORIZATION].confidence == settings.ai_categorization_confidence
        assert by_type[InsightType.PRIORITY].confidence == settings.ai_priority_confidence
        sentiment = by_type[InsightType.SENTIMENT].parse_data(SentimentData)
        assert sentiment.label == "Negative"
        assert by_type[InsightType.SENTIMENT].confidence == settings.ai_sentiment_confidence

    @pytest.mark.asyncio
    async def test_each_analysis_falls_back_independently(self, online_llm, mock_openai, store, settings, make_ticket):
        mock_openai.chat.completions.create = AsyncMock(side_effect=[
            completion("Feature Request"),
            RuntimeError("boom"),
            completion("not a number"),
        ])
        service = TicketIntelligenceService(online_llm, store, settings)
        ticket = await make_ticket(store, title="Export please", description="minor suggestion")

        result = await service.analyze(ticket, None, NOW)

        assert result.completed
        assert result.category_source == AnalysisSource.AI
        assert result.priority_source == AnalysisSource.OFFLINE
        assert result.content_priority == Priority.LOW
        assert result.sentiment_source == AnalysisSource.OFFLINE

    @pytest.mark.asyncio
    async def test_nan_sentiment_keeps_ai_category_and_priority(
        self, online_llm, mock_openai, store, settings, make_ticket
    ):
        mock_openai.chat.completions.create = AsyncMock(side_effect=[
            completion("Technical Issue"),
            completion("4"),
            completion("NaN"),
        ])
        service = TicketIntelligenceService(online_llm, store, settings)
        ticket = await make_ticket(store, title="Reports page stopped loading", description="")

        result = await service.analyze(ticket, None, NOW)

        assert result.completed
        assert result.category_source == AnalysisSource.AI
        assert result.priority_source == AnalysisSource.AI
        assert result.sentiment_source == AnalysisSource.OFFLINE
        assert result.sentiment == pytest.approx(0.5)
        assert ticket.priority == Priority.CRITICAL
        assert ticket.category_id == 5


class TestFailureHandling:

    @pytest.mark.asyncio
    async def test_insight_write_failure_is_contained(self, offline_service, store, make_ticket):
        ticket = await make_ticket(store, title="Production down", description="")
        store.append_insights = AsyncMock(side_effect=PersistenceError("append insights"))

        result = await offline_service.analyze(ticket, None, NOW)

        assert not result.completed
        assert result.priority_applied
        assert result.insights == []
        assert "append insights" in result.error
        assert ticket.priority == Priority.CRITICAL
        assert ticket.resolution_deadline is not None
        assert ticket.ai_analysis is not None

    @pytest.mark.asyncio
    async def test_unsaved_ticket_is_contained(self, offline_service):
        result = await offline_service.analyze(Ticket(customer_id=1, title="t", description="d"), None, NOW)

        assert not result.completed


class TestPreview:

    @pytest.mark.asyncio
    async def test_preview_offline(self, offline_service, store):
        preview = await offline_service.preview("I am angry", "My invoice is wrong")

        assert preview.suggested_category == TicketCategory.BILLING_QUESTION
        assert preview.suggested_priority == Priority.HIGH
        assert preview.sentiment_label == "Negative"
        assert preview.categorization_confidence == 0.75
        assert store.insights == []
