"""
Ticket Intelligence Service

Runs category, priority and sentiment analysis for a ticket, merges the
content priority with the business-impact floor, records one AI insight per
analysis and derives SLA deadlines.

Each analysis asks the language model first and falls back to the offline
heuristics when the model gives no usable answer. A failure anywhere in
`analyze` is logged and reported on the result; it never propagates.
"""
import asyncio
from datetime import datetime
from typing import Optional, Tuple

from helpdesk.config import Settings, get_settings
from helpdesk.models.pipeline import AnalysisPreview, AnalysisResult
from helpdesk.models.schemas import (
    AIAnalysisSummary,
    AIInsight,
    AnalysisSource,
    BusinessImpact,
    CategorizationData,
    InsightType,
    Priority,
    PriorityData,
    SentimentData,
    TicketCategory,
    utc_now,
)
from helpdesk.models.ticket import Ticket
from helpdesk.repositories.data_store import DataStore
from helpdesk.services import heuristics
from helpdesk.services.business_impact import merge_priority, score_business_impact
from helpdesk.services.llm_service import LLMService
from helpdesk.services.sla import compute_sla_deadlines
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


class TicketIntelligenceService:
    """
    Analysis pipeline for a single ticket.

    Usage:
        service = TicketIntelligenceService(llm, store)
        result = await service.analyze(ticket, business_impact)
    """

    def __init__(
        self,
        llm: LLMService,
        store: DataStore,
        settings: Optional[Settings] = None
    ):
        self.llm = llm
        self.store = store
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Individual analyzers (model first, heuristics on fallback)
    # ------------------------------------------------------------------
    async def _categorize(self, title: str, description: str) -> Tuple[TicketCategory, AnalysisSource]:
        result = await self.llm.categorize(title, description)
        if result.available:
            return result.value, AnalysisSource.AI
        return heuristics.categorize_offline(title, description), AnalysisSource.OFFLINE

    async def _prioritize(
        self,
        title: str,
        description: str,
        business_impact: Optional[BusinessImpact]
    ) -> Tuple[Priority, AnalysisSource]:
        result = await self.llm.analyze_priority(title, description, business_impact)
        if result.available:
            return Priority.from_score(result.value), AnalysisSource.AI
        return heuristics.priority_offline(title, description), AnalysisSource.OFFLINE

    async def _sentiment(self, text: str) -> Tuple[float, AnalysisSource]:
        result = await self.llm.analyze_sentiment(text)
        if result.available:
            return float(result.value), AnalysisSource.AI
        return heuristics.sentiment_offline(text), AnalysisSource.OFFLINE

    async def _run_analyzers(
        self,
        title: str,
        description: str,
        business_impact: Optional[BusinessImpact] = None
    ):
        return await asyncio.gather(
            self._categorize(title, description),
            self._prioritize(title, description, business_impact),
            self._sentiment(f"{title} {description}"),
        )

    def _confidence(self, insight_type: InsightType, source: AnalysisSource) -> float:
        s = self.settings
        if source == AnalysisSource.AI:
            table = {
                InsightType.CATEGORIZATION: s.ai_categorization_confidence,
                InsightType.PRIORITY: s.ai_priority_confidence,
                InsightType.SENTIMENT: s.ai_sentiment_confidence,
            }
        else:
            table = {
                InsightType.CATEGORIZATION: s.offline_categorization_confidence,
                InsightType.PRIORITY: s.offline_priority_confidence,
                InsightType.SENTIMENT: s.offline_sentiment_confidence,
            }
        return table[insight_type]

    async def _category_id(self, category: TicketCategory) -> Optional[int]:
        """Stored category whose name matches the analyzed one"""
        for stored in await self.store.get_categories():
            if stored.name.strip().lower() == category.value.lower():
                return stored.id
        return None

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    async def analyze(
        self,
        ticket: Ticket,
        business_impact: Optional[BusinessImpact] = None,
        now: Optional[datetime] = None
    ) -> AnalysisResult:
        """
        Analyze a persisted ticket and apply the results to it in place.

        The caller saves the ticket afterwards. Category is only applied when
        the ticket has none and the confidence clears the threshold; priority
        and SLA deadlines are always applied.

        Args:
            ticket: Ticket with an identifier
            business_impact: Declared impact, if any
            now: Reference time for deadline maths

        Returns:
            AnalysisResult; `completed` is False if the pass stopped early
        """
        now = now or utc_now()
        result = AnalysisResult()

        try:
            (
                (category, category_source),
                (content_priority, priority_source),
                (sentiment, sentiment_source),
            ) = await self._run_analyzers(ticket.title, ticket.description, business_impact)

            business_priority = score_business_impact(business_impact, now)
            final_priority = merge_priority(business_priority, content_priority)

            result.category = category
            result.category_source = category_source
            result.category_confidence = self._confidence(InsightType.CATEGORIZATION, category_source)
            result.content_priority = content_priority
            result.priority_source = priority_source
            result.business_priority = business_priority
            result.final_priority = final_priority
            result.sentiment = sentiment
            result.sentiment_source = sentiment_source
            result.keywords = heuristics.extract_keywords(ticket.title, ticket.description)
            result.urgency_indicators = heuristics.extract_urgency_indicators(ticket.title, ticket.description)

            logger.info(
                f"Analyzed ticket {ticket.ticket_number}: category={category.value} ({category_source.value}), "
                f"priority={final_priority.label} (content={content_priority.label}, "
                f"business={business_priority.label}), sentiment={sentiment:.2f}"
            )

            if (
                ticket.category_id is None
                and result.category_confidence > self.settings.category_confidence_threshold
            ):
                category_id = await self._category_id(category)
                if category_id is not None:
                    ticket.category_id = category_id
                    result.category_applied = True
                else:
                    logger.debug(f"No stored category named {category.value!r}")

            ticket.priority = final_priority
            result.priority_applied = True

            ticket.ai_analysis = AIAnalysisSummary(
                suggested_category=category,
                suggested_priority=final_priority,
                sentiment_score=sentiment,
                analyzed_at=now,
                keywords=result.keywords,
                urgency_indicators=result.urgency_indicators,
            ).model_dump_json()

            first_response, resolution = compute_sla_deadlines(final_priority, now)
            ticket.first_response_deadline = first_response
            ticket.resolution_deadline = resolution
            ticket.due_date = resolution
            result.first_response_deadline = first_response
            result.resolution_deadline = resolution

            # Audit records last; the ticket fields above stand if this write fails
            insights = [
                AIInsight.build(
                    ticket.id,
                    InsightType.CATEGORIZATION,
                    CategorizationData(category=category, source=category_source),
                    result.category_confidence,
                ),
                AIInsight.build(
                    ticket.id,
                    InsightType.PRIORITY,
                    PriorityData(
                        priority=final_priority,
                        content_priority=content_priority,
                        business_priority=business_priority,
                        source=priority_source,
                    ),
                    self._confidence(InsightType.PRIORITY, priority_source),
                ),
                AIInsight.build(
                    ticket.id,
                    InsightType.SENTIMENT,
                    SentimentData(
                        sentiment=sentiment,
                        label=heuristics.sentiment_label(sentiment),
                        source=sentiment_source,
                    ),
                    self._confidence(InsightType.SENTIMENT, sentiment_source),
                ),
            ]
            result.insights = await self.store.append_insights(insights)

            result.completed = True

        except Exception as e:
            logger.error(f"Intelligent processing failed for ticket {ticket.ticket_number}: {e}", exc_info=True)
            result.error = str(e)

        return result

    async def preview(self, title: str, description: str) -> AnalysisPreview:
        """Analyze free text without touching the data store"""
        (
            (category, category_source),
            (priority, priority_source),
            (sentiment, sentiment_source),
        ) = await self._run_analyzers(title, description)

        return AnalysisPreview(
            suggested_category=category,
            suggested_priority=priority,
            sentiment_score=sentiment,
            sentiment_label=heuristics.sentiment_label(sentiment),
            categorization_confidence=self._confidence(InsightType.CATEGORIZATION, category_source),
            priority_confidence=self._confidence(InsightType.PRIORITY, priority_source),
            sentiment_confidence=self._confidence(InsightType.SENTIMENT, sentiment_source),
            processed_at=utc_now(),
        )
