"""
Insight Repository

Append-only access to `ai_insights`.
"""
from typing import List, Sequence

from helpdesk.models.schemas import AIInsight
from helpdesk.repositories.base_repository import BaseRepository


class InsightRepository(BaseRepository):
    """Repository for ai_insights table operations."""

    table_name = "ai_insights"

    async def append_many(self, insights: Sequence[AIInsight]) -> List[AIInsight]:
        if not insights:
            return []
        payload = [insight.model_dump(mode="json", exclude={"id"}) for insight in insights]

        def query():
            return self.table().insert(payload).execute()

        response = await self._run("append insights", query)
        rows = self._rows(response)
        return [AIInsight.model_validate(row) for row in rows] if rows else list(insights)

    async def list_for_ticket(self, ticket_id: int) -> List[AIInsight]:
        def query():
            return self.table() \
                .select("*") \
                .eq("ticket_id", ticket_id) \
                .order("created_at") \
                .execute()

        response = await self._run(f"list insights for ticket {ticket_id}", query)
        return [AIInsight.model_validate(row) for row in self._rows(response)]
