"""
History Repository

Append-only access to `ticket_history`.
"""
from typing import List

from helpdesk.models.schemas import TicketHistory
from helpdesk.repositories.base_repository import BaseRepository


class HistoryRepository(BaseRepository):
    """Repository for ticket_history table operations."""

    table_name = "ticket_history"

    async def append(self, entry: TicketHistory) -> TicketHistory:
        payload = entry.model_dump(mode="json", exclude={"id"})

        def query():
            return self.table().insert(payload).execute()

        response = await self._run(f"append history for ticket {entry.ticket_id}", query)
        row = self._first(response)
        return TicketHistory.model_validate(row) if row else entry

    async def list_for_ticket(self, ticket_id: int) -> List[TicketHistory]:
        def query():
            return self.table() \
                .select("*") \
                .eq("ticket_id", ticket_id) \
                .order("created_at") \
                .execute()

        response = await self._run(f"list history for ticket {ticket_id}", query)
        return [TicketHistory.model_validate(row) for row in self._rows(response)]
