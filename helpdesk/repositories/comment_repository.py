"""
Comment Repository

Append-only access to `ticket_comments`.
"""
from typing import List

from helpdesk.models.schemas import TicketComment
from helpdesk.repositories.base_repository import BaseRepository


class CommentRepository(BaseRepository):
    """Repository for ticket_comments table operations."""

    table_name = "ticket_comments"

    async def append(self, comment: TicketComment) -> TicketComment:
        payload = comment.model_dump(mode="json", exclude={"id"})

        def query():
            return self.table().insert(payload).execute()

        response = await self._run(f"add comment to ticket {comment.ticket_id}", query)
        row = self._first(response)
        if row is None:
            self._handle_error("add comment", ValueError("Supabase insert returned no data"))
        return TicketComment.model_validate(row)

    async def list_for_ticket(self, ticket_id: int, include_internal: bool = True) -> List[TicketComment]:
        def query():
            request = self.table().select("*").eq("ticket_id", ticket_id)
            if not include_internal:
                request = request.eq("is_internal", False)
            return request.order("created_at").execute()

        response = await self._run(f"list comments for ticket {ticket_id}", query)
        return [TicketComment.model_validate(row) for row in self._rows(response)]
