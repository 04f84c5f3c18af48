"""
Ticket Repository

CRUD for the `tickets` table plus per-day ticket number generation.
"""
from datetime import datetime
from typing import List, Optional

from helpdesk.models.schemas import TicketStatus, utc_now
from helpdesk.models.ticket import Ticket
from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.errors import NotFoundError
from helpdesk.utils.logger import get_logger
from helpdesk.utils.validators import validate_ticket_number

logger = get_logger(__name__)

# Never written by an update
IMMUTABLE_FIELDS = {"id", "ticket_number", "created_at"}


def ticket_number_prefix(now: Optional[datetime] = None) -> str:
    return (now or utc_now()).strftime("%Y%m%d")


def next_ticket_number(prefix: str, latest: Optional[str]) -> str:
    """
    YYYYMMDD followed by a 4-digit sequence, one past the day's latest.

    Raises:
        ValueError: If the stored latest number is malformed
    """
    if latest is not None and not validate_ticket_number(latest):
        raise ValueError(f"Malformed ticket number in store: {latest!r}")

    sequence = 1
    if latest and latest.startswith(prefix):
        sequence = int(latest[len(prefix):]) + 1
    return f"{prefix}{sequence:04d}"


class TicketRepository(BaseRepository):
    """Repository for tickets table operations."""

    table_name = "tickets"

    @staticmethod
    def _serialize(ticket: Ticket, exclude: set) -> dict:
        return ticket.model_dump(mode="json", exclude=exclude)

    async def generate_ticket_number(self, now: Optional[datetime] = None) -> str:
        prefix = ticket_number_prefix(now)

        def query():
            return self.table() \
                .select("ticket_number") \
                .like("ticket_number", f"{prefix}%") \
                .order("ticket_number", desc=True) \
                .limit(1) \
                .execute()

        response = await self._run("generate ticket number", query)
        latest = self._first(response)
        try:
            return next_ticket_number(prefix, latest["ticket_number"] if latest else None)
        except ValueError as e:
            self._handle_error("generate ticket number", e)

    async def create(self, ticket: Ticket) -> Ticket:
        payload = self._serialize(ticket, exclude={"id"})

        def query():
            return self.table().insert(payload).execute()

        response = await self._run("create ticket", query)
        row = self._first(response)
        if row is None:
            self._handle_error("create ticket", ValueError("Supabase insert returned no data"))
        created = Ticket.model_validate(row)
        logger.info(f"Created ticket {created.ticket_number} (id={created.id})")
        return created

    async def get(self, ticket_id: int) -> Ticket:
        def query():
            return self.table().select("*").eq("id", ticket_id).limit(1).execute()

        response = await self._run(f"get ticket {ticket_id}", query)
        row = self._first(response)
        if row is None:
            raise NotFoundError("Ticket", ticket_id)
        return Ticket.model_validate(row)

    async def update(self, ticket: Ticket) -> Ticket:
        if ticket.id is None:
            raise NotFoundError("Ticket", None)
        payload = self._serialize(ticket, exclude=IMMUTABLE_FIELDS)

        def query():
            return self.table().update(payload).eq("id", ticket.id).execute()

        response = await self._run(f"update ticket {ticket.id}", query)
        row = self._first(response)
        if row is None:
            raise NotFoundError("Ticket", ticket.id)
        return Ticket.model_validate(row)

    async def count_in_progress_for_agent(self, agent_id: int) -> int:
        def query():
            return self.table() \
                .select("id", count="exact") \
                .eq("assigned_agent_id", agent_id) \
                .eq("status", TicketStatus.IN_PROGRESS.value) \
                .execute()

        response = await self._run(f"count workload for agent {agent_id}", query)
        return self._count(response)

    async def list_tickets(
        self,
        customer_id: Optional[int] = None,
        agent_id: Optional[int] = None
    ) -> List[Ticket]:
        """Tickets newest first, optionally filtered by customer or assigned agent"""
        def query():
            request = self.table().select("*")
            if customer_id is not None:
                request = request.eq("customer_id", customer_id)
            if agent_id is not None:
                request = request.eq("assigned_agent_id", agent_id)
            return request.order("created_at", desc=True).execute()

        response = await self._run("list tickets", query)
        return [Ticket.model_validate(row) for row in self._rows(response)]
