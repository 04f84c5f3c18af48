"""
Data Store

The persistence collaborator used by the ticket pipeline. `DataStore` is the
contract; `SupabaseDataStore` implements it over the per-table repositories
and `MemoryStore` (see memory_store.py) implements it in-process.

Implementations raise NotFoundError for missing records and PersistenceError
for backend failures.
"""
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from helpdesk.config import Settings, get_settings
from helpdesk.models.schemas import AIInsight, Category, TicketComment, TicketHistory, User, UserRole
from helpdesk.models.ticket import Ticket
from helpdesk.repositories.category_repository import CategoryRepository
from helpdesk.repositories.comment_repository import CommentRepository
from helpdesk.repositories.history_repository import HistoryRepository
from helpdesk.repositories.insight_repository import InsightRepository
from helpdesk.repositories.ticket_repository import TicketRepository
from helpdesk.repositories.user_repository import UserRepository
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


class DataStore(Protocol):
    async def generate_ticket_number(self, now: Optional[datetime] = None) -> str: ...

    async def create_ticket(self, ticket: Ticket) -> Ticket: ...

    async def get_ticket(self, ticket_id: int) -> Ticket: ...

    async def save_ticket(self, ticket: Ticket) -> Ticket: ...

    async def list_tickets(
        self,
        customer_id: Optional[int] = None,
        agent_id: Optional[int] = None
    ) -> List[Ticket]: ...

    async def append_history(self, entry: TicketHistory) -> TicketHistory: ...

    async def get_history(self, ticket_id: int) -> List[TicketHistory]: ...

    async def append_insights(self, insights: Sequence[AIInsight]) -> List[AIInsight]: ...

    async def get_insights(self, ticket_id: int) -> List[AIInsight]: ...

    async def add_comment(self, comment: TicketComment) -> TicketComment: ...

    async def get_comments(self, ticket_id: int, include_internal: bool = True) -> List[TicketComment]: ...

    async def get_user(self, user_id: int) -> User: ...

    async def get_active_agents(self) -> List[User]: ...

    async def get_agent_workload(self, agent_id: int) -> int: ...

    async def get_admins(self) -> List[User]: ...

    async def get_categories(self) -> List[Category]: ...


class SupabaseDataStore:
    """DataStore backed by Supabase tables, sharing one client"""

    def __init__(self, supabase_client=None):
        if supabase_client is None:
            from supabase import create_client  # Lazy import for tests

            settings = get_settings()
            supabase_client = create_client(settings.supabase_url, settings.supabase_key)

        self.tickets = TicketRepository(supabase_client)
        self.users = UserRepository(supabase_client)
        self.categories = CategoryRepository(supabase_client)
        self.history = HistoryRepository(supabase_client)
        self.insights = InsightRepository(supabase_client)
        self.comments = CommentRepository(supabase_client)

    async def generate_ticket_number(self, now: Optional[datetime] = None) -> str:
        return await self.tickets.generate_ticket_number(now)

    async def create_ticket(self, ticket: Ticket) -> Ticket:
        return await self.tickets.create(ticket)

    async def get_ticket(self, ticket_id: int) -> Ticket:
        return await self.tickets.get(ticket_id)

    async def save_ticket(self, ticket: Ticket) -> Ticket:
        return await self.tickets.update(ticket)

    async def list_tickets(
        self,
        customer_id: Optional[int] = None,
        agent_id: Optional[int] = None
    ) -> List[Ticket]:
        return await self.tickets.list_tickets(customer_id, agent_id)

    async def append_history(self, entry: TicketHistory) -> TicketHistory:
        return await self.history.append(entry)

    async def get_history(self, ticket_id: int) -> List[TicketHistory]:
        return await self.history.list_for_ticket(ticket_id)

    async def append_insights(self, insights: Sequence[AIInsight]) -> List[AIInsight]:
        return await self.insights.append_many(insights)

    async def get_insights(self, ticket_id: int) -> List[AIInsight]:
        return await self.insights.list_for_ticket(ticket_id)

    async def add_comment(self, comment: TicketComment) -> TicketComment:
        return await self.comments.append(comment)

    async def get_comments(self, ticket_id: int, include_internal: bool = True) -> List[TicketComment]:
        return await self.comments.list_for_ticket(ticket_id, include_internal)

    async def get_user(self, user_id: int) -> User:
        return await self.users.get(user_id)

    async def get_active_agents(self) -> List[User]:
        return await self.users.list_active_by_role(UserRole.AGENT)

    async def get_agent_workload(self, agent_id: int) -> int:
        return await self.tickets.count_in_progress_for_agent(agent_id)

    async def get_admins(self) -> List[User]:
        return await self.users.list_active_by_role(UserRole.ADMIN)

    async def get_categories(self) -> List[Category]:
        return await self.categories.list_active()


def create_data_store(settings: Optional[Settings] = None) -> DataStore:
    """Build the configured data store (`supabase` or `memory`)"""
    settings = settings or get_settings()
    backend = settings.data_store.lower()

    if backend == "memory":
        from helpdesk.repositories.memory_store import MemoryStore

        logger.info("Using in-memory data store")
        return MemoryStore()

    if backend == "supabase":
        logger.info("Using Supabase data store")
        return SupabaseDataStore()

    raise ValueError(f"Unknown data store: {settings.data_store}")
