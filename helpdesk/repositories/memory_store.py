"""
In-memory DataStore for local development and tests.

Records are copied on the way in and out, so callers never share mutable
state with the store (the same isolation a database gives).
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from helpdesk.models.schemas import (
    AIInsight,
    Category,
    TicketComment,
    TicketHistory,
    TicketStatus,
    User,
    UserRole,
)
from helpdesk.models.ticket import Ticket
from helpdesk.repositories.ticket_repository import next_ticket_number, ticket_number_prefix
from helpdesk.utils.errors import NotFoundError


class MemoryStore:
    def __init__(
        self,
        users: Optional[Sequence[User]] = None,
        categories: Optional[Sequence[Category]] = None
    ):
        self.tickets: Dict[int, Ticket] = {}
        self.users: Dict[int, User] = {}
        self.categories: Dict[int, Category] = {}
        self.history: List[TicketHistory] = []
        self.insights: List[AIInsight] = []
        self.comments: List[TicketComment] = []
        self._ticket_seq = 0
        self._history_seq = 0
        self._insight_seq = 0
        self._comment_seq = 0

        for user in users or []:
            self.add_user(user)
        for category in categories or []:
            self.add_category(category)

    # Seeding helpers
    def add_user(self, user: User) -> User:
        self.users[user.id] = user.model_copy(deep=True)
        return user

    def add_category(self, category: Category) -> Category:
        self.categories[category.id] = category.model_copy(deep=True)
        return category

    # Tickets
    async def generate_ticket_number(self, now: Optional[datetime] = None) -> str:
        prefix = ticket_number_prefix(now)
        numbers = [t.ticket_number for t in self.tickets.values() if t.ticket_number.startswith(prefix)]
        return next_ticket_number(prefix, max(numbers) if numbers else None)

    async def create_ticket(self, ticket: Ticket) -> Ticket:
        self._ticket_seq += 1
        stored = ticket.model_copy(deep=True, update={"id": self._ticket_seq})
        self.tickets[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_ticket(self, ticket_id: int) -> Ticket:
        if ticket_id not in self.tickets:
            raise NotFoundError("Ticket", ticket_id)
        return self.tickets[ticket_id].model_copy(deep=True)

    async def save_ticket(self, ticket: Ticket) -> Ticket:
        if ticket.id not in self.tickets:
            raise NotFoundError("Ticket", ticket.id)
        existing = self.tickets[ticket.id]
        stored = ticket.model_copy(deep=True, update={
            "ticket_number": existing.ticket_number,
            "created_at": existing.created_at,
        })
        self.tickets[ticket.id] = stored
        return stored.model_copy(deep=True)

    async def list_tickets(
        self,
        customer_id: Optional[int] = None,
        agent_id: Optional[int] = None
    ) -> List[Ticket]:
        tickets = [
            ticket for ticket in self.tickets.values()
            if (customer_id is None or ticket.customer_id == customer_id)
            and (agent_id is None or ticket.assigned_agent_id == agent_id)
        ]
        tickets.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return [ticket.model_copy(deep=True) for ticket in tickets]

    # History / insights
    async def append_history(self, entry: TicketHistory) -> TicketHistory:
        self._history_seq += 1
        stored = entry.model_copy(deep=True, update={"id": self._history_seq})
        self.history.append(stored)
        return stored.model_copy(deep=True)

    async def get_history(self, ticket_id: int) -> List[TicketHistory]:
        return [entry.model_copy(deep=True) for entry in self.history if entry.ticket_id == ticket_id]

    async def append_insights(self, insights: Sequence[AIInsight]) -> List[AIInsight]:
        stored = []
        for insight in insights:
            self._insight_seq += 1
            stored.append(insight.model_copy(deep=True, update={"id": self._insight_seq}))
        self.insights.extend(stored)
        return [insight.model_copy(deep=True) for insight in stored]

    async def get_insights(self, ticket_id: int) -> List[AIInsight]:
        return [insight.model_copy(deep=True) for insight in self.insights if insight.ticket_id == ticket_id]

    # Comments
    async def add_comment(self, comment: TicketComment) -> TicketComment:
        self._comment_seq += 1
        stored = comment.model_copy(deep=True, update={"id": self._comment_seq})
        self.comments.append(stored)
        return stored.model_copy(deep=True)

    async def get_comments(self, ticket_id: int, include_internal: bool = True) -> List[TicketComment]:
        return [
            comment.model_copy(deep=True)
            for comment in self.comments
            if comment.ticket_id == ticket_id and (include_internal or not comment.is_internal)
        ]

    # Users / categories
    async def get_user(self, user_id: int) -> User:
        if user_id not in self.users:
            raise NotFoundError("User", user_id)
        return self.users[user_id].model_copy(deep=True)

    def _active(self, role: UserRole) -> List[User]:
        return [
            user.model_copy(deep=True)
            for user in self.users.values()
            if user.role == role and user.is_active
        ]

    async def get_active_agents(self) -> List[User]:
        return self._active(UserRole.AGENT)

    async def get_agent_workload(self, agent_id: int) -> int:
        return sum(
            1 for ticket in self.tickets.values()
            if ticket.assigned_agent_id == agent_id and ticket.status == TicketStatus.IN_PROGRESS
        )

    async def get_admins(self) -> List[User]:
        return self._active(UserRole.ADMIN)

    async def get_categories(self) -> List[Category]:
        return [c.model_copy(deep=True) for c in self.categories.values() if c.is_active]
