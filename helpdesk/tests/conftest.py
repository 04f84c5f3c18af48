"""
Shared fixtures for service, repository and route tests
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from helpdesk.config import Settings
from helpdesk.models.schemas import AgentSkill, Category, User, UserRole
from helpdesk.models.ticket import Ticket
from helpdesk.repositories.memory_store import MemoryStore
from helpdesk.services.llm_service import LLMService

CATEGORY_NAMES = [
    "Account Problem",
    "Billing Question",
    "Bug Report",
    "Feature Request",
    "Technical Issue",
    "General Inquiry",
]


def completion(content):
    """Fake chat completion response carrying `content`"""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment, no LLM credentials"""
    return Settings(_env_file=None, openai_api_key="", data_store="memory", system_actor_id=1)


@pytest.fixture
def offline_llm(settings) -> LLMService:
    return LLMService(settings)


@pytest.fixture
def mock_openai():
    """AsyncOpenAI stand-in; set `chat.completions.create` per test"""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion("2"))
    return client


@pytest.fixture
def online_llm(settings, mock_openai) -> LLMService:
    return LLMService(settings, client=mock_openai)


@pytest.fixture
def customer() -> User:
    return User(id=1, email="carol@example.com", first_name="Carol", last_name="Customer")


@pytest.fixture
def tech_agent() -> User:
    return User(
        id=10,
        email="alice@example.com",
        first_name="Alice",
        last_name="Tech",
        role=UserRole.AGENT,
        skills=[AgentSkill(name="Technical Support", proficiency=5)],
    )


@pytest.fixture
def billing_agent() -> User:
    return User(
        id=11,
        email="bob@example.com",
        first_name="Bob",
        last_name="Billing",
        role=UserRole.AGENT,
        skills=[AgentSkill(name="Billing", proficiency=4)],
    )


@pytest.fixture
def admin() -> User:
    return User(id=90, email="root@example.com", first_name="Ada", last_name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def categories():
    return [Category(id=index, name=name) for index, name in enumerate(CATEGORY_NAMES, start=1)]


@pytest.fixture
def empty_store(categories, customer) -> MemoryStore:
    """Store with categories and a customer but no agents or admins"""
    return MemoryStore(users=[customer], categories=categories)


@pytest.fixture
def store(categories, customer, tech_agent, billing_agent, admin) -> MemoryStore:
    return MemoryStore(users=[customer, tech_agent, billing_agent, admin], categories=categories)


@pytest.fixture
def make_ticket():
    """Persist a ticket in the given store and return the stored copy"""
    async def _make(store: MemoryStore, **fields) -> Ticket:
        values = {
            "ticket_number": await store.generate_ticket_number(),
            "customer_id": 1,
            "title": "Question",
            "description": "Just asking",
        }
        values.update(fields)
        return await store.create_ticket(Ticket(**values))

    return _make
