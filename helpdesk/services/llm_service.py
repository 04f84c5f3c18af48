"""
LLM Service - bounded completion calls for ticket analysis

Wraps a single chat-completion call behind a contract that never raises:
every call returns an LLMResult. Callers fall back to the offline heuristics
whenever the result is not available.

Statuses:
- ok: parsed value present
- unconfigured: no API key, no network call attempted (intentional fallback)
- timeout / failed / unparsable: unexpected, logged for observability
"""
import asyncio
import math
from enum import Enum
from typing import Any, Optional, Union, Sequence

from openai import AsyncOpenAI, APITimeoutError
from pydantic import BaseModel

from helpdesk.config import Settings, get_settings
from helpdesk.models.schemas import BusinessImpact, RosterEntry, TicketCategory
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful AI assistant for customer support ticket analysis. "
    "Provide concise, accurate responses."
)


class ShapeKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"


class ResultShape(BaseModel):
    """Expected shape of a completion: free text or a bounded number"""
    kind: ShapeKind = ShapeKind.TEXT
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    @classmethod
    def text(cls) -> "ResultShape":
        return cls(kind=ShapeKind.TEXT)

    @classmethod
    def integer(cls, minimum: int, maximum: int) -> "ResultShape":
        return cls(kind=ShapeKind.INTEGER, minimum=minimum, maximum=maximum)

    @classmethod
    def decimal(cls, minimum: float, maximum: float) -> "ResultShape":
        return cls(kind=ShapeKind.FLOAT, minimum=minimum, maximum=maximum)

    def parse(self, raw: Optional[str]) -> Union[str, int, float]:
        """
        Parse a completion body.

        Raises:
            ValueError: Empty body, non-numeric body, non-finite number, or number out of range
        """
        if raw is None or not raw.strip():
            raise ValueError("empty completion")

        cleaned = raw.strip().strip("`").strip().rstrip(".")
        if self.kind == ShapeKind.TEXT:
            return cleaned

        value = int(cleaned) if self.kind == ShapeKind.INTEGER else float(cleaned)
        if not math.isfinite(value):
            raise ValueError(f"non-finite number {cleaned!r}")
        if self.minimum is not None and value < self.minimum:
            raise ValueError(f"{value} below {self.minimum}")
        if self.maximum is not None and value > self.maximum:
            raise ValueError(f"{value} above {self.maximum}")
        return value


class LLMStatus(str, Enum):
    OK = "ok"
    UNCONFIGURED = "unconfigured"
    TIMEOUT = "timeout"
    FAILED = "failed"
    UNPARSABLE = "unparsable"


class LLMResult(BaseModel):
    status: LLMStatus
    value: Any = None
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.status == LLMStatus.OK

    @property
    def unexpected(self) -> bool:
        """True for failures that were not a deliberate fallback"""
        return self.status not in (LLMStatus.OK, LLMStatus.UNCONFIGURED)


class LLMService:
    """
    Language-model adapter used by the intelligence and assignment steps.

    The OpenAI client is created lazily and only when an API key is
    configured; each request is bounded by `llm_timeout_seconds`.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        self.settings = settings or get_settings()
        self.model = self.settings.openai_model
        self.timeout = self.settings.llm_timeout_seconds
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or self.settings.llm_configured

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
                timeout=self.timeout,
                max_retries=self.settings.llm_max_retries,
            )
            logger.info(f"Initialized OpenAI client ({self.model})")
        return self._client

    async def complete(
        self,
        prompt: str,
        shape: ResultShape,
        max_tokens: Optional[int] = None
    ) -> LLMResult:
        """
        Run one completion and parse it into the expected shape.

        Never raises; see module docstring for the status meanings.
        """
        if not self.is_configured:
            logger.debug("LLM not configured, using offline analysis")
            return LLMResult(status=LLMStatus.UNCONFIGURED)

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    max_tokens=max_tokens or self.settings.llm_max_tokens,
                    temperature=self.settings.llm_temperature,
                ),
                timeout=self.timeout,
            )
            content = response.choices[0].message.content
        except (asyncio.TimeoutError, APITimeoutError):
            logger.warning(f"LLM request timed out after {self.timeout}s")
            return LLMResult(status=LLMStatus.TIMEOUT, error=f"timeout after {self.timeout}s")
        except Exception as e:
            logger.warning(f"LLM request failed: {e}", exc_info=True)
            return LLMResult(status=LLMStatus.FAILED, error=str(e))

        try:
            value = shape.parse(content)
        except ValueError as e:
            logger.warning(f"Unparsable LLM output {content!r}: {e}")
            return LLMResult(status=LLMStatus.UNPARSABLE, error=str(e))

        return LLMResult(status=LLMStatus.OK, value=value)

    # ------------------------------------------------------------------
    # Ticket analysis prompts
    # ------------------------------------------------------------------
    async def categorize(self, title: str, description: str) -> LLMResult:
        """Category name for a ticket, mapped onto TicketCategory"""
        names = "\n".join(
            f"- {c.value}" for c in TicketCategory if c is not TicketCategory.UNMATCHED
        )
        prompt = f"""Analyze this support ticket and categorize it into one of these categories:
{names}

Title: {title}
Description: {description}

Return only the category name, nothing else."""

        result = await self.complete(prompt, ResultShape.text())
        if not result.available:
            return result

        category = TicketCategory.from_text(str(result.value))
        if category == TicketCategory.UNMATCHED:
            logger.warning(f"LLM returned unknown category: {result.value!r}")
            return LLMResult(status=LLMStatus.UNPARSABLE, error=f"unknown category {result.value!r}")
        return LLMResult(status=LLMStatus.OK, value=category)

    async def analyze_priority(
        self,
        title: str,
        description: str,
        business_impact: Optional[BusinessImpact] = None
    ) -> LLMResult:
        """Content priority 1-4 (business impact is merged by the caller)"""
        if business_impact is not None:
            context = (
                f"Blocking Level: {business_impact.blocking_level.name}, "
                f"Impact Scope: {business_impact.impact_scope.name}"
            )
        else:
            context = "None provided"

        prompt = f"""Analyze this support ticket and determine its priority level:
1 = Low (general questions, minor issues, no urgency)
2 = Medium (moderate impact issues, standard business hours)
3 = High (significant impact, affects productivity, needs quick response)
4 = Critical (system down, major blocker, revenue impacting, many users affected)

Consider urgency keywords, how many users are affected, emotional tone and
time sensitivity.

Title: {title}
Description: {description}

Business Context: {context}

Return only the priority number (1-4), nothing else."""

        return await self.complete(prompt, ResultShape.integer(1, 4))

    async def analyze_sentiment(self, text: str) -> LLMResult:
        """Sentiment score in [0.0, 1.0]"""
        prompt = f"""Analyze the sentiment and emotional tone of this customer message:

Message: {text}

Return a sentiment score between 0.0 and 1.0 where:
- 0.0-0.2 = Very negative (angry, furious, threatening)
- 0.2-0.4 = Negative (frustrated, disappointed, unhappy)
- 0.4-0.6 = Neutral (business-like, factual, no strong emotion)
- 0.6-0.8 = Positive (satisfied, pleased, grateful)
- 0.8-1.0 = Very positive (delighted, enthusiastic)

Return only the decimal number, nothing else."""

        return await self.complete(prompt, ResultShape.decimal(0.0, 1.0))

    async def suggest_agent(self, ticket_content: str, roster: Sequence[RosterEntry]) -> LLMResult:
        """1-based index into the roster of the best-suited agent"""
        if not roster:
            return LLMResult(status=LLMStatus.UNPARSABLE, error="empty roster")

        agent_lines = "\n".join(
            f"Agent {index}: {entry.agent.full_name} - "
            f"Skills: {', '.join(entry.agent.skill_names) or 'none'} - "
            f"Current workload: {entry.workload} tickets"
            for index, entry in enumerate(roster, start=1)
        )
        prompt = f"""Given this support ticket, which agent would be best suited to handle it?

Ticket Content: {ticket_content}

Available Agents:
{agent_lines}

Consider skill matching, current workload (prefer less busy agents) and
expertise for the specific problem type.

Return only the agent number (1, 2, 3, etc.), nothing else."""

        return await self.complete(prompt, ResultShape.integer(1, len(roster)))

    async def draft_response(
        self,
        ticket_content: str,
        customer_message: str,
        is_internal: bool = False
    ) -> LLMResult:
        """Suggested reply text for an agent to review"""
        response_type = "internal team note" if is_internal else "customer response"
        tone = "technical and direct" if is_internal else "professional, empathetic, and customer-friendly"

        prompt = f"""Generate a professional {response_type} for this support ticket:

Original Ticket: {ticket_content}
Customer's Latest Message: {customer_message}

Use a {tone} tone, address the specific concerns, provide actionable next
steps and keep it concise.

Generate the {response_type}:"""

        return await self.complete(prompt, ResultShape.text(), max_tokens=500)
