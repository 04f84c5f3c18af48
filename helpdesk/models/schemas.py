"""
Pydantic models for Helpdesk Intelligence

Enums, value objects and append-only records produced or consumed by the
ticket intake pipeline. Rows in the data store map one-to-one onto these
models (enums stored by value, structured payloads stored as JSON text).
"""
import json
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List, Type, TypeVar

from pydantic import BaseModel, Field, field_validator, ConfigDict


PayloadT = TypeVar("PayloadT", bound=BaseModel)


def utc_now() -> datetime:
    """Timezone-aware current time in UTC"""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ============================================================================
# Enums
# ============================================================================

class Priority(int, Enum):
    """Ticket priority, ordered Low < Medium < High < Critical"""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_score(cls, score: int) -> "Priority":
        """Clamp a numeric score into the 1..4 range"""
        return cls(max(cls.LOW.value, min(cls.CRITICAL.value, int(score))))


class TicketStatus(str, Enum):
    """Ticket lifecycle states"""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    AGENT = "agent"
    ADMIN = "admin"


class BlockingLevel(int, Enum):
    """Is this blocking work?"""
    NOT_BLOCKING = 1
    PARTIALLY_BLOCKING = 2
    COMPLETELY_BLOCKING = 3
    SYSTEM_DOWN = 4


class ImpactScope(int, Enum):
    """How many people are affected?"""
    INDIVIDUAL = 1
    TEAM = 2
    DEPARTMENT = 3
    COMPANY = 4


class TicketCategory(str, Enum):
    """Closed set of category names the analyzers may produce"""
    ACCOUNT_PROBLEM = "Account Problem"
    BILLING_QUESTION = "Billing Question"
    BUG_REPORT = "Bug Report"
    FEATURE_REQUEST = "Feature Request"
    TECHNICAL_ISSUE = "Technical Issue"
    GENERAL_INQUIRY = "General Inquiry"
    UNMATCHED = "Unmatched"

    @classmethod
    def from_text(cls, text: Optional[str]) -> "TicketCategory":
        """
        Map free text (e.g. a model completion) onto a category.

        Exact names win, then the first category name contained in the
        text. Anything else maps to UNMATCHED.
        """
        if not text:
            return cls.UNMATCHED

        normalized = text.strip().strip("\"'.` ").lower()
        candidates = [c for c in cls if c is not cls.UNMATCHED]

        for category in candidates:
            if normalized == category.value.lower():
                return category

        for category in candidates:
            if category.value.lower() in normalized:
                return category

        return cls.UNMATCHED


class InsightType(str, Enum):
    CATEGORIZATION = "categorization"
    PRIORITY = "priority"
    SENTIMENT = "sentiment"
    UNCLASSIFIED = "unclassified"

    @classmethod
    def from_text(cls, text: Optional[str]) -> "InsightType":
        """Total mapping from stored/free text to an insight type"""
        normalized = (text or "").strip().lower()
        for insight_type in cls:
            if normalized == insight_type.value:
                return insight_type
        return cls.UNCLASSIFIED


class AssignmentMethod(str, Enum):
    AI = "ai"
    CATEGORY_MATCH = "category_match"
    ROUND_ROBIN = "round_robin"
    MANUAL = "manual"
    QUEUE = "queue"


class AnalysisSource(str, Enum):
    """Where an analysis value came from"""
    AI = "ai"
    OFFLINE = "offline"


class HistoryAction(str, Enum):
    CREATED = "Created"
    STATUS_CHANGED = "StatusChanged"
    PRIORITY_CHANGED = "PriorityChanged"
    ASSIGNED = "Assigned"
    REANALYZED = "Reanalyzed"
    COMMENT_ADDED = "CommentAdded"


# ============================================================================
# Value objects
# ============================================================================

class BusinessImpact(BaseModel):
    """
    Customer-declared business impact, attached once at ticket creation.

    Attributes:
        blocking_level: NotBlocking < PartiallyBlocking < CompletelyBlocking < SystemDown
        impact_scope: Individual < Team < Department < Company
        urgent_deadline: Optional deadline the customer is working against
        additional_context: Free-text context from the customer
    """
    model_config = ConfigDict(frozen=True)

    blocking_level: BlockingLevel = BlockingLevel.NOT_BLOCKING
    impact_scope: ImpactScope = ImpactScope.INDIVIDUAL
    urgent_deadline: Optional[datetime] = None
    additional_context: Optional[str] = Field(None, max_length=2000)

    @field_validator("urgent_deadline")
    @classmethod
    def normalize_deadline(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class AgentSkill(BaseModel):
    """Skill held by an agent"""
    name: str
    proficiency: int = Field(1, ge=1, le=5)


class User(BaseModel):
    """Customer, agent or admin account (read-mostly from the pipeline)"""
    id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    role: UserRole = UserRole.CUSTOMER
    is_active: bool = True
    skills: List[AgentSkill] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @property
    def skill_names(self) -> List[str]:
        return [skill.name for skill in self.skills]


class RosterEntry(BaseModel):
    """An active agent paired with a live workload snapshot"""
    agent: User
    workload: int = Field(0, ge=0, description="Assigned tickets currently in progress")


class Category(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    parent_category_id: Optional[int] = None
    is_active: bool = True


# ============================================================================
# Insight payloads
# ============================================================================

class CategorizationData(BaseModel):
    category: TicketCategory
    source: AnalysisSource


class PriorityData(BaseModel):
    priority: Priority
    content_priority: Priority
    business_priority: Priority
    source: AnalysisSource


class SentimentData(BaseModel):
    sentiment: float = Field(..., ge=0.0, le=1.0)
    label: str
    source: AnalysisSource


# ============================================================================
# Append-only records
# ============================================================================

class AIInsight(BaseModel):
    """
    Stored analysis result with a confidence score.

    `data` holds the JSON form of one of the payload models above; the
    pipeline never mutates or deletes insights once written.
    """
    id: Optional[int] = None
    ticket_id: int
    insight_type: InsightType
    confidence: float = Field(..., ge=0.0, le=1.0)
    data: str
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("insight_type", mode="before")
    @classmethod
    def parse_insight_type(cls, v):
        if isinstance(v, InsightType):
            return v
        return InsightType.from_text(v)

    @classmethod
    def build(
        cls,
        ticket_id: int,
        insight_type: InsightType,
        payload: BaseModel,
        confidence: float
    ) -> "AIInsight":
        return cls(
            ticket_id=ticket_id,
            insight_type=insight_type,
            confidence=confidence,
            data=payload.model_dump_json(),
        )

    def parse_data(self, model: Type[PayloadT]) -> PayloadT:
        """Deserialize `data` into the given payload model"""
        return model.model_validate_json(self.data)


class TicketHistory(BaseModel):
    """Audit log entry, written once per mutating operation"""
    id: Optional[int] = None
    ticket_id: int
    user_id: int
    action: HistoryAction
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    details: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

    def details_dict(self) -> Dict[str, Any]:
        return json.loads(self.details) if self.details else {}


class TicketComment(BaseModel):
    """
    Note on a ticket, either customer-visible or internal to the support team.

    Comments are append-only; customers never see internal ones.
    """
    id: Optional[int] = None
    ticket_id: int
    user_id: int
    comment_text: str = Field(..., min_length=1)
    is_internal: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class CreatedDetails(BaseModel):
    """History details written for a newly created ticket"""
    title: str
    priority: str
    category: Optional[str] = None
    assignment_method: Optional[AssignmentMethod] = None
    has_business_impact: bool = False


class AIAnalysisSummary(BaseModel):
    """Summary stored on the ticket's AI-analysis field"""
    suggested_category: TicketCategory
    suggested_priority: Priority
    sentiment_score: float
    analyzed_at: datetime
    keywords: List[str] = Field(default_factory=list)
    urgency_indicators: List[str] = Field(default_factory=list)
