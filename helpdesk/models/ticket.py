"""
Ticket data models
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from helpdesk.models.schemas import (
    AssignmentMethod,
    BusinessImpact,
    Priority,
    TicketStatus,
    ensure_utc,
    utc_now,
)
from helpdesk.utils.validators import sanitize_input


class TicketCreate(BaseModel):
    """Already-validated data for a new ticket"""
    customer_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category_id: Optional[int] = None
    business_impact: Optional[BusinessImpact] = None

    @field_validator("title", "description")
    @classmethod
    def clean_text(cls, v: str) -> str:
        return sanitize_input(v)


class Ticket(BaseModel):
    """
    Ticket entity as held by the pipeline and saved to the data store.

    The ticket number is assigned once by the data store and is never part
    of an update payload. Business impact and AI analysis are kept in their
    serialized JSON form so the store can save them verbatim.
    """
    id: Optional[int] = None
    ticket_number: str = ""
    customer_id: int
    assigned_agent_id: Optional[int] = None
    category_id: Optional[int] = None

    title: str
    description: str
    priority: Priority = Priority.MEDIUM
    status: TicketStatus = TicketStatus.NEW

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    due_date: Optional[datetime] = None

    # SLA
    first_response_deadline: Optional[datetime] = None
    resolution_deadline: Optional[datetime] = None

    # Serialized payloads
    business_impact_data: Optional[str] = None
    ai_analysis: Optional[str] = None

    # Assignment
    assigned_at: Optional[datetime] = None
    assignment_method: Optional[AssignmentMethod] = None
    assignment_reason: Optional[str] = None

    # Escalation
    is_escalated: bool = False
    escalation_reason: Optional[str] = None
    escalated_at: Optional[datetime] = None
    escalated_by_id: Optional[int] = None

    @field_validator(
        "created_at", "updated_at", "resolved_at", "closed_at", "due_date",
        "first_response_deadline", "resolution_deadline", "assigned_at", "escalated_at"
    )
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def business_impact(self) -> Optional[BusinessImpact]:
        if not self.business_impact_data:
            return None
        return BusinessImpact.model_validate_json(self.business_impact_data)

    @property
    def text(self) -> str:
        """Title and description as analyzed by the pipeline"""
        return f"{self.title} {self.description}"

    def touch(self) -> None:
        self.updated_at = utc_now()
