"""
Pipeline result models

Values handed between the intelligence, assignment and escalation steps.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from helpdesk.models.schemas import (
    AIInsight,
    AnalysisSource,
    AssignmentMethod,
    Priority,
    TicketCategory,
)


class AnalysisResult(BaseModel):
    """
    Outcome of one intelligence pass over a ticket.

    `completed` is False when the pass stopped on an exception; the flags
    record which ticket fields were applied before that happened.
    """
    category: TicketCategory = TicketCategory.UNMATCHED
    category_source: AnalysisSource = AnalysisSource.OFFLINE
    category_confidence: float = 0.0
    content_priority: Priority = Priority.MEDIUM
    priority_source: AnalysisSource = AnalysisSource.OFFLINE
    business_priority: Priority = Priority.MEDIUM
    final_priority: Priority = Priority.MEDIUM
    sentiment: float = 0.5
    sentiment_source: AnalysisSource = AnalysisSource.OFFLINE
    keywords: List[str] = Field(default_factory=list)
    urgency_indicators: List[str] = Field(default_factory=list)
    insights: List[AIInsight] = Field(default_factory=list)
    first_response_deadline: Optional[datetime] = None
    resolution_deadline: Optional[datetime] = None

    category_applied: bool = False
    priority_applied: bool = False
    completed: bool = False
    error: Optional[str] = None


class AnalysisPreview(BaseModel):
    """Non-persisted analysis for the categorize endpoint"""
    suggested_category: TicketCategory
    suggested_priority: Priority
    sentiment_score: float
    sentiment_label: str
    categorization_confidence: float
    priority_confidence: float
    sentiment_confidence: float
    processed_at: datetime


class AssignmentOutcome(BaseModel):
    method: AssignmentMethod
    agent_id: Optional[int] = None
    agent_name: Optional[str] = None
    workload: Optional[int] = Field(None, description="Agent workload after this assignment")
    reason: str
    assigned_at: Optional[datetime] = None


class AgentSuggestion(BaseModel):
    """Read-only preview of the agent the engine would pick"""
    agent_id: int
    agent_name: str
    skills: List[str] = Field(default_factory=list)
    current_workload: int
    source: AnalysisSource


class EscalationDecision(BaseModel):
    should_escalate: bool = False
    reason: Optional[str] = None
    flagged: bool = False
