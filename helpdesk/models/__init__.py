"""
Pydantic models for Helpdesk Intelligence
"""

from helpdesk.models.schemas import (
    # Enums
    Priority,
    TicketStatus,
    UserRole,
    BlockingLevel,
    ImpactScope,
    TicketCategory,
    InsightType,
    AssignmentMethod,
    AnalysisSource,
    HistoryAction,

    # Value objects
    BusinessImpact,
    AgentSkill,
    User,
    RosterEntry,
    Category,

    # Records
    AIInsight,
    TicketHistory,
    TicketComment,
)
from helpdesk.models.ticket import Ticket, TicketCreate
from helpdesk.models.pipeline import (
    AnalysisResult,
    AnalysisPreview,
    AssignmentOutcome,
    AgentSuggestion,
    EscalationDecision,
)

__all__ = [
    # Enums
    "Priority",
    "TicketStatus",
    "UserRole",
    "BlockingLevel",
    "ImpactScope",
    "TicketCategory",
    "InsightType",
    "AssignmentMethod",
    "AnalysisSource",
    "HistoryAction",

    # Value objects
    "BusinessImpact",
    "AgentSkill",
    "User",
    "RosterEntry",
    "Category",

    # Records
    "AIInsight",
    "TicketHistory",
    "TicketComment",

    # Tickets and pipeline results
    "Ticket",
    "TicketCreate",
    "AnalysisResult",
    "AnalysisPreview",
    "AssignmentOutcome",
    "AgentSuggestion",
    "EscalationDecision",
]
