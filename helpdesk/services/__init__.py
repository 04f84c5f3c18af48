"""
Business Logic Services
"""
from .llm_service import LLMService, LLMResult, LLMStatus
from .intelligence import TicketIntelligenceService
from .assignment import AssignmentService
from .escalation import EscalationService
from .ticket_service import TicketService

__all__ = [
    "LLMService",
    "LLMResult",
    "LLMStatus",
    "TicketIntelligenceService",
    "AssignmentService",
    "EscalationService",
    "TicketService",
]
