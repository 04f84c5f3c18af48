"""
Ticket API routes

Thin HTTP layer over TicketService. Domain errors are translated to HTTP
status codes by the exception handlers registered in main.py.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from helpdesk.models.pipeline import AgentSuggestion, AnalysisResult
from helpdesk.models.schemas import (
    AIInsight,
    BusinessImpact,
    Priority,
    TicketComment,
    TicketHistory,
    TicketStatus,
)
from helpdesk.models.ticket import Ticket, TicketCreate
from helpdesk.routes.dependencies import get_actor_id, get_ticket_service
from helpdesk.services.ticket_service import TicketService

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


# Request/Response Models

class CreateTicketRequest(BaseModel):
    """New ticket submitted by the acting customer"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category_id: Optional[int] = None
    business_impact: Optional[BusinessImpact] = None


class StatusUpdateRequest(BaseModel):
    status: TicketStatus


class PriorityUpdateRequest(BaseModel):
    priority: Priority


class AssignRequest(BaseModel):
    agent_id: int


class CommentRequest(BaseModel):
    comment: str = Field(..., min_length=1)
    is_internal: bool = False


class SuggestResponseRequest(BaseModel):
    customer_message: str = ""
    is_internal: bool = False


class SuggestResponseResponse(BaseModel):
    ticket_id: int
    suggested_response: str
    is_internal: bool


# Endpoints

@router.post("", response_model=Ticket, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: CreateTicketRequest,
    actor_id: int = Depends(get_actor_id),
    service: TicketService = Depends(get_ticket_service)
):
    """
    Create a ticket and run intelligent processing on it.

    Example:
        >>> POST /api/tickets
        >>> Headers: X-User-ID: 42
        >>> {
        ...     "title": "Cannot log in",
        ...     "description": "Password reset email never arrives",
        ...     "business_impact": {"blocking_level": 3, "impact_scope": 2}
        ... }
    """
    data = TicketCreate(customer_id=actor_id, **request.model_dump())
    return await service.create_ticket(data)


@router.get("", response_model=List[Ticket])
async def list_tickets(
    actor_id: int = Depends(get_actor_id),
    service: TicketService = Depends(get_ticket_service)
):
    """Tickets visible to the acting user (own, assigned, or all for admins)"""
    return await service.get_tickets_for_user(actor_id)


@router.get("/{ticket_id}", response_model=Ticket)
async def get_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    return await service.get_ticket(ticket_id)


@router.get("/{ticket_id}/history", response_model=List[TicketHistory])
async def get_history(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    return await service.get_history(ticket_id)


@router.get("/{ticket_id}/insights", response_model=List[AIInsight])
async def get_insights(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    return await service.get_insights(ticket_id)


@router.get("/{ticket_id}/comments", response_model=List[TicketComment])
async def get_comments(
    ticket_id: int,
    actor_id: int = Depends(get_actor_id),
    service: TicketService = Depends(get_ticket_service)
):
    return await service.get_comments(ticket_id, actor_id)


@router.post(
    "/{ticket_id}/comments",
    response_model=TicketComment,
    status_code=status.HTTP_201_CREATED
)
async def add_comment(
    ticket_id: int,
    request: CommentRequest,
    actor_id: int = Depends(get_actor_id),
    service: TicketService = Depends(get_ticket_service)
):
    """
    Add a comment as the acting user.

    Example:
        >>> POST /api/tickets/7/comments
        >>> Headers: X-User-ID: 10
        >>> {"comment": "Checked the logs, restarting the sync job", "is_internal": true}
    """
    return await service.add_comment(ticket_id, actor_id, request.comment, request.is_internal)


@router.post("/{ticket_id}/analyze", response_model=AnalysisResult)
async def analyze_ticket(
    ticket_id: int,
    actor_id: int = Depends(get_actor_id),
    service: TicketService = Depends(get_ticket_service)
):
    """Re-run analysis with the ticket's stored business impact"""
    return await service.reanalyze_ticket(ticket_id, actor_id)


@router.patch("/{ticket_id}/status", response_model=Ticket)
async def update_status(
    ticket_id: int,
    request: StatusUpdateRequest,
    actor_id: int = Depends(get_actor_id),
    service: TicketService = Depends(get_ticket_service)
):
    return await service.update_status(ticket_id, request.status, actor_id)


@router.patch("/{ticket_id}/priority", response_model=Ticket)
async def update_priority(
    ticket_id: int,
    request: PriorityUpdateRequest,
    actor_id: int = Depends(get_actor_id),
    service: TicketService = Depends(get_ticket_service)
):
    return await service.update_priority(ticket_id, request.priority, actor_id)


@router.post("/{ticket_id}/assign", response_model=Ticket)
async def assign_ticket(
    ticket_id: int,
    request: AssignRequest,
    actor_id: int = Depends(get_actor_id),
    service: TicketService = Depends(get_ticket_service)
):
    return await service.assign_ticket(ticket_id, request.agent_id, actor_id)


@router.get("/{ticket_id}/suggest-agent", response_model=Optional[AgentSuggestion])
async def suggest_agent(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    """Preview the agent the assignment engine would pick (null if none active)"""
    return await service.suggest_best_agent(ticket_id)


@router.post("/{ticket_id}/suggest-response", response_model=SuggestResponseResponse)
async def suggest_response(
    ticket_id: int,
    request: SuggestResponseRequest,
    service: TicketService = Depends(get_ticket_service)
):
    text = await service.suggest_response(ticket_id, request.customer_message, request.is_internal)
    return SuggestResponseResponse(
        ticket_id=ticket_id,
        suggested_response=text,
        is_internal=request.is_internal,
    )
