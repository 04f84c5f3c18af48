"""
AI analysis routes (non-persisting)
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from helpdesk.models.pipeline import AnalysisPreview
from helpdesk.routes.dependencies import get_ticket_service
from helpdesk.services.ticket_service import TicketService

router = APIRouter(prefix="/api/ai", tags=["ai"])


class CategorizeRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""


@router.post("/categorize", response_model=AnalysisPreview)
async def categorize(
    request: CategorizeRequest,
    service: TicketService = Depends(get_ticket_service)
):
    """Suggested category, priority and sentiment for unsaved ticket text"""
    return await service.intelligence.preview(request.title, request.description)
