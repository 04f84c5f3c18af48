"""
Shared route dependencies
"""
from functools import lru_cache

from fastapi import Header

from helpdesk.config import get_settings
from helpdesk.repositories.data_store import create_data_store
from helpdesk.services.ticket_service import TicketService


@lru_cache()
def get_ticket_service() -> TicketService:
    """Process-wide service over the configured data store"""
    settings = get_settings()
    return TicketService(create_data_store(settings), settings=settings)


def get_actor_id(user_id: int = Header(..., alias="X-User-ID")) -> int:
    """Acting user, supplied by the caller (identity is handled upstream)"""
    return user_id
