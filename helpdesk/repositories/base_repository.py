"""
Base Repository

Shared Supabase plumbing for the table repositories: client construction,
running blocking queries off the event loop, and mapping backend failures to
PersistenceError.
"""
import asyncio
from typing import Any, Callable, Optional, TypeVar

from helpdesk.config import get_settings
from helpdesk.utils.errors import HelpdeskError, PersistenceError
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

T = TypeVar("T")


class BaseRepository:
    """
    Base repository class for Supabase tables.

    All repositories inherit from this class so every query goes through
    `_run`, which keeps error reporting consistent.
    """

    table_name: str = ""

    def __init__(self, supabase_client=None) -> None:
        if supabase_client is None:
            from supabase import create_client  # Lazy import for tests

            self.client = create_client(
                settings.supabase_url,
                settings.supabase_key
            )
        else:
            self.client = supabase_client

    def table(self):
        return self.client.table(self.table_name)

    async def _run(self, operation: str, query: Callable[[], T]) -> T:
        """
        Execute a blocking Supabase call in a worker thread.

        Args:
            operation: Description used in logs and errors
            query: Zero-argument callable performing the request

        Raises:
            HelpdeskError subclasses unchanged (e.g. NotFoundError)
            PersistenceError: For any other backend failure
        """
        try:
            return await asyncio.to_thread(query)
        except HelpdeskError:
            raise
        except Exception as e:
            self._handle_error(operation, e)

    def _handle_error(self, operation: str, error: Exception):
        """
        Centralized error handling for repository operations.

        Raises:
            PersistenceError wrapping the original exception
        """
        logger.error(f"Repository error during {operation}: {error}")
        raise PersistenceError(operation, error) from error

    @staticmethod
    def _first(response) -> Optional[dict]:
        rows = getattr(response, "data", None) or []
        return rows[0] if rows else None

    @staticmethod
    def _rows(response) -> list:
        return list(getattr(response, "data", None) or [])

    @staticmethod
    def _count(response) -> int:
        count: Any = getattr(response, "count", None)
        return int(count or 0)
