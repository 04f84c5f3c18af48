"""
Data access layer
"""
from .base_repository import BaseRepository
from .ticket_repository import TicketRepository
from .user_repository import UserRepository
from .category_repository import CategoryRepository
from .history_repository import HistoryRepository
from .insight_repository import InsightRepository
from .comment_repository import CommentRepository
from .data_store import DataStore, SupabaseDataStore, create_data_store
from .memory_store import MemoryStore

__all__ = [
    "BaseRepository",
    "TicketRepository",
    "UserRepository",
    "CategoryRepository",
    "HistoryRepository",
    "InsightRepository",
    "CommentRepository",
    "DataStore",
    "SupabaseDataStore",
    "create_data_store",
    "MemoryStore",
]
