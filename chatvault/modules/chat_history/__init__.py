"""Chat persistence module using SQLAlchemy with DuckDB/PostgreSQL."""

from .chat_repository import SQLChatRepository
from .database import connect_with_retry, get_engine, get_session_factory, init_database
from .models import Base, ChatMessageRecord, ChatRecord, UserChatEntryRecord, UserChatsRecord

__all__ = [
    "connect_with_retry",
    "get_engine",
    "get_session_factory",
    "init_database",
    "SQLChatRepository",
    "Base",
    "ChatRecord",
    "ChatMessageRecord",
    "UserChatsRecord",
    "UserChatEntryRecord",
]
