from .models import (
    TITLE_MAX_LENGTH,
    AppendChatRequest,
    AppendChatResponse,
    Chat,
    ChatSummary,
    CreateChatRequest,
    CreateChatResponse,
    HistoryEntry,
    MessagePart,
    build_append_batch,
    build_initial_entry,
    make_title,
)

__all__ = [
    "TITLE_MAX_LENGTH",
    "AppendChatRequest",
    "AppendChatResponse",
    "Chat",
    "ChatSummary",
    "CreateChatRequest",
    "CreateChatResponse",
    "HistoryEntry",
    "MessagePart",
    "build_append_batch",
    "build_initial_entry",
    "make_title",
]
