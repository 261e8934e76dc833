"""Chat domain models.

Wire field names follow the frontend contract (camelCase: ``userId``,
``chatId``, ``createdAt``); Python attribute names stay snake_case.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from chatvault.domain.errors import ValidationError

TITLE_MAX_LENGTH = 40

Role = Literal["user", "model"]


class MessagePart(BaseModel):
    """One text fragment of a history entry."""
    text: str


class HistoryEntry(BaseModel):
    """A single message turn. ``img`` is only ever set on user entries."""

    model_config = ConfigDict(frozen=True)

    role: Role
    parts: List[MessagePart]
    img: Optional[str] = None


class Chat(BaseModel):
    """A persisted conversation with its append-only history."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(serialization_alias="userId")
    history: List[HistoryEntry] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")


class ChatSummary(BaseModel):
    """Entry of a user's chat index."""

    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(serialization_alias="chatId")
    title: str
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")


class CreateChatRequest(BaseModel):
    text: Optional[str] = None


class CreateChatResponse(BaseModel):
    chatId: str


class AppendChatRequest(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None
    img: Optional[str] = None


class AppendChatResponse(BaseModel):
    acknowledged: bool = True
    modifiedCount: int
    appended: int


def make_title(text: str) -> str:
    """Chat-list title: the first 40 characters of the opening message."""
    return text[:TITLE_MAX_LENGTH]


def build_initial_entry(text: Optional[str]) -> HistoryEntry:
    """Validate the opening message and wrap it as the first user entry."""
    if not isinstance(text, str) or text == "":
        raise ValidationError("Field 'text' is required", code="VALIDATION_ERROR")
    return HistoryEntry(role="user", parts=[MessagePart(text=text)])


def build_append_batch(
    answer: Optional[str],
    question: Optional[str] = None,
    img: Optional[str] = None,
) -> List[HistoryEntry]:
    """Build the entries appended by one update.

    Yields an optional user entry (only when ``question`` is non-empty,
    carrying ``img`` if given) followed by exactly one model entry.
    """
    if not isinstance(answer, str):
        raise ValidationError("Field 'answer' is required", code="VALIDATION_ERROR")

    batch: List[HistoryEntry] = []
    if question:
        batch.append(HistoryEntry(role="user", parts=[MessagePart(text=question)], img=img or None))
    batch.append(HistoryEntry(role="model", parts=[MessagePart(text=answer)]))
    return batch
