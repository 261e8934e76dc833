"""REST API routes for chats and the per-user chat list."""

import logging
from typing import List

from fastapi import APIRouter, Depends

from chatvault.core.log_sanitizer import get_current_user, sanitize_for_logging
from chatvault.core.metrics_logger import CHAT_APPENDED, CHAT_CREATED, ERROR, log_metric
from chatvault.domain.chats.models import (
    AppendChatRequest,
    AppendChatResponse,
    Chat,
    ChatSummary,
    CreateChatRequest,
    CreateChatResponse,
    build_append_batch,
    build_initial_entry,
    make_title,
)
from chatvault.domain.errors import ChatNotFoundError
from chatvault.interfaces.chats import ChatRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chats"])


def get_chat_repository() -> ChatRepository:
    """Get the chat repository from the app factory."""
    from chatvault.infrastructure.app_factory import app_factory
    return app_factory.get_chat_repository()


@router.post("/chats", status_code=201, response_model=CreateChatResponse)
async def create_chat(
    body: CreateChatRequest,
    current_user: str = Depends(get_current_user),
    repo: ChatRepository = Depends(get_chat_repository),
):
    """Start a chat from its opening message and add it to the user's chat list."""
    first_entry = build_initial_entry(body.text)
    chat = repo.create_chat(current_user, first_entry, make_title(body.text))

    logger.info(
        "Created chat %s for user %s",
        sanitize_for_logging(chat.id), sanitize_for_logging(current_user),
    )
    log_metric(CHAT_CREATED, current_user, chat_id=chat.id)
    return CreateChatResponse(chatId=chat.id)


@router.get("/userchats", response_model=List[ChatSummary])
async def list_user_chats(
    current_user: str = Depends(get_current_user),
    repo: ChatRepository = Depends(get_chat_repository),
):
    """List the user's chat summaries in creation order."""
    return repo.list_user_chats(current_user)


@router.get("/chats/{chat_id}", response_model=Chat, response_model_exclude_none=True)
async def get_chat(
    chat_id: str,
    current_user: str = Depends(get_current_user),
    repo: ChatRepository = Depends(get_chat_repository),
):
    """Get a chat with its full history."""
    chat = repo.get_chat(chat_id, current_user)
    if chat is None:
        log_metric(ERROR, current_user, error_type="chat_not_found")
        raise ChatNotFoundError("Chat not found", code="CHAT_NOT_FOUND")
    return chat


@router.put("/chats/{chat_id}", response_model=AppendChatResponse)
async def append_to_chat(
    chat_id: str,
    body: AppendChatRequest,
    current_user: str = Depends(get_current_user),
    repo: ChatRepository = Depends(get_chat_repository),
):
    """Append an optional question (with image) and the model's answer."""
    batch = build_append_batch(body.answer, question=body.question, img=body.img)
    appended = repo.append_entries(chat_id, current_user, batch)
    if appended == 0:
        log_metric(ERROR, current_user, error_type="chat_not_found")
        raise ChatNotFoundError("Chat not found", code="CHAT_NOT_FOUND")

    logger.debug(
        "Appended %d entries to chat %s", appended, sanitize_for_logging(chat_id),
    )
    log_metric(CHAT_APPENDED, current_user, chat_id=chat_id, entries=appended)
    return AppendChatResponse(modifiedCount=1, appended=appended)
