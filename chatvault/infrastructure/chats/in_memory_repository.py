"""In-memory chat repository implementation."""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from chatvault.domain.chats.models import Chat, ChatSummary, HistoryEntry

logger = logging.getLogger(__name__)


class InMemoryChatRepository:
    """
    In-memory implementation of ChatRepository.

    Keeps chats and chat indexes in dictionaries guarded by a lock, so each
    operation is atomic within the process. Suitable for tests and
    single-instance development; data is lost on restart.
    """

    def __init__(self):
        self._chats: Dict[str, Chat] = {}
        self._indexes: Dict[str, List[ChatSummary]] = {}
        self._lock = threading.Lock()

    def create_chat(self, user_id: str, first_entry: HistoryEntry, title: str) -> Chat:
        now = datetime.now(timezone.utc)
        chat = Chat(
            id=str(uuid.uuid4()),
            user_id=user_id,
            history=[first_entry],
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._chats[chat.id] = chat
            self._indexes.setdefault(user_id, []).append(
                ChatSummary(chat_id=chat.id, title=title, created_at=now)
            )
        logger.debug("Created chat %s", chat.id)
        return chat.model_copy(deep=True)

    def list_user_chats(self, user_id: str) -> List[ChatSummary]:
        with self._lock:
            return [s.model_copy() for s in self._indexes.get(user_id, [])]

    def get_chat(self, chat_id: str, user_id: str) -> Optional[Chat]:
        with self._lock:
            chat = self._chats.get(chat_id)
            if chat is None or chat.user_id != user_id:
                return None
            return chat.model_copy(deep=True)

    def append_entries(self, chat_id: str, user_id: str, entries: List[HistoryEntry]) -> int:
        if not entries:
            return 0
        with self._lock:
            chat = self._chats.get(chat_id)
            if chat is None or chat.user_id != user_id:
                return 0
            chat.history.extend(entries)
            chat.updated_at = datetime.now(timezone.utc)
            return len(entries)
