"""Repository for chat persistence operations.

Handles chat creation, the per-user chat index, ownership-checked reads and
append-only history updates. Referential integrity is enforced here rather
than via database FK constraints for DuckDB compatibility.
"""

import json
import logging
import random
import threading
import time
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from chatvault.domain.chats.models import Chat, ChatSummary, HistoryEntry, MessagePart

from .database import calculate_backoff_delay
from .models import ChatMessageRecord, ChatRecord, UserChatEntryRecord, UserChatsRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Attempts for a write that loses a race on a unique key or a write-write conflict
WRITE_ATTEMPTS = 5
RETRY_BASE_INTERVAL = 0.05
RETRY_MAX_INTERVAL = 1.0
RETRY_JITTER = 0.05


class SQLChatRepository:
    """SQLAlchemy implementation of the ChatRepository port.

    DuckDB rejects concurrent writers with "Conflict on update" instead of
    blocking, so writes on that dialect are serialized within the process.
    Other dialects rely on row locks plus the bounded retry.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._session_factory = session_factory
        self._sleep = sleep
        bind = session_factory.kw.get("bind")
        dialect = bind.dialect.name if bind is not None else ""
        self._write_lock = threading.Lock() if dialect == "duckdb" else None

    def _get_session(self) -> Session:
        return self._session_factory()

    def _retry_delay(self, attempt: int) -> float:
        delay = calculate_backoff_delay(attempt, RETRY_BASE_INTERVAL, RETRY_MAX_INTERVAL, 2.0)
        return delay + random.uniform(0, RETRY_JITTER)

    def _run_in_transaction(self, operation: str, work: Callable[[Session], T]) -> T:
        """Run ``work`` in its own transaction, retrying with backoff when a
        concurrent writer wins a unique-key race."""
        for attempt in range(1, WRITE_ATTEMPTS + 1):
            with self._write_lock or nullcontext():
                with self._get_session() as session:
                    try:
                        result = work(session)
                        session.commit()
                        return result
                    except (IntegrityError, OperationalError) as e:
                        session.rollback()
                        if attempt == WRITE_ATTEMPTS:
                            raise
                        logger.warning(
                            "%s lost a write race (attempt %d/%d): %s",
                            operation, attempt, WRITE_ATTEMPTS, e.__class__.__name__,
                        )
            self._sleep(self._retry_delay(attempt))
        raise RuntimeError("unreachable")

    def create_chat(self, user_id: str, first_entry: HistoryEntry, title: str) -> Chat:
        """Insert the chat and upsert the owner's index in one transaction."""

        def work(session: Session) -> Chat:
            now = datetime.now(timezone.utc)
            chat = ChatRecord(user_id=user_id, message_count=1, created_at=now, updated_at=now)
            session.add(chat)
            session.flush()
            session.add(_entry_to_record(chat.id, 0, first_entry, now))

            index = session.query(UserChatsRecord).filter(
                UserChatsRecord.user_id == user_id,
            ).first()
            if index is None:
                index = UserChatsRecord(user_id=user_id, entry_count=1, created_at=now, updated_at=now)
                session.add(index)
                session.flush()
                position = 0
            else:
                position = index.entry_count
                index.entry_count = position + 1
                index.updated_at = now

            session.add(UserChatEntryRecord(
                user_chats_id=index.id,
                chat_id=chat.id,
                title=title,
                sequence_number=position,
                created_at=now,
            ))
            session.flush()
            return Chat(
                id=chat.id,
                user_id=user_id,
                history=[first_entry],
                created_at=now,
                updated_at=now,
            )

        chat = self._run_in_transaction("create_chat", work)
        logger.debug("Created chat %s", chat.id)
        return chat

    def list_user_chats(self, user_id: str) -> List[ChatSummary]:
        """Return the user's chat summaries in creation order."""
        with self._get_session() as session:
            index = session.query(UserChatsRecord).filter(
                UserChatsRecord.user_id == user_id,
            ).first()
            if index is None:
                return []

            entries = session.query(UserChatEntryRecord).filter(
                UserChatEntryRecord.user_chats_id == index.id,
            ).order_by(UserChatEntryRecord.sequence_number).all()

            return [
                ChatSummary(chat_id=e.chat_id, title=e.title, created_at=e.created_at)
                for e in entries
            ]

    def get_chat(self, chat_id: str, user_id: str) -> Optional[Chat]:
        """Get a chat with its full history, only if ``user_id`` owns it."""
        with self._get_session() as session:
            chat = session.query(ChatRecord).filter(
                ChatRecord.id == chat_id,
                ChatRecord.user_id == user_id,
            ).first()
            if chat is None:
                return None

            msgs = session.query(ChatMessageRecord).filter(
                ChatMessageRecord.chat_id == chat_id,
            ).order_by(ChatMessageRecord.sequence_number).all()

            return Chat(
                id=chat.id,
                user_id=chat.user_id,
                history=[_record_to_entry(m) for m in msgs],
                created_at=chat.created_at,
                updated_at=chat.updated_at,
            )

    def append_entries(self, chat_id: str, user_id: str, entries: List[HistoryEntry]) -> int:
        """Append a batch to the chat history. Returns 0 if no chat matched
        the (chat id, owner) pair."""
        if not entries:
            return 0

        def work(session: Session) -> int:
            query = session.query(ChatRecord).filter(
                ChatRecord.id == chat_id,
                ChatRecord.user_id == user_id,
            )
            if session.get_bind().dialect.name == "postgresql":
                query = query.with_for_update()
            chat = query.first()
            if chat is None:
                return 0

            now = datetime.now(timezone.utc)
            start = chat.message_count
            for offset, entry in enumerate(entries):
                session.add(_entry_to_record(chat_id, start + offset, entry, now))
            chat.message_count = start + len(entries)
            chat.updated_at = now
            session.flush()
            return len(entries)

        return self._run_in_transaction("append_entries", work)


def _entry_to_record(chat_id: str, sequence_number: int, entry: HistoryEntry, now: datetime) -> ChatMessageRecord:
    return ChatMessageRecord(
        chat_id=chat_id,
        sequence_number=sequence_number,
        role=entry.role,
        parts_json=json.dumps([p.model_dump() for p in entry.parts]),
        img=entry.img,
        created_at=now,
    )


def _record_to_entry(record: ChatMessageRecord) -> HistoryEntry:
    try:
        parts = [MessagePart(**p) for p in json.loads(record.parts_json)]
    except (json.JSONDecodeError, TypeError):
        logger.warning("Corrupt parts_json for message %s", record.id)
        parts = []
    return HistoryEntry(role=record.role, parts=parts, img=record.img)
