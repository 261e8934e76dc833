"""Tables for chats, their messages and the per-user chat index.

Keys are uuid strings and message parts are stored as JSON text so the same
schema runs on DuckDB and PostgreSQL. There are no foreign keys; the
repository checks that every index entry points at a chat with the same owner.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for the chat tables."""
    pass


def _uuid_default():
    return str(uuid.uuid4())


def _now_utc():
    return datetime.now(timezone.utc)


class ChatRecord(Base):
    """A chat owned by one user. ``message_count`` is the next free sequence number."""

    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, default=_uuid_default)
    user_id = Column(String(255), nullable=False, index=True)
    message_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now_utc, nullable=False)


class ChatMessageRecord(Base):
    """One history entry. ``parts_json`` holds the ordered ``[{"text": ...}]`` list."""

    __tablename__ = "chat_messages"

    id = Column(String(36), primary_key=True, default=_uuid_default)
    chat_id = Column(String(36), nullable=False, index=True)
    sequence_number = Column(Integer, nullable=False)
    role = Column(String(20), nullable=False)
    parts_json = Column(Text, nullable=False)
    img = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint("chat_id", "sequence_number", name="uq_chat_message_seq"),
    )


class UserChatsRecord(Base):
    """Per-user chat index header; at most one row per user."""

    __tablename__ = "user_chats"

    id = Column(String(36), primary_key=True, default=_uuid_default)
    user_id = Column(String(255), nullable=False, unique=True)
    entry_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now_utc, nullable=False)


class UserChatEntryRecord(Base):
    """A chat summary inside a user's index."""

    __tablename__ = "user_chat_entries"

    id = Column(String(36), primary_key=True, default=_uuid_default)
    user_chats_id = Column(String(36), nullable=False, index=True)
    chat_id = Column(String(36), nullable=False)
    title = Column(String(40), nullable=False)
    sequence_number = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_chats_id", "sequence_number", name="uq_user_chat_entry_seq"),
    )
