"""Ports implemented by the persistence adapters."""

from .chats import ChatRepository

__all__ = ["ChatRepository"]
