from .in_memory_repository import InMemoryChatRepository

__all__ = ["InMemoryChatRepository"]
