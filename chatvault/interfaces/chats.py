"""Chat repository interface."""

from typing import List, Optional, Protocol

from chatvault.domain.chats.models import Chat, ChatSummary, HistoryEntry


class ChatRepository(Protocol):
    """
    Port for chat and chat-index storage.

    Every method that touches a specific chat is addressed by the
    (chat id, owner id) pair so that ownership is checked in the same
    step as the read or write.
    """

    def create_chat(self, user_id: str, first_entry: HistoryEntry, title: str) -> Chat:
        """
        Create a chat seeded with ``first_entry`` and record its summary
        in the owner's chat index, as one atomic unit.

        Returns:
            The created chat
        """
        ...

    def list_user_chats(self, user_id: str) -> List[ChatSummary]:
        """
        Return the owner's chat summaries in creation order.

        Returns:
            Summaries, or an empty list when the user has no index yet
        """
        ...

    def get_chat(self, chat_id: str, user_id: str) -> Optional[Chat]:
        """
        Fetch a chat owned by ``user_id``.

        Returns:
            The chat, or None if absent or owned by someone else
        """
        ...

    def append_entries(self, chat_id: str, user_id: str, entries: List[HistoryEntry]) -> int:
        """
        Append ``entries`` to the chat history atomically.

        Returns:
            Number of entries appended (0 when no chat matched)
        """
        ...
