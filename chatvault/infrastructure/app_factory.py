"""Application factory for dependency injection and wiring."""

import logging
from typing import Optional

from chatvault.core.upload_auth import UploadAuthSigner
from chatvault.infrastructure.chats.in_memory_repository import InMemoryChatRepository
from chatvault.interfaces.chats import ChatRepository
from chatvault.modules.chat_history import SQLChatRepository, connect_with_retry, get_engine, get_session_factory
from chatvault.modules.config import ConfigManager, config_manager as default_config_manager

logger = logging.getLogger(__name__)


class AppFactory:
    """Application factory that wires dependencies (simple in-memory DI).

    The chat repository is built on first use so importing the app never
    touches the database; ``initialize_storage`` is called from the lifespan.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None) -> None:
        self.config_manager = config_manager or default_config_manager
        self._chat_repository: Optional[ChatRepository] = None
        self._upload_signer: Optional[UploadAuthSigner] = None
        logger.info("AppFactory initialized")

    def initialize_storage(self) -> None:
        """Connect to the chat database with bounded retry.

        Raises DatabaseConnectionError once the retries are exhausted.
        """
        settings = self.config_manager.app_settings
        if settings.use_in_memory_store:
            logger.info("Using in-memory chat store (USE_IN_MEMORY_STORE=true)")
            return
        connect_with_retry(
            settings.chat_db_url,
            max_retries=settings.db_connect_max_retries,
            base_interval=settings.db_connect_retry_interval,
            max_interval=settings.db_connect_retry_max_interval,
            multiplier=settings.db_connect_backoff_multiplier,
        )

    def get_chat_repository(self) -> ChatRepository:
        if self._chat_repository is None:
            settings = self.config_manager.app_settings
            if settings.use_in_memory_store:
                self._chat_repository = InMemoryChatRepository()
            else:
                self._chat_repository = SQLChatRepository(
                    get_session_factory(get_engine(settings.chat_db_url))
                )
            logger.info("Chat repository: %s", type(self._chat_repository).__name__)
        return self._chat_repository

    def get_upload_signer(self) -> UploadAuthSigner:
        if self._upload_signer is None:
            settings = self.config_manager.app_settings
            self._upload_signer = UploadAuthSigner(
                private_key=settings.image_kit_private_key,
                public_key=settings.image_kit_public_key,
                url_endpoint=settings.image_kit_endpoint,
                ttl_seconds=settings.upload_token_ttl_seconds,
            )
            if not self._upload_signer.configured:
                logger.warning("IMAGE_KIT_PRIVATE_KEY is not set; /api/upload will fail")
        return self._upload_signer

    # Accessors
    def get_config_manager(self) -> ConfigManager:  # noqa: D401
        return self.config_manager


# Global instance used by the FastAPI dependencies
app_factory = AppFactory()
