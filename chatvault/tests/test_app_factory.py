from chatvault.core.upload_auth import UploadAuthSigner
from chatvault.infrastructure.app_factory import AppFactory
from chatvault.infrastructure.chats import InMemoryChatRepository
from chatvault.modules.chat_history import SQLChatRepository
from chatvault.modules.chat_history.database import reset_engine
from chatvault.modules.config import AppSettings, ConfigManager


def _factory(**overrides):
    return AppFactory(ConfigManager(AppSettings(_env_file=None, **overrides)))


def test_in_memory_repository_selected():
    factory = _factory(use_in_memory_store=True)
    factory.initialize_storage()
    repo = factory.get_chat_repository()
    assert isinstance(repo, InMemoryChatRepository)
    assert factory.get_chat_repository() is repo


def test_sql_repository_selected(tmp_path):
    reset_engine()
    try:
        factory = _factory(use_in_memory_store=False, chat_db_url=f"duckdb:///{tmp_path / 'f.db'}")
        factory.initialize_storage()
        assert isinstance(factory.get_chat_repository(), SQLChatRepository)
    finally:
        reset_engine()


def test_upload_signer_from_settings():
    factory = _factory(
        image_kit_private_key="priv", image_kit_public_key="pub", upload_token_ttl_seconds=600,
    )
    signer = factory.get_upload_signer()
    assert isinstance(signer, UploadAuthSigner)
    assert signer.configured
    assert signer.public_key == "pub"
    assert signer.ttl_seconds == 600
