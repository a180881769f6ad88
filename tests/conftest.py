import pytest

from api.features.conversation.policy import AccessPolicy
from api.features.conversation.service import ConversationStore, MessageStore
from api.shared.entities.registry import metadata
from core.settings import ConversationSettings
from infra.resources import DatabaseResource


@pytest.fixture
async def database(tmp_path):
    db = DatabaseResource(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await db.init()
    await db.create_schema(metadata)
    yield db
    await db.shutdown()


@pytest.fixture
def conversation_settings():
    # Small batches so streams cross page boundaries in tests
    return ConversationSettings(STREAM_BATCH_SIZE=2)


@pytest.fixture
def policy():
    return AccessPolicy()


@pytest.fixture
def conversations(database, policy, conversation_settings):
    return ConversationStore(database, policy, settings=conversation_settings)


@pytest.fixture
def messages(database, policy, conversation_settings):
    return MessageStore(database, policy, settings=conversation_settings)
