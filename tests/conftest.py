"""
Test configuration and shared fixtures for mockgram.

Provides fixtures for:
- Settings from .env.test
- A dispatcher with in-memory FSM storage
- A running fake server with an aiogram Bot pointed at it
- Update builders
"""
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# =============================================================================
# LOAD TEST ENVIRONMENT (.env.test)
# =============================================================================

env_test_path = Path(__file__).parent.parent / ".env.test"
if env_test_path.exists():
    load_dotenv(env_test_path, override=True)

import pytest
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage

from mockgram import MockSettings, UpdateBuilder, get_settings, make_bot, setup_logging
from mockgram.server.manager import ServerManager
from mockgram.store.entities import BotProfile
from mockgram.store.state import State

setup_logging()


# =============================================================================
# BASE FIXTURES
# =============================================================================


@pytest.fixture
def settings() -> MockSettings:
    """Load settings from .env.test."""
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def simple_dispatcher(storage: MemoryStorage) -> Dispatcher:
    """Create a simple dispatcher for testing."""
    return Dispatcher(storage=storage)


@pytest.fixture
def builder(settings: MockSettings) -> UpdateBuilder:
    return UpdateBuilder(settings=settings)


@pytest.fixture
def group_builder(settings: MockSettings) -> UpdateBuilder:
    return UpdateBuilder(chat_id=-1001234567890, chat_type="supergroup", settings=settings)


# =============================================================================
# FAKE SERVER
# =============================================================================


@dataclass
class FakeApi:
    """A listening fake server plus a Bot that talks to it."""

    state: State
    manager: ServerManager
    bot: Bot

    @property
    def url(self) -> str:
        return self.manager.url


@pytest.fixture
async def fake_api(settings: MockSettings):
    state = State()
    manager = ServerManager(BotProfile.from_settings(settings), state)
    await manager.start()
    bot = make_bot(settings.bot_token, manager.url)
    yield FakeApi(state=state, manager=manager, bot=bot)
    await bot.session.close()
    await manager.stop()
