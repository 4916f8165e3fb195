import os
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent

IS_TEST_MODE = os.getenv("ENV") == "test"


class MockSettings(BaseSettings):
    # Token prefix is the bot user id, aiogram derives Bot.id from it
    bot_token: str = "1234567890:QWERTYUIOPASDFGHJKLZXCVBNMQWERTYUIO"
    bot_first_name: str = "Bot"
    bot_username: str = "test_bot"
    bot_can_join_groups: bool = True
    bot_can_read_all_group_messages: bool = False
    bot_supports_inline_queries: bool = False

    host: str = "127.0.0.1"

    # Environment variables exported while a MockBot is dispatching
    token_env_var: str = "BOT_TOKEN"
    api_url_env_var: str = "TELEGRAM_API_URL"

    log_level: str = "WARNING"
    rich_tracebacks: bool = True

    class Config:
        env_prefix = "MOCKGRAM_"
        env_file = BASE_DIR / (".env.test" if IS_TEST_MODE else ".env")
        case_sensitive = False
        extra = "ignore"

    @property
    def bot_id(self) -> int:
        return int(self.bot_token.split(":", 1)[0])


@lru_cache
def get_settings() -> MockSettings:
    return MockSettings()
