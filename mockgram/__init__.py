"""Stateful fake of the Telegram Bot API for testing aiogram bots."""
from mockgram.bot import MockBot, bot_from_env, make_bot, run
from mockgram.config import MockSettings, get_settings
from mockgram.exceptions import (
    DialogueStorageNotFoundError,
    MockBotNotStartedError,
    MockgramError,
    NoChatIdError,
    ServerStateError,
    UnknownEditedMessageError,
)
from mockgram.log import setup_logging
from mockgram.responses import Responses
from mockgram.updates import UpdateBuilder

__all__ = [
    "DialogueStorageNotFoundError",
    "MockBot",
    "MockBotNotStartedError",
    "MockSettings",
    "MockgramError",
    "NoChatIdError",
    "Responses",
    "ServerStateError",
    "UnknownEditedMessageError",
    "UpdateBuilder",
    "bot_from_env",
    "get_settings",
    "make_bot",
    "run",
    "setup_logging",
]
