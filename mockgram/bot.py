"""
High-level test driver.

MockBot feeds queued updates through an aiogram Dispatcher whose Bot talks
to a fresh fake server, then exposes what the pipeline did.
"""
import asyncio
import inspect
import itertools
import logging
import os
from functools import partial
from typing import Any, Awaitable, Callable

from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.client.telegram import TelegramAPIServer
from aiogram.types import CallbackQuery, Message, Update
from dishka import AsyncContainer

from mockgram.config import MockSettings, get_settings
from mockgram.dialogue import DialogueStore, StateLike, state_name
from mockgram.distribution import (
    DistributionFunction,
    default_distribution_key,
    find_chat_id,
    find_user_id,
    run_partitioned,
)
from mockgram.exceptions import MockBotNotStartedError, MockgramError, NoChatIdError, UnknownEditedMessageError
from mockgram.locking import ACTIVE_BOT_LOCK
from mockgram.responses import Responses
from mockgram.server.manager import ServerManager
from mockgram.store.entities import BotProfile, StoredMessage, utcnow
from mockgram.store.state import State

logger = logging.getLogger("mockgram.bot")

ErrorHandler = Callable[[Exception], Awaitable[None] | None]
UpdateLike = Update | Message | CallbackQuery

FIRST_UPDATE_ID = 42

_NEW_MESSAGE_EVENTS = ("message", "channel_post", "business_message")
_EDITED_MESSAGE_EVENTS = ("edited_message", "edited_channel_post", "edited_business_message")


def make_bot(token: str, api_url: str) -> Bot:
    """aiogram Bot whose requests go to ``api_url`` instead of api.telegram.org."""
    session = AiohttpSession(api=TelegramAPIServer.from_base(api_url))
    return Bot(token=token, session=session)


def bot_from_env(settings: MockSettings | None = None) -> Bot:
    """Bot built from the variables a dispatching MockBot exports.

    Lets pipeline code create its own Bot the way it would in production.
    """
    settings = settings or get_settings()
    try:
        token = os.environ[settings.token_env_var]
        api_url = os.environ[settings.api_url_env_var]
    except KeyError as exc:
        raise MockgramError(f"{exc.args[0]} is not set; is a MockBot dispatching?") from exc
    return make_bot(token, api_url)


class MockBot:
    """
    Test driver for an aiogram Dispatcher.

    Usage:
        async with MockBot(dp, builder.make_message_update("hi")) as bot:
            await bot.dispatch()
            assert bot.get_responses().sent_messages[-1].text == "hi"
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        *updates: UpdateLike,
        dependencies: AsyncContainer | None = None,
        distribution_function: DistributionFunction = default_distribution_key,
        error_handler: ErrorHandler | None = None,
        me: BotProfile | None = None,
        settings: MockSettings | None = None,
        **workflow_data: Any,
    ) -> None:
        self.dispatcher = dispatcher
        self.dependencies = dependencies
        self.distribution_function = distribution_function
        self.error_handler = error_handler
        self.settings = settings or get_settings()
        self.me = me or BotProfile.from_settings(self.settings)
        self.workflow_data = workflow_data

        self._update_ids = itertools.count(FIRST_UPDATE_ID)
        self.updates: list[Update] = [self._as_update(u) for u in updates]
        self._state = State()
        self._active = False
        self._saved_env: dict[str, str | None] = {}

    async def __aenter__(self) -> "MockBot":
        """Wait until no other MockBot is active, then take over."""
        await asyncio.to_thread(ACTIVE_BOT_LOCK.acquire, self)
        self._active = True
        logger.debug("MockBot active")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            self._restore_env()
        finally:
            self._active = False
            ACTIVE_BOT_LOCK.release(self)
            logger.debug("MockBot released")

    def _ensure_active(self) -> None:
        if not self._active:
            raise MockBotNotStartedError("MockBot not started. Use 'async with' context.")

    # =========================================================================
    # Updates
    # =========================================================================

    def _as_update(self, event: UpdateLike) -> Update:
        if isinstance(event, Update):
            return event
        if isinstance(event, Message):
            return Update(update_id=next(self._update_ids), message=event)
        if isinstance(event, CallbackQuery):
            return Update(update_id=next(self._update_ids), callback_query=event)
        raise TypeError(f"Cannot dispatch {type(event).__name__}")

    def set_updates(self, *updates: UpdateLike) -> None:
        """Replace the queued updates for the next dispatch."""
        self.updates = [self._as_update(u) for u in updates]

    def _register_message(self, message: Message) -> StoredMessage:
        stored = StoredMessage.from_aiogram(message, self._state.files.resolve_meta)
        self._state.chats.register(stored.chat)
        return self._state.messages.register_message(stored)

    def _register_update(self, update: Update) -> Update:
        """Put the update's messages into the store. Returns the update to deliver."""
        for name in _NEW_MESSAGE_EVENTS:
            message = getattr(update, name)
            if message is None:
                continue
            stored = self._register_message(message)
            if stored.message_id == message.message_id:
                return update
            logger.debug("Inbound message %d delivered as %d", message.message_id, stored.message_id)
            message = message.model_copy(update={"message_id": stored.message_id})
            return update.model_copy(update={name: message})

        for name in _EDITED_MESSAGE_EVENTS:
            message = getattr(update, name)
            if message is not None:
                self._apply_edit(message)
                return update

        callback_query = update.callback_query
        if callback_query is not None and isinstance(callback_query.message, Message):
            existing = self._state.messages.get_message(callback_query.message.message_id)
            if existing is None or existing.chat.id != callback_query.message.chat.id:
                stored = self._register_message(callback_query.message)
                if stored.message_id != callback_query.message.message_id:
                    message = callback_query.message.model_copy(update={"message_id": stored.message_id})
                    callback_query = callback_query.model_copy(update={"message": message})
                    return update.model_copy(update={"callback_query": callback_query})
        return update

    def _apply_edit(self, message: Message) -> None:
        if self._state.messages.get_message(message.message_id) is None:
            raise UnknownEditedMessageError(message.message_id)

        edited = StoredMessage.from_aiogram(message, self._state.files.resolve_meta)
        if edited.edit_date is None:
            edited.edit_date = utcnow()
        self._state.messages.edit_message(message.message_id, lambda _: edited)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _export_env(self, token: str, api_url: str) -> None:
        for name, value in ((self.settings.token_env_var, token), (self.settings.api_url_env_var, api_url)):
            self._saved_env.setdefault(name, os.environ.get(name))
            os.environ[name] = value

    def _restore_env(self) -> None:
        for name, value in self._saved_env.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value
        self._saved_env.clear()

    async def _feed(self, bot: Bot, update: Update) -> None:
        try:
            await self.dispatcher.feed_update(bot, update, **self.workflow_data)
        except Exception as exc:
            if self.error_handler is None:
                raise
            logger.debug("Update %d raised %r, passing to error handler", update.update_id, exc)
            result = self.error_handler(exc)
            if inspect.isawaitable(result):
                await result

    async def dispatch(self) -> None:
        """Run every queued update through the dispatcher against a fresh server."""
        self._ensure_active()
        self._state.reset()

        server = ServerManager(self.me, self._state, host=self.settings.host)
        await server.start()
        try:
            with self._state.lock:
                updates = [self._register_update(update) for update in self.updates]

            bot = make_bot(self.settings.bot_token, server.url)
            self._export_env(bot.token, server.url)
            try:
                await run_partitioned(updates, self.distribution_function, partial(self._feed, bot))
            finally:
                await bot.session.close()
        finally:
            await server.stop()
        logger.debug("Dispatched %d update(s)", len(self.updates))

    def get_responses(self) -> Responses:
        """Snapshot of everything recorded by the last dispatch."""
        return self._state.get_responses()

    def get_messages(self, chat_id: int | None = None) -> list[StoredMessage]:
        """Live messages of the last dispatch in ID order."""
        with self._state.lock:
            return self._state.messages.messages(chat_id)

    def get_message(self, message_id: int) -> StoredMessage | None:
        with self._state.lock:
            return self._state.messages.get_message(message_id)

    # =========================================================================
    # Dialogue state
    # =========================================================================

    def _dialogue_target(self) -> tuple[int, int | None]:
        if not self.updates:
            raise NoChatIdError("No updates queued to take the chat from")
        chat_id = find_chat_id(self.updates[0])
        if chat_id is None:
            raise NoChatIdError("The first queued update has no chat")
        return chat_id, find_user_id(self.updates[0])

    async def _dialogue(self) -> DialogueStore:
        return await DialogueStore.from_container(self.dependencies, bot_id=self.settings.bot_id)

    async def set_state(self, state: StateLike, data: dict[str, Any] | None = None) -> None:
        """Put the chat of the first queued update into ``state``."""
        store = await self._dialogue()
        chat_id, user_id = self._dialogue_target()
        await store.update(chat_id, state, user_id)
        if data is not None:
            await store.set_data(chat_id, data, user_id)

    async def try_get_state(self) -> str | None:
        store = await self._dialogue()
        chat_id, user_id = self._dialogue_target()
        return await store.get(chat_id, user_id)

    async def get_state(self, default: StateLike = None) -> str | None:
        state = await self.try_get_state()
        return state if state is not None else state_name(default)

    async def get_data(self) -> dict[str, Any]:
        store = await self._dialogue()
        chat_id, user_id = self._dialogue_target()
        return await store.get_data(chat_id, user_id)

    async def exit_dialogue(self) -> None:
        store = await self._dialogue()
        chat_id, user_id = self._dialogue_target()
        await store.exit(chat_id, user_id)

    async def assert_state(self, expected: StateLike) -> None:
        actual = await self.try_get_state()
        assert actual == state_name(expected), f"Expected state {state_name(expected)!r}, got {actual!r}"

    # =========================================================================
    # Assertions
    # =========================================================================

    def assert_last_text(self, text: str) -> None:
        """Assert that the last created message reads ``text`` (text or caption)."""
        sent = self.get_responses().sent_messages
        assert sent, "No sent messages were detected!"
        last = sent[-1]
        actual = last.text if last.text is not None else last.caption
        assert actual == text, f"Expected last message {text!r}, got {actual!r}"

    def assert_last_bot_message_has_button(self, button_text: str) -> None:
        """Assert that the last created message has a button with specific text."""
        sent = self.get_responses().sent_messages
        assert sent, "No sent messages were detected!"
        last = sent[-1]
        assert last.has_inline_keyboard(), "Last bot message has no inline keyboard"
        if last.get_button_callback_data(button_text) is None:
            raise AssertionError(f"Button '{button_text}' not found in last bot message keyboard")

    async def dispatch_and_check_last_text(self, text: str) -> None:
        await self.dispatch()
        self.assert_last_text(text)

    async def dispatch_and_check_state(self, state: StateLike) -> None:
        await self.dispatch()
        await self.assert_state(state)

    async def dispatch_and_check_last_text_and_state(self, text: str, state: StateLike) -> None:
        await self.dispatch()
        self.assert_last_text(text)
        await self.assert_state(state)


async def run(
    events: list[UpdateLike],
    dispatcher: Dispatcher,
    dependencies: AsyncContainer | None = None,
    distribution_function: DistributionFunction = default_distribution_key,
    error_handler: ErrorHandler | None = None,
    **workflow_data: Any,
) -> Responses:
    """Dispatch ``events`` once and return what the pipeline did."""
    async with MockBot(
        dispatcher,
        *events,
        dependencies=dependencies,
        distribution_function=distribution_function,
        error_handler=error_handler,
        **workflow_data,
    ) as bot:
        await bot.dispatch()
        return bot.get_responses()
