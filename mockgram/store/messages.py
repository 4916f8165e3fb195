"""
Message storage for one mocked run.

IDs are global for the run, not per chat, and never reused: a deleted
message leaves a tombstone behind so its ID stays taken.
"""
import logging
from dataclasses import replace
from typing import Callable

from mockgram.exceptions import MessageNotFoundError
from mockgram.store.entities import StoredMessage

logger = logging.getLogger("mockgram.store.messages")

MESSAGE_ID_BASE = 0

Mutator = Callable[[StoredMessage], StoredMessage | None]


class MessageStore:
    """Ordered message history with tombstones."""

    def __init__(self) -> None:
        self._messages: dict[int, StoredMessage] = {}
        self._tombstones: set[int] = set()
        self._max_id: int = MESSAGE_ID_BASE

    def max_message_id(self) -> int:
        return self._max_id

    def _store(self, message: StoredMessage) -> StoredMessage:
        self._messages[message.message_id] = message.copy()
        self._max_id = max(self._max_id, message.message_id)
        logger.debug(
            "Stored %s message %d in chat %d",
            message.kind,
            message.message_id,
            message.chat.id,
        )
        return message.copy()

    def add_message(self, draft: StoredMessage) -> StoredMessage:
        """Store a new message under the next free ID."""
        return self._store(replace(draft, message_id=self._max_id + 1))

    def register_message(self, draft: StoredMessage) -> StoredMessage:
        """Store an inbound message, keeping its own ID when still free."""
        if draft.message_id > self._max_id:
            return self._store(draft)
        logger.debug(
            "Inbound message id %d is not above %d, reassigning",
            draft.message_id,
            self._max_id,
        )
        return self.add_message(draft)

    def get_message(self, message_id: int) -> StoredMessage | None:
        if message_id in self._tombstones:
            return None
        message = self._messages.get(message_id)
        return message.copy() if message is not None else None

    def edit_message(self, message_id: int, mutator: Mutator) -> StoredMessage:
        """Replace a message with whatever ``mutator`` makes of a copy of it."""
        current = self.get_message(message_id)
        if current is None:
            raise MessageNotFoundError(message_id)
        edited = mutator(current) or current
        edited.message_id = message_id
        self._messages[message_id] = edited.copy()
        return edited.copy()

    def tombstone_message(self, message_id: int) -> StoredMessage:
        """Mark a message deleted and return its last state."""
        message = self.get_message(message_id)
        if message is None:
            raise MessageNotFoundError(message_id)
        self._tombstones.add(message_id)
        logger.debug("Deleted message %d in chat %d", message_id, message.chat.id)
        return message

    def messages(self, chat_id: int | None = None) -> list[StoredMessage]:
        """Live messages in ID order, optionally for one chat only."""
        return [
            message.copy()
            for message_id, message in sorted(self._messages.items())
            if message_id not in self._tombstones
            and (chat_id is None or message.chat.id == chat_id)
        ]

    def reset(self) -> None:
        self._messages.clear()
        self._tombstones.clear()
        self._max_id = MESSAGE_ID_BASE
