"""
Access to the pipeline's FSM storage from a test.

The storage is looked up in the dishka container the test registered,
first as MemoryStorage and then as any BaseStorage.
"""
import logging
from typing import Any

from aiogram.fsm.state import State as FSMState
from aiogram.fsm.storage.base import BaseStorage, StorageKey
from aiogram.fsm.storage.memory import MemoryStorage
from dishka import AsyncContainer
from dishka.exceptions import NoFactoryError

from mockgram.exceptions import DialogueStorageNotFoundError

logger = logging.getLogger("mockgram.dialogue")

StateLike = str | FSMState | None

STORAGE_TYPES: tuple[type[BaseStorage], ...] = (MemoryStorage, BaseStorage)


def state_name(state: StateLike) -> str | None:
    """``State`` objects compare by their ``group:name`` string."""
    if isinstance(state, FSMState):
        return state.state
    return state


class DialogueStore:
    def __init__(self, storage: BaseStorage, bot_id: int) -> None:
        self.storage = storage
        self.bot_id = bot_id

    @classmethod
    async def from_container(cls, container: AsyncContainer | None, bot_id: int) -> "DialogueStore":
        """First storage the container can build wins."""
        if container is None:
            raise DialogueStorageNotFoundError(
                "No dependencies registered; pass a dishka container providing the FSM storage"
            )

        for storage_type in STORAGE_TYPES:
            try:
                storage = await container.get(storage_type)
            except NoFactoryError:
                logger.debug("No %s in the container", storage_type.__name__)
                continue
            return cls(storage, bot_id)

        raise DialogueStorageNotFoundError(
            "The container provides neither MemoryStorage nor BaseStorage"
        )

    def key(self, chat_id: int, user_id: int | None = None) -> StorageKey:
        return StorageKey(
            bot_id=self.bot_id,
            chat_id=chat_id,
            user_id=user_id if user_id is not None else chat_id,
        )

    async def get(self, chat_id: int, user_id: int | None = None) -> str | None:
        return await self.storage.get_state(self.key(chat_id, user_id))

    async def update(self, chat_id: int, state: StateLike, user_id: int | None = None) -> None:
        await self.storage.set_state(self.key(chat_id, user_id), state_name(state))

    async def exit(self, chat_id: int, user_id: int | None = None) -> None:
        """Leave the dialogue: clears both state and data."""
        key = self.key(chat_id, user_id)
        await self.storage.set_state(key, None)
        await self.storage.set_data(key, {})

    async def get_data(self, chat_id: int, user_id: int | None = None) -> dict[str, Any]:
        return await self.storage.get_data(self.key(chat_id, user_id))

    async def set_data(self, chat_id: int, data: dict[str, Any], user_id: int | None = None) -> None:
        await self.storage.set_data(self.key(chat_id, user_id), data)
