import itertools
import logging

from mockgram.store.entities import ChatInfo

logger = logging.getLogger("mockgram.store.chats")

SUPERGROUP_ID_CEILING = -1000000000000


def chat_type_for(chat_id: int) -> str:
    if chat_id > 0:
        return "private"
    if chat_id <= SUPERGROUP_ID_CEILING:
        return "supergroup"
    return "group"


class ChatStore:
    """Chats seen during a run, created on first reference."""

    def __init__(self) -> None:
        self._chats: dict[int, ChatInfo] = {}
        self._handle_ids = itertools.count(1)
        # chat_id -> pinned message ids, oldest first
        self._pinned: dict[int, list[int]] = {}
        self._banned: dict[int, set[int]] = {}

    def register(self, chat: ChatInfo) -> ChatInfo:
        """Remember a chat from an inbound event; the first record wins."""
        return self._chats.setdefault(chat.id, chat)

    def get(self, chat_id: int) -> ChatInfo | None:
        return self._chats.get(chat_id)

    def resolve(self, chat_id: int | str) -> ChatInfo:
        """Chat for an RPC ``chat_id``: a number or an ``@username``."""
        if isinstance(chat_id, str):
            return self._resolve_handle(chat_id)

        chat = self._chats.get(chat_id)
        if chat is None:
            chat_type = chat_type_for(chat_id)
            chat = ChatInfo(
                id=chat_id,
                type=chat_type,
                title=None if chat_type == "private" else f"Chat {chat_id}",
            )
            self._chats[chat_id] = chat
            logger.debug("Created %s chat %d", chat_type, chat_id)
        return chat

    def _resolve_handle(self, handle: str) -> ChatInfo:
        username = handle.lstrip("@")
        for chat in self._chats.values():
            if chat.username == username:
                return chat

        chat_id = SUPERGROUP_ID_CEILING - next(self._handle_ids)
        chat = ChatInfo(id=chat_id, type="channel", title=username, username=username)
        self._chats[chat_id] = chat
        logger.debug("Created channel %s as %d", handle, chat_id)
        return chat

    def pin(self, chat_id: int, message_id: int) -> None:
        pinned = self._pinned.setdefault(chat_id, [])
        if message_id in pinned:
            pinned.remove(message_id)
        pinned.append(message_id)

    def unpin(self, chat_id: int, message_id: int | None = None) -> int | None:
        """Unpin one message, the most recently pinned when none is given."""
        pinned = self._pinned.get(chat_id, [])
        if message_id is None:
            return pinned.pop() if pinned else None
        if message_id in pinned:
            pinned.remove(message_id)
            return message_id
        return None

    def unpin_all(self, chat_id: int) -> list[int]:
        return self._pinned.pop(chat_id, [])

    def pinned_message_ids(self, chat_id: int) -> list[int]:
        return list(self._pinned.get(chat_id, []))

    def ban(self, chat_id: int, user_id: int) -> None:
        self._banned.setdefault(chat_id, set()).add(user_id)

    def unban(self, chat_id: int, user_id: int) -> bool:
        """Lift a ban; False when the user was not banned."""
        banned = self._banned.get(chat_id, set())
        if user_id not in banned:
            return False
        banned.discard(user_id)
        return True

    def is_banned(self, chat_id: int, user_id: int) -> bool:
        return user_id in self._banned.get(chat_id, set())

    def reset(self) -> None:
        self._chats.clear()
        self._handle_ids = itertools.count(1)
        self._pinned.clear()
        self._banned.clear()
