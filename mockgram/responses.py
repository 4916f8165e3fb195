"""
Record of everything the bot asked the mocked backend to do.

Each call kind has its own ordered bucket; every entry pairs the resulting
entity with the validated request body that produced it.
"""
import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from mockgram.store.entities import StoredMessage

logger = logging.getLogger("mockgram.responses")


@dataclass
class TrackedRequest:
    """Single raw API call, kept whether it succeeded or not."""

    method: str
    data: dict[str, Any]


@dataclass
class MessageResponse:
    message: StoredMessage
    bot_request: Any


@dataclass
class MediaGroupResponse:
    messages: list[StoredMessage]
    bot_request: Any


@dataclass
class CopiedMessageResponse:
    message_id: int
    message: StoredMessage
    bot_request: Any


@dataclass
class DeletedMessageResponse:
    message: StoredMessage
    bot_request: Any


@dataclass
class Responses:
    """Buckets of recorded calls, in call order."""

    sent_messages: list[StoredMessage] = field(default_factory=list)

    sent_messages_text: list[MessageResponse] = field(default_factory=list)
    sent_messages_photo: list[MessageResponse] = field(default_factory=list)
    sent_messages_video: list[MessageResponse] = field(default_factory=list)
    sent_messages_audio: list[MessageResponse] = field(default_factory=list)
    sent_messages_voice: list[MessageResponse] = field(default_factory=list)
    sent_messages_video_note: list[MessageResponse] = field(default_factory=list)
    sent_messages_document: list[MessageResponse] = field(default_factory=list)
    sent_messages_animation: list[MessageResponse] = field(default_factory=list)
    sent_messages_location: list[MessageResponse] = field(default_factory=list)
    sent_messages_venue: list[MessageResponse] = field(default_factory=list)
    sent_messages_contact: list[MessageResponse] = field(default_factory=list)
    sent_messages_dice: list[MessageResponse] = field(default_factory=list)
    sent_messages_poll: list[MessageResponse] = field(default_factory=list)
    sent_messages_sticker: list[MessageResponse] = field(default_factory=list)
    sent_messages_invoice: list[MessageResponse] = field(default_factory=list)
    sent_media_group: list[MediaGroupResponse] = field(default_factory=list)

    edited_messages_text: list[MessageResponse] = field(default_factory=list)
    edited_messages_caption: list[MessageResponse] = field(default_factory=list)
    edited_messages_reply_markup: list[MessageResponse] = field(default_factory=list)

    deleted_messages: list[DeletedMessageResponse] = field(default_factory=list)
    forwarded_messages: list[MessageResponse] = field(default_factory=list)
    copied_messages: list[CopiedMessageResponse] = field(default_factory=list)

    answered_callback_queries: list[Any] = field(default_factory=list)
    pinned_chat_messages: list[Any] = field(default_factory=list)
    unpinned_chat_messages: list[Any] = field(default_factory=list)
    unpinned_all_chat_messages: list[Any] = field(default_factory=list)
    banned_chat_members: list[Any] = field(default_factory=list)
    unbanned_chat_members: list[Any] = field(default_factory=list)
    restricted_chat_members: list[Any] = field(default_factory=list)
    sent_chat_actions: list[Any] = field(default_factory=list)
    set_message_reaction: list[Any] = field(default_factory=list)
    set_my_commands: list[Any] = field(default_factory=list)

    requests: list[TrackedRequest] = field(default_factory=list)

    def add_request(self, method: str, data: dict[str, Any]) -> None:
        self.requests.append(TrackedRequest(method=method, data=data))
        logger.debug("Tracked request: %s", method)

    def get_requests_by_method(self, method: str) -> list[TrackedRequest]:
        """Get all requests for a specific method."""
        return [r for r in self.requests if r.method == method]

    def add_sent_message(self, bucket: str, message: StoredMessage, bot_request: Any) -> None:
        """Log a created message in ``sent_messages`` and in its own bucket."""
        self.sent_messages.append(message.copy())
        getattr(self, f"sent_messages_{bucket}").append(
            MessageResponse(message=message.copy(), bot_request=bot_request)
        )

    def add_media_group(self, messages: list[StoredMessage], bot_request: Any) -> None:
        self.sent_messages.extend(m.copy() for m in messages)
        self.sent_media_group.append(
            MediaGroupResponse(messages=[m.copy() for m in messages], bot_request=bot_request)
        )

    def add_edited_message(self, bucket: str, message: StoredMessage, bot_request: Any) -> None:
        getattr(self, f"edited_messages_{bucket}").append(
            MessageResponse(message=message.copy(), bot_request=bot_request)
        )

    def add_forwarded_message(self, message: StoredMessage, bot_request: Any) -> None:
        self.sent_messages.append(message.copy())
        self.forwarded_messages.append(MessageResponse(message=message.copy(), bot_request=bot_request))

    def add_copied_message(self, message: StoredMessage, bot_request: Any) -> None:
        self.sent_messages.append(message.copy())
        self.copied_messages.append(CopiedMessageResponse(
            message_id=message.message_id,
            message=message.copy(),
            bot_request=bot_request,
        ))

    def add_deleted_message(self, message: StoredMessage, bot_request: Any) -> None:
        self.deleted_messages.append(DeletedMessageResponse(message=message.copy(), bot_request=bot_request))

    def snapshot(self) -> "Responses":
        return copy.deepcopy(self)

    def clear(self) -> None:
        """Empty every bucket."""
        fresh = Responses()
        for name in self.__dataclass_fields__:
            setattr(self, name, getattr(fresh, name))
