"""
Entities held by the mocked backend during one run.

Chats, users, files and messages are plain dataclasses that know how to
render themselves as Bot API JSON. The payload of a message is a tagged
union: one dataclass per content kind, all sharing the StoredMessage
envelope.
"""
import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar

from aiogram.types import Message

from mockgram.config import MockSettings

FileResolver = Callable[[str, dict[str, Any]], "StoredFile"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(value: datetime) -> int:
    return int(value.timestamp())


def parse_date(value: Any) -> datetime:
    """Accept unix timestamps, ISO strings and datetimes."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return parse_date(datetime.fromisoformat(str(value)))


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class UserInfo:
    id: int
    is_bot: bool = False
    first_name: str = "User"
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None

    def to_api(self) -> dict[str, Any]:
        return _compact({
            "id": self.id,
            "is_bot": self.is_bot,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "username": self.username,
            "language_code": self.language_code,
        })

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "UserInfo":
        return cls(
            id=data["id"],
            is_bot=data.get("is_bot", False),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name"),
            username=data.get("username"),
            language_code=data.get("language_code"),
        )


@dataclass
class BotProfile:
    """What getMe reports, and the ``from`` of every bot-sent message."""

    user: UserInfo
    can_join_groups: bool = True
    can_read_all_group_messages: bool = False
    supports_inline_queries: bool = False

    def to_api(self) -> dict[str, Any]:
        return {
            **self.user.to_api(),
            "can_join_groups": self.can_join_groups,
            "can_read_all_group_messages": self.can_read_all_group_messages,
            "supports_inline_queries": self.supports_inline_queries,
        }

    @classmethod
    def from_settings(cls, settings: MockSettings) -> "BotProfile":
        return cls(
            user=UserInfo(
                id=settings.bot_id,
                is_bot=True,
                first_name=settings.bot_first_name,
                username=settings.bot_username,
            ),
            can_join_groups=settings.bot_can_join_groups,
            can_read_all_group_messages=settings.bot_can_read_all_group_messages,
            supports_inline_queries=settings.bot_supports_inline_queries,
        )


@dataclass
class ChatInfo:
    id: int
    type: str = "private"
    title: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    def to_api(self) -> dict[str, Any]:
        return _compact({
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
        })

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ChatInfo":
        return cls(
            id=data["id"],
            type=data.get("type", "private"),
            title=data.get("title"),
            username=data.get("username"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )


@dataclass(frozen=True)
class StoredFile:
    """One uploaded (or referenced) file. Immutable once registered."""

    file_id: str
    file_unique_id: str
    file_size: int
    file_path: str
    file_name: str | None = None
    mime_type: str | None = None
    content: bytes = field(default=b"", repr=False)

    def meta(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "file_unique_id": self.file_unique_id,
            "file_size": self.file_size,
        }

    def to_api(self) -> dict[str, Any]:
        return {**self.meta(), "file_path": self.file_path}


# =============================================================================
# Message content variants
# =============================================================================


@dataclass(kw_only=True)
class TextContent:
    kind: ClassVar[str] = "text"

    text: str
    entities: list[dict[str, Any]] = field(default_factory=list)

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {"text": self.text}
        if self.entities:
            data["entities"] = self.entities
        return data


@dataclass(kw_only=True)
class CaptionedContent:
    """Shared caption fields of media that can carry one."""

    caption: str | None = None
    caption_entities: list[dict[str, Any]] = field(default_factory=list)

    def _caption_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.caption is not None:
            data["caption"] = self.caption
        if self.caption_entities:
            data["caption_entities"] = self.caption_entities
        return data


@dataclass(kw_only=True)
class PhotoContent(CaptionedContent):
    kind: ClassVar[str] = "photo"

    file: StoredFile
    width: int = 100
    height: int = 100

    def to_api(self) -> dict[str, Any]:
        size = {**self.file.meta(), "width": self.width, "height": self.height}
        return {"photo": [size], **self._caption_api()}


@dataclass(kw_only=True)
class VideoContent(CaptionedContent):
    kind: ClassVar[str] = "video"

    file: StoredFile
    width: int = 100
    height: int = 100
    duration: int = 0

    def to_api(self) -> dict[str, Any]:
        video = _compact({
            **self.file.meta(),
            "width": self.width,
            "height": self.height,
            "duration": self.duration,
            "file_name": self.file.file_name,
            "mime_type": self.file.mime_type,
        })
        return {"video": video, **self._caption_api()}


@dataclass(kw_only=True)
class AudioContent(CaptionedContent):
    kind: ClassVar[str] = "audio"

    file: StoredFile
    duration: int = 0
    performer: str | None = None
    title: str | None = None

    def to_api(self) -> dict[str, Any]:
        audio = _compact({
            **self.file.meta(),
            "duration": self.duration,
            "performer": self.performer,
            "title": self.title,
            "file_name": self.file.file_name,
            "mime_type": self.file.mime_type,
        })
        return {"audio": audio, **self._caption_api()}


@dataclass(kw_only=True)
class VoiceContent(CaptionedContent):
    kind: ClassVar[str] = "voice"

    file: StoredFile
    duration: int = 0

    def to_api(self) -> dict[str, Any]:
        voice = _compact({
            **self.file.meta(),
            "duration": self.duration,
            "mime_type": self.file.mime_type,
        })
        return {"voice": voice, **self._caption_api()}


@dataclass(kw_only=True)
class DocumentContent(CaptionedContent):
    kind: ClassVar[str] = "document"

    file: StoredFile

    def to_api(self) -> dict[str, Any]:
        document = _compact({
            **self.file.meta(),
            "file_name": self.file.file_name,
            "mime_type": self.file.mime_type,
        })
        return {"document": document, **self._caption_api()}


@dataclass(kw_only=True)
class AnimationContent(CaptionedContent):
    kind: ClassVar[str] = "animation"

    file: StoredFile
    width: int = 100
    height: int = 100
    duration: int = 0

    def to_api(self) -> dict[str, Any]:
        animation = _compact({
            **self.file.meta(),
            "width": self.width,
            "height": self.height,
            "duration": self.duration,
            "file_name": self.file.file_name,
            "mime_type": self.file.mime_type,
        })
        return {"animation": animation, **self._caption_api()}


@dataclass(kw_only=True)
class StickerContent:
    kind: ClassVar[str] = "sticker"

    file: StoredFile
    width: int = 100
    height: int = 100
    emoji: str | None = None
    is_animated: bool = False
    is_video: bool = False
    sticker_type: str = "regular"

    def to_api(self) -> dict[str, Any]:
        sticker = _compact({
            **self.file.meta(),
            "type": self.sticker_type,
            "width": self.width,
            "height": self.height,
            "is_animated": self.is_animated,
            "is_video": self.is_video,
            "emoji": self.emoji,
        })
        return {"sticker": sticker}


@dataclass(kw_only=True)
class VideoNoteContent:
    kind: ClassVar[str] = "video_note"

    file: StoredFile
    length: int = 100
    duration: int = 0

    def to_api(self) -> dict[str, Any]:
        video_note = {**self.file.meta(), "length": self.length, "duration": self.duration}
        return {"video_note": video_note}


@dataclass(kw_only=True)
class LocationContent:
    kind: ClassVar[str] = "location"

    latitude: float
    longitude: float
    horizontal_accuracy: float | None = None
    live_period: int | None = None
    heading: int | None = None
    proximity_alert_radius: int | None = None

    def location_api(self) -> dict[str, Any]:
        return _compact({
            "latitude": self.latitude,
            "longitude": self.longitude,
            "horizontal_accuracy": self.horizontal_accuracy,
            "live_period": self.live_period,
            "heading": self.heading,
            "proximity_alert_radius": self.proximity_alert_radius,
        })

    def to_api(self) -> dict[str, Any]:
        return {"location": self.location_api()}


@dataclass(kw_only=True)
class VenueContent:
    kind: ClassVar[str] = "venue"

    location: LocationContent
    title: str
    address: str
    foursquare_id: str | None = None
    foursquare_type: str | None = None
    google_place_id: str | None = None
    google_place_type: str | None = None

    def to_api(self) -> dict[str, Any]:
        location = self.location.location_api()
        venue = _compact({
            "location": location,
            "title": self.title,
            "address": self.address,
            "foursquare_id": self.foursquare_id,
            "foursquare_type": self.foursquare_type,
            "google_place_id": self.google_place_id,
            "google_place_type": self.google_place_type,
        })
        # Venue messages carry the bare location too
        return {"venue": venue, "location": location}


@dataclass(kw_only=True)
class ContactContent:
    kind: ClassVar[str] = "contact"

    phone_number: str
    first_name: str
    last_name: str | None = None
    user_id: int | None = None
    vcard: str | None = None

    def to_api(self) -> dict[str, Any]:
        return {"contact": _compact({
            "phone_number": self.phone_number,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "user_id": self.user_id,
            "vcard": self.vcard,
        })}


@dataclass(kw_only=True)
class DiceContent:
    kind: ClassVar[str] = "dice"

    emoji: str
    value: int

    def to_api(self) -> dict[str, Any]:
        return {"dice": {"emoji": self.emoji, "value": self.value}}


@dataclass(kw_only=True)
class PollContent:
    kind: ClassVar[str] = "poll"

    id: str
    question: str
    options: list[dict[str, Any]]
    question_entities: list[dict[str, Any]] = field(default_factory=list)
    total_voter_count: int = 0
    is_closed: bool = False
    is_anonymous: bool = True
    poll_type: str = "regular"
    allows_multiple_answers: bool = False
    allows_revoting: bool = False
    members_only: bool = False
    correct_option_id: int | None = None
    explanation: str | None = None
    explanation_entities: list[dict[str, Any]] = field(default_factory=list)
    open_period: int | None = None
    close_date: int | None = None

    def to_api(self) -> dict[str, Any]:
        poll = _compact({
            "id": self.id,
            "question": self.question,
            "question_entities": self.question_entities or None,
            "options": self.options,
            "total_voter_count": self.total_voter_count,
            "is_closed": self.is_closed,
            "is_anonymous": self.is_anonymous,
            "type": self.poll_type,
            "allows_multiple_answers": self.allows_multiple_answers,
            "allows_revoting": self.allows_revoting,
            "members_only": self.members_only,
            "correct_option_id": self.correct_option_id,
            "explanation": self.explanation,
            "explanation_entities": self.explanation_entities or None,
            "open_period": self.open_period,
            "close_date": self.close_date,
        })
        return {"poll": poll}


@dataclass(kw_only=True)
class InvoiceContent:
    kind: ClassVar[str] = "invoice"

    title: str
    description: str
    currency: str
    total_amount: int
    start_parameter: str = ""

    def to_api(self) -> dict[str, Any]:
        return {"invoice": {
            "title": self.title,
            "description": self.description,
            "start_parameter": self.start_parameter,
            "currency": self.currency,
            "total_amount": self.total_amount,
        }}


@dataclass(kw_only=True)
class RawContent:
    """Inbound payloads of kinds the store does not model, kept verbatim."""

    kind: ClassVar[str] = "raw"

    payload: dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> dict[str, Any]:
        return dict(self.payload)


MessageContent = (
    TextContent
    | PhotoContent
    | VideoContent
    | AudioContent
    | VoiceContent
    | DocumentContent
    | AnimationContent
    | StickerContent
    | VideoNoteContent
    | LocationContent
    | VenueContent
    | ContactContent
    | DiceContent
    | PollContent
    | InvoiceContent
    | RawContent
)

# Message keys that belong to the envelope rather than to the payload
ENVELOPE_KEYS = frozenset({
    "message_id",
    "date",
    "chat",
    "from",
    "sender_chat",
    "reply_to_message",
    "forward_origin",
    "edit_date",
    "reply_markup",
    "media_group_id",
    "message_thread_id",
    "is_topic_message",
    "has_protected_content",
    "has_media_spoiler",
    "show_caption_above_media",
    "effect_id",
    "business_connection_id",
    "link_preview_options",
    "caption",
    "caption_entities",
})


def _caption_kwargs(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "caption": data.get("caption"),
        "caption_entities": data.get("caption_entities", []),
    }


def content_from_api(data: dict[str, Any], resolve_file: FileResolver) -> MessageContent:
    """Rebuild the payload of an inbound Bot API message."""
    if "text" in data:
        return TextContent(text=data["text"], entities=data.get("entities", []))
    if "photo" in data:
        size = data["photo"][-1]
        return PhotoContent(
            file=resolve_file("photo", size),
            width=size.get("width", 100),
            height=size.get("height", 100),
            **_caption_kwargs(data),
        )
    if "animation" in data:
        animation = data["animation"]
        return AnimationContent(
            file=resolve_file("animation", animation),
            width=animation.get("width", 100),
            height=animation.get("height", 100),
            duration=animation.get("duration", 0),
            **_caption_kwargs(data),
        )
    if "video" in data:
        video = data["video"]
        return VideoContent(
            file=resolve_file("video", video),
            width=video.get("width", 100),
            height=video.get("height", 100),
            duration=video.get("duration", 0),
            **_caption_kwargs(data),
        )
    if "audio" in data:
        audio = data["audio"]
        return AudioContent(
            file=resolve_file("audio", audio),
            duration=audio.get("duration", 0),
            performer=audio.get("performer"),
            title=audio.get("title"),
            **_caption_kwargs(data),
        )
    if "voice" in data:
        voice = data["voice"]
        return VoiceContent(
            file=resolve_file("voice", voice),
            duration=voice.get("duration", 0),
            **_caption_kwargs(data),
        )
    if "document" in data:
        return DocumentContent(
            file=resolve_file("document", data["document"]),
            **_caption_kwargs(data),
        )
    if "sticker" in data:
        sticker = data["sticker"]
        return StickerContent(
            file=resolve_file("sticker", sticker),
            width=sticker.get("width", 100),
            height=sticker.get("height", 100),
            emoji=sticker.get("emoji"),
            is_animated=sticker.get("is_animated", False),
            is_video=sticker.get("is_video", False),
            sticker_type=sticker.get("type", "regular"),
        )
    if "video_note" in data:
        video_note = data["video_note"]
        return VideoNoteContent(
            file=resolve_file("video_note", video_note),
            length=video_note.get("length", 100),
            duration=video_note.get("duration", 0),
        )
    if "venue" in data:
        venue = data["venue"]
        return VenueContent(
            location=LocationContent(**venue["location"]),
            title=venue["title"],
            address=venue["address"],
            foursquare_id=venue.get("foursquare_id"),
            foursquare_type=venue.get("foursquare_type"),
            google_place_id=venue.get("google_place_id"),
            google_place_type=venue.get("google_place_type"),
        )
    if "location" in data:
        return LocationContent(**data["location"])
    if "contact" in data:
        return ContactContent(**data["contact"])
    if "dice" in data:
        return DiceContent(emoji=data["dice"]["emoji"], value=data["dice"]["value"])
    if "poll" in data:
        poll = data["poll"]
        return PollContent(
            id=poll["id"],
            question=poll["question"],
            options=poll.get("options", []),
            question_entities=poll.get("question_entities", []),
            total_voter_count=poll.get("total_voter_count", 0),
            is_closed=poll.get("is_closed", False),
            is_anonymous=poll.get("is_anonymous", True),
            poll_type=poll.get("type", "regular"),
            allows_multiple_answers=poll.get("allows_multiple_answers", False),
            allows_revoting=poll.get("allows_revoting", False),
            members_only=poll.get("members_only", False),
            correct_option_id=poll.get("correct_option_id"),
            explanation=poll.get("explanation"),
            explanation_entities=poll.get("explanation_entities", []),
            open_period=poll.get("open_period"),
            close_date=poll.get("close_date"),
        )
    if "invoice" in data:
        invoice = data["invoice"]
        return InvoiceContent(
            title=invoice["title"],
            description=invoice["description"],
            currency=invoice["currency"],
            total_amount=invoice["total_amount"],
            start_parameter=invoice.get("start_parameter", ""),
        )
    return RawContent(payload={k: v for k, v in data.items() if k not in ENVELOPE_KEYS})


# =============================================================================
# Message envelope
# =============================================================================


@dataclass
class StoredMessage:
    """A message as the mocked backend remembers it."""

    message_id: int
    chat: ChatInfo
    content: MessageContent
    date: datetime = field(default_factory=utcnow)
    from_user: UserInfo | None = None
    reply_to_message: "StoredMessage | None" = None
    forward_origin: dict[str, Any] | None = None
    edit_date: datetime | None = None
    reply_markup: dict[str, Any] | None = None
    media_group_id: str | None = None
    message_thread_id: int | None = None
    has_protected_content: bool = False
    has_media_spoiler: bool = False
    show_caption_above_media: bool = False
    effect_id: str | None = None
    business_connection_id: str | None = None
    link_preview_options: dict[str, Any] | None = None
    # Not part of the Bot API Message object
    is_pinned: bool = False
    reactions: list[dict[str, Any]] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return self.content.kind

    @property
    def text(self) -> str | None:
        return self.content.text if isinstance(self.content, TextContent) else None

    @property
    def caption(self) -> str | None:
        return getattr(self.content, "caption", None)

    @property
    def file(self) -> StoredFile | None:
        return getattr(self.content, "file", None)

    def copy(self) -> "StoredMessage":
        return copy.deepcopy(self)

    def as_reply_target(self) -> "StoredMessage":
        """Copy used as ``reply_to_message``; Telegram never nests replies twice."""
        target = self.copy()
        target.reply_to_message = None
        return target

    def has_inline_keyboard(self) -> bool:
        return self.reply_markup is not None and "inline_keyboard" in self.reply_markup

    def get_button_callback_data(self, button_text: str) -> str | None:
        """Find callback_data for button with given text."""
        if not self.has_inline_keyboard():
            return None

        for row in self.reply_markup["inline_keyboard"]:
            for button in row:
                if button_text in button.get("text", ""):
                    return button.get("callback_data")
        return None

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "message_id": self.message_id,
            "date": to_timestamp(self.date),
            "chat": self.chat.to_api(),
        }
        if self.from_user is not None:
            data["from"] = self.from_user.to_api()
        if self.message_thread_id is not None:
            data["message_thread_id"] = self.message_thread_id
        if self.reply_to_message is not None:
            data["reply_to_message"] = self.reply_to_message.to_api()
        if self.forward_origin is not None:
            data["forward_origin"] = self.forward_origin
        if self.edit_date is not None:
            data["edit_date"] = to_timestamp(self.edit_date)
        if self.media_group_id is not None:
            data["media_group_id"] = self.media_group_id
        if self.has_protected_content:
            data["has_protected_content"] = True
        if self.has_media_spoiler:
            data["has_media_spoiler"] = True
        if self.show_caption_above_media:
            data["show_caption_above_media"] = True
        if self.effect_id is not None:
            data["effect_id"] = self.effect_id
        if self.business_connection_id is not None:
            data["business_connection_id"] = self.business_connection_id
        if self.link_preview_options is not None:
            data["link_preview_options"] = self.link_preview_options
        data.update(self.content.to_api())
        # Reply keyboards are never echoed back by the API
        if self.has_inline_keyboard():
            data["reply_markup"] = self.reply_markup
        return data

    def to_aiogram(self) -> Message:
        return Message.model_validate(self.to_api())

    @classmethod
    def from_api(cls, data: dict[str, Any], resolve_file: FileResolver) -> "StoredMessage":
        reply_to = data.get("reply_to_message")
        return cls(
            message_id=data["message_id"],
            chat=ChatInfo.from_api(data["chat"]),
            content=content_from_api(data, resolve_file),
            date=parse_date(data["date"]) if "date" in data else utcnow(),
            from_user=UserInfo.from_api(data["from"]) if "from" in data else None,
            reply_to_message=cls.from_api(reply_to, resolve_file) if reply_to else None,
            forward_origin=data.get("forward_origin"),
            edit_date=parse_date(data["edit_date"]) if data.get("edit_date") else None,
            reply_markup=data.get("reply_markup"),
            media_group_id=data.get("media_group_id"),
            message_thread_id=data.get("message_thread_id"),
            has_protected_content=data.get("has_protected_content", False),
            has_media_spoiler=data.get("has_media_spoiler", False),
            show_caption_above_media=data.get("show_caption_above_media", False),
            effect_id=data.get("effect_id"),
            business_connection_id=data.get("business_connection_id"),
            link_preview_options=data.get("link_preview_options"),
        )

    @classmethod
    def from_aiogram(cls, message: Message, resolve_file: FileResolver) -> "StoredMessage":
        data = message.model_dump(mode="json", by_alias=True, exclude_none=True)
        return cls.from_api(data, resolve_file)
