from mockgram.store.chats import ChatStore
from mockgram.store.entities import (
    AnimationContent,
    AudioContent,
    BotProfile,
    ChatInfo,
    ContactContent,
    DiceContent,
    DocumentContent,
    InvoiceContent,
    LocationContent,
    MessageContent,
    PhotoContent,
    PollContent,
    RawContent,
    StickerContent,
    StoredFile,
    StoredMessage,
    TextContent,
    UserInfo,
    VenueContent,
    VideoContent,
    VideoNoteContent,
    VoiceContent,
    content_from_api,
)
from mockgram.store.files import FileStore
from mockgram.store.messages import MESSAGE_ID_BASE, MessageStore

__all__ = [
    "AnimationContent",
    "AudioContent",
    "BotProfile",
    "ChatInfo",
    "ChatStore",
    "ContactContent",
    "DiceContent",
    "DocumentContent",
    "FileStore",
    "InvoiceContent",
    "LocationContent",
    "MESSAGE_ID_BASE",
    "MessageContent",
    "MessageStore",
    "PhotoContent",
    "PollContent",
    "RawContent",
    "StickerContent",
    "StoredFile",
    "StoredMessage",
    "TextContent",
    "UserInfo",
    "VenueContent",
    "VideoContent",
    "VideoNoteContent",
    "VoiceContent",
    "content_from_api",
]
