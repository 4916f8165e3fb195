"""
Media-related API method handlers.

Handles: sendPhoto, sendVideo, sendAudio, sendVoice, sendDocument,
sendAnimation, sendSticker, sendVideoNote, sendMediaGroup, getFile
"""
import logging
import random
from typing import Any

from mockgram.server.bodies import (
    CaptionedBody,
    GetFileBody,
    InputFileValue,
    InputMediaItem,
    SendAnimationBody,
    SendAudioBody,
    SendDocumentBody,
    SendMediaGroupBody,
    SendPhotoBody,
    SendStickerBody,
    SendVideoBody,
    SendVideoNoteBody,
    SendVoiceBody,
)
from mockgram.server.errors import BadRequestError
from mockgram.server.routes.common import build_message, resolve_reply, send, store_input_file
from mockgram.server.routes.registry import RouteContext, route
from mockgram.store.entities import (
    AnimationContent,
    AudioContent,
    DocumentContent,
    MessageContent,
    PhotoContent,
    StickerContent,
    VideoContent,
    VideoNoteContent,
    VoiceContent,
    utcnow,
)
from mockgram.store.state import State

logger = logging.getLogger("mockgram.server.routes.media")

DEFAULT_MIME_TYPES = {
    "photo": "image/jpeg",
    "video": "video/mp4",
    "audio": "audio/mpeg",
    "voice": "audio/ogg",
    "document": "application/octet-stream",
    "animation": "image/gif",
    "sticker": "image/webp",
    "video_note": "video/mp4",
}


def media_content(
    state: State,
    kind: str,
    upload: InputFileValue,
    *,
    caption: str | None = None,
    caption_entities: list[dict[str, Any]] | None = None,
    width: int | None = None,
    height: int | None = None,
    duration: int | None = None,
    performer: str | None = None,
    title: str | None = None,
) -> MessageContent:
    """Store the file and wrap it in the content variant for ``kind``."""
    stored = store_input_file(state, kind, upload, DEFAULT_MIME_TYPES[kind])
    captioned = {"caption": caption, "caption_entities": caption_entities or []}
    size = {"width": width or 100, "height": height or 100}

    if kind == "photo":
        return PhotoContent(file=stored, **size, **captioned)
    if kind == "video":
        return VideoContent(file=stored, duration=duration or 0, **size, **captioned)
    if kind == "animation":
        return AnimationContent(file=stored, duration=duration or 0, **size, **captioned)
    if kind == "audio":
        return AudioContent(
            file=stored,
            duration=duration or 0,
            performer=performer,
            title=title,
            **captioned,
        )
    if kind == "voice":
        return VoiceContent(file=stored, duration=duration or 0, **captioned)
    if kind == "document":
        return DocumentContent(file=stored, **captioned)
    raise ValueError(f"Unsupported media kind: {kind}")


def _send_media(ctx: RouteContext, kind: str, body: CaptionedBody, upload: InputFileValue, **fields: Any) -> dict[str, Any]:
    logger.debug("send %s to chat %s: %s", kind, body.chat_id, upload.file_name or upload.file_id)
    content = media_content(
        ctx.state,
        kind,
        upload,
        caption=body.caption,
        caption_entities=body.caption_entities,
        **fields,
    )
    return send(
        ctx,
        kind,
        body,
        content,
        has_media_spoiler=bool(getattr(body, "has_spoiler", False)),
        show_caption_above_media=bool(body.show_caption_above_media),
    )


@route("sendPhoto", SendPhotoBody)
def handle_send_photo(body: SendPhotoBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle sendPhoto API call."""
    return _send_media(ctx, "photo", body, body.photo)


@route("sendVideo", SendVideoBody)
def handle_send_video(body: SendVideoBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle sendVideo API call."""
    return _send_media(
        ctx,
        "video",
        body,
        body.video,
        width=body.width,
        height=body.height,
        duration=body.duration,
    )


@route("sendAudio", SendAudioBody)
def handle_send_audio(body: SendAudioBody, ctx: RouteContext) -> dict[str, Any]:
    return _send_media(
        ctx,
        "audio",
        body,
        body.audio,
        duration=body.duration,
        performer=body.performer,
        title=body.title,
    )


@route("sendVoice", SendVoiceBody)
def handle_send_voice(body: SendVoiceBody, ctx: RouteContext) -> dict[str, Any]:
    return _send_media(ctx, "voice", body, body.voice, duration=body.duration)


@route("sendDocument", SendDocumentBody)
def handle_send_document(body: SendDocumentBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle sendDocument API call."""
    return _send_media(ctx, "document", body, body.document)


@route("sendAnimation", SendAnimationBody)
def handle_send_animation(body: SendAnimationBody, ctx: RouteContext) -> dict[str, Any]:
    return _send_media(
        ctx,
        "animation",
        body,
        body.animation,
        width=body.width,
        height=body.height,
        duration=body.duration,
    )


@route("sendSticker", SendStickerBody)
def handle_send_sticker(body: SendStickerBody, ctx: RouteContext) -> dict[str, Any]:
    stored = store_input_file(ctx.state, "sticker", body.sticker, DEFAULT_MIME_TYPES["sticker"])
    content = StickerContent(
        file=stored,
        emoji=body.emoji,
        is_video=stored.mime_type == "video/webm",
        is_animated=(stored.file_name or "").endswith(".tgs"),
    )
    return send(ctx, "sticker", body, content)


@route("sendVideoNote", SendVideoNoteBody)
def handle_send_video_note(body: SendVideoNoteBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle sendVideoNote API call."""
    stored = store_input_file(ctx.state, "video_note", body.video_note, DEFAULT_MIME_TYPES["video_note"])
    content = VideoNoteContent(file=stored, length=body.length or 100, duration=body.duration or 0)
    return send(ctx, "video_note", body, content)


def _media_item_content(state: State, item: InputMediaItem) -> MessageContent:
    return media_content(
        state,
        item.type,
        item.media,
        caption=item.caption,
        caption_entities=item.caption_entities,
        width=item.width,
        height=item.height,
        duration=item.duration,
        performer=item.performer,
        title=item.title,
    )


@route("sendMediaGroup", SendMediaGroupBody)
def handle_send_media_group(body: SendMediaGroupBody, ctx: RouteContext) -> list[dict[str, Any]]:
    """
    Handle sendMediaGroup API call.

    Every item becomes its own message; they share one media_group_id
    and one date.
    """
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    reply_to = resolve_reply(state, chat, body)
    media_group_id = str(random.randint(10**17, 10**18 - 1))
    date = utcnow()

    messages = []
    for item in body.media:
        draft = build_message(ctx, chat, body, _media_item_content(state, item), reply_to)
        draft.date = date
        draft.media_group_id = media_group_id
        draft.has_media_spoiler = bool(item.has_spoiler)
        draft.show_caption_above_media = bool(item.show_caption_above_media)
        messages.append(state.messages.add_message(draft))

    state.responses.add_media_group(messages, body)
    logger.debug(
        "sendMediaGroup to chat %d: %d items, group %s",
        chat.id,
        len(messages),
        media_group_id,
    )
    return [message.to_api() for message in messages]


@route("getFile", GetFileBody)
def handle_get_file(body: GetFileBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle getFile API call."""
    stored = ctx.state.files.get_file(body.file_id)
    if stored is None:
        raise BadRequestError("invalid file_id")
    return stored.to_api()
