"""
Handlers that act on messages already in the store.

Handles: editMessageText, editMessageCaption, editMessageReplyMarkup,
deleteMessage, deleteMessages, forwardMessage, copyMessage,
setMessageReaction
"""
import logging
from dataclasses import replace
from typing import Any

from mockgram.server.bodies import (
    CopyMessageBody,
    DeleteMessageBody,
    DeleteMessagesBody,
    EditMessageCaptionBody,
    EditMessageReplyMarkupBody,
    EditMessageTextBody,
    EditTargetBody,
    ForwardMessageBody,
    SetMessageReactionBody,
)
from mockgram.server.errors import BadRequestError, MessageNotModifiedError
from mockgram.server.routes.common import build_message, inline_markup, require_message, resolve_reply
from mockgram.server.routes.registry import RouteContext, route
from mockgram.store.entities import (
    CaptionedContent,
    StoredMessage,
    TextContent,
    to_timestamp,
    utcnow,
)

logger = logging.getLogger("mockgram.server.routes.editing")


def _edit_target(ctx: RouteContext, body: EditTargetBody) -> StoredMessage:
    if body.chat_id is None or body.message_id is None:
        raise BadRequestError("chat_id and message_id are required")
    chat = ctx.state.chats.resolve(body.chat_id)
    return require_message(ctx.state, chat, body.message_id, "message to edit not found")


@route("editMessageText", EditMessageTextBody)
def handle_edit_message_text(body: EditMessageTextBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle editMessageText API call."""
    message = _edit_target(ctx, body)
    if not isinstance(message.content, TextContent):
        raise BadRequestError("there is no text in the message to edit")

    entities = body.entities or []
    reply_markup = inline_markup(body.reply_markup)
    if (
        message.content.text == body.text
        and message.content.entities == entities
        and message.reply_markup == reply_markup
    ):
        raise MessageNotModifiedError()

    def apply(stored: StoredMessage) -> StoredMessage:
        stored.content = TextContent(text=body.text, entities=entities)
        stored.reply_markup = reply_markup
        stored.edit_date = utcnow()
        if body.link_preview_options is not None:
            stored.link_preview_options = body.link_preview_options
        return stored

    edited = ctx.state.messages.edit_message(message.message_id, apply)
    ctx.state.responses.add_edited_message("text", edited, body)
    logger.debug(
        "editMessageText: chat=%d, message=%d, text=%s",
        edited.chat.id,
        edited.message_id,
        body.text[:50],
    )
    return edited.to_api()


@route("editMessageCaption", EditMessageCaptionBody)
def handle_edit_message_caption(body: EditMessageCaptionBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle editMessageCaption API call."""
    message = _edit_target(ctx, body)
    if not isinstance(message.content, CaptionedContent):
        raise BadRequestError("there is no caption in the message to edit")

    entities = body.caption_entities or []
    reply_markup = inline_markup(body.reply_markup)
    if (
        message.content.caption == body.caption
        and message.content.caption_entities == entities
        and message.reply_markup == reply_markup
    ):
        raise MessageNotModifiedError()

    def apply(stored: StoredMessage) -> StoredMessage:
        stored.content = replace(stored.content, caption=body.caption, caption_entities=entities)
        stored.reply_markup = reply_markup
        stored.edit_date = utcnow()
        if body.show_caption_above_media is not None:
            stored.show_caption_above_media = body.show_caption_above_media
        return stored

    edited = ctx.state.messages.edit_message(message.message_id, apply)
    ctx.state.responses.add_edited_message("caption", edited, body)
    return edited.to_api()


@route("editMessageReplyMarkup", EditMessageReplyMarkupBody)
def handle_edit_message_reply_markup(body: EditMessageReplyMarkupBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle editMessageReplyMarkup API call."""
    message = _edit_target(ctx, body)
    reply_markup = inline_markup(body.reply_markup)
    if message.reply_markup == reply_markup:
        raise MessageNotModifiedError()

    def apply(stored: StoredMessage) -> StoredMessage:
        stored.reply_markup = reply_markup
        stored.edit_date = utcnow()
        return stored

    edited = ctx.state.messages.edit_message(message.message_id, apply)
    ctx.state.responses.add_edited_message("reply_markup", edited, body)
    logger.debug("editMessageReplyMarkup: chat=%d, message=%d", edited.chat.id, edited.message_id)
    return edited.to_api()


@route("deleteMessage", DeleteMessageBody)
def handle_delete_message(body: DeleteMessageBody, ctx: RouteContext) -> bool:
    """Handle deleteMessage API call."""
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    message = require_message(state, chat, body.message_id, "message to delete not found")
    deleted = state.messages.tombstone_message(message.message_id)
    state.responses.add_deleted_message(deleted, body)
    logger.debug("deleteMessage: chat=%d, message=%d", chat.id, body.message_id)
    return True


@route("deleteMessages", DeleteMessagesBody)
def handle_delete_messages(body: DeleteMessagesBody, ctx: RouteContext) -> bool:
    """Handle deleteMessages API call; unknown IDs are skipped."""
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)

    deleted_count = 0
    for message_id in body.message_ids:
        message = state.messages.get_message(message_id)
        if message is None or message.chat.id != chat.id:
            continue
        state.responses.add_deleted_message(state.messages.tombstone_message(message_id), body)
        deleted_count += 1

    if not deleted_count:
        raise BadRequestError("message to delete not found")
    logger.debug("deleteMessages: chat=%d, deleted %d of %s", chat.id, deleted_count, body.message_ids)
    return True


def _forward_origin(source: StoredMessage) -> dict[str, Any]:
    date = to_timestamp(source.date)
    if source.chat.type == "channel":
        return {
            "type": "channel",
            "date": date,
            "chat": source.chat.to_api(),
            "message_id": source.message_id,
        }
    if source.from_user is not None:
        return {"type": "user", "date": date, "sender_user": source.from_user.to_api()}
    return {"type": "chat", "date": date, "sender_chat": source.chat.to_api()}


@route("forwardMessage", ForwardMessageBody)
def handle_forward_message(body: ForwardMessageBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle forwardMessage API call. Forwarding a forward keeps the first origin."""
    state = ctx.state
    source_chat = state.chats.resolve(body.from_chat_id)
    source = require_message(state, source_chat, body.message_id, "message to forward not found")
    chat = state.chats.resolve(body.chat_id)

    draft = replace(
        source,
        message_id=0,
        chat=chat,
        date=utcnow(),
        from_user=ctx.me.user,
        forward_origin=source.forward_origin or _forward_origin(source),
        reply_to_message=None,
        edit_date=None,
        media_group_id=None,
        message_thread_id=body.message_thread_id,
        has_protected_content=bool(body.protect_content),
        is_pinned=False,
        reactions=[],
    )
    message = state.messages.add_message(draft)
    state.responses.add_forwarded_message(message, body)
    logger.debug(
        "forwardMessage: %d from chat %d to chat %d as %d",
        source.message_id,
        source_chat.id,
        chat.id,
        message.message_id,
    )
    return message.to_api()


@route("copyMessage", CopyMessageBody)
def handle_copy_message(body: CopyMessageBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle copyMessage API call. The result is only the new message ID."""
    state = ctx.state
    source_chat = state.chats.resolve(body.from_chat_id)
    source = require_message(state, source_chat, body.message_id, "message to copy not found")
    chat = state.chats.resolve(body.chat_id)
    reply_to = resolve_reply(state, chat, body)

    content = source.content
    if isinstance(content, CaptionedContent) and body.caption is not None:
        content = replace(content, caption=body.caption, caption_entities=body.caption_entities or [])

    draft = build_message(ctx, chat, body, content, reply_to)
    if body.reply_markup is None:
        draft.reply_markup = source.reply_markup
    draft.has_media_spoiler = source.has_media_spoiler
    if body.show_caption_above_media is not None:
        draft.show_caption_above_media = body.show_caption_above_media

    message = state.messages.add_message(draft)
    state.responses.add_copied_message(message, body)
    logger.debug("copyMessage: %d from chat %d to chat %d", source.message_id, source_chat.id, chat.id)
    return {"message_id": message.message_id}


@route("setMessageReaction", SetMessageReactionBody)
def handle_set_message_reaction(body: SetMessageReactionBody, ctx: RouteContext) -> bool:
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    message = require_message(state, chat, body.message_id, "message to react not found")

    def apply(stored: StoredMessage) -> StoredMessage:
        stored.reactions = list(body.reaction or [])
        return stored

    state.messages.edit_message(message.message_id, apply)
    state.responses.set_message_reaction.append(body)
    return True
