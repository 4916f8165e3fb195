"""Helpers shared by the route handlers."""
import logging
from typing import Any

from mockgram.server.bodies import InputFileValue, ReplyableBody, SendBody
from mockgram.server.errors import BadRequestError
from mockgram.server.routes.registry import RouteContext
from mockgram.store.entities import ChatInfo, MessageContent, StoredFile, StoredMessage, utcnow
from mockgram.store.state import State

logger = logging.getLogger("mockgram.server.routes.common")


def inline_markup(reply_markup: dict[str, Any] | None) -> dict[str, Any] | None:
    """Only inline keyboards are stored, reply keyboards live on the client."""
    if reply_markup is not None and "inline_keyboard" in reply_markup:
        return reply_markup
    return None


def require_message(state: State, chat: ChatInfo, message_id: int, reason: str) -> StoredMessage:
    """Live message in ``chat`` or a Bad Request naming ``reason``."""
    message = state.messages.get_message(message_id)
    if message is None or message.chat.id != chat.id:
        logger.warning("Message %d not found in chat %d", message_id, chat.id)
        raise BadRequestError(reason)
    return message


def resolve_reply(state: State, chat: ChatInfo, body: ReplyableBody) -> StoredMessage | None:
    """Copy of the replied-to message, or None when not replying."""
    target_id = body.reply_target()
    if target_id is None:
        return None

    reply_chat = chat
    reply_chat_id = body.reply_chat_id()
    if reply_chat_id is not None:
        reply_chat = state.chats.resolve(reply_chat_id)

    message = state.messages.get_message(target_id)
    if message is None or message.chat.id != reply_chat.id:
        if body.may_send_without_reply():
            return None
        raise BadRequestError("message to be replied not found")
    return message.as_reply_target()


def build_message(
    ctx: RouteContext,
    chat: ChatInfo,
    body: ReplyableBody,
    content: MessageContent,
    reply_to: StoredMessage | None = None,
) -> StoredMessage:
    """Draft of a bot-sent message; the store assigns its ID."""
    return StoredMessage(
        message_id=0,
        chat=chat,
        content=content,
        date=utcnow(),
        from_user=ctx.me.user,
        reply_to_message=reply_to,
        reply_markup=inline_markup(body.reply_markup) if isinstance(body, SendBody) else None,
        message_thread_id=body.message_thread_id,
        has_protected_content=bool(body.protect_content),
        effect_id=body.message_effect_id,
        business_connection_id=body.business_connection_id,
    )


def send(ctx: RouteContext, bucket: str, body: SendBody, content: MessageContent, **envelope: Any) -> dict[str, Any]:
    """Resolve chat and reply, store the message and log it."""
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    reply_to = resolve_reply(state, chat, body)
    draft = build_message(ctx, chat, body, content, reply_to)
    for name, value in envelope.items():
        setattr(draft, name, value)

    message = state.messages.add_message(draft)
    state.responses.add_sent_message(bucket, message, body)
    logger.debug("%s message %d sent to chat %d", bucket, message.message_id, chat.id)
    return message.to_api()


def store_input_file(state: State, kind: str, value: InputFileValue, default_mime: str) -> StoredFile:
    """Register an upload, or look up a file sent by ``file_id``."""
    if value.file_id is not None:
        return state.files.add_reference(kind, value.file_id)
    return state.files.add_upload(kind, value.file_name, value.data, value.mime_type_or(default_mime))
