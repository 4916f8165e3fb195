"""
Chat administration API method handlers.

Handles: pinChatMessage, unpinChatMessage, unpinAllChatMessages,
banChatMember, unbanChatMember, restrictChatMember, sendChatAction
"""
import logging

from mockgram.server.bodies import (
    BanChatMemberBody,
    PinChatMessageBody,
    RestrictChatMemberBody,
    SendChatActionBody,
    UnbanChatMemberBody,
    UnpinAllChatMessagesBody,
    UnpinChatMessageBody,
)
from mockgram.server.routes.common import require_message
from mockgram.server.routes.registry import RouteContext, route
from mockgram.store.entities import StoredMessage
from mockgram.store.state import State

logger = logging.getLogger("mockgram.server.routes.chat")


def _set_pinned(state: State, message_id: int, is_pinned: bool) -> None:
    def apply(stored: StoredMessage) -> StoredMessage:
        stored.is_pinned = is_pinned
        return stored

    # Deleted messages may still sit in the pin list
    if state.messages.get_message(message_id) is not None:
        state.messages.edit_message(message_id, apply)


@route("pinChatMessage", PinChatMessageBody)
def handle_pin_chat_message(body: PinChatMessageBody, ctx: RouteContext) -> bool:
    """Handle pinChatMessage API call."""
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    require_message(state, chat, body.message_id, "message to pin not found")

    state.chats.pin(chat.id, body.message_id)
    _set_pinned(state, body.message_id, True)
    state.responses.pinned_chat_messages.append(body)
    logger.debug("pinChatMessage: chat=%d, message=%d", chat.id, body.message_id)
    return True


@route("unpinChatMessage", UnpinChatMessageBody)
def handle_unpin_chat_message(body: UnpinChatMessageBody, ctx: RouteContext) -> bool:
    """Handle unpinChatMessage API call. Without message_id unpins the latest pin."""
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    if body.message_id is not None:
        require_message(state, chat, body.message_id, "message to unpin not found")

    unpinned = state.chats.unpin(chat.id, body.message_id)
    if unpinned is not None:
        _set_pinned(state, unpinned, False)
    state.responses.unpinned_chat_messages.append(body)
    logger.debug("unpinChatMessage: chat=%d, message=%s", chat.id, unpinned)
    return True


@route("unpinAllChatMessages", UnpinAllChatMessagesBody)
def handle_unpin_all_chat_messages(body: UnpinAllChatMessagesBody, ctx: RouteContext) -> bool:
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    for message_id in state.chats.unpin_all(chat.id):
        _set_pinned(state, message_id, False)
    state.responses.unpinned_all_chat_messages.append(body)
    return True


@route("banChatMember", BanChatMemberBody)
def handle_ban_chat_member(body: BanChatMemberBody, ctx: RouteContext) -> bool:
    """Handle banChatMember API call; ``revoke_messages`` deletes the user's messages."""
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    state.chats.ban(chat.id, body.user_id)

    if body.revoke_messages:
        for message in state.messages.messages(chat_id=chat.id):
            if message.from_user is not None and message.from_user.id == body.user_id:
                state.messages.tombstone_message(message.message_id)
        logger.debug("banChatMember: revoked messages of %d in chat %d", body.user_id, chat.id)

    state.responses.banned_chat_members.append(body)
    return True


@route("unbanChatMember", UnbanChatMemberBody)
def handle_unban_chat_member(body: UnbanChatMemberBody, ctx: RouteContext) -> bool:
    state = ctx.state
    chat = state.chats.resolve(body.chat_id)
    state.chats.unban(chat.id, body.user_id)
    state.responses.unbanned_chat_members.append(body)
    return True


@route("restrictChatMember", RestrictChatMemberBody)
def handle_restrict_chat_member(body: RestrictChatMemberBody, ctx: RouteContext) -> bool:
    state = ctx.state
    state.chats.resolve(body.chat_id)
    state.responses.restricted_chat_members.append(body)
    return True


@route("sendChatAction", SendChatActionBody)
def handle_send_chat_action(body: SendChatActionBody, ctx: RouteContext) -> bool:
    state = ctx.state
    state.chats.resolve(body.chat_id)
    state.responses.sent_chat_actions.append(body)
    logger.debug("sendChatAction: chat=%s, action=%s", body.chat_id, body.action)
    return True
