"""
Ordering of queued updates.

Updates with the same distribution key are processed one after another in
submission order; different keys run concurrently. A key of None puts the
update in a group of its own.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Hashable, Iterable

from aiogram.types import Update

logger = logging.getLogger("mockgram.distribution")

DistributionFunction = Callable[[Update], Hashable | None]

_MESSAGE_EVENTS = (
    "message",
    "edited_message",
    "channel_post",
    "edited_channel_post",
    "business_message",
    "edited_business_message",
)
_USER_EVENTS = (
    "inline_query",
    "chosen_inline_result",
    "shipping_query",
    "pre_checkout_query",
    "poll_answer",
)


def find_chat_id(update: Update) -> int | None:
    for name in _MESSAGE_EVENTS:
        message = getattr(update, name, None)
        if message is not None:
            return message.chat.id

    callback_query = update.callback_query
    if callback_query is not None:
        if callback_query.message is not None:
            return callback_query.message.chat.id
        return callback_query.from_user.id

    for name in ("my_chat_member", "chat_member", "chat_join_request", "message_reaction"):
        event = getattr(update, name, None)
        if event is not None:
            return event.chat.id
    return None


def find_user_id(update: Update) -> int | None:
    for name in _MESSAGE_EVENTS:
        message = getattr(update, name, None)
        if message is not None:
            return message.from_user.id if message.from_user is not None else None

    if update.callback_query is not None:
        return update.callback_query.from_user.id

    for name in _USER_EVENTS + ("my_chat_member", "chat_member", "chat_join_request"):
        event = getattr(update, name, None)
        if event is not None:
            user = getattr(event, "from_user", None) or getattr(event, "user", None)
            return user.id if user is not None else None
    return None


def default_distribution_key(update: Update) -> Hashable | None:
    """Per-chat ordering, the way a real dispatcher partitions updates."""
    return find_chat_id(update)


def group_updates(updates: Iterable[Update], distribution_function: DistributionFunction) -> list[list[Update]]:
    groups: dict[Hashable, list[Update]] = {}
    ordered: list[list[Update]] = []
    for update in updates:
        key = distribution_function(update)
        if key is None:
            ordered.append([update])
            continue
        group = groups.get(key)
        if group is None:
            group = groups[key] = []
            ordered.append(group)
        group.append(update)
    return ordered


async def run_partitioned(
    updates: Iterable[Update],
    distribution_function: DistributionFunction,
    feed: Callable[[Update], Awaitable[None]],
) -> None:
    """Feed every update, serial within a group and concurrent across groups."""

    async def run_group(group: list[Update]) -> None:
        for update in group:
            await feed(update)

    groups = group_updates(updates, distribution_function)
    logger.debug("Dispatching %d group(s)", len(groups))
    tasks = [asyncio.create_task(run_group(group)) for group in groups]
    if not tasks:
        return

    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
