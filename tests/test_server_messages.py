"""
Tests for message routes, called through a real aiogram Bot.
"""
import asyncio

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    LabeledPrice,
    ReactionTypeEmoji,
    ReplyKeyboardMarkup,
    KeyboardButton,
    ReplyParameters,
)
from aiohttp import ClientSession

from mockgram.server.errors import NOT_MODIFIED

CHAT_ID = 123

KEYBOARD = InlineKeyboardMarkup(
    inline_keyboard=[[InlineKeyboardButton(text="Yes", callback_data="yes")]]
)


class TestSendMessage:
    """sendMessage creates, stores and logs a message."""

    @pytest.mark.asyncio
    async def test_send_message_returns_stored_message(self, fake_api) -> None:
        """The result is the stored message with bot as sender."""
        message = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Hello")

        assert message.text == "Hello"
        assert message.message_id == 1
        assert message.chat.id == CHAT_ID
        assert message.from_user.is_bot is True
        assert fake_api.state.messages.get_message(1).text == "Hello"

    @pytest.mark.asyncio
    async def test_send_message_logged_twice(self, fake_api) -> None:
        """Logged in sent_messages and in the text bucket with the request."""
        await fake_api.bot.send_message(chat_id=CHAT_ID, text="Hello")

        responses = fake_api.state.get_responses()
        assert [m.text for m in responses.sent_messages] == ["Hello"]
        entry = responses.sent_messages_text[0]
        assert entry.message.text == "Hello"
        assert entry.bot_request.text == "Hello"
        assert entry.bot_request.chat_id == CHAT_ID

    @pytest.mark.asyncio
    async def test_concurrent_sends_get_unique_ids(self, fake_api) -> None:
        """Parallel calls are served one at a time: IDs are exactly 1..N."""
        messages = await asyncio.gather(*(
            fake_api.bot.send_message(chat_id=CHAT_ID + i % 3, text=str(i)) for i in range(30)
        ))

        assert sorted(m.message_id for m in messages) == list(range(1, 31))
        assert fake_api.state.messages.max_message_id() == 30
        assert len(fake_api.state.get_responses().sent_messages) == 30

    @pytest.mark.asyncio
    async def test_ids_increase_across_chats(self, fake_api) -> None:
        first = await fake_api.bot.send_message(chat_id=1, text="a")
        second = await fake_api.bot.send_message(chat_id=2, text="b")
        assert second.message_id == first.message_id + 1

    @pytest.mark.asyncio
    async def test_inline_keyboard_echoed(self, fake_api) -> None:
        message = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Pick", reply_markup=KEYBOARD)
        assert message.reply_markup.inline_keyboard[0][0].callback_data == "yes"

    @pytest.mark.asyncio
    async def test_reply_keyboard_not_echoed(self, fake_api) -> None:
        markup = ReplyKeyboardMarkup(keyboard=[[KeyboardButton(text="A")]])
        message = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Pick", reply_markup=markup)
        assert message.reply_markup is None

    @pytest.mark.asyncio
    async def test_reply_embeds_target(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Question")
        reply = await fake_api.bot.send_message(
            chat_id=CHAT_ID,
            text="Answer",
            reply_parameters=ReplyParameters(message_id=original.message_id),
        )
        assert reply.reply_to_message.message_id == original.message_id
        assert reply.reply_to_message.text == "Question"

    @pytest.mark.asyncio
    async def test_reply_to_missing_message_fails(self, fake_api) -> None:
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.send_message(
                chat_id=CHAT_ID,
                text="Answer",
                reply_parameters=ReplyParameters(message_id=999),
            )
        assert "message to be replied not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_reply_to_other_chat_fails(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=456, text="Elsewhere")
        with pytest.raises(TelegramBadRequest):
            await fake_api.bot.send_message(
                chat_id=CHAT_ID,
                text="Answer",
                reply_parameters=ReplyParameters(message_id=original.message_id),
            )

    @pytest.mark.asyncio
    async def test_allow_sending_without_reply(self, fake_api) -> None:
        message = await fake_api.bot.send_message(
            chat_id=CHAT_ID,
            text="Answer",
            reply_parameters=ReplyParameters(message_id=999, allow_sending_without_reply=True),
        )
        assert message.reply_to_message is None

    @pytest.mark.asyncio
    async def test_channel_handle(self, fake_api) -> None:
        message = await fake_api.bot.send_message(chat_id="@news", text="Breaking")
        assert message.chat.type == "channel"
        assert message.chat.username == "news"


class TestOtherSends:
    """Non-media content kinds."""

    @pytest.mark.asyncio
    async def test_send_location(self, fake_api) -> None:
        message = await fake_api.bot.send_location(chat_id=CHAT_ID, latitude=51.5, longitude=-0.12)
        assert message.location.latitude == 51.5
        assert len(fake_api.state.get_responses().sent_messages_location) == 1

    @pytest.mark.asyncio
    async def test_send_venue(self, fake_api) -> None:
        message = await fake_api.bot.send_venue(
            chat_id=CHAT_ID,
            latitude=1.0,
            longitude=2.0,
            title="Cafe",
            address="Main st",
        )
        assert message.venue.title == "Cafe"
        assert message.location.longitude == 2.0

    @pytest.mark.asyncio
    async def test_send_contact(self, fake_api) -> None:
        message = await fake_api.bot.send_contact(chat_id=CHAT_ID, phone_number="+100", first_name="Ann")
        assert message.contact.phone_number == "+100"
        assert fake_api.state.get_responses().sent_messages_contact[0].bot_request.first_name == "Ann"

    @pytest.mark.parametrize(("emoji", "maximum"), [("🎲", 6), ("🏀", 5), ("🎰", 64)])
    @pytest.mark.asyncio
    async def test_send_dice_in_range(self, fake_api, emoji: str, maximum: int) -> None:
        message = await fake_api.bot.send_dice(chat_id=CHAT_ID, emoji=emoji)
        assert message.dice.emoji == emoji
        assert 1 <= message.dice.value <= maximum

    @pytest.mark.asyncio
    async def test_send_poll(self, fake_api) -> None:
        message = await fake_api.bot.send_poll(chat_id=CHAT_ID, question="Tea?", options=["Yes", "No"])
        assert message.poll.question == "Tea?"
        assert [o.text for o in message.poll.options] == ["Yes", "No"]
        assert message.poll.is_anonymous is True

    @pytest.mark.asyncio
    async def test_poll_payload_has_required_fields(self, fake_api) -> None:
        """Options carry persistent_id, the poll carries revoting and members flags."""
        message = await fake_api.bot.send_poll(chat_id=CHAT_ID, question="Tea?", options=["Yes", "No"])

        poll = fake_api.state.messages.get_message(message.message_id).to_api()["poll"]
        assert [o["persistent_id"] for o in poll["options"]] == ["0", "1"]
        assert poll["allows_revoting"] is False
        assert poll["members_only"] is False

    @pytest.mark.asyncio
    async def test_send_invoice_totals_prices(self, fake_api) -> None:
        message = await fake_api.bot.send_invoice(
            chat_id=CHAT_ID,
            title="Coffee",
            description="Large",
            payload="order-1",
            currency="XTR",
            prices=[LabeledPrice(label="Cup", amount=100), LabeledPrice(label="Tip", amount=25)],
        )
        assert message.invoice.total_amount == 125


class TestEditing:
    """Edits of stored messages."""

    @pytest.mark.asyncio
    async def test_edit_text(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Before")
        edited = await fake_api.bot.edit_message_text(
            text="After",
            chat_id=CHAT_ID,
            message_id=original.message_id,
        )

        assert edited.text == "After"
        assert edited.edit_date is not None
        responses = fake_api.state.get_responses()
        assert responses.edited_messages_text[0].message.text == "After"

    @pytest.mark.asyncio
    async def test_edit_unchanged_text_fails(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Same")
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.edit_message_text(text="Same", chat_id=CHAT_ID, message_id=original.message_id)
        assert NOT_MODIFIED in exc_info.value.message
        assert fake_api.state.get_responses().edited_messages_text == []

    @pytest.mark.asyncio
    async def test_edit_missing_message_fails(self, fake_api) -> None:
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.edit_message_text(text="x", chat_id=CHAT_ID, message_id=404)
        assert "message to edit not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_edit_text_of_contact_fails(self, fake_api) -> None:
        contact = await fake_api.bot.send_contact(chat_id=CHAT_ID, phone_number="+1", first_name="A")
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.edit_message_text(text="x", chat_id=CHAT_ID, message_id=contact.message_id)
        assert "there is no text in the message to edit" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_edit_caption_of_text_fails(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Plain")
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.edit_message_caption(caption="x", chat_id=CHAT_ID, message_id=original.message_id)
        assert "there is no caption in the message to edit" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_edit_reply_markup(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Pick", reply_markup=KEYBOARD)
        edited = await fake_api.bot.edit_message_reply_markup(chat_id=CHAT_ID, message_id=original.message_id)

        assert edited.reply_markup is None
        assert len(fake_api.state.get_responses().edited_messages_reply_markup) == 1

    @pytest.mark.asyncio
    async def test_same_reply_markup_not_modified(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Pick", reply_markup=KEYBOARD)
        with pytest.raises(TelegramBadRequest):
            await fake_api.bot.edit_message_reply_markup(
                chat_id=CHAT_ID,
                message_id=original.message_id,
                reply_markup=KEYBOARD,
            )


class TestDeleting:
    """Deletion leaves a tombstone."""

    @pytest.mark.asyncio
    async def test_delete_then_edit_fails(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Bye")
        assert await fake_api.bot.delete_message(chat_id=CHAT_ID, message_id=original.message_id)

        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.edit_message_text(text="Hi", chat_id=CHAT_ID, message_id=original.message_id)
        assert "message to edit not found" in exc_info.value.message
        assert fake_api.state.get_responses().deleted_messages[0].message.text == "Bye"

    @pytest.mark.asyncio
    async def test_deleted_message_cannot_be_pinned_or_replied_to(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Bye")
        await fake_api.bot.delete_message(chat_id=CHAT_ID, message_id=original.message_id)

        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.pin_chat_message(chat_id=CHAT_ID, message_id=original.message_id)
        assert "message to pin not found" in exc_info.value.message

        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.send_message(
                chat_id=CHAT_ID,
                text="Reply",
                reply_parameters=ReplyParameters(message_id=original.message_id),
            )
        assert "message to be replied not found" in exc_info.value.message
        responses = fake_api.state.get_responses()
        assert responses.pinned_chat_messages == []
        assert len(responses.sent_messages) == 1

    @pytest.mark.asyncio
    async def test_delete_twice_fails(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Bye")
        await fake_api.bot.delete_message(chat_id=CHAT_ID, message_id=original.message_id)
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.delete_message(chat_id=CHAT_ID, message_id=original.message_id)
        assert "message to delete not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_delete_messages_skips_missing(self, fake_api) -> None:
        first = await fake_api.bot.send_message(chat_id=CHAT_ID, text="a")
        second = await fake_api.bot.send_message(chat_id=CHAT_ID, text="b")

        assert await fake_api.bot.delete_messages(
            chat_id=CHAT_ID,
            message_ids=[first.message_id, second.message_id, 999],
        )
        assert len(fake_api.state.get_responses().deleted_messages) == 2

    @pytest.mark.asyncio
    async def test_delete_messages_none_found_fails(self, fake_api) -> None:
        with pytest.raises(TelegramBadRequest):
            await fake_api.bot.delete_messages(chat_id=CHAT_ID, message_ids=[998, 999])


class TestForwardAndCopy:
    """Forwarding keeps the origin, copying does not."""

    @pytest.mark.asyncio
    async def test_forward_sets_origin(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="News")
        forwarded = await fake_api.bot.forward_message(
            chat_id=456,
            from_chat_id=CHAT_ID,
            message_id=original.message_id,
        )

        assert forwarded.text == "News"
        assert forwarded.chat.id == 456
        assert forwarded.forward_origin.type == "user"
        assert forwarded.forward_origin.date == original.date
        responses = fake_api.state.get_responses()
        assert len(responses.forwarded_messages) == 1
        assert len(responses.sent_messages) == 2

    @pytest.mark.asyncio
    async def test_forward_missing_fails(self, fake_api) -> None:
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.forward_message(chat_id=456, from_chat_id=CHAT_ID, message_id=77)
        assert "message to forward not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_copy_returns_message_id(self, fake_api) -> None:
        original = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Copy me", reply_markup=KEYBOARD)
        result = await fake_api.bot.copy_message(
            chat_id=456,
            from_chat_id=CHAT_ID,
            message_id=original.message_id,
        )

        copied = fake_api.state.messages.get_message(result.message_id)
        assert copied.text == "Copy me"
        assert copied.forward_origin is None
        assert copied.get_button_callback_data("Yes") == "yes"
        assert fake_api.state.get_responses().copied_messages[0].message_id == result.message_id

    @pytest.mark.asyncio
    async def test_copy_missing_fails(self, fake_api) -> None:
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.copy_message(chat_id=456, from_chat_id=CHAT_ID, message_id=77)
        assert "message to copy not found" in exc_info.value.message


class TestChatAdministration:
    """Pins, bans and other chat-level calls."""

    @pytest.mark.asyncio
    async def test_pin_and_unpin_latest(self, fake_api) -> None:
        first = await fake_api.bot.send_message(chat_id=CHAT_ID, text="a")
        second = await fake_api.bot.send_message(chat_id=CHAT_ID, text="b")
        await fake_api.bot.pin_chat_message(chat_id=CHAT_ID, message_id=first.message_id)
        await fake_api.bot.pin_chat_message(chat_id=CHAT_ID, message_id=second.message_id)

        await fake_api.bot.unpin_chat_message(chat_id=CHAT_ID)

        assert fake_api.state.messages.get_message(first.message_id).is_pinned is True
        assert fake_api.state.messages.get_message(second.message_id).is_pinned is False
        responses = fake_api.state.get_responses()
        assert len(responses.pinned_chat_messages) == 2
        assert len(responses.unpinned_chat_messages) == 1

    @pytest.mark.asyncio
    async def test_pin_missing_fails(self, fake_api) -> None:
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.pin_chat_message(chat_id=CHAT_ID, message_id=5)
        assert "message to pin not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unpin_all(self, fake_api) -> None:
        message = await fake_api.bot.send_message(chat_id=CHAT_ID, text="a")
        await fake_api.bot.pin_chat_message(chat_id=CHAT_ID, message_id=message.message_id)
        await fake_api.bot.unpin_all_chat_messages(chat_id=CHAT_ID)

        assert fake_api.state.messages.get_message(message.message_id).is_pinned is False
        assert len(fake_api.state.get_responses().unpinned_all_chat_messages) == 1

    @pytest.mark.asyncio
    async def test_ban_and_unban_logged(self, fake_api) -> None:
        await fake_api.bot.ban_chat_member(chat_id=-100500, user_id=7)
        await fake_api.bot.unban_chat_member(chat_id=-100500, user_id=7)

        responses = fake_api.state.get_responses()
        assert responses.banned_chat_members[0].user_id == 7
        assert responses.unbanned_chat_members[0].user_id == 7
        assert not fake_api.state.chats.is_banned(-100500, 7)

    @pytest.mark.asyncio
    async def test_restrict_chat_member(self, fake_api) -> None:
        from aiogram.types import ChatPermissions

        await fake_api.bot.restrict_chat_member(
            chat_id=-100500,
            user_id=7,
            permissions=ChatPermissions(can_send_messages=False),
        )
        entry = fake_api.state.get_responses().restricted_chat_members[0]
        assert entry.user_id == 7
        assert "can_send_messages" in entry.permissions

    @pytest.mark.asyncio
    async def test_send_chat_action(self, fake_api) -> None:
        assert await fake_api.bot.send_chat_action(chat_id=CHAT_ID, action="typing")
        assert fake_api.state.get_responses().sent_chat_actions[0].action == "typing"

    @pytest.mark.asyncio
    async def test_set_message_reaction(self, fake_api) -> None:
        message = await fake_api.bot.send_message(chat_id=CHAT_ID, text="Nice")
        await fake_api.bot.set_message_reaction(
            chat_id=CHAT_ID,
            message_id=message.message_id,
            reaction=[ReactionTypeEmoji(emoji="👍")],
        )
        stored = fake_api.state.messages.get_message(message.message_id)
        assert stored.reactions[0]["emoji"] == "👍"

    @pytest.mark.asyncio
    async def test_reaction_to_missing_message_fails(self, fake_api) -> None:
        with pytest.raises(TelegramBadRequest) as exc_info:
            await fake_api.bot.set_message_reaction(chat_id=CHAT_ID, message_id=5, reaction=[])
        assert "message to react not found" in exc_info.value.message


class TestBotCalls:
    """Bot-level methods."""

    @pytest.mark.asyncio
    async def test_get_me(self, fake_api, settings) -> None:
        me = await fake_api.bot.get_me()
        assert me.id == settings.bot_id
        assert me.is_bot is True
        assert me.username == settings.bot_username

    @pytest.mark.asyncio
    async def test_set_my_commands(self, fake_api) -> None:
        from aiogram.types import BotCommand

        await fake_api.bot.set_my_commands([BotCommand(command="start", description="Start")])
        entry = fake_api.state.get_responses().set_my_commands[0]
        assert entry.commands[0].command == "start"

    @pytest.mark.asyncio
    async def test_answer_callback_query(self, fake_api) -> None:
        await fake_api.bot.answer_callback_query(callback_query_id="cb1", text="Done")
        entry = fake_api.state.get_responses().answered_callback_queries[0]
        assert entry.callback_query_id == "cb1"
        assert entry.text == "Done"


class TestRawHttp:
    """Status codes and envelopes as seen on the wire."""

    @pytest.mark.asyncio
    async def test_unknown_method_is_404(self, fake_api, settings) -> None:
        async with ClientSession() as session:
            async with session.post(f"{fake_api.url}/bot{settings.bot_token}/sendTelepathy") as response:
                assert response.status == 404
                data = await response.json()

        assert data == {"ok": False, "error_code": 404, "description": "Not Found: method not found"}

    @pytest.mark.asyncio
    async def test_missing_field_is_400(self, fake_api, settings) -> None:
        async with ClientSession() as session:
            async with session.post(
                f"{fake_api.url}/bot{settings.bot_token}/sendMessage",
                data={"chat_id": "1"},
            ) as response:
                assert response.status == 400
                data = await response.json()

        assert data["description"] == "Bad Request: text is empty"

    @pytest.mark.asyncio
    async def test_json_body_accepted(self, fake_api, settings) -> None:
        async with ClientSession() as session:
            async with session.post(
                f"{fake_api.url}/bot{settings.bot_token}/sendMessage",
                json={"chat_id": 5, "text": "json"},
            ) as response:
                data = await response.json()

        assert data["ok"] is True
        assert data["result"]["text"] == "json"

    @pytest.mark.asyncio
    async def test_method_names_case_insensitive(self, fake_api, settings) -> None:
        async with ClientSession() as session:
            async with session.post(
                f"{fake_api.url}/bot{settings.bot_token}/sendmessage",
                data={"chat_id": "5", "text": "lower"},
            ) as response:
                assert response.status == 200

    @pytest.mark.asyncio
    async def test_every_call_recorded(self, fake_api, settings) -> None:
        await fake_api.bot.send_message(chat_id=CHAT_ID, text="ok")
        with pytest.raises(TelegramBadRequest):
            await fake_api.bot.delete_message(chat_id=CHAT_ID, message_id=999)

        responses = fake_api.state.get_responses()
        assert [r.method for r in responses.requests] == ["sendMessage", "deleteMessage"]
        assert responses.get_requests_by_method("sendMessage")[0].data["text"] == "ok"
