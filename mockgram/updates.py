"""
Builders for the inbound events a test feeds to MockBot.

Each ``make_*`` method returns an aiogram Update from one user in one chat.
Message IDs count up from 1, the first IDs the mocked store hands out.
"""
from datetime import datetime, timezone
from typing import Any

from aiogram.types import (
    Audio,
    CallbackQuery,
    Chat,
    Contact,
    Document,
    InaccessibleMessage,
    InlineKeyboardMarkup,
    Location,
    Message,
    PhotoSize,
    Update,
    User,
    Video,
    VideoNote,
    Voice,
)

from mockgram.config import MockSettings, get_settings

DEFAULT_USER_ID = 123456789


class UpdateBuilder:
    """Builds Update objects for testing."""

    def __init__(
        self,
        user_id: int = DEFAULT_USER_ID,
        chat_id: int | None = None,
        chat_type: str = "private",
        settings: MockSettings | None = None,
    ) -> None:
        self.user_id = user_id
        self.chat_id = chat_id if chat_id is not None else user_id
        self.chat_type = chat_type
        self.settings = settings or get_settings()
        self._update_id_counter = 0
        self._message_id_counter = 0

    def _get_next_update_id(self) -> int:
        self._update_id_counter += 1
        return self._update_id_counter

    def _get_next_message_id(self) -> int:
        self._message_id_counter += 1
        return self._message_id_counter

    def make_user(self) -> User:
        return User(
            id=self.user_id,
            is_bot=False,
            first_name="Test",
            last_name="User",
            username="testuser",
            language_code="en",
        )

    def make_bot_user(self) -> User:
        return User(
            id=self.settings.bot_id,
            is_bot=True,
            first_name=self.settings.bot_first_name,
            username=self.settings.bot_username,
        )

    def make_chat(self) -> Chat:
        if self.chat_type == "private":
            return Chat(
                id=self.chat_id,
                type="private",
                first_name="Test",
                last_name="User",
                username="testuser",
            )
        return Chat(id=self.chat_id, type=self.chat_type, title="Test Group")

    def make_message(self, message_id: int | None = None, **payload: Any) -> Message:
        """A user message carrying ``payload`` (text=..., photo=..., ...)."""
        return Message(
            message_id=message_id if message_id is not None else self._get_next_message_id(),
            date=datetime.now(timezone.utc),
            chat=self.make_chat(),
            from_user=self.make_user(),
            **payload,
        )

    def _wrap(self, **event: Any) -> Update:
        return Update(update_id=self._get_next_update_id(), **event)

    def make_message_update(self, text: str, reply_to: Message | None = None) -> Update:
        """Create Update with text message."""
        return self._wrap(message=self.make_message(text=text, reply_to_message=reply_to))

    def make_edited_message_update(self, message_id: int, text: str) -> Update:
        """User edited an earlier message of theirs to ``text``."""
        message = self.make_message(
            message_id=message_id,
            text=text,
            edit_date=int(datetime.now(timezone.utc).timestamp()),
        )
        return self._wrap(edited_message=message)

    def make_contact_update(
        self,
        phone_number: str,
        first_name: str,
        last_name: str | None = None,
    ) -> Update:
        contact = Contact(
            phone_number=phone_number,
            first_name=first_name,
            last_name=last_name,
            user_id=self.user_id,
        )
        return self._wrap(message=self.make_message(contact=contact))

    def make_location_update(self, latitude: float, longitude: float) -> Update:
        location = Location(latitude=latitude, longitude=longitude)
        return self._wrap(message=self.make_message(location=location))

    def make_callback_update(
        self,
        callback_data: str,
        message_id: int | None = None,
        message_text: str = "Message with buttons",
        reply_markup: InlineKeyboardMarkup | None = None,
        inaccessible: bool = False,
    ) -> Update:
        """
        Create Update with callback query (button click).

        The clicked message is attributed to the bot. With ``inaccessible``
        the query carries only a stub of it, as Telegram does for messages
        older than 48 hours.
        """
        message_id = message_id if message_id is not None else self._get_next_message_id()
        if inaccessible:
            message: Message | InaccessibleMessage = InaccessibleMessage(
                chat=self.make_chat(),
                message_id=message_id,
            )
        else:
            message = Message(
                message_id=message_id,
                date=datetime.now(timezone.utc),
                chat=self.make_chat(),
                from_user=self.make_bot_user(),
                text=message_text,
                reply_markup=reply_markup,
            )

        callback = CallbackQuery(
            id=f"callback_{self._get_next_update_id()}",
            from_user=self.make_user(),
            chat_instance=str(self.chat_id),
            data=callback_data,
            message=message,
        )
        return self._wrap(callback_query=callback)

    def make_photo_update(
        self,
        file_id: str = "test_photo_id",
        caption: str | None = None,
    ) -> Update:
        """Create Update with photo message, smallest size first."""
        photo_sizes = [
            PhotoSize(
                file_id=f"{file_id}_small",
                file_unique_id=f"unique_{file_id}_small",
                width=90,
                height=90,
            ),
            PhotoSize(
                file_id=file_id,
                file_unique_id=f"unique_{file_id}",
                width=800,
                height=600,
                file_size=2048,
            ),
        ]
        return self._wrap(message=self.make_message(photo=photo_sizes, caption=caption))

    def make_video_update(
        self,
        file_id: str = "test_video_id",
        caption: str | None = None,
        duration: int = 30,
    ) -> Update:
        video = Video(
            file_id=file_id,
            file_unique_id=f"unique_{file_id}",
            width=1920,
            height=1080,
            duration=duration,
        )
        return self._wrap(message=self.make_message(video=video, caption=caption))

    def make_video_note_update(
        self,
        file_id: str = "test_video_note_id",
        duration: int = 15,
        length: int = 240,
    ) -> Update:
        """Create Update with video note message (round video)."""
        video_note = VideoNote(
            file_id=file_id,
            file_unique_id=f"unique_{file_id}",
            length=length,
            duration=duration,
        )
        return self._wrap(message=self.make_message(video_note=video_note))

    def make_audio_update(self, file_id: str = "test_audio_id", title: str | None = None) -> Update:
        audio = Audio(file_id=file_id, file_unique_id=f"unique_{file_id}", duration=180, title=title)
        return self._wrap(message=self.make_message(audio=audio))

    def make_voice_update(self, file_id: str = "test_voice_id", duration: int = 5) -> Update:
        voice = Voice(file_id=file_id, file_unique_id=f"unique_{file_id}", duration=duration)
        return self._wrap(message=self.make_message(voice=voice))

    def make_document_update(
        self,
        file_id: str = "test_document_id",
        file_name: str | None = "document.pdf",
        mime_type: str = "application/pdf",
        caption: str | None = None,
    ) -> Update:
        document = Document(
            file_id=file_id,
            file_unique_id=f"unique_{file_id}",
            file_name=file_name,
            mime_type=mime_type,
        )
        return self._wrap(message=self.make_message(document=document, caption=caption))

    def get_last_message_id(self) -> int:
        """Get the last assigned message ID."""
        return self._message_id_counter

    def reset(self) -> None:
        """Reset counters."""
        self._update_id_counter = 0
        self._message_id_counter = 0
