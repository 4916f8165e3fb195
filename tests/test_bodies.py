"""
Tests for request body parsing and validation wording.
"""
import pytest
from pydantic import ValidationError

from mockgram.server.bodies import (
    DeleteMessagesBody,
    SendMediaGroupBody,
    SendMessageBody,
    SendPhotoBody,
    SendPollBody,
)
from mockgram.server.errors import describe_validation_error
from mockgram.server.parsing import Attachment, RawRequest


def raw(method: str, attachments: dict[str, Attachment] | None = None, **fields) -> RawRequest:
    return RawRequest(method=method, fields=fields, attachments=attachments or {})


class TestChatId:
    """chat_id accepts numbers, numeric strings and @handles."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("123", 123),
            ("-1001234567890", -1001234567890),
            (42, 42),
            ("@channel", "@channel"),
        ],
    )
    def test_accepted_forms(self, value, expected) -> None:
        body = raw("sendMessage", chat_id=value, text="hi").validate(SendMessageBody)
        assert body.chat_id == expected

    def test_garbage_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            raw("sendMessage", chat_id="not-a-chat", text="hi").validate(SendMessageBody)
        assert describe_validation_error(exc_info.value) == "invalid chat_id"


class TestValidationWording:
    """Validation errors become Bot API descriptions."""

    def test_missing_field_is_empty(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            raw("sendMessage", chat_id="1").validate(SendMessageBody)
        assert describe_validation_error(exc_info.value) == "text is empty"

    def test_wrong_type_is_invalid(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            raw("deleteMessages", chat_id="1", message_ids="[\"x\"]").validate(DeleteMessagesBody)
        assert describe_validation_error(exc_info.value) == "invalid message_ids"


class TestJsonFields:
    """Complex fields arrive JSON-encoded in forms."""

    def test_reply_markup_and_parameters_decoded(self) -> None:
        body = raw(
            "sendMessage",
            chat_id="1",
            text="hi",
            reply_markup='{"inline_keyboard": [[{"text": "A", "callback_data": "a"}]]}',
            reply_parameters='{"message_id": 5, "allow_sending_without_reply": true}',
        ).validate(SendMessageBody)

        assert body.reply_markup["inline_keyboard"][0][0]["text"] == "A"
        assert body.reply_target() == 5
        assert body.may_send_without_reply() is True

    def test_text_that_looks_like_json_stays_text(self) -> None:
        body = raw("sendMessage", chat_id="1", text="[1, 2]").validate(SendMessageBody)
        assert body.text == "[1, 2]"

    def test_legacy_reply_to_message_id(self) -> None:
        body = raw("sendMessage", chat_id="1", text="hi", reply_to_message_id="3").validate(SendMessageBody)
        assert body.reply_target() == 3
        assert body.may_send_without_reply() is False

    def test_poll_options_accept_strings_and_objects(self) -> None:
        body = raw(
            "sendPoll",
            chat_id="1",
            question="Q?",
            options='["a", {"text": "b"}]',
        ).validate(SendPollBody)
        assert body.options == ["a", {"text": "b"}]


class TestUploads:
    """File fields resolve to InputFileValue."""

    def test_attach_reference_resolved(self) -> None:
        attachments = {"k1": Attachment(name="k1", filename="cat.png", content=b"png")}
        body = raw("sendPhoto", attachments, chat_id="1", photo="attach://k1").validate(SendPhotoBody)

        assert body.photo.file_name == "cat.png"
        assert body.file_data == b"png"
        assert body.photo.mime_type == "image/png"
        assert body.photo.is_upload

    def test_direct_file_part_resolved(self) -> None:
        attachments = {"photo": Attachment(name="photo", filename="dog.jpg", content=b"jpg")}
        body = raw("sendPhoto", attachments, chat_id="1").validate(SendPhotoBody)
        assert body.file_name == "dog.jpg"

    def test_file_id_string(self) -> None:
        body = raw("sendPhoto", chat_id="1", photo="AgACAgIAAxk").validate(SendPhotoBody)
        assert body.photo.file_id == "AgACAgIAAxk"
        assert not body.photo.is_upload

    def test_dangling_attach_reference_invalid(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            raw("sendPhoto", chat_id="1", photo="attach://missing").validate(SendPhotoBody)
        assert describe_validation_error(exc_info.value) == "invalid photo"


class TestMediaGroupBody:
    """Media group shape rules."""

    def _attachments(self, count: int) -> dict[str, Attachment]:
        return {
            f"f{i}": Attachment(name=f"f{i}", filename=f"{i}.mp3", content=b"id3")
            for i in range(count)
        }

    def test_single_item_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            raw(
                "sendMediaGroup",
                self._attachments(1),
                chat_id="1",
                media='[{"type": "audio", "media": "attach://f0"}]',
            ).validate(SendMediaGroupBody)
        assert describe_validation_error(exc_info.value) == "invalid media"

    def test_audio_mixed_with_photo_rejected(self) -> None:
        media = '[{"type": "audio", "media": "attach://f0"}, {"type": "photo", "media": "attach://f1"}]'
        with pytest.raises(ValidationError):
            raw("sendMediaGroup", self._attachments(2), chat_id="1", media=media).validate(SendMediaGroupBody)

    def test_nested_attachments_resolved(self) -> None:
        media = (
            '[{"type": "audio", "media": "attach://f0", "caption": "test"},'
            ' {"type": "audio", "media": "attach://f1"}]'
        )
        body = raw("sendMediaGroup", self._attachments(2), chat_id="1", media=media).validate(SendMediaGroupBody)

        assert [item.media.file_name for item in body.media] == ["0.mp3", "1.mp3"]
        assert [item.caption for item in body.media] == ["test", None]
