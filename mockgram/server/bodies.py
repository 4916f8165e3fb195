"""
Typed request bodies of the mocked Bot API methods.

Field names follow the Bot API. Form posts deliver every scalar as a string
and every complex value as a JSON string, so complex fields are decoded
here; uploads are resolved through the validation context.
"""
import json
from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from mockgram.server.parsing import Attachment
from mockgram.store.files import guess_mime_type


def parse_json_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode()
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            # Left as is, type validation reports it
            return value
    return value


def parse_chat_id(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if value.startswith("@") and len(value) > 1:
            return value
        try:
            return int(value)
        except ValueError as exc:
            raise ValueError("chat_id must be an integer or an @username") from exc
    return value


@dataclass
class InputFileValue:
    """A file argument: fresh upload bytes, a known file_id, or a URL."""

    file_name: str | None
    data: bytes = field(default=b"", repr=False)
    file_id: str | None = None
    url: str | None = None
    # Guessed from the file name while parsing
    mime_type: str | None = None

    @property
    def is_upload(self) -> bool:
        return self.file_id is None

    def mime_type_or(self, default: str) -> str:
        return self.mime_type or default

    @classmethod
    def from_attachment(cls, attachment: Attachment) -> "InputFileValue":
        return cls(
            file_name=attachment.filename,
            data=attachment.content,
            mime_type=guess_mime_type(attachment.filename),
        )


def resolve_input_file(value: Any, info: ValidationInfo) -> Any:
    if isinstance(value, InputFileValue):
        return value
    if isinstance(value, Attachment):
        return InputFileValue.from_attachment(value)
    if isinstance(value, str) and value:
        if value.startswith("attach://"):
            attachments = (info.context or {}).get("attachments") or {}
            attachment = attachments.get(value.removeprefix("attach://"))
            if attachment is None:
                raise ValueError(f"no file part named by {value}")
            return InputFileValue.from_attachment(attachment)
        if value.startswith(("http://", "https://")):
            file_name = value.rsplit("/", 1)[-1] or None
            return InputFileValue(file_name=file_name, url=value, mime_type=guess_mime_type(file_name))
        return InputFileValue(file_name=None, file_id=value)
    raise ValueError("expected an upload, a file_id or a URL")


JsonValue = BeforeValidator(parse_json_value)

ChatId = Annotated[int | str, BeforeValidator(parse_chat_id)]
InputFile = Annotated[InputFileValue, BeforeValidator(resolve_input_file)]
Entities = Annotated[list[dict[str, Any]] | None, JsonValue]
JsonObject = Annotated[dict[str, Any] | None, JsonValue]


class RequestBody(BaseModel):
    """Common base: unknown Bot API fields are kept, not rejected."""

    model_config = ConfigDict(extra="allow")

    # Fields that may also arrive as a same-named file part
    upload_fields: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _attach_direct_uploads(cls, data: Any, info: ValidationInfo) -> Any:
        attachments = (info.context or {}).get("attachments") or {}
        if not cls.upload_fields or not attachments or not isinstance(data, dict):
            return data
        data = dict(data)
        for name in cls.upload_fields:
            if name not in data and name in attachments:
                data[name] = attachments[name]
        return data


class ReplyParameters(BaseModel):
    model_config = ConfigDict(extra="allow")

    message_id: int
    chat_id: ChatId | None = None
    allow_sending_without_reply: bool | None = None
    quote: str | None = None
    quote_parse_mode: str | None = None
    quote_entities: list[dict[str, Any]] | None = None
    quote_position: int | None = None


class ReplyableBody(RequestBody):
    chat_id: ChatId
    message_thread_id: int | None = None
    business_connection_id: str | None = None
    disable_notification: bool | None = None
    protect_content: bool | None = None
    allow_paid_broadcast: bool | None = None
    message_effect_id: str | None = None
    reply_parameters: Annotated[ReplyParameters | None, JsonValue] = None
    reply_to_message_id: int | None = None
    allow_sending_without_reply: bool | None = None

    def reply_target(self) -> int | None:
        if self.reply_parameters is not None:
            return self.reply_parameters.message_id
        return self.reply_to_message_id

    def reply_chat_id(self) -> int | str | None:
        if self.reply_parameters is not None:
            return self.reply_parameters.chat_id
        return None

    def may_send_without_reply(self) -> bool:
        if self.reply_parameters is not None and self.reply_parameters.allow_sending_without_reply is not None:
            return self.reply_parameters.allow_sending_without_reply
        return bool(self.allow_sending_without_reply)


class SendBody(ReplyableBody):
    reply_markup: JsonObject = None


class CaptionedBody(SendBody):
    caption: str | None = None
    parse_mode: str | None = None
    caption_entities: Entities = None
    show_caption_above_media: bool | None = None


class UploadMixin:
    """Shortcuts to the uploaded file of single-file send methods."""

    upload_fields: ClassVar[tuple[str, ...]]

    @property
    def upload(self) -> InputFileValue:
        return getattr(self, self.upload_fields[0])

    @property
    def file_name(self) -> str | None:
        return self.upload.file_name

    @property
    def file_data(self) -> bytes:
        return self.upload.data


# =============================================================================
# Sending
# =============================================================================


class SendMessageBody(SendBody):
    text: str = Field(min_length=1)
    parse_mode: str | None = None
    entities: Entities = None
    link_preview_options: JsonObject = None
    disable_web_page_preview: bool | None = None


class SendPhotoBody(UploadMixin, CaptionedBody):
    upload_fields = ("photo",)

    photo: InputFile
    has_spoiler: bool | None = None


class SendVideoBody(UploadMixin, CaptionedBody):
    upload_fields = ("video",)

    video: InputFile
    duration: int | None = None
    width: int | None = None
    height: int | None = None
    has_spoiler: bool | None = None
    supports_streaming: bool | None = None


class SendAudioBody(UploadMixin, CaptionedBody):
    upload_fields = ("audio",)

    audio: InputFile
    duration: int | None = None
    performer: str | None = None
    title: str | None = None


class SendVoiceBody(UploadMixin, CaptionedBody):
    upload_fields = ("voice",)

    voice: InputFile
    duration: int | None = None


class SendDocumentBody(UploadMixin, CaptionedBody):
    upload_fields = ("document",)

    document: InputFile
    disable_content_type_detection: bool | None = None


class SendAnimationBody(UploadMixin, CaptionedBody):
    upload_fields = ("animation",)

    animation: InputFile
    duration: int | None = None
    width: int | None = None
    height: int | None = None
    has_spoiler: bool | None = None


class SendStickerBody(UploadMixin, SendBody):
    upload_fields = ("sticker",)

    sticker: InputFile
    emoji: str | None = None


class SendVideoNoteBody(UploadMixin, SendBody):
    upload_fields = ("video_note",)

    video_note: InputFile
    duration: int | None = None
    length: int | None = None


class SendLocationBody(SendBody):
    latitude: float
    longitude: float
    horizontal_accuracy: float | None = None
    live_period: int | None = None
    heading: int | None = None
    proximity_alert_radius: int | None = None


class SendVenueBody(SendBody):
    latitude: float
    longitude: float
    title: str
    address: str
    foursquare_id: str | None = None
    foursquare_type: str | None = None
    google_place_id: str | None = None
    google_place_type: str | None = None


class SendContactBody(SendBody):
    phone_number: str
    first_name: str
    last_name: str | None = None
    vcard: str | None = None


class SendDiceBody(SendBody):
    emoji: Literal["🎲", "🎯", "🏀", "⚽", "🎳", "🎰"] = "🎲"


class SendPollBody(SendBody):
    question: str = Field(min_length=1)
    options: Annotated[list[str | dict[str, Any]], JsonValue, Field(min_length=2, max_length=10)]
    question_parse_mode: str | None = None
    question_entities: Entities = None
    is_anonymous: bool | None = None
    type: Literal["regular", "quiz"] | None = None
    allows_multiple_answers: bool | None = None
    correct_option_id: int | None = None
    explanation: str | None = None
    explanation_parse_mode: str | None = None
    explanation_entities: Entities = None
    open_period: int | None = None
    close_date: int | None = None
    is_closed: bool | None = None


class LabeledPrice(BaseModel):
    label: str
    amount: int


class SendInvoiceBody(SendBody):
    title: str
    description: str
    payload: str
    currency: str
    prices: Annotated[list[LabeledPrice], JsonValue, Field(min_length=1)]
    provider_token: str | None = None
    start_parameter: str | None = None
    max_tip_amount: int | None = None
    suggested_tip_amounts: Annotated[list[int] | None, JsonValue] = None


class InputMediaItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["photo", "video", "audio", "document", "animation"]
    media: InputFile
    caption: str | None = None
    parse_mode: str | None = None
    caption_entities: list[dict[str, Any]] | None = None
    show_caption_above_media: bool | None = None
    has_spoiler: bool | None = None
    width: int | None = None
    height: int | None = None
    duration: int | None = None
    performer: str | None = None
    title: str | None = None
    supports_streaming: bool | None = None


class SendMediaGroupBody(ReplyableBody):
    media: Annotated[list[InputMediaItem], JsonValue, Field(min_length=2, max_length=10)]

    @field_validator("media")
    @classmethod
    def _check_mixing(cls, media: list[InputMediaItem]) -> list[InputMediaItem]:
        kinds = {item.type for item in media}
        for exclusive in ("audio", "document"):
            if exclusive in kinds and len(kinds) > 1:
                raise ValueError(f"{exclusive} can only be grouped with {exclusive}")
        return media


# =============================================================================
# Editing and deleting
# =============================================================================


class EditTargetBody(RequestBody):
    chat_id: ChatId | None = None
    message_id: int | None = None
    inline_message_id: str | None = None
    business_connection_id: str | None = None
    reply_markup: JsonObject = None


class EditMessageTextBody(EditTargetBody):
    text: str = Field(min_length=1)
    parse_mode: str | None = None
    entities: Entities = None
    link_preview_options: JsonObject = None
    disable_web_page_preview: bool | None = None


class EditMessageCaptionBody(EditTargetBody):
    caption: str | None = None
    parse_mode: str | None = None
    caption_entities: Entities = None
    show_caption_above_media: bool | None = None


class EditMessageReplyMarkupBody(EditTargetBody):
    pass


class DeleteMessageBody(RequestBody):
    chat_id: ChatId
    message_id: int


class DeleteMessagesBody(RequestBody):
    chat_id: ChatId
    message_ids: Annotated[list[int], JsonValue, Field(min_length=1, max_length=100)]


class ForwardMessageBody(RequestBody):
    chat_id: ChatId
    from_chat_id: ChatId
    message_id: int
    message_thread_id: int | None = None
    disable_notification: bool | None = None
    protect_content: bool | None = None
    video_start_timestamp: int | None = None


class CopyMessageBody(CaptionedBody):
    from_chat_id: ChatId
    message_id: int


# =============================================================================
# Chat administration
# =============================================================================


class PinChatMessageBody(RequestBody):
    chat_id: ChatId
    message_id: int
    disable_notification: bool | None = None
    business_connection_id: str | None = None


class UnpinChatMessageBody(RequestBody):
    chat_id: ChatId
    message_id: int | None = None
    business_connection_id: str | None = None


class UnpinAllChatMessagesBody(RequestBody):
    chat_id: ChatId


class BanChatMemberBody(RequestBody):
    chat_id: ChatId
    user_id: int
    until_date: int | None = None
    revoke_messages: bool | None = None


class UnbanChatMemberBody(RequestBody):
    chat_id: ChatId
    user_id: int
    only_if_banned: bool | None = None


class RestrictChatMemberBody(RequestBody):
    chat_id: ChatId
    user_id: int
    permissions: Annotated[dict[str, Any], JsonValue]
    use_independent_chat_permissions: bool | None = None
    until_date: int | None = None


class SendChatActionBody(RequestBody):
    chat_id: ChatId
    action: Literal[
        "typing",
        "upload_photo",
        "record_video",
        "upload_video",
        "record_voice",
        "upload_voice",
        "upload_document",
        "choose_sticker",
        "find_location",
        "record_video_note",
        "upload_video_note",
    ]
    message_thread_id: int | None = None
    business_connection_id: str | None = None


class SetMessageReactionBody(RequestBody):
    chat_id: ChatId
    message_id: int
    reaction: Annotated[list[dict[str, Any]] | None, JsonValue] = None
    is_big: bool | None = None


# =============================================================================
# Bot-level calls
# =============================================================================


class BotCommand(BaseModel):
    command: str = Field(min_length=1, max_length=32)
    description: str = Field(min_length=1, max_length=256)


class SetMyCommandsBody(RequestBody):
    commands: Annotated[list[BotCommand], JsonValue, Field(max_length=100)]
    scope: JsonObject = None
    language_code: str | None = None


class AnswerCallbackQueryBody(RequestBody):
    callback_query_id: str
    text: str | None = None
    show_alert: bool | None = None
    url: str | None = None
    cache_time: int | None = None


class GetFileBody(RequestBody):
    file_id: str


class GetMeBody(RequestBody):
    pass
