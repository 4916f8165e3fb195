"""Errors a route handler reports back to the bot as a failed envelope."""

from pydantic import ValidationError

NOT_MODIFIED = (
    "message is not modified: specified new message content and reply markup "
    "are exactly the same as a current content and reply markup of the message"
)


class MockAPIError(Exception):
    error_code: int = 400
    prefix: str = "Bad Request"

    def __init__(self, reason: str) -> None:
        self.description = f"{self.prefix}: {reason}"
        super().__init__(self.description)


class BadRequestError(MockAPIError):
    pass


class NotFoundError(MockAPIError):
    error_code = 404
    prefix = "Not Found"


class MessageNotModifiedError(BadRequestError):
    def __init__(self) -> None:
        super().__init__(NOT_MODIFIED)


def describe_validation_error(exc: ValidationError) -> str:
    """First validation failure in Bot API wording."""
    error = exc.errors()[0]
    field_name = str(error["loc"][0]) if error["loc"] else "request"
    if error["type"] == "missing":
        return f"{field_name} is empty"
    return f"invalid {field_name}"
