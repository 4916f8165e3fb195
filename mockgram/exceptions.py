"""
Harness-level errors.

These are raised to the test, never turned into Bot API envelopes: they
mean the harness itself was misused.
"""


class MockgramError(Exception):
    """Base class for harness misuse."""


class MessageNotFoundError(MockgramError):
    """A store operation targeted a message ID that does not resolve."""

    def __init__(self, message_id: int) -> None:
        super().__init__(f"Message {message_id} not found or already deleted")
        self.message_id = message_id


class UnknownEditedMessageError(MockgramError):
    """An edited-message update refers to a message that was never registered."""

    def __init__(self, message_id: int) -> None:
        super().__init__(
            f"Edited message {message_id} was never sent in this run; "
            "queue the original message before its edit"
        )
        self.message_id = message_id


class DialogueStorageNotFoundError(MockgramError):
    """No FSM storage could be resolved from the registered dependencies."""


class NoChatIdError(MockgramError):
    """The first queued update carries no chat identifier."""


class ServerStateError(MockgramError):
    """The mock server was started or stopped out of order."""


class MockBotNotStartedError(MockgramError):
    """A MockBot operation needs the ``async with`` context."""
