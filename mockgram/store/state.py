import logging
import threading

from mockgram.responses import Responses
from mockgram.store.chats import ChatStore
from mockgram.store.files import FileStore
from mockgram.store.messages import MESSAGE_ID_BASE, MessageStore

logger = logging.getLogger("mockgram.store.state")


class State:
    """
    Everything one dispatch run owns.

    Route handlers hold ``lock`` for their whole read-validate-mutate-log
    sequence, so concurrent calls never observe a half-applied update.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.chats = ChatStore()
        self.messages = MessageStore()
        self.files = FileStore()
        self.responses = Responses()

    def reset(self) -> None:
        with self.lock:
            self.chats.reset()
            self.messages.reset()
            self.files.reset()
            self.responses.clear()
        logger.debug("State reset, next message id is %d", MESSAGE_ID_BASE + 1)

    def get_responses(self) -> Responses:
        with self.lock:
            return self.responses.snapshot()
