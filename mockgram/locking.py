"""
Process-wide lock for the active mocked bot.

A dispatching MockBot exports environment variables that other code reads,
so only one may be active at a time. The lock is reentrant for its owner,
and an owner that was garbage-collected while holding it counts as gone.
"""
import logging
import threading
import weakref
from typing import Any

logger = logging.getLogger("mockgram.locking")


class ActiveBotLock:
    def __init__(self, poll_interval: float = 0.1) -> None:
        self._condition = threading.Condition()
        self._owner: weakref.ref | None = None
        self._depth = 0
        self._poll_interval = poll_interval

    def _owner_alive(self) -> bool:
        return self._owner is not None and self._owner() is not None

    def acquire(self, owner: Any, timeout: float | None = None) -> bool:
        """Block until ``owner`` holds the lock. Meant for a worker thread."""
        with self._condition:
            if self._owner_alive() and self._owner() is owner:
                self._depth += 1
                return True

            waited = 0.0
            while self._owner_alive():
                if timeout is not None and waited >= timeout:
                    return False
                self._condition.wait(self._poll_interval)
                waited += self._poll_interval

            if self._owner is not None:
                logger.warning("Previous bot was dropped without releasing the lock, taking over")
            self._owner = weakref.ref(owner)
            self._depth = 1
            return True

    def release(self, owner: Any) -> None:
        with self._condition:
            if not self._owner_alive() or self._owner() is not owner:
                raise RuntimeError("Lock released by a bot that does not hold it")
            self._depth -= 1
            if self._depth == 0:
                self._owner = None
                self._condition.notify_all()

    def locked(self) -> bool:
        with self._condition:
            return self._owner_alive()


ACTIVE_BOT_LOCK = ActiveBotLock()
