"""Lifecycle of the fake server on an ephemeral local port."""
import logging
from enum import StrEnum

from aiohttp.test_utils import TestServer

from mockgram.exceptions import ServerStateError
from mockgram.server.app import FakeTelegramServer
from mockgram.store.entities import BotProfile
from mockgram.store.state import State

logger = logging.getLogger("mockgram.server.manager")


class ServerStatus(StrEnum):
    CREATED = "created"
    LISTENING = "listening"
    STOPPED = "stopped"


class ServerManager:
    """
    Starts and stops one FakeTelegramServer.

    A manager is single use: CREATED -> LISTENING -> STOPPED.
    """

    def __init__(self, me: BotProfile, state: State, host: str = "127.0.0.1") -> None:
        self.server = FakeTelegramServer(me, state)
        self.host = host
        self.status = ServerStatus.CREATED
        self._test_server: TestServer | None = None

    @property
    def port(self) -> int:
        if self._test_server is None or self._test_server.port is None:
            raise ServerStateError("Server is not listening")
        return self._test_server.port

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    async def start(self) -> int:
        """Bind an ephemeral port and serve. Bind errors propagate."""
        if self.status is not ServerStatus.CREATED:
            raise ServerStateError(f"Cannot start a server that is {self.status}")

        self._test_server = TestServer(self.server.app, host=self.host)
        await self._test_server.start_server()
        self.status = ServerStatus.LISTENING
        logger.debug("Mock server listening at %s", self.url)
        return self.port

    async def stop(self) -> None:
        if self.status is not ServerStatus.LISTENING:
            raise ServerStateError(f"Cannot stop a server that is {self.status}")

        await self._test_server.close()
        self.status = ServerStatus.STOPPED
        logger.debug("Mock server stopped")
