from mockgram.server.app import FakeTelegramServer
from mockgram.server.manager import ServerManager, ServerStatus

__all__ = ["FakeTelegramServer", "ServerManager", "ServerStatus"]
