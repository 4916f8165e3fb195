"""Route handlers for the mocked Bot API methods."""
from mockgram.server.routes import bot, chat, editing, media, messages  # noqa: F401 - registers routes
from mockgram.server.routes.registry import ROUTES, Route, RouteContext, get_route

__all__ = ["ROUTES", "Route", "RouteContext", "get_route"]
