"""
Method name -> handler table.

Handlers are plain functions ``handler(body, ctx) -> result``. They run
under the state lock and raise MockAPIError for Bot API failures.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable

from mockgram.server.bodies import RequestBody
from mockgram.store.entities import BotProfile
from mockgram.store.state import State

logger = logging.getLogger("mockgram.server.routes")


@dataclass
class RouteContext:
    state: State
    me: BotProfile


Handler = Callable[[Any, RouteContext], Any]


@dataclass(frozen=True)
class Route:
    method: str
    body: type[RequestBody]
    handler: Handler


ROUTES: dict[str, Route] = {}


def route(method: str, body: type[RequestBody]) -> Callable[[Handler], Handler]:
    """Register ``handler`` for a Bot API method (names are case-insensitive)."""

    def decorator(handler: Handler) -> Handler:
        ROUTES[method.lower()] = Route(method=method, body=body, handler=handler)
        return handler

    return decorator


def get_route(method: str) -> Route | None:
    return ROUTES.get(method.lower())
