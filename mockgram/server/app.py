"""
Fake Telegram Bot API HTTP server.

Accepts requests in the same format as api.telegram.org and answers them
from the run state, so an aiogram Bot cannot tell it from the real thing.
"""
import logging
from typing import Any

from aiohttp import web
from pydantic import ValidationError

from mockgram.server.envelopes import make_error_response, make_ok_response
from mockgram.server.errors import MockAPIError, describe_validation_error
from mockgram.server.parsing import RawRequest, read_request
from mockgram.server.routes import RouteContext, get_route
from mockgram.store.entities import BotProfile
from mockgram.store.state import State

logger = logging.getLogger("mockgram.server.app")

# Bot API upload limit
MAX_UPLOAD_SIZE = 50 * 1024 * 1024


class FakeTelegramServer:
    """
    Fake Telegram Bot API server.

    Routes requests to the registered handlers and records every call in
    the state's Response Log.
    """

    def __init__(self, me: BotProfile, state: State) -> None:
        self.me = me
        self.state = state
        self.app = web.Application(client_max_size=MAX_UPLOAD_SIZE)
        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup URL routes for Telegram API methods."""
        self.app.router.add_post("/bot{token}/{method}", self._handle_request)
        self.app.router.add_get("/bot{token}/{method}", self._handle_request)
        # File download route (for bot.download)
        self.app.router.add_get("/file/bot{token}/{path:.*}", self._handle_file_download)

    async def _handle_request(self, request: web.Request) -> web.Response:
        """Handle incoming API request."""
        method = request.match_info["method"]
        raw = await read_request(request, method)

        response_data = self.handle(raw)

        logger.debug("API %s -> %s", method, "ok" if response_data.get("ok") else "error")

        status = 200
        if not response_data.get("ok") and "error_code" in response_data:
            status = response_data["error_code"]

        return web.json_response(response_data, status=status)

    def handle(self, raw: RawRequest) -> dict[str, Any]:
        """Validate outside the lock, then run the handler inside it."""
        with self.state.lock:
            self.state.responses.add_request(raw.method, dict(raw.fields))

        route = get_route(raw.method)
        if route is None:
            logger.warning("Unknown API method: %s", raw.method)
            return make_error_response("Not Found: method not found", error_code=404)

        try:
            body = raw.validate(route.body)
        except ValidationError as exc:
            description = f"Bad Request: {describe_validation_error(exc)}"
            logger.warning("API %s rejected: %s", raw.method, description)
            return make_error_response(description)

        try:
            with self.state.lock:
                result = route.handler(body, RouteContext(state=self.state, me=self.me))
        except MockAPIError as exc:
            logger.warning("API %s failed: %s", raw.method, exc.description)
            return make_error_response(exc.description, error_code=exc.error_code)

        return make_ok_response(result)

    async def _handle_file_download(self, request: web.Request) -> web.Response:
        """Serve the bytes of a previously uploaded file."""
        path = request.match_info["path"]
        with self.state.lock:
            stored = self.state.files.get_file_by_path(path)

        if stored is None:
            logger.warning("Download of unknown file path %s", path)
            return web.json_response(
                make_error_response("Not Found: file not found", error_code=404),
                status=404,
            )

        return web.Response(
            body=stored.content,
            content_type=stored.mime_type or "application/octet-stream",
        )
