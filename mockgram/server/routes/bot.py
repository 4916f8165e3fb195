"""
Bot-level API method handlers.

Handles: getMe, setMyCommands, answerCallbackQuery
"""
import logging
from typing import Any

from mockgram.server.bodies import AnswerCallbackQueryBody, GetMeBody, SetMyCommandsBody
from mockgram.server.routes.registry import RouteContext, route

logger = logging.getLogger("mockgram.server.routes.bot")


@route("getMe", GetMeBody)
def handle_get_me(body: GetMeBody, ctx: RouteContext) -> dict[str, Any]:
    return ctx.me.to_api()


@route("setMyCommands", SetMyCommandsBody)
def handle_set_my_commands(body: SetMyCommandsBody, ctx: RouteContext) -> bool:
    """Handle setMyCommands API call."""
    ctx.state.responses.set_my_commands.append(body)
    logger.debug("setMyCommands: %s", [command.command for command in body.commands])
    return True


@route("answerCallbackQuery", AnswerCallbackQueryBody)
def handle_answer_callback_query(body: AnswerCallbackQueryBody, ctx: RouteContext) -> bool:
    """Handle answerCallbackQuery API call."""
    ctx.state.responses.answered_callback_queries.append(body)
    logger.debug(
        "answerCallbackQuery: id=%s, text=%s, show_alert=%s",
        body.callback_query_id,
        body.text,
        body.show_alert,
    )
    return True
