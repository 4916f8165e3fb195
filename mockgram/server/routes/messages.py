"""
Message-related API method handlers.

Handles: sendMessage, sendLocation, sendVenue, sendContact, sendDice,
sendPoll, sendInvoice
"""
import logging
import random
from typing import Any

from mockgram.server.bodies import (
    SendContactBody,
    SendDiceBody,
    SendInvoiceBody,
    SendLocationBody,
    SendMessageBody,
    SendPollBody,
    SendVenueBody,
)
from mockgram.server.routes.common import send
from mockgram.server.routes.registry import RouteContext, route
from mockgram.store.entities import (
    ContactContent,
    DiceContent,
    InvoiceContent,
    LocationContent,
    PollContent,
    TextContent,
    VenueContent,
)

logger = logging.getLogger("mockgram.server.routes.messages")

DICE_MAX_VALUES = {
    "🎲": 6,
    "🎯": 6,
    "🎳": 6,
    "🏀": 5,
    "⚽": 5,
    "🎰": 64,
}


@route("sendMessage", SendMessageBody)
def handle_send_message(body: SendMessageBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle sendMessage API call."""
    logger.debug("sendMessage to chat %s: %s", body.chat_id, body.text[:50])
    content = TextContent(text=body.text, entities=body.entities or [])
    return send(ctx, "text", body, content, link_preview_options=body.link_preview_options)


@route("sendLocation", SendLocationBody)
def handle_send_location(body: SendLocationBody, ctx: RouteContext) -> dict[str, Any]:
    content = LocationContent(
        latitude=body.latitude,
        longitude=body.longitude,
        horizontal_accuracy=body.horizontal_accuracy,
        live_period=body.live_period,
        heading=body.heading,
        proximity_alert_radius=body.proximity_alert_radius,
    )
    return send(ctx, "location", body, content)


@route("sendVenue", SendVenueBody)
def handle_send_venue(body: SendVenueBody, ctx: RouteContext) -> dict[str, Any]:
    content = VenueContent(
        location=LocationContent(latitude=body.latitude, longitude=body.longitude),
        title=body.title,
        address=body.address,
        foursquare_id=body.foursquare_id,
        foursquare_type=body.foursquare_type,
        google_place_id=body.google_place_id,
        google_place_type=body.google_place_type,
    )
    return send(ctx, "venue", body, content)


@route("sendContact", SendContactBody)
def handle_send_contact(body: SendContactBody, ctx: RouteContext) -> dict[str, Any]:
    content = ContactContent(
        phone_number=body.phone_number,
        first_name=body.first_name,
        last_name=body.last_name,
        vcard=body.vcard,
    )
    return send(ctx, "contact", body, content)


@route("sendDice", SendDiceBody)
def handle_send_dice(body: SendDiceBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle sendDice API call, rolling within the emoji's range."""
    value = random.randint(1, DICE_MAX_VALUES[body.emoji])
    logger.debug("sendDice %s rolled %d", body.emoji, value)
    return send(ctx, "dice", body, DiceContent(emoji=body.emoji, value=value))


def _poll_option(index: int, option: str | dict[str, Any]) -> dict[str, Any]:
    # persistent_id is a required option field
    result = {"persistent_id": str(index), "voter_count": 0}
    if isinstance(option, str):
        return {"text": option, **result}
    result["text"] = option.get("text", "")
    if option.get("text_entities"):
        result["text_entities"] = option["text_entities"]
    return result


@route("sendPoll", SendPollBody)
def handle_send_poll(body: SendPollBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle sendPoll API call."""
    content = PollContent(
        id=str(random.randint(10**17, 10**18 - 1)),
        question=body.question,
        question_entities=body.question_entities or [],
        options=[_poll_option(index, option) for index, option in enumerate(body.options)],
        is_closed=bool(body.is_closed),
        is_anonymous=True if body.is_anonymous is None else body.is_anonymous,
        poll_type=body.type or "regular",
        allows_multiple_answers=bool(body.allows_multiple_answers),
        correct_option_id=body.correct_option_id,
        explanation=body.explanation,
        explanation_entities=body.explanation_entities or [],
        open_period=body.open_period,
        close_date=body.close_date,
    )
    return send(ctx, "poll", body, content)


@route("sendInvoice", SendInvoiceBody)
def handle_send_invoice(body: SendInvoiceBody, ctx: RouteContext) -> dict[str, Any]:
    """Handle sendInvoice API call; the total is the sum of all prices."""
    content = InvoiceContent(
        title=body.title,
        description=body.description,
        currency=body.currency,
        total_amount=sum(price.amount for price in body.prices),
        start_parameter=body.start_parameter or "",
    )
    return send(ctx, "invoice", body, content)
