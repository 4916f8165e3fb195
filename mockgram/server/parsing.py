"""
Raw request decoding.

aiogram posts multipart forms: scalars as strings, complex values as JSON
strings, uploads as file parts referenced through ``attach://<name>``.
Nothing here touches shared state, so it runs before the state lock.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, TypeVar

from aiohttp import web
from aiohttp.web_request import FileField
from pydantic import BaseModel

logger = logging.getLogger("mockgram.server.parsing")

BodyT = TypeVar("BodyT", bound=BaseModel)


@dataclass
class Attachment:
    """One file part of a multipart request."""

    name: str
    filename: str | None
    content: bytes = field(repr=False)
    content_type: str | None = None


@dataclass
class RawRequest:
    method: str
    fields: dict[str, Any] = field(default_factory=dict)
    attachments: dict[str, Attachment] = field(default_factory=dict)

    def validate(self, model: type[BodyT]) -> BodyT:
        return model.model_validate(self.fields, context={"attachments": self.attachments})


async def read_request(request: web.Request, method: str) -> RawRequest:
    """Split a request into plain fields and file attachments."""
    raw = RawRequest(method=method)

    if request.method == "GET":
        raw.fields.update(request.query)
        return raw

    if request.content_type == "application/json":
        try:
            data = await request.json()
        except json.JSONDecodeError:
            logger.warning("Malformed JSON body for %s", method)
            data = {}
        if isinstance(data, dict):
            raw.fields.update(data)
        return raw

    try:
        post_data = await request.post()
    except ValueError:
        logger.warning("Unreadable form body for %s", method)
        return raw
    for key, value in post_data.items():
        if isinstance(value, FileField):
            raw.attachments[key] = Attachment(
                name=key,
                filename=value.filename,
                content=value.file.read(),
                content_type=value.content_type,
            )
        else:
            raw.fields[key] = value
    # Query parameters never override the body
    for key, value in request.query.items():
        raw.fields.setdefault(key, value)
    return raw
