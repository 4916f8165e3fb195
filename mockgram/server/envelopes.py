"""
Bot API response envelopes.

aiogram reads ``ok``/``result`` on success and ``error_code``/``description``
on failure; the HTTP status must match ``error_code``.
"""
from typing import Any


def make_ok_response(result: Any) -> dict[str, Any]:
    """Create successful Telegram API response."""
    return {"ok": True, "result": result}


def make_error_response(description: str, error_code: int = 400) -> dict[str, Any]:
    """Create error Telegram API response."""
    return {
        "ok": False,
        "error_code": error_code,
        "description": description,
    }

