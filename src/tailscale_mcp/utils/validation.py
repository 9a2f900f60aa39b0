"""Helpers for turning pydantic validation failures into safe messages."""

from __future__ import annotations

from pydantic import ValidationError


def validation_messages(exc: ValidationError) -> list[str]:
    """Return one ``loc: msg`` string per error.

    Input values are never included, so the result is safe to return to
    clients even when the payload carried secrets.
    """
    messages: list[str] = []
    for err in exc.errors(include_url=False, include_input=False):
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return messages
