from __future__ import annotations

from pydantic import BaseModel, ValidationError

from tailscale_mcp.utils.validation import validation_messages


class _Model(BaseModel):
    count: int
    name: str


def test_messages_carry_location_but_not_input() -> None:
    try:
        _Model.model_validate({"count": "secret-value"})
    except ValidationError as exc:
        messages = validation_messages(exc)
    else:  # pragma: no cover
        raise AssertionError("expected a validation error")

    assert len(messages) == 2
    assert messages[0].startswith("count: ")
    assert messages[1] == "name: Field required"
    assert not any("secret-value" in m for m in messages)
