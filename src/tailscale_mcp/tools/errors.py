"""Error types for the tool layer."""

from __future__ import annotations


class ToolError(Exception):
    """Base error for all tool-layer failures."""


class ToolNotFoundError(ToolError):
    """Requested tool is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"tool not found: {name}")


class ToolExecutionError(ToolError):
    """A tool raised while executing; ``detail`` carries the cause."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"tool {name} failed" + (f": {detail}" if detail else ""))


class ToolInputError(ToolError):
    """Tool arguments did not match the tool's input model."""
