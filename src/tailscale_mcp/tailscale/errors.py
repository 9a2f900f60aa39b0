"""Error types for the Tailscale CLI and API layer."""

from __future__ import annotations


class TailscaleError(Exception):
    """Base error for all Tailscale integration failures."""


class BinaryNotFoundError(TailscaleError):
    """The ``tailscale`` executable could not be located."""


class CommandValidationError(TailscaleError):
    """A command was rejected before any process was spawned.

    The message never contains secret material and is safe to show verbatim.
    """


class OutputLimitExceededError(TailscaleError):
    """A captured output stream grew past its byte cap."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"output exceeds {limit} bytes")


class CommandExecutionError(TailscaleError):
    """The CLI process failed to spawn, exited non-zero, or was aborted."""

    def __init__(
        self,
        command: str,
        args: list[str],
        *,
        exit_code: int | None = None,
        stderr: str = "",
        detail: str = "",
    ) -> None:
        self.command = command
        self.args_list = args
        self.exit_code = exit_code
        self.stderr = stderr
        self.detail = detail
        if detail:
            msg = f"tailscale {command} failed: {detail}"
        else:
            msg = f"tailscale {command} failed with exit code {exit_code}: {stderr}"
        super().__init__(msg)


class CommandTimeoutError(CommandExecutionError):
    """The CLI process exceeded its wall-clock timeout and was killed."""

    def __init__(self, command: str, args: list[str], timeout: float, *, stderr: str = "") -> None:
        self.timeout = timeout
        super().__init__(
            command,
            args,
            stderr=stderr,
            detail=f"command timed out after {timeout:g}s",
        )


class APIError(TailscaleError):
    """The Tailscale REST API answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(f"Tailscale API error (status {status_code}): {message}")
