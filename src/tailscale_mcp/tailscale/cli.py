"""TailscaleCLI — guarded execution of the ``tailscale`` binary.

Every call goes through :meth:`TailscaleCLI.execute`, which enforces, in
order:

1. a non-empty argument list,
2. an allow-list of subcommands,
3. a per-argument length limit,
4. a shell-metacharacter blacklist,

before spawning the binary directly (never through a shell) with a
wall-clock timeout and size-capped stdout/stderr buffers.

Secrets such as auth keys are passed through the ``env`` channel only, so
they never appear in logged or reported argument lists.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import os
import re
import shutil
import signal
import sys
from collections.abc import Sequence
from pathlib import Path

from tailscale_mcp.tailscale.errors import (
    BinaryNotFoundError,
    CommandExecutionError,
    CommandTimeoutError,
    CommandValidationError,
    OutputLimitExceededError,
)
from tailscale_mcp.tailscale.models import TailscaleStatus, UpOptions
from tailscale_mcp.utils.telemetry import ATTR_CLI_COMMAND, ATTR_CLI_EXIT_CODE, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

MAX_ARG_LENGTH = 1000
MAX_OUTPUT_BYTES = 10 * 1024 * 1024
DEFAULT_TIMEOUT = 30.0

MAX_HOSTNAME_LENGTH = 253
MIN_PING_COUNT = 1
MAX_PING_COUNT = 100

_READ_CHUNK = 64 * 1024
_POSIX = sys.platform != "win32"

ALLOWED_COMMANDS = frozenset(
    {
        "status",
        "up",
        "down",
        "logout",
        "switch",
        "configure",
        "netcheck",
        "ip",
        "ping",
        "ssh",
        "version",
        "update",
        "web",
        "file",
        "bugreport",
        "cert",
        "lock",
        "licenses",
        "exit-node",
        "set",
        "unset",
    }
)

FORBIDDEN_CHARS = frozenset(";&|`$(){}[]<>")

# Stricter sets used by the input validators of the convenience methods.
_TARGET_FORBIDDEN = FORBIDDEN_CHARS | frozenset("\\'\"")
_STRING_FORBIDDEN = frozenset(";&|`$(){}<>\\")

_TARGET_PATTERN = re.compile(
    r"^(([a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?)*)"
    r"|([0-9a-fA-F:]+))$"
)
_CIDR_PATTERN = re.compile(r"^(\d{1,3}\.){3}\d{1,3}/\d{1,2}$|^([0-9a-fA-F:]+)/\d{1,3}$")
_DEFAULT_ROUTES = frozenset({"0.0.0.0/0", "::/0"})


# ---------------------------------------------------------------------------
# Binary resolution
# ---------------------------------------------------------------------------


def fallback_paths(platform: str | None = None) -> list[str]:
    """Return the conventional install locations for *platform*."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return [
            r"C:\Program Files\Tailscale\tailscale.exe",
            r"C:\Program Files (x86)\Tailscale\tailscale.exe",
        ]
    if platform == "darwin":
        return [
            "/usr/local/bin/tailscale",
            "/opt/homebrew/bin/tailscale",
            "/usr/bin/tailscale",
        ]
    return [
        "/usr/bin/tailscale",
        "/usr/local/bin/tailscale",
        "/opt/tailscale/bin/tailscale",
        "/snap/bin/tailscale",
    ]


def _is_executable_file(path: str | Path) -> bool:
    p = Path(path)
    return p.is_file() and os.access(p, os.X_OK)


def resolve_tailscale_binary(override: str | None = None) -> str:
    """Locate the ``tailscale`` executable.

    Resolution order: explicit *override* (normally ``TAILSCALE_PATH``),
    then ``$PATH``, then :func:`fallback_paths`.

    Raises
    ------
    BinaryNotFoundError
        If no candidate is an existing, executable file.
    """
    if override:
        path = Path(override).expanduser().absolute()
        if not path.exists():
            logger.error("TAILSCALE_PATH does not exist: %s", path)
            raise BinaryNotFoundError(f"TAILSCALE_PATH does not exist: {path}")
        if path.is_dir():
            logger.error("TAILSCALE_PATH is a directory: %s", path)
            raise BinaryNotFoundError(f"TAILSCALE_PATH is a directory, not an executable: {path}")
        if not os.access(path, os.X_OK):
            logger.error("TAILSCALE_PATH is not executable: %s", path)
            raise BinaryNotFoundError(f"TAILSCALE_PATH is not executable: {path}")
        return str(path)

    found = shutil.which("tailscale")
    if found:
        return found

    for candidate in fallback_paths():
        if _is_executable_file(candidate):
            logger.debug("Found tailscale binary at fallback path %s", candidate)
            return candidate

    logger.error("tailscale binary not found in PATH or common installation paths")
    raise BinaryNotFoundError("tailscale binary not found")


# ---------------------------------------------------------------------------
# Output capture
# ---------------------------------------------------------------------------


class LimitedBuffer:
    """Byte buffer that refuses to grow past *limit*.

    A write that would cross the limit stores only the bytes that still fit
    and then raises :class:`OutputLimitExceededError`.
    """

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._data = bytearray()

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._data)

    def write(self, chunk: bytes) -> int:
        remaining = self._limit - len(self._data)
        if len(chunk) > remaining:
            if remaining > 0:
                self._data.extend(chunk[:remaining])
            raise OutputLimitExceededError(self._limit)
        self._data.extend(chunk)
        return len(chunk)

    def getvalue(self) -> bytes:
        return bytes(self._data)

    def text(self) -> str:
        return self._data.decode(errors="replace").strip()


async def _pump(stream: asyncio.StreamReader | None, buffer: LimitedBuffer) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        buffer.write(chunk)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill *proc* and anything it spawned, then reap it.

    On POSIX the child leads its own session, so the whole process group is
    signalled; a grandchild holding the pipes open dies with it.
    """
    if _POSIX:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass
    elif proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


def validate_command(args: Sequence[str]) -> None:
    """Apply the allow-list and injection checks to *args*.

    Raises
    ------
    CommandValidationError
        On the first violated rule.
    """
    if not args:
        raise CommandValidationError("no command specified")

    command = args[0]
    if command not in ALLOWED_COMMANDS:
        raise CommandValidationError(f"command {command!r} not allowed")

    for i, arg in enumerate(args):
        if len(arg) > MAX_ARG_LENGTH:
            raise CommandValidationError(f"argument {i} too long ({len(arg)} chars)")
        if any(ch in FORBIDDEN_CHARS for ch in arg):
            raise CommandValidationError(f"argument {i} contains invalid characters: {arg!r}")


def _parse_env(env: Sequence[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for i, entry in enumerate(env):
        key, sep, value = entry.partition("=")
        if not sep or not key:
            raise CommandValidationError(f"invalid environment entry at index {i}")
        parsed[key] = value
    return parsed


class TailscaleCLI:
    """Safe wrapper around the ``tailscale`` command-line tool.

    The binary path is resolved once, at construction time. Each
    :meth:`execute` call is independent: its own subprocess, its own
    buffers, no shared state.
    """

    def __init__(
        self,
        binary_path: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = MAX_OUTPUT_BYTES,
    ) -> None:
        self._path = resolve_tailscale_binary(binary_path or os.environ.get("TAILSCALE_PATH"))
        self._timeout = timeout
        self._max_output = max_output_bytes

    @property
    def path(self) -> str:
        return self._path

    @property
    def timeout(self) -> float:
        return self._timeout

    async def execute(self, args: Sequence[str], env: Sequence[str] | None = None) -> str:
        """Run ``tailscale <args>`` and return its trimmed stdout.

        *env* is a list of ``KEY=VALUE`` overrides layered over the current
        process environment.

        Raises
        ------
        CommandValidationError
            If *args* or *env* fail validation (no process is spawned).
        CommandTimeoutError
            If the process outlives the timeout; it is killed first.
        CommandExecutionError
            On spawn failure, non-zero exit, or oversized output.
        """
        args = list(args)
        validate_command(args)
        overrides = _parse_env(env or [])
        command = args[0]

        logger.debug(
            "Executing tailscale command: path=%s args=%s env_keys=%s",
            self._path,
            args,
            sorted(overrides),
        )

        with _tracer.start_as_current_span("tailscale.cli.execute") as span:
            span.set_attribute(ATTR_CLI_COMMAND, command)
            stdout, stderr, returncode = await self._run(command, args, overrides)
            span.set_attribute(ATTR_CLI_EXIT_CODE, returncode)

        if stderr:
            logger.warning("tailscale %s stderr: %s", command, stderr)

        if returncode != 0:
            logger.error("tailscale %s exited with code %d", command, returncode)
            raise CommandExecutionError(command, args, exit_code=returncode, stderr=stderr)

        return stdout

    async def _run(
        self,
        command: str,
        args: list[str],
        overrides: dict[str, str],
    ) -> tuple[str, str, int]:
        process_env = {**os.environ, **overrides} if overrides else None
        try:
            proc = await asyncio.create_subprocess_exec(
                self._path,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=process_env,
                start_new_session=_POSIX,
            )
        except OSError as exc:
            logger.error("Failed to spawn tailscale %s: %s", command, exc)
            raise CommandExecutionError(command, args, detail=str(exc)) from exc

        out_buf = LimitedBuffer(self._max_output)
        err_buf = LimitedBuffer(self._max_output)

        pumps = [
            asyncio.ensure_future(_pump(proc.stdout, out_buf)),
            asyncio.ensure_future(_pump(proc.stderr, err_buf)),
        ]
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout
        try:
            await asyncio.wait_for(asyncio.gather(*pumps), timeout=self._timeout)
            returncode = await asyncio.wait_for(proc.wait(), timeout=max(deadline - loop.time(), 0))
        except TimeoutError:
            await _kill(proc)
            logger.error("tailscale %s timed out after %gs", command, self._timeout)
            raise CommandTimeoutError(command, args, self._timeout, stderr=err_buf.text()) from None
        except OutputLimitExceededError as exc:
            await _kill(proc)
            logger.error("tailscale %s output limit reached: %s", command, exc)
            raise CommandExecutionError(
                command, args, stderr=err_buf.text(), detail=str(exc)
            ) from exc
        except asyncio.CancelledError:
            await _kill(proc)
            raise
        finally:
            for task in pumps:
                task.cancel()

        return out_buf.text(), err_buf.text(), returncode

    # ------------------------------------------------------------------
    # Convenience operations
    # ------------------------------------------------------------------

    async def status(self) -> TailscaleStatus:
        """Return the parsed ``tailscale status --json`` document."""
        output = await self.execute(["status", "--json"])
        return TailscaleStatus.model_validate_json(output)

    async def version(self) -> str:
        return await self.execute(["version"])

    async def up(self, options: UpOptions | None = None) -> str:
        """Bring the node up; an auth key travels via ``TS_AUTHKEY``."""
        args = ["up"]
        env: list[str] = []
        opts = options or UpOptions()

        if opts.login_server:
            validate_string_input(opts.login_server, "login server")
            args += ["--login-server", opts.login_server]
        if opts.accept_routes:
            args.append("--accept-routes")
        if opts.accept_dns:
            args.append("--accept-dns")
        if opts.hostname:
            validate_string_input(opts.hostname, "hostname")
            args += ["--hostname", opts.hostname]
        if opts.advertise_routes:
            validate_routes(opts.advertise_routes)
            args += ["--advertise-routes", ",".join(opts.advertise_routes)]
        if opts.auth_key:
            validate_string_input(opts.auth_key, "auth key")
            logger.debug("Auth key passed via TS_AUTHKEY environment variable")
            env.append(f"TS_AUTHKEY={opts.auth_key}")
        if opts.timeout > 0:
            args += ["--timeout", f"{int(opts.timeout)}s"]

        return await self.execute(args, env)

    async def down(self) -> str:
        return await self.execute(["down"])

    async def logout(self) -> str:
        return await self.execute(["logout"])

    async def ping(self, target: str, count: int = 4) -> str:
        validate_target(target)
        if not MIN_PING_COUNT <= count <= MAX_PING_COUNT:
            raise CommandValidationError(
                f"count must be an integer between {MIN_PING_COUNT} and {MAX_PING_COUNT}"
            )
        return await self.execute(["ping", target, "-c", str(count)])

    async def ip(self) -> str:
        return await self.execute(["ip"])

    async def netcheck(self) -> str:
        return await self.execute(["netcheck"])

    async def set_exit_node(self, node_id: str | None = None) -> str:
        """Use *node_id* as exit node, or clear the exit node when empty."""
        if node_id:
            validate_target(node_id)
            return await self.execute(["set", "--exit-node", node_id])
        return await self.execute(["set", "--exit-node="])

    async def set_shields_up(self, enabled: bool) -> str:
        return await self.execute(["set", "--shields-up", "true" if enabled else "false"])

    async def list_peers(self) -> list[str]:
        """Return the host names of all known peers."""
        status = await self.status()
        return [p.host_name for p in (status.peer or {}).values() if p.host_name]

    async def is_available(self) -> bool:
        try:
            await self.version()
        except (CommandValidationError, CommandExecutionError):
            return False
        return True


# ---------------------------------------------------------------------------
# Input validators
# ---------------------------------------------------------------------------


def validate_target(target: str) -> None:
    """Validate a hostname, IP address, or node name."""
    if not target:
        raise CommandValidationError("target cannot be empty")
    for ch in target:
        if ch in _TARGET_FORBIDDEN:
            raise CommandValidationError(f"invalid character {ch!r} in target")
    if ".." in target or target.startswith("/") or "~" in target:
        raise CommandValidationError("invalid path patterns in target")
    if not _TARGET_PATTERN.match(target):
        raise CommandValidationError("target contains invalid characters")
    if len(target) > MAX_HOSTNAME_LENGTH:
        raise CommandValidationError(f"target too long (max {MAX_HOSTNAME_LENGTH} chars)")


def validate_string_input(value: str, field_name: str) -> None:
    """Validate a free-form option value."""
    for ch in value:
        if ch in _STRING_FORBIDDEN:
            raise CommandValidationError(f"invalid character {ch!r} in {field_name}")
    if len(value) > MAX_ARG_LENGTH:
        raise CommandValidationError(f"{field_name} too long (max {MAX_ARG_LENGTH} chars)")


def validate_routes(routes: Sequence[str]) -> None:
    """Validate a list of CIDR routes; default routes are always accepted."""
    for i, route in enumerate(routes):
        if route in _DEFAULT_ROUTES:
            continue
        if not _CIDR_PATTERN.match(route):
            raise CommandValidationError(f"invalid route format at index {i}: {route}")
        try:
            ipaddress.ip_network(route, strict=False)
        except ValueError as exc:
            raise CommandValidationError(
                f"invalid CIDR route at index {i} ({route}): {exc}"
            ) from exc
