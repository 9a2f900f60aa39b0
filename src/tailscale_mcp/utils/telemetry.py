"""OpenTelemetry tracing for tailscale-mcp.

Spans are opened through :func:`get_tracer` everywhere in the package.  Only
``opentelemetry-api`` is a hard dependency, so until :func:`configure_telemetry`
installs an SDK provider every span is a no-op.

Spans emitted:

* ``mcp.dispatch`` per JSON-RPC message (method, request id, error code)
* ``mcp.tool.execute`` per tool call (tool name)
* ``tailscale.cli.execute`` per CLI subprocess (subcommand, exit code)

stdout belongs to the stdio transport, so the console exporter writes to
stderr.
"""

from __future__ import annotations

import sys
from typing import Any

from opentelemetry import trace

ATTR_METHOD = "mcp.method"
ATTR_REQUEST_ID = "mcp.request_id"
ATTR_ERROR_CODE = "mcp.error_code"
ATTR_TOOL_NAME = "mcp.tool.name"
ATTR_CLI_COMMAND = "tailscale.command"
ATTR_CLI_EXIT_CODE = "tailscale.exit_code"

_INSTRUMENTATION_NAME = "tailscale_mcp"
_OTEL_HINT = "Install it with: pip install tailscale-mcp[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "tailscale-mcp",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install an SDK tracer provider with the requested exporters.

    Every exporter is resolved before the provider is installed, so a missing
    package leaves the global no-op provider untouched.

    Raises:
        ImportError: ``opentelemetry-sdk`` (or, when *otlp_endpoint* is set,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = f"opentelemetry-sdk is required for configure_telemetry(). {_OTEL_HINT}"
        raise ImportError(msg) from exc

    processors = _span_processors(export_to_console=export_to_console, otlp_endpoint=otlp_endpoint)

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for processor in processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)


def _span_processors(*, export_to_console: bool, otlp_endpoint: str | None) -> list[Any]:
    from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    processors: list[Any] = []
    if export_to_console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))

    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
                OTLPSpanExporter,
            )
        except ImportError as exc:
            msg = f"opentelemetry-exporter-otlp is required for OTLP export. {_OTEL_HINT}"
            raise ImportError(msg) from exc
        processors.append(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))

    return processors
