"""Tests for ToolRegistry."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

import pytest

from tailscale_mcp.tools.base import ToolContext
from tailscale_mcp.tools.errors import ToolExecutionError, ToolNotFoundError
from tailscale_mcp.tools.registry import ToolRegistry


class TestRegistration:
    def test_register_and_get(self, make_tool: Any) -> None:
        reg = ToolRegistry()
        tool = make_tool("alpha")
        reg.register(tool)
        assert reg.get("alpha") is tool
        assert "alpha" in reg
        assert len(reg) == reg.count == 1

    def test_get_unknown(self) -> None:
        assert ToolRegistry().get("missing") is None

    def test_register_none(self) -> None:
        with pytest.raises(ValueError, match="cannot be None"):
            ToolRegistry().register(None)  # type: ignore[arg-type]

    def test_register_empty_name(self, make_tool: Any) -> None:
        with pytest.raises(ValueError, match="name cannot be empty"):
            ToolRegistry().register(make_tool(""))

    def test_duplicate_replaces_with_warning(self, make_tool: Any, caplog: pytest.LogCaptureFixture) -> None:
        reg = ToolRegistry()
        first, second = make_tool("dup"), make_tool("dup")
        reg.register(first)
        with caplog.at_level(logging.WARNING, logger="tailscale_mcp.tools.registry"):
            reg.register(second)
        assert reg.get("dup") is second
        assert len(reg) == 1
        assert "already registered" in caplog.text

    def test_list_is_a_snapshot(self, make_tool: Any) -> None:
        reg = ToolRegistry()
        reg.register(make_tool("a", description="first"))
        reg.register(make_tool("b"))

        listed = reg.list()
        assert [d.name for d in listed] == ["a", "b"]
        assert listed[0].description == "first"
        assert listed[0].input_schema == {"type": "object", "properties": {}}

        listed[0].input_schema["mutated"] = True
        reg.register(make_tool("c"))
        assert "mutated" not in reg.list()[0].input_schema
        assert len(listed) == 2

    def test_nested_schema_not_shared(self, make_tool: Any) -> None:
        tool = make_tool("stored")
        tool.input_schema = {"type": "object", "properties": {"target": {"type": "string"}}}
        reg = ToolRegistry()
        reg.register(tool)

        snap = reg.list()
        snap[0].input_schema["properties"]["injected"] = {"type": "string"}
        snap[0].input_schema["properties"]["target"]["type"] = "integer"

        schema = reg.list()[0].input_schema
        assert schema["properties"] == {"target": {"type": "string"}}
        assert tool.input_schema["properties"] == {"target": {"type": "string"}}

    def test_close_clears(self, registry: ToolRegistry) -> None:
        registry.close()
        assert len(registry) == 0
        assert registry.names() == []


class TestExecute:
    async def test_passes_arguments_and_context(self, registry: ToolRegistry) -> None:
        out = await registry.execute("echo", {"x": 1})
        assert out == "echo: {'x': 1}"

        tool = registry.get("echo")
        ctx, arguments = tool.calls[0]
        assert isinstance(ctx, ToolContext)
        assert ctx.registry is registry
        assert arguments == {"x": 1}
        assert not ctx.cancelled

    async def test_cancel_event_forwarded(self, registry: ToolRegistry) -> None:
        event = asyncio.Event()
        event.set()
        await registry.execute("echo", {}, cancel_event=event)
        ctx, _ = registry.get("echo").calls[0]
        assert ctx.cancelled

    async def test_unknown_tool(self, registry: ToolRegistry) -> None:
        with pytest.raises(ToolNotFoundError, match="tool not found: nope"):
            await registry.execute("nope", {})

    async def test_failure_wrapped(self, registry: ToolRegistry) -> None:
        with pytest.raises(ToolExecutionError) as exc_info:
            await registry.execute("boom", {})
        assert exc_info.value.name == "boom"
        assert exc_info.value.detail == "kaboom"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_concurrent_execution(self, make_tool: Any) -> None:
        reg = ToolRegistry()
        for i in range(10):
            reg.register(make_tool(f"t{i}", reply=f"r{i}"))
        results = await asyncio.gather(*(reg.execute(f"t{i}", {}) for i in range(10)))
        assert results == [f"r{i}" for i in range(10)]


class TestThreadSafety:
    def test_parallel_register_and_list(self, make_tool: Any) -> None:
        reg = ToolRegistry()
        errors: list[BaseException] = []

        def writer(start: int) -> None:
            try:
                for i in range(start, start + 50):
                    reg.register(make_tool(f"tool-{i}"))
            except BaseException as exc:
                errors.append(exc)

        def reader() -> None:
            try:
                for _ in range(100):
                    names = [d.name for d in reg.list()]
                    assert len(names) == len(set(names))
            except BaseException as exc:
                errors.append(exc)

        threads = [threading.Thread(target=writer, args=(n * 50,)) for n in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(reg) == 200
