"""
FastMCP front-end tests, run through an in-memory fastmcp Client.
"""

import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from hive_proxy.descriptors import ToolDescriptor
from hive_proxy.registry import ToolRegistry
from hive_proxy.server import ProxiedTool, build_server


@pytest.fixture
def registry():
    reg = ToolRegistry()
    reg.register(ToolDescriptor(
        name="send_email",
        description="Send an email",
        input_schema={
            "to": {"type": "string", "format": "email", "description": "Recipient"},
            "subject": {"type": "string", "maxLength": 20},
            "priority": {"type": "integer", "minimum": 1, "maximum": 5},
        },
        required_inputs=["to", "subject"],
    ), server="mail")
    return reg


@pytest.fixture
def forwarded():
    return []


@pytest.fixture
def forward(forwarded):
    def _forward(name, arguments):
        forwarded.append((name, arguments))
        return {"status": "sent", "tool": name}
    return _forward


class TestToolListing:

    @pytest.mark.asyncio
    async def test_tools_are_exposed_with_declared_schema(self, registry, forward):
        mcp = build_server(registry, forward)
        async with Client(mcp) as client:
            tools = await client.list_tools()

        assert [t.name for t in tools] == ["send_email"]
        tool = tools[0]
        assert tool.description == "Send an email"
        assert tool.inputSchema["required"] == ["to", "subject"]
        assert tool.inputSchema["properties"]["to"]["format"] == "email"


class TestToolCalls:

    @pytest.mark.asyncio
    async def test_valid_call_is_forwarded(self, registry, forward, forwarded):
        mcp = build_server(registry, forward)
        async with Client(mcp) as client:
            result = await client.call_tool("send_email", {"to": "bob@example.com", "subject": "Hi"})

        assert json.loads(result.content[0].text) == {"status": "sent", "tool": "send_email"}
        assert forwarded == [("send_email", {"to": "bob@example.com", "subject": "Hi"})]

    @pytest.mark.asyncio
    async def test_invalid_call_is_not_forwarded(self, registry, forward, forwarded):
        mcp = build_server(registry, forward)
        async with Client(mcp) as client:
            with pytest.raises(ToolError):
                await client.call_tool("send_email", {"to": "bob@example.com"})

        assert forwarded == []

    @pytest.mark.asyncio
    async def test_async_forwarder_is_awaited(self, registry):
        async def forward(name, arguments):
            return f"{name}:{arguments['subject']}"

        mcp = build_server(registry, forward)
        async with Client(mcp) as client:
            result = await client.call_tool("send_email", {"to": "a@example.com", "subject": "Yo"})

        assert result.content[0].text == "send_email:Yo"


class TestProxiedTool:

    @pytest.mark.asyncio
    async def test_violations_become_tool_errors(self, registry, forward, forwarded):
        tool = ProxiedTool.from_entry(registry.get("send_email"), registry, forward)

        with pytest.raises(ToolError, match="Invalid arguments for 'send_email'") as exc_info:
            await tool.run({"to": "not-an-email", "subject": "Hi", "priority": 9})

        message = str(exc_info.value)
        assert "$.to" in message
        assert "$.priority" in message
        assert forwarded == []

    @pytest.mark.asyncio
    async def test_deregistered_tool_becomes_tool_error(self, registry, forward):
        tool = ProxiedTool.from_entry(registry.get("send_email"), registry, forward)
        registry.deregister("send_email")

        with pytest.raises(ToolError, match="Unknown tool: send_email"):
            await tool.run({"to": "a@example.com", "subject": "Hi"})

    @pytest.mark.asyncio
    async def test_run_returns_forward_result(self, registry, forward):
        tool = ProxiedTool.from_entry(registry.get("send_email"), registry, forward)
        result = await tool.run({"to": "a@example.com", "subject": "Hi"})
        assert json.loads(result.content[0].text)["status"] == "sent"
