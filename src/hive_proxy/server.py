"""
FastMCP front end

Exposes every registered tool with its declared input schema. Incoming calls
are validated by the registry before the injected forwarder sees them; the
forwarder (the transport to the hub) is supplied by the caller.
"""

import inspect
import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from pydantic import Field

from .registry import Forward, RegisteredTool, ToolRegistry, UnknownToolError
from .validators import ValidationFailure

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-hive-proxy"


class ProxiedTool(Tool):
    """A registry-backed tool whose calls are validated, then forwarded."""

    registry: Any = Field(exclude=True)
    forward: Any = Field(exclude=True)

    @classmethod
    def from_entry(cls, entry: RegisteredTool, registry: ToolRegistry, forward: Forward) -> "ProxiedTool":
        return cls(
            name=entry.name,
            description=entry.descriptor.description,
            parameters=entry.descriptor.mcp_input_schema(),
            registry=registry,
            forward=forward,
        )

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        try:
            result = self.registry.dispatch(self.name, arguments, self.forward)
        except ValidationFailure as e:
            raise ToolError(f"Invalid arguments for '{self.name}':\n{e}") from e
        except UnknownToolError as e:
            raise ToolError(str(e)) from e

        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, ToolResult):
            return result
        return ToolResult(content=result)


def build_server(registry: ToolRegistry, forward: Forward, name: str = SERVER_NAME) -> FastMCP:
    """
    Build a FastMCP server for the tools currently in `registry`.

    Args:
        registry: Source of tools and their compiled validators
        forward: Called as forward(tool_name, validated_arguments); may be async
        name: Server name reported to clients

    Returns:
        The server, ready for `.run()` or an in-memory `fastmcp.Client`
    """
    mcp = FastMCP(name)
    for entry in registry:
        mcp.add_tool(ProxiedTool.from_entry(entry, registry, forward))
    logger.info("Built server '%s' with %d tool(s)", name, len(registry))
    return mcp
