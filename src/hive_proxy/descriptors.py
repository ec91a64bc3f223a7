"""
Tool and Server Descriptors

The hub describes each proxied server as

    {"id": "...", "server": "...", "tools": [
        {"name": "...", "description": "...",
         "input_schema": {"<field>": <schema node or JSON text>},
         "required_inputs": ["<field>", ...]}
    ]}

Tools published straight from an MCP server carry a single `inputSchema`
object schema instead; it is dereferenced with jsonref and split into the
per-field form above.
"""

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import jsonref
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)


class DescriptorError(ValueError):
    """Payload is not a valid server or tool descriptor."""


def _dereference(schema: dict) -> dict:
    """Inline every $ref; on failure the schema is kept as is."""
    try:
        return jsonref.replace_refs(schema, proxies=False, lazy_load=False)
    except (jsonref.JsonRefError, RecursionError) as e:
        logger.warning("Could not dereference $ref in input schema: %s", e)
        return schema


def split_input_schema(schema: Mapping[str, Any]) -> tuple[dict, list[str]]:
    """
    Split an MCP `inputSchema` into (per-field schemas, required field names).

    Example:
        >>> split_input_schema({"type": "object", "properties": {"q": {"type": "string"}}, "required": ["q"]})
        ({'q': {'type': 'string'}}, ['q'])
    """
    resolved = _dereference(dict(schema)) if _contains_ref(schema) else schema
    properties = resolved.get("properties")
    if not isinstance(properties, Mapping):
        return {}, []
    required = resolved.get("required")
    if not isinstance(required, list):
        required = []
    return dict(properties), [name for name in required if isinstance(name, str)]


def _contains_ref(obj: Any) -> bool:
    if isinstance(obj, Mapping):
        return "$ref" in obj or any(_contains_ref(v) for v in obj.values())
    if isinstance(obj, list):
        return any(_contains_ref(v) for v in obj)
    return False


class ToolDescriptor(BaseModel):
    """One tool as advertised by the hub."""
    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    input_schema: dict[str, dict[str, Any]] = Field(default_factory=dict)
    required_inputs: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_mcp_input_schema(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "input_schema" not in data and isinstance(data.get("inputSchema"), Mapping):
            fields, required = split_input_schema(data["inputSchema"])
            data = {**data, "input_schema": fields, "required_inputs": data.get("required_inputs", required)}
        return data

    @field_validator("input_schema", mode="before")
    @classmethod
    def _decode_json_fields(cls, value: Any) -> Any:
        # The hub ships each field schema as JSON text.
        if not isinstance(value, Mapping):
            return value
        decoded = {}
        for name, node in value.items():
            if isinstance(node, str):
                try:
                    node = json.loads(node)
                except json.JSONDecodeError as e:
                    raise ValueError(f"schema for field '{name}' is not valid JSON: {e}") from e
            decoded[name] = node
        return decoded

    def mcp_input_schema(self) -> dict:
        """The tool's arguments as one MCP `inputSchema` object schema."""
        return {
            "type": "object",
            "properties": dict(self.input_schema),
            "required": [name for name in self.required_inputs if name in self.input_schema],
        }


class ServerDescriptor(BaseModel):
    """A proxied server and the tools it exposes."""
    model_config = ConfigDict(extra="ignore")

    id: str
    server: str
    tools: list[ToolDescriptor] = Field(default_factory=list)

    def tool(self, name: str) -> Optional[ToolDescriptor]:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    def tool_names(self) -> list[str]:
        return [tool.name for tool in self.tools]


def _summarize(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors(include_url=False)
    )


def parse_server_descriptor(payload: Any) -> ServerDescriptor:
    """
    Validate a hub response as a server descriptor.

    Tool-call results wrapping the descriptor in `structuredContent` are unwrapped.

    Raises:
        DescriptorError: if the payload is not a server descriptor
    """
    if isinstance(payload, Mapping) and isinstance(payload.get("structuredContent"), Mapping):
        payload = payload["structuredContent"]
    if not isinstance(payload, Mapping):
        raise DescriptorError(f"Invalid server descriptor: expected an object, got {type(payload).__name__}")
    try:
        return ServerDescriptor.model_validate(payload)
    except ValidationError as e:
        raise DescriptorError(f"Invalid server descriptor: {_summarize(e)}") from e


def load_server_descriptors(path: str | Path) -> list[ServerDescriptor]:
    """
    Read server descriptors from a JSON file.

    The file holds one descriptor object or a list of them.

    Raises:
        OSError: if the file cannot be read
        DescriptorError: if the content is not JSON or not descriptors
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DescriptorError(f"{path}: not valid JSON: {e}") from e

    payloads = data if isinstance(data, list) else [data]
    descriptors = [parse_server_descriptor(payload) for payload in payloads]
    logger.debug("Loaded %d server descriptor(s) from %s", len(descriptors), path)
    return descriptors
