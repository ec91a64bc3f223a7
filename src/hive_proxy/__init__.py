"""
mcp-hive-proxy

Compiles the JSON-Schema-like input descriptors published by MCP tool
providers into runtime validators, and guards proxied tool calls with them.

Usage:
    python -m hive_proxy list servers.json              # Tool names
    python -m hive_proxy check servers.json             # Compiled signatures + fallbacks
    python -m hive_proxy validate servers.json <tool> '{"query": "x"}'

Library:
    from hive_proxy import scan_object, infer_raw_shape_from_spec, ObjectShapeValidator

    shape = infer_raw_shape_from_spec(tool.input_schema, tool.required_inputs)
    ObjectShapeValidator.from_shape(shape).validate(arguments)
"""

from .compiler import scan_object, infer_raw_shape_from_spec
from .validators import (
    CheckResult,
    ObjectShapeValidator,
    ValidationFailure,
    Validator,
    Violation,
)
from .descriptors import (
    DescriptorError,
    ServerDescriptor,
    ToolDescriptor,
    load_server_descriptors,
    parse_server_descriptor,
)
from .registry import ToolRegistry, UnknownToolError
from .server import build_server

__all__ = [
    "scan_object",
    "infer_raw_shape_from_spec",
    "CheckResult",
    "ObjectShapeValidator",
    "ValidationFailure",
    "Validator",
    "Violation",
    "DescriptorError",
    "ServerDescriptor",
    "ToolDescriptor",
    "load_server_descriptors",
    "parse_server_descriptor",
    "ToolRegistry",
    "UnknownToolError",
    "build_server",
]
