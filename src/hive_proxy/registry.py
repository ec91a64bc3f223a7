"""
Tool Registry

Holds one compiled argument validator per registered tool. Validators are
built once at registration and reused for every call; deregistering a tool
drops its validator.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, Optional

from .compiler import infer_raw_shape_from_spec
from .descriptors import ServerDescriptor, ToolDescriptor
from .validators import ObjectShapeValidator, UnknownValidator, ValidationFailure

logger = logging.getLogger(__name__)

Forward = Callable[[str, dict], Any]


class UnknownToolError(KeyError):
    """No tool with this name is registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown tool: {self.name}"


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    validator: ObjectShapeValidator
    server: Optional[str] = None

    @property
    def name(self) -> str:
        return self.descriptor.name

    def fallbacks(self) -> list[UnknownValidator]:
        """Places where the compiler fell back to accepting anything."""
        return [
            v for v in self.validator.walk()
            if isinstance(v, UnknownValidator) and v.reason
        ]


def compile_tool(descriptor: ToolDescriptor) -> ObjectShapeValidator:
    """Compile a tool's declared inputs into a whole-arguments validator."""
    shape = infer_raw_shape_from_spec(descriptor.input_schema, descriptor.required_inputs)
    return ObjectShapeValidator.from_shape(shape, description=descriptor.description)


class ToolRegistry:
    """Thread-safe name -> RegisteredTool table."""

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}
        self._lock = threading.Lock()

    def register(self, descriptor: ToolDescriptor, server: Optional[str] = None) -> RegisteredTool:
        """
        Compile and register a tool, replacing any tool of the same name.

        Returns:
            The registered entry, holding the compiled validator
        """
        entry = RegisteredTool(descriptor=descriptor, validator=compile_tool(descriptor), server=server)
        with self._lock:
            replaced = descriptor.name in self._tools
            self._tools[descriptor.name] = entry

        if replaced:
            logger.info("Re-registered tool '%s'", descriptor.name)
        else:
            logger.info("Registered tool '%s' (%d input field(s))", descriptor.name, len(entry.validator.fields))
        for fallback in entry.fallbacks():
            logger.debug("Tool '%s' accepts unchecked input: %s", descriptor.name, fallback.reason)
        return entry

    def register_server(self, descriptor: ServerDescriptor) -> list[RegisteredTool]:
        return [self.register(tool, server=descriptor.server) for tool in descriptor.tools]

    def deregister(self, name: str) -> RegisteredTool:
        """
        Raises:
            UnknownToolError: if no such tool is registered
        """
        with self._lock:
            try:
                entry = self._tools.pop(name)
            except KeyError:
                raise UnknownToolError(name) from None
        logger.info("Deregistered tool '%s'", name)
        return entry

    def get(self, name: str) -> RegisteredTool:
        with self._lock:
            try:
                return self._tools[name]
            except KeyError:
                raise UnknownToolError(name) from None

    def names(self) -> list[str]:
        with self._lock:
            return list(self._tools)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def __iter__(self) -> Iterator[RegisteredTool]:
        with self._lock:
            entries = list(self._tools.values())
        return iter(entries)

    def validate_call(self, name: str, arguments: Optional[Mapping[str, Any]]) -> dict:
        """
        Check call arguments against the tool's compiled validator.

        Missing arguments are treated as an empty object.

        Returns:
            The parsed arguments

        Raises:
            UnknownToolError: if the tool is not registered
            ValidationFailure: if the arguments are rejected
        """
        entry = self.get(name)
        try:
            return entry.validator.validate({} if arguments is None else arguments)
        except ValidationFailure as failure:
            logger.warning(
                "Rejected call to '%s': %s",
                name,
                "; ".join(f"{v.location()} {v.message}" for v in failure.violations),
            )
            raise

    def dispatch(self, name: str, arguments: Optional[Mapping[str, Any]], forward: Forward) -> Any:
        """
        Validate, then hand the parsed arguments to `forward(name, arguments)`.

        `forward` is never called for rejected arguments. Its return value is
        passed back unchanged, so an async forwarder yields an awaitable.
        """
        validated = self.validate_call(name, arguments)
        logger.debug("Forwarding call to '%s'", name)
        return forward(name, validated)
