"""
Schema Compiler

Turns JSON-Schema-like descriptors (the shape MCP tool providers attach to
their input parameters) into runtime validators.

Resolution order for a single node, first match wins:
    1. const               -> LiteralValidator
    2. anyOf / oneOf       -> UnionValidator (single branch: that branch)
    3. allOf               -> IntersectionValidator (single branch: that branch)
    4. type dispatch       -> string / number / integer / boolean / null /
                              object / array, anything else -> UnknownValidator
    5. nullable: true      -> wrapped in NullableValidator

The compiler is permissive towards schema authors: structurally incomplete
or unrecognized nodes compile to an UnknownValidator (with a recorded
reason) instead of raising.

Usage:
    from hive_proxy.compiler import scan_object, infer_raw_shape_from_spec

    validator = scan_object({"type": "string", "format": "email"})
    shape = infer_raw_shape_from_spec(tool.input_schema, tool.required_inputs)
"""

import logging
import re
from typing import Any, Iterable, Mapping, Optional

from .validators import (
    ArrayValidator,
    BooleanValidator,
    IntegerValidator,
    IntersectionValidator,
    LiteralValidator,
    NullableValidator,
    NullValidator,
    NumberValidator,
    ObjectShapeValidator,
    OptionalValidator,
    RecordValidator,
    StringValidator,
    TupleValidator,
    UnionValidator,
    UnknownValidator,
    Validator,
)

logger = logging.getLogger(__name__)

SchemaNode = Mapping[str, Any]


def scan_object(node: SchemaNode) -> Validator:
    """
    Compile one schema node into a validator.

    Args:
        node: Schema descriptor (a mapping; anything else falls back to unknown)

    Returns:
        The compiled validator. Never raises for schema problems.

    Example:
        >>> scan_object({"type": "integer", "minimum": 1}).validate(5)
        5
    """
    return _scan(node, ())


def infer_raw_shape_from_spec(
    spec: Mapping[str, SchemaNode],
    required: Optional[Iterable[str]],
) -> dict[str, Validator]:
    """
    Compile every field of a tool's input spec.

    Fields missing from `required` are wrapped in OptionalValidator so the
    enclosing object accepts them being absent (None is still rejected unless
    the field's node is nullable). Output order follows `spec`.

    Args:
        spec: Mapping of field name -> schema node
        required: Names of required fields (order irrelevant)

    Returns:
        Mapping of field name -> validator, ready for ObjectShapeValidator.from_shape()
    """
    return _infer_shape(spec, required, ())


# ============== Recursion ==============

def _scan(node: Any, stack: tuple[int, ...]) -> Validator:
    if not isinstance(node, Mapping):
        return _fallback(f"schema node is a {type(node).__name__}, not an object")

    description = node.get("description")
    if not isinstance(description, str):
        description = ""

    # Dereferenced recursive schemas point back at their own ancestors.
    if id(node) in stack:
        return _fallback("recursive schema reference", description)
    stack = stack + (id(node),)

    validator = _resolve(node, description, stack)

    declared = node.get("type")
    widened_by_type = isinstance(declared, list) and "null" in declared and len(declared) > 1
    if node.get("nullable") is True or widened_by_type:
        validator = NullableValidator(validator, description=description)
    return validator


def _infer_shape(
    spec: Mapping[str, Any],
    required: Optional[Iterable[str]],
    stack: tuple[int, ...],
) -> dict[str, Validator]:
    required_names = {name for name in (required or ()) if isinstance(name, str)}
    shape: dict[str, Validator] = {}
    for name, node in spec.items():
        validator = _scan(node, stack)
        if name not in required_names:
            validator = OptionalValidator(validator, description=validator.description)
        shape[name] = validator
    return shape


def _resolve(node: Mapping[str, Any], description: str, stack: tuple[int, ...]) -> Validator:
    if "const" in node:
        return LiteralValidator(node["const"], description=description)

    if "anyOf" in node or "oneOf" in node:
        keyword = "anyOf" if "anyOf" in node else "oneOf"
        return _union(node[keyword], keyword, description, stack)

    if "allOf" in node:
        return _intersection(node["allOf"], description, stack)

    declared = node.get("type")
    if isinstance(declared, list):
        return _multi_type(node, declared, description, stack)
    return _by_type(node, declared, description, stack)


def _fallback(reason: str, description: str = "") -> UnknownValidator:
    logger.debug("Falling back to unknown validator: %s", reason)
    return UnknownValidator(reason=reason, description=description)


# ============== Composition ==============

def _union(branches: Any, keyword: str, description: str, stack: tuple[int, ...]) -> Validator:
    if not isinstance(branches, list) or not branches:
        return _fallback(f"{keyword} is not a non-empty list", description)

    options = [_scan(branch, stack) for branch in branches]
    if len(options) == 1:
        return options[0]
    return UnionValidator(tuple(options), description=description)


def _intersection(branches: Any, description: str, stack: tuple[int, ...]) -> Validator:
    if not isinstance(branches, list) or not branches:
        return _fallback("allOf is not a non-empty list", description)

    parts = [_scan(branch, stack) for branch in branches]
    if len(parts) == 1:
        return parts[0]
    return IntersectionValidator(tuple(parts), description=description)


def _multi_type(
    node: Mapping[str, Any],
    declared: list,
    description: str,
    stack: tuple[int, ...],
) -> Validator:
    """`type: [a, b]` compiles the node once per listed type; "null" is handled by _scan."""
    names = [name for name in declared if name != "null"]
    if not names:
        return NullValidator(description=description) if declared else _fallback("empty type list", description)

    options = [_by_type(node, name, description, stack) for name in names]
    if len(options) == 1:
        return options[0]
    return UnionValidator(tuple(options), description=description)


# ============== Type dispatch ==============

def _by_type(node: Mapping[str, Any], type_name: Any, description: str, stack: tuple[int, ...]) -> Validator:
    if type_name is None:
        return _fallback("no type declared", description)
    if not isinstance(type_name, str) or type_name not in _TYPE_BUILDERS:
        return _fallback(f"unrecognized type {type_name!r}", description)
    return _TYPE_BUILDERS[type_name](node, description, stack)


def _string(node: Mapping[str, Any], description: str, stack: tuple[int, ...]) -> Validator:
    enum = node.get("enum")
    if isinstance(enum, list) and enum:
        return StringValidator(enum=tuple(enum), description=description)

    pattern = node.get("pattern")
    if pattern is not None:
        try:
            re.compile(pattern)
        except (re.error, TypeError) as e:
            logger.debug("Ignoring unusable pattern %r: %s", pattern, e)
            pattern = None

    fmt = node.get("format")
    return StringValidator(
        min_length=_count(node.get("minLength")),
        max_length=_count(node.get("maxLength")),
        pattern=pattern,
        format=fmt if isinstance(fmt, str) else None,
        description=description,
    )


def _number(node: Mapping[str, Any], description: str, stack: tuple[int, ...]) -> Validator:
    return NumberValidator(**_bounds(node), description=description)


def _integer(node: Mapping[str, Any], description: str, stack: tuple[int, ...]) -> Validator:
    return IntegerValidator(**_bounds(node), description=description)


def _boolean(node: Mapping[str, Any], description: str, stack: tuple[int, ...]) -> Validator:
    return BooleanValidator(description=description)


def _null(node: Mapping[str, Any], description: str, stack: tuple[int, ...]) -> Validator:
    return NullValidator(description=description)


def _object(node: Mapping[str, Any], description: str, stack: tuple[int, ...]) -> Validator:
    properties = node.get("properties")
    if isinstance(properties, Mapping):
        required = node.get("required")
        if not isinstance(required, list):
            required = list(properties)
        shape = _infer_shape(properties, required, stack)
        return ObjectShapeValidator(shape, description=description)

    additional = node.get("additionalProperties")
    if isinstance(additional, Mapping):
        return RecordValidator(_scan(additional, stack), description=description)
    if additional is True:
        return RecordValidator(_fallback("unconstrained additionalProperties"), description=description)

    return _fallback("object without properties", description)


def _array(node: Mapping[str, Any], description: str, stack: tuple[int, ...]) -> Validator:
    prefix = node.get("prefixItems")
    items = node.get("items")
    # Draft-4 style tuples spell prefixItems as a list under items.
    if not isinstance(prefix, list) and isinstance(items, list):
        prefix = items

    if isinstance(prefix, list):
        return TupleValidator(tuple(_scan(slot, stack) for slot in prefix), description=description)

    if isinstance(items, Mapping):
        element = _scan(items, stack)
    else:
        element = _fallback("array without items")

    return ArrayValidator(
        element,
        min_items=_count(node.get("minItems")),
        max_items=_count(node.get("maxItems")),
        description=description,
    )


_TYPE_BUILDERS = {
    "string": _string,
    "number": _number,
    "integer": _integer,
    "boolean": _boolean,
    "null": _null,
    "object": _object,
    "array": _array,
}


# ============== Keyword helpers ==============

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _count(value: Any) -> Optional[int]:
    """Length-style keywords: non-negative whole numbers only."""
    if _is_number(value) and value >= 0 and float(value).is_integer():
        return int(value)
    return None


def _bounds(node: Mapping[str, Any]) -> dict[str, Any]:
    minimum = node.get("minimum") if _is_number(node.get("minimum")) else None
    maximum = node.get("maximum") if _is_number(node.get("maximum")) else None
    exclusive_minimum = node.get("exclusiveMinimum")
    exclusive_maximum = node.get("exclusiveMaximum")

    # OpenAPI 3.0 / draft-4 spell exclusivity as a boolean next to minimum/maximum.
    if exclusive_minimum is True and minimum is not None:
        exclusive_minimum, minimum = minimum, None
    if exclusive_maximum is True and maximum is not None:
        exclusive_maximum, maximum = maximum, None

    return {
        "minimum": minimum,
        "maximum": maximum,
        "exclusive_minimum": exclusive_minimum if _is_number(exclusive_minimum) else None,
        "exclusive_maximum": exclusive_maximum if _is_number(exclusive_maximum) else None,
    }
