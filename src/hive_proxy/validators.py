"""
Validator Model

The closed set of runtime validators the schema compiler can produce.

Every variant is a frozen dataclass that lowers itself to a pydantic-core
schema; the compiled `SchemaValidator` is built on first use and kept for
the lifetime of the validator instance. Validators hold no other state and
can be shared freely between calls and threads.

Variants:
    StringValidator, NumberValidator, IntegerValidator, BooleanValidator,
    NullValidator, UnknownValidator, LiteralValidator, ArrayValidator,
    TupleValidator, ObjectShapeValidator, RecordValidator, UnionValidator,
    IntersectionValidator, plus the NullableValidator and OptionalValidator
    wrappers.

Example:
    >>> v = StringValidator(min_length=3, description="Name")
    >>> v.validate("abc")
    'abc'
    >>> v.check("ab").ok
    False
"""

import json
import re
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Optional

from pydantic_core import (
    PydanticCustomError,
    PydanticKnownError,
    SchemaValidator,
    ValidationError as CoreValidationError,
    core_schema,
)
from pydantic_core.core_schema import CoreSchema

from .formats import check_format


# Literal types pydantic-core can match natively. Numbers and booleans go
# through _same_literal, which keeps True and 1 apart.
_NATIVE_LITERAL_TYPES = (str, type(None))


# ============== Failures ==============

@dataclass(frozen=True)
class Violation:
    """One violated constraint, located by its path inside the checked value."""
    path: tuple
    code: str
    message: str

    def location(self) -> str:
        """Render the path as `$.field[0].nested`."""
        rendered = "$"
        for part in self.path:
            if isinstance(part, int):
                rendered += f"[{part}]"
            else:
                rendered += f".{part}"
        return rendered

    def to_dict(self) -> dict:
        return {"path": self.location(), "code": self.code, "message": self.message}


class ValidationFailure(ValueError):
    """Raised when a value is rejected by a compiled validator."""

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        msg = f"Validation failed with {len(self.violations)} violation(s):\n" + "\n".join(
            f"  - {v.location()}: {v.message} [{v.code}]" for v in self.violations
        )
        super().__init__(msg)

    @classmethod
    def from_core_error(cls, exc: CoreValidationError) -> "ValidationFailure":
        return cls([
            Violation(path=tuple(err["loc"]), code=err["type"], message=err["msg"])
            for err in exc.errors(include_url=False)
        ])


@dataclass(frozen=True)
class CheckResult:
    """Outcome of `Validator.check`: either the parsed value or the violations."""
    ok: bool
    value: Any = None
    violations: list = field(default_factory=list)


# ============== Constraint helpers ==============

def _after(check: Callable[[Any], Any], schema: CoreSchema) -> CoreSchema:
    return core_schema.no_info_after_validator_function(check, schema)


def _relative_location(path: tuple) -> str:
    """Render a path below some enclosing value, e.g. `items[0].name`."""
    rendered = ""
    for part in path:
        if isinstance(part, int):
            rendered += f"[{part}]"
        else:
            rendered += f".{part}" if rendered else str(part)
    return rendered


def _same_literal(value: Any, expected: Any) -> bool:
    if isinstance(value, bool) or isinstance(expected, bool):
        return type(value) is type(expected) and value == expected
    if isinstance(value, (int, float)) and isinstance(expected, (int, float)):
        return value == expected
    return type(value) is type(expected) and value == expected


def _literal_schema(values: tuple) -> CoreSchema:
    if all(type(v) in _NATIVE_LITERAL_TYPES for v in values):
        return core_schema.literal_schema(list(values))

    expected = " or ".join(_render(v) for v in values)

    def check_literal(value: Any) -> Any:
        if any(_same_literal(value, v) for v in values):
            return value
        raise PydanticKnownError("literal_error", {"expected": expected})

    return _after(check_literal, core_schema.any_schema())


def _pattern_check(pattern: str) -> Callable[[str], str]:
    regex = re.compile(pattern)

    def check_pattern(value: str) -> str:
        if regex.fullmatch(value) is None:
            raise PydanticKnownError("string_pattern_mismatch", {"pattern": pattern})
        return value

    return check_pattern


def _format_check(name: str) -> Callable[[str], str]:
    def check_string_format(value: str) -> str:
        if not check_format(name, value):
            raise PydanticCustomError(
                "string_format",
                "String should be a valid {format}",
                {"format": name},
            )
        return value

    return check_string_format


def _render(value: Any) -> str:
    return json.dumps(value, default=str)


def _with_constraints(name: str, constraints: dict) -> str:
    shown = ", ".join(f"{k}={v}" for k, v in constraints.items() if v is not None)
    return f"{name}({shown})" if shown else name


# ============== Base ==============

@dataclass(frozen=True)
class Validator:
    """Base of all validator variants."""
    description: str = field(default="", kw_only=True)

    kind = "validator"

    def to_core_schema(self) -> CoreSchema:
        raise NotImplementedError

    def children(self) -> tuple["Validator", ...]:
        return ()

    def describe(self) -> str:
        return self.kind

    def walk(self) -> Iterator["Validator"]:
        """Yield this validator and every nested validator, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()

    @cached_property
    def _core_validator(self) -> SchemaValidator:
        return SchemaValidator(self.to_core_schema())

    def validate(self, value: Any) -> Any:
        """
        Validate `value` and return the parsed result.

        Raises:
            ValidationFailure: if the value is rejected
        """
        try:
            return self._core_validator.validate_python(value)
        except CoreValidationError as exc:
            raise ValidationFailure.from_core_error(exc) from exc

    def check(self, value: Any) -> CheckResult:
        try:
            return CheckResult(ok=True, value=self.validate(value))
        except ValidationFailure as failure:
            return CheckResult(ok=False, violations=failure.violations)

    def is_valid(self, value: Any) -> bool:
        return self.check(value).ok


# ============== Leaf variants ==============

@dataclass(frozen=True)
class StringValidator(Validator):
    """Strings, optionally restricted to an enum or refined by length/pattern/format."""
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    format: Optional[str] = None
    enum: Optional[tuple] = None

    kind = "string"

    def to_core_schema(self) -> CoreSchema:
        if self.enum is not None:
            return _literal_schema(self.enum)

        schema = core_schema.str_schema(
            strict=True,
            min_length=self.min_length,
            max_length=self.max_length,
        )
        if self.pattern is not None:
            schema = _after(_pattern_check(self.pattern), schema)
        if self.format is not None:
            schema = _after(_format_check(self.format), schema)
        return schema

    def describe(self) -> str:
        if self.enum is not None:
            return " | ".join(_render(v) for v in self.enum)
        return _with_constraints(self.kind, {
            "minLength": self.min_length,
            "maxLength": self.max_length,
            "pattern": self.pattern,
            "format": self.format,
        })


@dataclass(frozen=True)
class NumberValidator(Validator):
    """Finite numbers (never booleans) with optional inclusive/exclusive bounds."""
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    exclusive_minimum: Optional[float] = None
    exclusive_maximum: Optional[float] = None

    kind = "number"

    def _numeric_schema(self) -> CoreSchema:
        return core_schema.union_schema(
            [
                core_schema.int_schema(strict=True),
                core_schema.float_schema(strict=True, allow_inf_nan=False),
            ],
            mode="left_to_right",
            custom_error_type="number_type",
            custom_error_message="Input should be a valid number",
        )

    def _has_bounds(self) -> bool:
        return any(bound is not None for bound in (
            self.minimum, self.maximum, self.exclusive_minimum, self.exclusive_maximum,
        ))

    def _check_bounds(self, value: Any) -> Any:
        if self.minimum is not None and value < self.minimum:
            raise PydanticKnownError("greater_than_equal", {"ge": self.minimum})
        if self.exclusive_minimum is not None and value <= self.exclusive_minimum:
            raise PydanticKnownError("greater_than", {"gt": self.exclusive_minimum})
        if self.maximum is not None and value > self.maximum:
            raise PydanticKnownError("less_than_equal", {"le": self.maximum})
        if self.exclusive_maximum is not None and value >= self.exclusive_maximum:
            raise PydanticKnownError("less_than", {"lt": self.exclusive_maximum})
        return value

    def to_core_schema(self) -> CoreSchema:
        schema = self._numeric_schema()
        if self._has_bounds():
            schema = _after(self._check_bounds, schema)
        return schema

    def describe(self) -> str:
        return _with_constraints(self.kind, {
            "minimum": self.minimum,
            "maximum": self.maximum,
            "exclusiveMinimum": self.exclusive_minimum,
            "exclusiveMaximum": self.exclusive_maximum,
        })


def _check_integral(value: Any) -> Any:
    if isinstance(value, float) and not value.is_integer():
        raise PydanticKnownError("int_from_float")
    return value


@dataclass(frozen=True)
class IntegerValidator(NumberValidator):
    """Numbers without a fractional part."""

    kind = "integer"

    def to_core_schema(self) -> CoreSchema:
        schema = _after(_check_integral, self._numeric_schema())
        if self._has_bounds():
            schema = _after(self._check_bounds, schema)
        return schema


@dataclass(frozen=True)
class BooleanValidator(Validator):
    kind = "boolean"

    def to_core_schema(self) -> CoreSchema:
        return core_schema.bool_schema(strict=True)


@dataclass(frozen=True)
class NullValidator(Validator):
    kind = "null"

    def to_core_schema(self) -> CoreSchema:
        return core_schema.none_schema()


@dataclass(frozen=True)
class UnknownValidator(Validator):
    """Accepts anything. `reason` records why the compiler fell back to it."""
    reason: str = ""

    kind = "unknown"

    def to_core_schema(self) -> CoreSchema:
        return core_schema.any_schema()


@dataclass(frozen=True)
class LiteralValidator(Validator):
    """Exactly one value, matched against the literal's own runtime type."""
    value: Any = None

    kind = "literal"

    def to_core_schema(self) -> CoreSchema:
        return _literal_schema((self.value,))

    def describe(self) -> str:
        return _render(self.value)


# ============== Composite variants ==============

@dataclass(frozen=True)
class ArrayValidator(Validator):
    """Homogeneous lists with optional inclusive length bounds."""
    items: Validator = field(default_factory=UnknownValidator)
    min_items: Optional[int] = None
    max_items: Optional[int] = None

    kind = "array"

    def to_core_schema(self) -> CoreSchema:
        return core_schema.list_schema(
            self.items.to_core_schema(),
            min_length=self.min_items,
            max_length=self.max_items,
            strict=True,
        )

    def children(self) -> tuple[Validator, ...]:
        return (self.items,)

    def describe(self) -> str:
        return _with_constraints(f"array<{self.items.describe()}>", {
            "minItems": self.min_items,
            "maxItems": self.max_items,
        })


@dataclass(frozen=True)
class TupleValidator(Validator):
    """Fixed-arity lists, each slot checked by its own validator."""
    slots: tuple = ()

    kind = "tuple"

    def to_core_schema(self) -> CoreSchema:
        positional = core_schema.tuple_schema([slot.to_core_schema() for slot in self.slots])
        # Only real lists get in; the parsed tuple goes back out as a list.
        return core_schema.chain_schema([
            core_schema.list_schema(strict=True),
            _after(list, positional),
        ])

    def children(self) -> tuple[Validator, ...]:
        return tuple(self.slots)

    def describe(self) -> str:
        return "[" + ", ".join(slot.describe() for slot in self.slots) + "]"


@dataclass(frozen=True)
class OptionalValidator(Validator):
    """Marks an object field that may be absent; values are checked by `inner`."""
    inner: Validator = field(default_factory=UnknownValidator)

    kind = "optional"

    def to_core_schema(self) -> CoreSchema:
        return self.inner.to_core_schema()

    def children(self) -> tuple[Validator, ...]:
        return (self.inner,)

    def describe(self) -> str:
        return self.inner.describe()


@dataclass(frozen=True)
class ObjectShapeValidator(Validator):
    """
    Objects with a fixed set of named fields.

    A field is required unless its validator is an OptionalValidator.
    Keys outside the shape are passed through unchecked.
    """
    fields: Mapping[str, Validator] = field(default_factory=dict)

    kind = "object"

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def from_shape(cls, shape: Mapping[str, Validator], description: str = "") -> "ObjectShapeValidator":
        """Build a whole-object validator from a field name -> validator mapping."""
        return cls(fields=shape, description=description)

    @property
    def required_fields(self) -> list[str]:
        return [name for name, v in self.fields.items() if not isinstance(v, OptionalValidator)]

    def to_core_schema(self) -> CoreSchema:
        return core_schema.typed_dict_schema(
            {
                name: core_schema.typed_dict_field(
                    v.to_core_schema(),
                    required=not isinstance(v, OptionalValidator),
                )
                for name, v in self.fields.items()
            },
            extra_behavior="allow",
        )

    def children(self) -> tuple[Validator, ...]:
        return tuple(self.fields.values())

    def describe(self) -> str:
        parts = []
        for name, v in self.fields.items():
            marker = "?" if isinstance(v, OptionalValidator) else ""
            parts.append(f"{name}{marker}: {v.describe()}")
        return "{" + ", ".join(parts) + "}"


@dataclass(frozen=True)
class RecordValidator(Validator):
    """Objects with arbitrary string keys and uniformly typed values."""
    values: Validator = field(default_factory=UnknownValidator)

    kind = "record"

    def to_core_schema(self) -> CoreSchema:
        return core_schema.dict_schema(
            keys_schema=core_schema.str_schema(strict=True),
            values_schema=self.values.to_core_schema(),
            strict=True,
        )

    def children(self) -> tuple[Validator, ...]:
        return (self.values,)

    def describe(self) -> str:
        return f"record<{self.values.describe()}>"


@dataclass(frozen=True)
class UnionValidator(Validator):
    """Accepts a value if any option does; the first matching option produces the output."""
    options: tuple = ()

    kind = "union"

    def to_core_schema(self) -> CoreSchema:
        options = self.options
        expected = self.describe()

        def check_union(value: Any) -> Any:
            closest = None
            for option in options:
                try:
                    return option._core_validator.validate_python(value)
                except CoreValidationError as e:
                    errors = e.errors(include_url=False)
                    # Options rejected below the top level matched the value's shape
                    if any(err["loc"] for err in errors) and (closest is None or len(errors) < len(closest)):
                        closest = errors
            detail = ""
            if closest:
                detail = "; closest option failed at " + ", ".join(
                    f"{_relative_location(err['loc'])}: {err['msg']}" for err in closest
                )
            raise PydanticCustomError(
                "union_mismatch",
                "Input should match one of: {expected}{detail}",
                {"expected": expected, "detail": detail},
            )

        return core_schema.no_info_plain_validator_function(check_union)

    def children(self) -> tuple[Validator, ...]:
        return tuple(self.options)

    def describe(self) -> str:
        return " | ".join(option.describe() for option in self.options)


@dataclass(frozen=True)
class IntersectionValidator(Validator):
    """Accepts a value only if every part does; each part sees the whole value."""
    parts: tuple = ()

    kind = "intersection"

    def to_core_schema(self) -> CoreSchema:
        # Object shapes pass unknown keys through, so chaining keeps every
        # part's keys in the final output.
        return core_schema.chain_schema([part.to_core_schema() for part in self.parts])

    def children(self) -> tuple[Validator, ...]:
        return tuple(self.parts)

    def describe(self) -> str:
        return " & ".join(part.describe() for part in self.parts)


@dataclass(frozen=True)
class NullableValidator(Validator):
    """Widens `inner` to also accept None."""
    inner: Validator = field(default_factory=UnknownValidator)

    kind = "nullable"

    def to_core_schema(self) -> CoreSchema:
        return core_schema.nullable_schema(self.inner.to_core_schema())

    def children(self) -> tuple[Validator, ...]:
        return (self.inner,)

    def describe(self) -> str:
        return f"{self.inner.describe()} | null"
