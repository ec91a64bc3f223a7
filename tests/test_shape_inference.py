"""
Shape inference tests: a tool's field specs + required list -> field validators.
"""

import json

import pytest

from hive_proxy.compiler import infer_raw_shape_from_spec
from hive_proxy.validators import (
    NullableValidator,
    ObjectShapeValidator,
    OptionalValidator,
    StringValidator,
    ValidationFailure,
)


def spec_from_json(**fields) -> dict:
    """Field specs as they arrive from the hub: decoded JSON."""
    return {name: json.loads(json.dumps(node)) for name, node in fields.items()}


class TestRequiredFields:

    def test_all_required(self):
        spec = spec_from_json(
            name={"type": "string", "description": "Name"},
            age={"type": "integer", "description": "Age"},
        )
        shape = infer_raw_shape_from_spec(spec, ["name", "age"])

        assert set(shape) == {"name", "age"}
        obj = ObjectShapeValidator.from_shape(shape)
        assert obj.validate({"name": "John", "age": 30}) == {"name": "John", "age": 30}
        assert obj.required_fields == ["name", "age"]

    def test_optional_fields(self):
        spec = spec_from_json(
            name={"type": "string", "description": "Name"},
            email={"type": "string", "description": "Email"},
        )
        shape = infer_raw_shape_from_spec(spec, ["name"])

        assert isinstance(shape["name"], StringValidator)
        assert isinstance(shape["email"], OptionalValidator)

        obj = ObjectShapeValidator.from_shape(shape)
        assert obj.validate({"name": "John"}) == {"name": "John"}
        assert obj.validate({"name": "John", "email": "john@example.com"}) == {
            "name": "John",
            "email": "john@example.com",
        }

    def test_missing_required_field(self):
        shape = infer_raw_shape_from_spec(spec_from_json(name={"type": "string"}), ["name"])
        with pytest.raises(ValidationFailure) as exc_info:
            ObjectShapeValidator.from_shape(shape).validate({})
        assert exc_info.value.violations[0].path == ("name",)
        assert exc_info.value.violations[0].code == "missing"

    def test_optional_is_not_nullable(self):
        shape = infer_raw_shape_from_spec(spec_from_json(email={"type": "string"}), [])
        obj = ObjectShapeValidator.from_shape(shape)
        assert obj.validate({}) == {}
        assert not obj.is_valid({"email": None})

    def test_optional_and_nullable(self):
        shape = infer_raw_shape_from_spec(spec_from_json(email={"type": "string", "nullable": True}), [])
        assert isinstance(shape["email"], OptionalValidator)
        assert isinstance(shape["email"].inner, NullableValidator)

        obj = ObjectShapeValidator.from_shape(shape)
        assert obj.validate({}) == {}
        assert obj.validate({"email": None}) == {"email": None}

    @pytest.mark.parametrize("node", [
        {"type": "string", "nullable": True},
        {"const": "on", "nullable": True},
    ])
    def test_required_nullable_field_must_be_present(self, node):
        shape = infer_raw_shape_from_spec(spec_from_json(f=node), ["f"])
        obj = ObjectShapeValidator.from_shape(shape)
        with pytest.raises(ValidationFailure) as exc_info:
            obj.validate({})
        assert exc_info.value.violations[0].path == ("f",)
        assert exc_info.value.violations[0].code == "missing"
        assert obj.validate({"f": None}) == {"f": None}

    def test_required_const_field_must_be_present(self):
        shape = infer_raw_shape_from_spec(spec_from_json(mode={"const": "on"}), ["mode"])
        obj = ObjectShapeValidator.from_shape(shape)
        with pytest.raises(ValidationFailure) as exc_info:
            obj.validate({})
        assert exc_info.value.violations[0].code == "missing"
        assert obj.validate({"mode": "on"}) == {"mode": "on"}
        assert not obj.is_valid({"mode": None})

    def test_required_none_means_nothing_required(self):
        shape = infer_raw_shape_from_spec(spec_from_json(a={"type": "string"}), None)
        assert isinstance(shape["a"], OptionalValidator)

    def test_required_order_is_irrelevant(self):
        spec = spec_from_json(a={"type": "string"}, b={"type": "integer"})
        first = infer_raw_shape_from_spec(spec, ["a", "b"])
        second = infer_raw_shape_from_spec(spec, ["b", "a"])
        assert first == second

    def test_unknown_required_names_are_ignored(self):
        shape = infer_raw_shape_from_spec(spec_from_json(a={"type": "string"}), ["a", "ghost"])
        assert list(shape) == ["a"]


class TestShapeContents:

    def test_output_keeps_spec_order(self):
        spec = spec_from_json(zeta={"type": "string"}, alpha={"type": "string"}, mid={"type": "string"})
        assert list(infer_raw_shape_from_spec(spec, [])) == ["zeta", "alpha", "mid"]

    def test_arrays(self):
        spec = spec_from_json(tags={"type": "array", "items": {"type": "string", "description": "Tag"}})
        obj = ObjectShapeValidator.from_shape(infer_raw_shape_from_spec(spec, ["tags"]))
        assert obj.validate({"tags": ["tag1", "tag2"]}) == {"tags": ["tag1", "tag2"]}

    def test_complex_nested_spec(self):
        spec = spec_from_json(user={
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "profile": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "scores": {"type": "array", "items": {"type": "number"}},
                    },
                },
            },
        })
        obj = ObjectShapeValidator.from_shape(infer_raw_shape_from_spec(spec, ["user"]))
        data = {"user": {"id": 1, "profile": {"name": "Alice", "scores": [95.5, 87.3, 92.1]}}}
        assert obj.validate(data) == data

        with pytest.raises(ValidationFailure) as exc_info:
            obj.validate({"user": {"id": 1, "profile": {"name": "Alice", "scores": [95.5, "A"]}}})
        assert exc_info.value.violations[0].location() == "$.user.profile.scores[1]"

    def test_descriptions_survive_optional_wrapping(self):
        spec = spec_from_json(email={"type": "string", "description": "Email"})
        shape = infer_raw_shape_from_spec(spec, [])
        assert shape["email"].description == "Email"

    def test_empty_spec(self):
        obj = ObjectShapeValidator.from_shape(infer_raw_shape_from_spec({}, []))
        assert obj.validate({}) == {}
        assert obj.validate({"extra": 1}) == {"extra": 1}

    def test_describe(self):
        spec = spec_from_json(
            name={"type": "string"},
            email={"type": "string", "format": "email"},
            tags={"type": "array", "items": {"type": "string"}},
        )
        obj = ObjectShapeValidator.from_shape(infer_raw_shape_from_spec(spec, ["name"]))
        assert obj.describe() == "{name: string, email?: string(format=email), tags?: array<string>}"

    def test_check_reports_every_violation(self):
        spec = spec_from_json(
            name={"type": "string", "minLength": 2},
            age={"type": "integer", "minimum": 0},
        )
        obj = ObjectShapeValidator.from_shape(infer_raw_shape_from_spec(spec, ["name", "age"]))
        result = obj.check({"name": "J", "age": -1})

        assert not result.ok
        assert {v.path for v in result.violations} == {("name",), ("age",)}
        assert {v.code for v in result.violations} == {"string_too_short", "greater_than_equal"}
