"""
Tests for Parameter schema nodes.
"""

import json
import re

import pytest

from param_processor.errors import SchemaDefinitionError
from param_processor.parameter import Parameter, compile_pattern, import_object


class TestParameterConstruction:
    """Test building parameters from definitions."""

    def test_defaults(self):
        """Test an empty definition."""
        param = Parameter()
        assert param.name is None
        assert param.type is None
        assert param.types == ()
        assert param.required is False
        assert param.static is False
        assert param.default is None
        assert param.additional_properties is True
        assert param.enum is None
        assert param.min is None
        assert param.max is None
        assert param.instance_of is None
        assert param.filters == ()

    def test_keyword_arguments(self):
        """Test keyword arguments override the definition."""
        param = Parameter({"name": "a", "type": "string"}, required=True)
        assert param.name == "a"
        assert param.required is True

    def test_type_forms(self):
        """Test single and multiple declared types."""
        assert Parameter({"type": "string"}).type == "string"
        param = Parameter({"type": ["integer", "null"]})
        assert param.type == ("integer", "null")
        assert param.types == ("integer", "null")

    def test_unknown_type(self):
        """Test unknown type names are rejected."""
        with pytest.raises(SchemaDefinitionError, match="Unknown parameter type"):
            Parameter({"type": "float"})

    def test_properties_named_by_key(self):
        """Test properties take their key as name."""
        param = Parameter({
            "type": "object",
            "properties": {"a": {"type": "string"}, "b": Parameter({"type": "integer"})},
        })
        assert list(param.properties) == ["a", "b"]
        assert param.get_property("a").name == "a"
        assert param.get_property("b").name == "b"
        assert param.get_property("missing") is None

    def test_property_keeps_declared_name(self):
        """Test an explicit child name wins over the key."""
        param = Parameter({"type": "object", "properties": {"a": {"name": "alias"}}})
        assert param.get_property("a").name == "alias"

    def test_properties_as_list(self):
        """Test list-form properties."""
        param = Parameter({"type": "object", "properties": [{"name": "x"}, {"name": "y"}]})
        assert list(param.properties) == ["x", "y"]

        with pytest.raises(SchemaDefinitionError, match="must each have a name"):
            Parameter({"type": "object", "properties": [{"type": "string"}]})

    def test_properties_read_only(self):
        """Test the properties mapping cannot be modified."""
        param = Parameter({"type": "object", "properties": {"a": {}}})
        with pytest.raises(TypeError):
            param.properties["b"] = Parameter()

    def test_items_and_additional_properties(self):
        """Test child schemas for items and additional properties."""
        param = Parameter({
            "type": "array",
            "items": {"type": "integer"},
            "additionalProperties": {"type": "string"},
        })
        assert param.items.type == "integer"
        assert isinstance(param.additional_properties, Parameter)
        assert Parameter({"additionalProperties": False}).additional_properties is False

    def test_invalid_child(self):
        """Test child schemas must be definitions."""
        with pytest.raises(SchemaDefinitionError, match="Expected a schema definition"):
            Parameter({"type": "array", "items": "integer"})

    def test_bound_aliases(self):
        """Test min/max aliases."""
        assert Parameter({"minLength": 2, "maxLength": 4}).min == 2
        assert Parameter({"minimum": 1.5}).min == 1.5
        assert Parameter({"maxItems": 3}).max == 3

    def test_invalid_bound(self):
        """Test bounds must be numbers."""
        with pytest.raises(SchemaDefinitionError, match="must be a number"):
            Parameter({"min": "3"})
        with pytest.raises(SchemaDefinitionError):
            Parameter({"max": True})

    def test_enum(self):
        """Test enum forms."""
        assert Parameter({"enum": ["b", "a"]}).enum == ("b", "a")
        assert Parameter({"enum": {"b", "a"}}).enum == ("a", "b")
        with pytest.raises(SchemaDefinitionError, match="'enum' must be a list"):
            Parameter({"enum": "abc"})

    def test_invalid_pattern(self):
        """Test invalid patterns are rejected at construction."""
        with pytest.raises(SchemaDefinitionError, match="Invalid pattern"):
            Parameter({"pattern": "(unclosed"})

    def test_instance_of(self):
        """Test instance-of constraints."""
        param = Parameter({"instanceOf": "collections.OrderedDict"})
        assert param.instance_of.__name__ == "OrderedDict"
        assert param.instance_of_name == "collections.OrderedDict"
        assert Parameter({"instanceOf": dict}).instance_of_name == "dict"

    def test_invalid_instance_of(self):
        """Test unresolvable or non-class instance-of constraints."""
        with pytest.raises(SchemaDefinitionError, match="Cannot resolve"):
            Parameter({"instanceOf": "no_such_module.Thing"})
        with pytest.raises(SchemaDefinitionError, match="must name a class"):
            Parameter({"instanceOf": "json.dumps"})

    def test_extra_keys(self):
        """Test uninterpreted keys are kept."""
        param = Parameter({"type": "string", "location": "query"})
        assert param.get_extra("location") == "query"
        assert param.get_extra("sentAs", "x") == "x"


class TestParameterValues:
    """Test default, static and filter handling."""

    def test_get_value_default(self):
        """Test defaults only replace missing values."""
        param = Parameter({"default": "x"})
        assert param.get_value(None) == "x"
        assert param.get_value("y") == "y"
        assert param.get_value("") == ""

    def test_get_value_static(self):
        """Test static values always win."""
        param = Parameter({"static": True, "default": "fixed"})
        assert param.get_value("other") == "fixed"
        assert param.get_value(None) == "fixed"

    def test_default_is_copied(self):
        """Test mutable defaults are not shared."""
        param = Parameter({"default": {"a": [1]}})
        value = param.get_value(None)
        value["a"].append(2)
        assert param.get_value(None) == {"a": [1]}
        assert param.default == {"a": [1]}

    def test_filters_in_order(self):
        """Test filters run in declaration order."""
        param = Parameter({"filters": ["str.strip", str.upper, lambda v: v + "!"]})
        assert param.filter("  hi ") == "HI!"

    def test_filter_with_arguments(self):
        """Test filter argument lists with the value placeholder."""
        param = Parameter({"filters": [{"method": "str.replace", "args": ["@value", "-", "_"]}]})
        assert param.filter("a-b-c") == "a_b_c"

    def test_single_filter(self):
        """Test a single filter need not be wrapped in a list."""
        assert Parameter({"filters": "json.dumps"}).filter({"a": 1}) == json.dumps({"a": 1})

    def test_invalid_filters(self):
        """Test malformed filters are rejected."""
        with pytest.raises(SchemaDefinitionError, match="require a 'method'"):
            Parameter({"filters": [{"args": []}]})
        with pytest.raises(SchemaDefinitionError, match="not callable"):
            Parameter({"filters": [5]})
        with pytest.raises(SchemaDefinitionError, match="must be a list"):
            Parameter({"filters": [{"method": "str.strip", "args": "@value"}]})

    def test_no_filters(self):
        """Test values pass through without filters."""
        value = object()
        assert Parameter().filter(value) is value


class TestParameterSerialization:
    """Test converting parameters back to definitions."""

    def test_to_dict_round_trip(self):
        """Test to_dict rebuilds an equal parameter."""
        definition = {
            "name": "root",
            "type": "object",
            "required": True,
            "description": "Root",
            "properties": {
                "tags": {"type": "array", "items": {"type": "string", "pattern": "^[a-z]+$"}, "max": 3},
                "mode": {"type": "string", "enum": ["a", "b"], "default": "a"},
            },
            "additionalProperties": False,
            "location": "json",
        }
        param = Parameter(definition)
        data = param.to_dict()
        assert data["properties"]["tags"]["name"] == "tags"
        assert data["additionalProperties"] is False
        assert data["location"] == "json"
        assert Parameter(data) == param

    def test_equality(self):
        """Test equality compares definitions."""
        assert Parameter({"type": "string"}) == Parameter({"type": "string"})
        assert Parameter({"type": "string"}) != Parameter({"type": "integer"})
        assert Parameter() != "not a parameter"

    def test_repr(self):
        """Test the representation."""
        assert repr(Parameter({"name": "a", "type": "string"})) == "Parameter(name='a', type='string')"


class TestHelpers:
    """Test module helpers."""

    def test_import_object(self):
        """Test dotted path resolution."""
        assert import_object("json.dumps") is json.dumps
        assert import_object("str.upper") is str.upper
        assert import_object("len") is len

    def test_import_object_invalid(self):
        """Test invalid paths."""
        with pytest.raises(SchemaDefinitionError):
            import_object("")
        with pytest.raises(SchemaDefinitionError):
            import_object("json.no_such_function")

    def test_compile_pattern(self):
        """Test plain and delimited patterns."""
        assert compile_pattern("^a$").flags & re.IGNORECASE == 0
        compiled = compile_pattern("/^a.b$/is")
        assert compiled.pattern == "^a.b$"
        assert compiled.flags & re.IGNORECASE
        assert compiled.flags & re.DOTALL
        assert compiled.search("A\nB")
