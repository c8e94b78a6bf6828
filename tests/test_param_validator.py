"""
Tests for the functional parameter validation helpers.
"""

from param_processor.parameter import Parameter
from param_processor.param_validator import build_schema, validate_params, format_errors
from param_processor.processor import Processor


SEARCH_SCHEMA = {
    "query": {"type": "string", "required": True},
    "limit": {"type": "integer", "default": 10, "min": 1, "max": 100},
    "sort": {"type": "string", "enum": ["asc", "desc"]},
}


class TestValidateParams:
    """Test validate_params."""

    def test_defaults_applied(self):
        """Test defaults fill missing parameters."""
        validated, errors = validate_params(SEARCH_SCHEMA, {"query": "mahomes"})
        assert errors == []
        assert validated == {"query": "mahomes", "limit": 10}

    def test_errors_reported(self):
        """Test every violation is reported, sorted."""
        validated, errors = validate_params(SEARCH_SCHEMA, {"limit": 500, "sort": "up"})
        assert errors == [
            "[limit] must be less than or equal to 100",
            "[query] is a required string",
            '[sort] must be one of "asc" or "desc"',
        ]
        assert validated["limit"] == 500

    def test_input_not_modified(self):
        """Test the caller's mapping keeps its keys."""
        values = {"query": 42}
        validated, errors = validate_params(SEARCH_SCHEMA, values)
        assert errors == []
        assert validated["query"] == "42"
        assert values == {"query": 42}

    def test_none_values(self):
        """Test a missing values mapping is treated as empty."""
        _, errors = validate_params(SEARCH_SCHEMA, None)
        assert errors == ["[query] is a required string"]

    def test_parameter_schema(self):
        """Test a Parameter can be passed directly."""
        schema = Parameter({
            "type": "object",
            "properties": {"id": {"type": "integer"}},
            "additionalProperties": False,
        })
        _, errors = validate_params(schema, {"id": 1, "extra": True})
        assert errors == ["[extra] is not an allowed property"]

    def test_custom_processor(self):
        """Test a configured processor is used."""
        _, errors = validate_params(
            SEARCH_SCHEMA, {"query": 42}, processor=Processor(cast_integer_to_string=False)
        )
        assert errors == ["[query] must be of type string"]


class TestHelpers:
    """Test schema building and error formatting."""

    def test_build_schema(self):
        """Test a properties mapping becomes an object parameter."""
        schema = build_schema(SEARCH_SCHEMA)
        assert schema.type == "object"
        assert list(schema.properties) == ["query", "limit", "sort"]
        assert build_schema(schema) is schema

    def test_format_errors(self):
        """Test errors are joined with semicolons."""
        assert format_errors(["a", "b"]) == "a; b"
        assert format_errors([]) == ""
