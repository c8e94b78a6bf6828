"""
Recursive schema validation and value coercion.

The Processor walks a Parameter tree in lock-step with a value tree. Along
the way it applies default and static values, casts integers to strings
where a string is expected, runs parameter filters on accepted values, and
collects every violation instead of stopping at the first one.

Mappings and lists inside the value are updated in place. The processed
root value is always available on the returned ProcessResult, since a
replaced root (a default, a cast scalar) cannot be written back to the
caller's variable.
"""

import logging
import re
import threading
from collections.abc import Mapping, MutableMapping
from typing import Any, Callable, Dict, List, Optional, Tuple

from .parameter import Parameter

logger = logging.getLogger(__name__)

_SCALARS = (str, bytes, int, float, complex, bool, type(None))
_SEQUENCES = (list, tuple)
_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def _is_string(value: Any) -> bool:
    if isinstance(value, str):
        return True
    if isinstance(value, _SCALARS + _SEQUENCES + (Mapping, set, frozenset)):
        return False
    # Objects count as strings when they define their own conversion
    return type(value).__str__ is not object.__str__


def _is_object(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return not isinstance(value, _SCALARS + _SEQUENCES + (set, frozenset))


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and _NUMERIC_STRING.match(value) is not None


_TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": _is_string,
    "object": _is_object,
    "array": lambda value: isinstance(value, _SEQUENCES),
    "integer": _is_integer,
    "boolean": lambda value: isinstance(value, bool),
    "numeric": _is_numeric,
    "null": lambda value: not value,
    "any": lambda value: True,
}


def _as_number(value: Any) -> Any:
    return float(value) if isinstance(value, str) else value


def _addslashes(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace('"', '\\"')
        .replace("\0", "\\0")
    )


def determine_type(types: Tuple[str, ...], value: Any) -> Optional[str]:
    """
    From the declared types, determine the first one the value matches.

    Args:
        types: Declared type names, in declaration order
        value: Value to check

    Returns:
        The matching type name, or None when nothing matches
    """
    for type_name in types:
        if _TYPE_CHECKS[type_name](value):
            return type_name
    return None


class ProcessResult:
    """Outcome of one processing run."""

    def __init__(self, value: Any = None, errors: Optional[List[str]] = None):
        self.value = value
        self.errors = sorted(errors or [])

    @property
    def valid(self) -> bool:
        return not self.errors

    def is_valid(self) -> bool:
        """Check if processing passed."""
        return self.valid

    def format_errors(self) -> str:
        return "; ".join(self.errors)

    def __str__(self) -> str:
        if self.valid:
            return "Valid"
        return f"Invalid: {', '.join(self.errors)}"


class Processor:
    """
    Validates values against Parameter trees.

    A Processor holds no per-call state: ``run`` returns a fresh
    ProcessResult, so one instance can be shared between threads. The
    ``process``/``errors`` pair remembers the last result per thread.
    """

    def __init__(self, cast_integer_to_string: bool = True):
        """
        Args:
            cast_integer_to_string: Convert integers to strings when a string
                is expected and an integer is received. Defaults to True.
        """
        self.cast_integer_to_string = cast_integer_to_string
        self._local = threading.local()

    @classmethod
    def from_config(cls, config_manager) -> "Processor":
        """Build a processor from a ConfigManager's processor section."""
        settings = config_manager.config.processor
        return cls(cast_integer_to_string=settings.cast_integer_to_string)

    def run(self, schema: Parameter, value: Any) -> ProcessResult:
        """
        Process a value against a schema.

        Args:
            schema: Root parameter
            value: Value to validate. Mappings and lists are updated in place.

        Returns:
            ProcessResult with the processed value and sorted error messages
        """
        errors: List[str] = []
        _, value = self._walk(schema, value, "", 0, errors)
        result = ProcessResult(value, errors)

        logger.debug(
            f"[Process] {schema.name or '<root>'}: "
            f"valid={result.valid}, errors={len(result.errors)}"
        )
        return result

    def process(self, schema: Parameter, value: Any) -> bool:
        """Process a value and remember the result for ``errors``."""
        result = self.run(schema, value)
        self._local.result = result
        return result.valid

    def errors(self) -> List[str]:
        """Get the sorted errors from this thread's last ``process`` call."""
        result = self.last_result
        return list(result.errors) if result else []

    @property
    def last_result(self) -> Optional[ProcessResult]:
        return getattr(self._local, "result", None)

    def _walk(self, param: Parameter, value: Any, path: str, depth: int, errors: List[str]) -> Tuple[bool, Any]:
        value = param.get_value(value)

        if param.static:
            return True, value

        if value is None and not param.required:
            if depth == 0 or not self._can_bubble(param):
                return True, None
            # Only required nested defaults may materialize this object
            scratch: List[str] = []
            valid, value = self._check(param, None, path, depth, scratch)
            if not self._populated_by_required(param, value):
                return True, None
            errors.extend(scratch)
            return valid, value

        return self._check(param, value, path, depth, errors)

    @staticmethod
    def _populated_by_required(param: Parameter, value: Any) -> bool:
        if not isinstance(value, Mapping):
            return False
        return any(prop.required and value.get(key) for key, prop in param.properties.items())

    @staticmethod
    def _can_bubble(param: Parameter) -> bool:
        return param.type == "object" and param.instance_of is None and bool(param.properties)

    def _check(self, param: Parameter, value: Any, path: str, depth: int, errors: List[str]) -> Tuple[bool, Any]:
        start = len(errors)
        types = param.types

        if param.name:
            path += f"[{param.name}]"

        if param.type == "object":
            if param.instance_of is not None and not isinstance(value, param.instance_of):
                errors.append(f"{path} must be an instance of {param.instance_of_name}")
                return False, value

            if isinstance(value, _SEQUENCES):
                errors.append(f"{path} must be an array of properties. Got a numerically indexed array.")
                return False, value

            temporary = value is None
            if temporary:
                value = {}

            if isinstance(value, Mapping):
                value = self._traverse_object(param, value, path, depth, errors)
                # Nothing bubbled up into the temporary container
                if temporary and not value:
                    value = None

        elif param.type == "array" and isinstance(value, _SEQUENCES) and param.items is not None:
            processed = [
                self._walk(param.items, item, f"{path}[{index}]", depth + 1, errors)[1]
                for index, item in enumerate(value)
            ]
            if isinstance(value, list):
                value[:] = processed
            else:
                value = tuple(processed)

        is_empty = value is None or (isinstance(value, str) and value == "")
        if param.required and is_empty and param.type != "null":
            message = f"{path} is a required {' or '.join(types)}" if types else f"{path} is required"
            if param.description:
                message += f": {param.description}"
            errors.append(message)
            return False, value

        resolved = None
        if types:
            resolved = determine_type(types, value)
            if resolved is None:
                if self.cast_integer_to_string and "string" in types and _is_integer(value):
                    value = str(value)
                    resolved = "string"
                else:
                    errors.append(f"{path} must be of type {' or '.join(types)}")

        text = None
        if resolved == "string":
            text = value if isinstance(value, str) else str(value)
            if param.enum is not None and value not in param.enum and text not in param.enum:
                choices = " or ".join(f'"{_addslashes(str(choice))}"' for choice in param.enum)
                errors.append(f"{path} must be one of {choices}")
            if param.pattern and not param.matches_pattern(text):
                errors.append(f"{path} must match the following regular expression: {param.pattern}")

        # Zero bounds are treated as unset
        minimum = param.min
        if minimum:
            if resolved in ("integer", "numeric") and _as_number(value) < minimum:
                errors.append(f"{path} must be greater than or equal to {minimum}")
            elif resolved == "string" and len(text) < minimum:
                errors.append(f"{path} length must be greater than or equal to {minimum}")
            elif resolved == "array" and len(value) < minimum:
                errors.append(f"{path} must contain {minimum} or more elements")

        maximum = param.max
        if maximum:
            if resolved in ("integer", "numeric") and _as_number(value) > maximum:
                errors.append(f"{path} must be less than or equal to {maximum}")
            elif resolved == "string" and len(text) > maximum:
                errors.append(f"{path} length must be less than or equal to {maximum}")
            elif resolved == "array" and len(value) > maximum:
                errors.append(f"{path} must contain {maximum} or fewer elements")

        if len(errors) > start:
            return False, value
        return True, param.filter(value)

    def _traverse_object(self, param: Parameter, value: Mapping, path: str, depth: int, errors: List[str]) -> Mapping:
        writable = isinstance(value, MutableMapping)
        properties = param.properties

        for key, prop in properties.items():
            current = value.get(key)
            present = current is not None
            _, current = self._walk(prop, current, path, depth + 1, errors)
            # Absent keys are only added when something was populated
            if writable and (present or current):
                value[key] = current

        additional = param.additional_properties
        if additional is not True:
            extra = [key for key in value if key not in properties]
            if extra:
                if isinstance(additional, Parameter):
                    for key in extra:
                        _, current = self._walk(additional, value[key], f"{path}[{key}]", depth, errors)
                        if writable:
                            value[key] = current
                else:
                    errors.append(f"{path}[{extra[0]}] is not an allowed property")

        return value
