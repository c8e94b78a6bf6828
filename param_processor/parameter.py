"""
Schema nodes for the parameter processor.

A Parameter describes the expected shape of one value: its type, whether it
is required, defaults, nested properties or items, and the constraints the
processor enforces. Parameters are built from plain definition mappings
(the same shape the schema loader reads from YAML or JSON files) and are
read-only once constructed.

Definition keys:
{
  "name": str,                          # used to build error paths
  "type": str | [str, ...],             # string, object, array, integer,
                                        # boolean, numeric, null, any
  "required": bool,
  "static": bool,                       # default is forced, no validation
  "default": any,
  "description": str,                   # appended to "required" messages
  "properties": {name: definition},     # object types
  "items": definition,                  # array types
  "additionalProperties": bool | definition,
  "enum": [str, ...],
  "pattern": str,                       # regex or "/regex/flags"
  "min" / "max": number,                # aliases minimum, minLength, minItems...
  "instanceOf": type | "dotted.path",
  "filters": [callable | "dotted.path" | {"method": ..., "args": [...]}]
}
"""

import builtins
import copy
import importlib
import re
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import SchemaDefinitionError


VALID_TYPES = ("string", "object", "array", "integer", "boolean", "numeric", "null", "any")

# Placeholder replaced by the filtered value in filter argument lists
VALUE_PLACEHOLDER = "@value"

_MIN_ALIASES = ("min", "minimum", "minLength", "minItems")
_MAX_ALIASES = ("max", "maximum", "maxLength", "maxItems")

_KNOWN_KEYS = {
    "name", "type", "required", "static", "default", "description",
    "properties", "items", "additionalProperties", "enum", "pattern",
    "instanceOf", "filters",
} | set(_MIN_ALIASES) | set(_MAX_ALIASES)

_DELIMITED_PATTERN = re.compile(r"^/(?P<body>.*)/(?P<flags>[imsxu]*)$", re.DOTALL)
_PATTERN_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": 0,
}


def import_object(path: str) -> Any:
    """
    Resolve a dotted path such as ``"json.dumps"`` or ``"str.upper"``.

    The longest importable module prefix is imported and the remaining
    parts are looked up as attributes. Paths with no importable prefix
    are resolved against the builtins.

    Raises:
        SchemaDefinitionError: If the path cannot be resolved
    """
    if not isinstance(path, str) or not path:
        raise SchemaDefinitionError(f"Invalid import path: {path!r}")

    parts = path.split(".")
    target: Any = builtins
    remainder = parts
    for index in range(len(parts), 0, -1):
        try:
            target = importlib.import_module(".".join(parts[:index]))
        except ImportError:
            continue
        remainder = parts[index:]
        break

    for attribute in remainder:
        try:
            target = getattr(target, attribute)
        except AttributeError:
            raise SchemaDefinitionError(f"Cannot resolve '{path}'") from None
    return target


def compile_pattern(pattern: str) -> "re.Pattern":
    """Compile a plain regex or a ``/body/flags`` delimited one."""
    match = _DELIMITED_PATTERN.match(pattern)
    body, flags = pattern, 0
    if match:
        body = match.group("body")
        for flag in match.group("flags"):
            flags |= _PATTERN_FLAGS[flag]
    try:
        return re.compile(body, flags)
    except re.error as e:
        raise SchemaDefinitionError(f"Invalid pattern {pattern!r}: {e}") from None


def _parse_types(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    names = (value,) if isinstance(value, str) else tuple(value)
    for type_name in names:
        if type_name not in VALID_TYPES:
            raise SchemaDefinitionError(f"Unknown parameter type: {type_name!r}")
    return names


def _parse_bound(definition: Dict[str, Any], aliases: Tuple[str, ...]) -> Optional[Union[int, float]]:
    for key in aliases:
        bound = definition.get(key)
        if bound is None:
            continue
        if isinstance(bound, bool) or not isinstance(bound, (int, float)):
            raise SchemaDefinitionError(f"'{key}' must be a number, got {bound!r}")
        return bound
    return None


def _parse_filter(spec: Any) -> Tuple[Callable, Optional[Tuple[Any, ...]]]:
    if isinstance(spec, Mapping):
        if "method" not in spec:
            raise SchemaDefinitionError("Filter mappings require a 'method' key")
        method, _ = _parse_filter(spec["method"])
        args = spec.get("args", [VALUE_PLACEHOLDER])
        if isinstance(args, (str, bytes)) or not isinstance(args, (list, tuple)):
            raise SchemaDefinitionError("Filter 'args' must be a list")
        return method, tuple(args)

    method = import_object(spec) if isinstance(spec, str) else spec
    if not callable(method):
        raise SchemaDefinitionError(f"Filter {spec!r} is not callable")
    return method, None


class Parameter:
    """A read-only schema node."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None, **kwargs):
        definition = dict(data or {})
        definition.update(kwargs)

        self._name: Optional[str] = definition.get("name")
        self._declared_type = definition.get("type")
        self._types = _parse_types(self._declared_type)
        self._required = bool(definition.get("required", False))
        self._static = bool(definition.get("static", False))
        self._default = definition.get("default")
        self._description: Optional[str] = definition.get("description")

        self._properties = self._parse_properties(definition.get("properties"))
        self._items = self._parse_child(definition.get("items"))

        additional = definition.get("additionalProperties", True)
        if isinstance(additional, bool):
            self._additional_properties: Union[bool, Parameter] = additional
        else:
            self._additional_properties = self._parse_child(additional)

        enum = definition.get("enum")
        if enum is not None:
            if isinstance(enum, (set, frozenset)):
                enum = sorted(enum, key=str)
            elif isinstance(enum, (str, bytes)) or not isinstance(enum, (list, tuple)):
                raise SchemaDefinitionError("'enum' must be a list of values")
            enum = tuple(enum)
        self._enum: Optional[Tuple[Any, ...]] = enum

        self._pattern: Optional[str] = definition.get("pattern")
        self._compiled_pattern = compile_pattern(self._pattern) if self._pattern else None

        self._min = _parse_bound(definition, _MIN_ALIASES)
        self._max = _parse_bound(definition, _MAX_ALIASES)

        self._declared_instance_of = definition.get("instanceOf")
        instance_of = self._declared_instance_of
        if isinstance(instance_of, str):
            instance_of = import_object(instance_of)
        if instance_of is not None and not isinstance(instance_of, type):
            raise SchemaDefinitionError(f"'instanceOf' must name a class, got {instance_of!r}")
        self._instance_of: Optional[type] = instance_of

        filters = definition.get("filters") or []
        if isinstance(filters, (str, Mapping)) or callable(filters):
            filters = [filters]
        self._filter_specs: List[Any] = list(filters)
        self._filters = [_parse_filter(spec) for spec in self._filter_specs]

        self._extra = {k: v for k, v in definition.items() if k not in _KNOWN_KEYS}

    @staticmethod
    def _parse_child(value: Any, name: Optional[str] = None) -> Optional["Parameter"]:
        if value is None:
            return None
        if isinstance(value, Parameter):
            if name is None or value.name is not None:
                return value
            return Parameter(value.to_dict(), name=name)
        if isinstance(value, Mapping):
            definition = dict(value)
            if name is not None:
                definition.setdefault("name", name)
            return Parameter(definition)
        raise SchemaDefinitionError(f"Expected a schema definition, got {value!r}")

    def _parse_properties(self, value: Any) -> Dict[str, "Parameter"]:
        properties: Dict[str, Parameter] = {}
        if value is None:
            return properties

        if isinstance(value, Mapping):
            for key, child in value.items():
                properties[key] = self._parse_child(child, name=key)
        elif isinstance(value, (list, tuple)):
            # List form: every entry names itself
            for child in value:
                parameter = self._parse_child(child)
                if not parameter.name:
                    raise SchemaDefinitionError("Properties given as a list must each have a name")
                properties[parameter.name] = parameter
        else:
            raise SchemaDefinitionError("'properties' must be a mapping or a list")
        return properties

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def type(self) -> Union[str, Tuple[str, ...], None]:
        """Declared type: a single name, a tuple of names, or None."""
        if len(self._types) == 1 and isinstance(self._declared_type, str):
            return self._types[0]
        return self._types or None

    @property
    def types(self) -> Tuple[str, ...]:
        return self._types

    @property
    def required(self) -> bool:
        return self._required

    @property
    def static(self) -> bool:
        return self._static

    @property
    def default(self) -> Any:
        return copy.deepcopy(self._default)

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def properties(self) -> Mapping[str, "Parameter"]:
        return MappingProxyType(self._properties)

    @property
    def items(self) -> Optional["Parameter"]:
        return self._items

    @property
    def additional_properties(self) -> Union[bool, "Parameter"]:
        return self._additional_properties

    @property
    def enum(self) -> Optional[Tuple[Any, ...]]:
        return self._enum

    @property
    def pattern(self) -> Optional[str]:
        return self._pattern

    @property
    def min(self) -> Optional[Union[int, float]]:
        return self._min

    @property
    def max(self) -> Optional[Union[int, float]]:
        return self._max

    @property
    def instance_of(self) -> Optional[type]:
        return self._instance_of

    @property
    def instance_of_name(self) -> Optional[str]:
        """Name of the instance-of constraint as written in the definition."""
        if isinstance(self._declared_instance_of, str):
            return self._declared_instance_of
        if self._instance_of is not None:
            return self._instance_of.__qualname__
        return None

    @property
    def filters(self) -> Tuple[Any, ...]:
        return tuple(self._filter_specs)

    def get_property(self, name: str) -> Optional["Parameter"]:
        return self._properties.get(name)

    def get_extra(self, key: str, default: Any = None) -> Any:
        """Get a definition key the processor does not interpret."""
        return self._extra.get(key, default)

    def matches_pattern(self, value: str) -> bool:
        if self._compiled_pattern is None:
            return True
        return self._compiled_pattern.search(value) is not None

    def get_value(self, value: Any) -> Any:
        """
        Apply static and default values.

        Static parameters always yield their default. Otherwise the default
        replaces a missing (None) value. Defaults are copied so processing
        never mutates the schema.
        """
        if self._static or (self._default is not None and value is None):
            return copy.deepcopy(self._default)
        return value

    def filter(self, value: Any) -> Any:
        """Run the value through every filter in declaration order."""
        for method, args in self._filters:
            if args is None:
                value = method(value)
            else:
                value = method(*[
                    value if isinstance(arg, str) and arg == VALUE_PLACEHOLDER else arg
                    for arg in args
                ])
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Return a definition mapping that rebuilds an equal Parameter."""
        result: Dict[str, Any] = dict(self._extra)
        if self._name is not None:
            result["name"] = self._name
        if self._types:
            result["type"] = self._declared_type if isinstance(self._declared_type, str) else list(self._types)
        if self._required:
            result["required"] = True
        if self._static:
            result["static"] = True
        if self._default is not None:
            result["default"] = copy.deepcopy(self._default)
        if self._description:
            result["description"] = self._description
        if self._properties:
            result["properties"] = {key: child.to_dict() for key, child in self._properties.items()}
        if self._items is not None:
            result["items"] = self._items.to_dict()
        if self._additional_properties is not True:
            additional = self._additional_properties
            result["additionalProperties"] = additional if additional is False else additional.to_dict()
        if self._enum is not None:
            result["enum"] = list(self._enum)
        if self._pattern:
            result["pattern"] = self._pattern
        if self._min is not None:
            result["min"] = self._min
        if self._max is not None:
            result["max"] = self._max
        if self._declared_instance_of is not None:
            result["instanceOf"] = self._declared_instance_of
        if self._filter_specs:
            result["filters"] = list(self._filter_specs)
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Parameter):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def __repr__(self) -> str:
        return f"Parameter(name={self._name!r}, type={self.type!r})"
