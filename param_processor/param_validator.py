"""Functional helpers for validating a flat set of named parameters.

A schema is either a Parameter describing an object, or a plain mapping of
property name to definition:

{
  "param_name": {
      "type": "integer",
      "required": True,
      "min": 1,
      "default": 10
  }, ...
}

Return: (validated_dict, errors_list)
If errors_list is empty, validation succeeded.
"""
from __future__ import annotations
from typing import Any, Dict, Tuple, List, Mapping, Optional, Union

from .parameter import Parameter
from .processor import Processor


def build_schema(schema: Union[Parameter, Mapping[str, Any]]) -> Parameter:
    if isinstance(schema, Parameter):
        return schema
    return Parameter({"type": "object", "properties": dict(schema)})


def validate_params(
    schema: Union[Parameter, Mapping[str, Any]],
    values: Optional[Mapping[str, Any]],
    processor: Optional[Processor] = None,
) -> Tuple[Dict[str, Any], List[str]]:
    processor = processor or Processor()
    result = processor.run(build_schema(schema), dict(values or {}))
    return dict(result.value or {}), result.errors


def format_errors(errors: List[str]) -> str:
    return "; ".join(errors)
