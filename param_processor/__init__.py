"""
Parameter Processor Package

Recursive schema validation, default application and value coercion for
tree-shaped parameter schemas.
"""

__version__ = "0.1.0"

from .errors import SchemaDefinitionError, validate_arguments
from .parameter import Parameter
from .processor import Processor, ProcessResult
from .param_validator import validate_params, format_errors
from .schema_loader import load_schema, parameter_from_mapping

__all__ = [
    "Parameter",
    "Processor",
    "ProcessResult",
    "SchemaDefinitionError",
    "validate_arguments",
    "validate_params",
    "format_errors",
    "load_schema",
    "parameter_from_mapping",
]
