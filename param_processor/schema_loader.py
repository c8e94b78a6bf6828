"""
Load Parameter trees from YAML or JSON schema files.
"""

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from .errors import SchemaDefinitionError
from .parameter import Parameter

logger = logging.getLogger(__name__)


def parameter_from_mapping(data: Any) -> Parameter:
    """
    Build a Parameter from an already-parsed schema document.

    Args:
        data: Definition mapping

    Returns:
        Root Parameter

    Raises:
        SchemaDefinitionError: If the document is not a valid definition
    """
    if not isinstance(data, Mapping):
        raise SchemaDefinitionError(f"Schema document must be a mapping, got {type(data).__name__}")
    return Parameter(data)


def load_schema(path: Union[str, Path]) -> Parameter:
    """
    Load a schema file.

    Args:
        path: Path to a .yml, .yaml or .json file

    Returns:
        Root Parameter

    Raises:
        SchemaDefinitionError: If the file cannot be read or parsed
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in ['.yml', '.yaml', '.json']:
        raise SchemaDefinitionError(f"Unsupported schema file format: {path.suffix}")

    try:
        with open(path, 'r') as f:
            if suffix == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise SchemaDefinitionError(f"Failed to load schema file {path}: {e}") from e

    parameter = parameter_from_mapping(data)
    logger.debug(f"[Schema] Loaded {path} ({len(parameter.properties)} properties)")
    return parameter
