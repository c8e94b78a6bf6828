"""
Error handling utilities for the parameter processor.

This module provides the exception raised for malformed schema definitions,
standardized response payloads, and a decorator that validates a callable's
arguments before it runs.
"""

import inspect
import logging
from functools import wraps
from typing import Any, Dict, Optional, Callable


logger = logging.getLogger(__name__)


class SchemaDefinitionError(ValueError):
    """Raised when a schema definition cannot be turned into a Parameter."""


class ErrorType:
    """Standard error type constants."""
    VALIDATION = "validation_error"


def create_error_response(
    error_message: str,
    error_type: str = ErrorType.VALIDATION,
    data: Optional[Dict[str, Any]] = None,
    success: bool = False
) -> Dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        error_message: Human-readable error description
        error_type: Type of error (see ErrorType constants)
        data: Extra data to include in response
        success: Whether the operation was successful

    Returns:
        Standardized error response dictionary
    """
    response = {
        "success": success,
        "error": error_message,
        "error_type": error_type
    }

    if data:
        response.update(data)

    if not success:
        logger.error(f"Error ({error_type}): {error_message}")

    return response


def handle_validation_error(
    error_message: str,
    default_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Create a standardized validation error response.

    Args:
        error_message: Validation error message
        default_data: Default data structure to return

    Returns:
        Standardized validation error response
    """
    return create_error_response(
        error_message,
        ErrorType.VALIDATION,
        default_data or {}
    )


def _call_arguments(signature: inspect.Signature, bound: inspect.BoundArguments, processed: Dict[str, Any]):
    """Rebuild positional and keyword arguments from processed values."""
    args = []
    kwargs = {}
    remaining = dict(processed)
    positional = True
    accepts_var_keyword = False

    for name, param in signature.parameters.items():
        if param.kind is param.VAR_POSITIONAL:
            args.extend(bound.arguments.get(name, ()))
            positional = False
        elif param.kind is param.VAR_KEYWORD:
            accepts_var_keyword = True
        elif name not in remaining:
            # Later parameters can no longer be passed by position
            positional = False
        elif param.kind is param.KEYWORD_ONLY or not positional:
            kwargs[name] = remaining.pop(name)
        else:
            args.append(remaining.pop(name))

    if accepts_var_keyword:
        kwargs.update(remaining)
    return args, kwargs


def validate_arguments(
    schema,
    processor=None,
    default_data: Optional[Dict[str, Any]] = None
) -> Callable:
    """
    Decorator that runs a function's arguments through a schema.

    The schema is an object Parameter (or a definition mapping for one)
    whose properties are the function's parameter names. Positional and
    keyword arguments are bound to those names first, so a parameter is
    checked the same way however it was passed. Processed values replace
    the originals, so defaults and coercions reach the wrapped function.
    When processing fails the function is not called and a validation
    error response carrying the ``errors`` list is returned instead.

    Args:
        schema: Parameter or definition mapping describing the arguments
        processor: Processor to use (a default Processor when omitted)
        default_data: Default data structure to return on errors

    Returns:
        Decorator function
    """
    # Imported here to keep errors importable from parameter and processor
    from .parameter import Parameter
    from .processor import Processor

    if not isinstance(schema, Parameter):
        schema = Parameter(schema)
    if processor is None:
        processor = Processor()

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        def _check(args, kwargs):
            bound = signature.bind_partial(*args, **kwargs)
            values: Dict[str, Any] = {}
            for name, value in bound.arguments.items():
                kind = signature.parameters[name].kind
                if kind is inspect.Parameter.VAR_KEYWORD:
                    values.update(value)
                elif kind is not inspect.Parameter.VAR_POSITIONAL:
                    values[name] = value

            result = processor.run(schema, values)
            if result.valid:
                return _call_arguments(signature, bound, result.value or {}), None
            data = dict(default_data or {})
            data["errors"] = result.errors
            return None, handle_validation_error(result.format_errors(), data)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                call, failure = _check(args, kwargs)
                if failure is not None:
                    return failure
                return await func(*call[0], **call[1])
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            call, failure = _check(args, kwargs)
            if failure is not None:
                return failure
            return func(*call[0], **call[1])
        return wrapper
    return decorator
