"""Capability protocol for values that convert themselves into plain mappings.

A structured value is any object exposing a ``to_array()`` method returning
a plain mapping. Collections rely on this protocol when flattening their
contents for serialization and when merging foreign containers.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Structured(Protocol):
    """Object that can render itself as a plain mapping.

    Implementations return a fresh mapping on every call; nested structured
    values are expected to be converted recursively by the implementation.
    """

    def to_array(self) -> dict[Any, Any]:
        ...


def is_structured(obj: Any) -> bool:
    """Check whether an object implements the Structured protocol.

    Classes are rejected even when they define ``to_array``, since only
    instances can be converted.

    Args:
        obj: Object to inspect.

    Returns:
        True if obj is an instance exposing a callable to_array().
    """
    if isinstance(obj, type):
        return False
    return isinstance(obj, Structured) and callable(obj.to_array)


def to_plain_value(obj: Any) -> Any:
    """Return obj.to_array() for structured values, obj itself otherwise."""
    if is_structured(obj):
        return obj.to_array()
    return obj


def json_default(obj: Any) -> Any:
    """Fallback hook for json.dumps(..., default=json_default).

    Args:
        obj: Object the standard encoder could not serialize.

    Returns:
        The plain mapping produced by the object's to_array().

    Raises:
        TypeError: If obj is not a structured value.
    """
    if is_structured(obj):
        return obj.to_array()
    raise TypeError(
        f"Object of type {type(obj).__name__} is not JSON serializable")
