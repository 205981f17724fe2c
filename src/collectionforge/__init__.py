"""Ordered key-value collections with array-like ergonomics.

This package provides a reusable mixin that layers dictionary-style access,
array-like positional operations, iteration, JSON serialization, and bulk
mutation over a single ordered mapping.

Public API:
- CollectionMixin: Mixin adding ordered collection behavior to any class.
- Collection: Ready-to-use concrete collection.
- Structured: Protocol for values exposing to_array() to convert themselves into plain mappings.
- is_structured: Check whether a value implements the Structured protocol.
- to_plain_value: Convert a structured value to its plain mapping, pass others through.
- json_default: Hook for json.dumps(default=...) that understands structured values.
- encode_json: Encode a mapping or structured value as JSON (arrays for sequential keys).
- decode_json: Decode JSON text with depth checking and classified errors.
- classify_json_error: Map an exception from the json module to a JsonErrorKind.
- JsonDomainError: Error raised when JSON encoding or decoding fails.
- JsonErrorKind: Classification of JSON failures.
- DEFAULT_JSON_DEPTH: Default maximum nesting depth for JSON processing.
"""

from ._version_info import __version__
from .mixins_and_metaclasses import Collection, CollectionMixin
from .utility_functions import (
    DEFAULT_JSON_DEPTH,
    JsonDomainError,
    JsonErrorKind,
    Structured,
    classify_json_error,
    decode_json,
    encode_json,
    is_structured,
    json_default,
    to_plain_value,
)

__all__ = [
    'Collection',
    'CollectionMixin',
    'DEFAULT_JSON_DEPTH',
    'JsonDomainError',
    'JsonErrorKind',
    'Structured',
    '__version__',
    'classify_json_error',
    'decode_json',
    'encode_json',
    'is_structured',
    'json_default',
    'to_plain_value',
]
