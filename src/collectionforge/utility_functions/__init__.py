"""Utilities for collectionforge.

This package provides the helpers the collection mixin is built on:
- The Structured protocol for values that convert themselves into plain
  mappings
- JSON encoding and decoding with a classified error taxonomy
"""

from .json_processor import (
    DEFAULT_JSON_DEPTH,
    JsonDomainError,
    JsonErrorKind,
    classify_json_error,
    decode_json,
    encode_json,
    has_sequential_keys,
    is_positional_key,
    normalize_key,
)
from .structured_protocol import (
    Structured,
    is_structured,
    json_default,
    to_plain_value,
)
