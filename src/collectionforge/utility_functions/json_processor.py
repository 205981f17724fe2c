"""JSON encoding and decoding for ordered collections.

This module turns plain mappings (and anything implementing the Structured
protocol) into JSON text and back. Mappings keyed by consecutive positional
keys starting at zero are written as JSON arrays; every other mapping is
written as a JSON object.

Failures raised by the standard json module are translated into
JsonDomainError, whose kind tells apart depth overflow, bracket mismatch,
control characters, malformed syntax, malformed UTF-8, and everything else.
"""
from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

from .structured_protocol import to_plain_value

_logger = logging.getLogger(__name__)

DEFAULT_JSON_DEPTH: Final[int] = 512

_SCALAR_TYPES: Final[tuple[type, ...]] = (str, int, float, bool, type(None))
_CONTAINER_TYPES: Final[tuple[type, ...]] = (Mapping, list, tuple)

_CANONICAL_INT_KEY: Final[re.Pattern[str]] = re.compile(r"0|-?[1-9][0-9]*")
_MIN_INT_KEY: Final[int] = -(2 ** 63)
_MAX_INT_KEY: Final[int] = 2 ** 63 - 1


class JsonErrorKind(Enum):
    """Classification of JSON failures; values are human-readable messages."""

    DEPTH = "Maximum stack depth exceeded"
    STATE_MISMATCH = "Underflow or the modes mismatch"
    CTRL_CHAR = "Unexpected control character found"
    SYNTAX = "Syntax error, malformed JSON"
    UTF8 = "Malformed UTF-8 characters, possibly incorrectly encoded"
    UNKNOWN = "Unknown error"


class JsonDomainError(ValueError):
    """Raised when a collection cannot be encoded to or decoded from JSON.

    Attributes:
        kind: The JsonErrorKind describing the failure. The original
            exception, if any, is available as __cause__.
    """

    def __init__(self, kind: JsonErrorKind):
        self.kind = kind
        super().__init__(f"JSON Error: {kind.value}")


def is_positional_key(key: Any) -> bool:
    """Check whether key is an integer position (bools excluded)."""
    return isinstance(key, int) and not isinstance(key, bool)


def normalize_key(key: Any) -> Any:
    """Convert canonical decimal integer strings to int; return others unchanged.

    "12" and "-3" become 12 and -3, so they address the same entry as the
    integer keys. Strings such as "012", "+1", " 1", or "-0" are not
    canonical and stay strings, as do values outside the signed 64-bit range.

    Args:
        key: The key to normalize.

    Returns:
        The int form of key, or key itself.
    """
    if isinstance(key, str) and _CANONICAL_INT_KEY.fullmatch(key):
        as_int = int(key)
        if _MIN_INT_KEY <= as_int <= _MAX_INT_KEY:
            return as_int
    return key


def has_sequential_keys(mapping: Mapping) -> bool:
    """Check whether the keys of mapping are exactly 0..n-1 in order.

    An empty mapping counts as sequential.
    """
    return all(is_positional_key(k) and k == i
               for i, k in enumerate(mapping.keys()))


def classify_json_error(exc: BaseException) -> JsonErrorKind:
    """Map an exception raised while processing JSON to a JsonErrorKind.

    Args:
        exc: Exception raised by json.dumps, json.loads, or the depth checks
            in this module.

    Returns:
        The matching JsonErrorKind; UNKNOWN when nothing more specific fits.
    """
    match exc:
        case json.JSONDecodeError():
            return _classify_decode_error(exc)
        case UnicodeError():
            return JsonErrorKind.UTF8
        case RecursionError():
            return JsonErrorKind.DEPTH
        case ValueError() if "Circular reference" in str(exc):
            return JsonErrorKind.DEPTH
        case _:
            return JsonErrorKind.UNKNOWN


def _classify_decode_error(exc: json.JSONDecodeError) -> JsonErrorKind:
    if exc.msg.startswith("Invalid control character"):
        return JsonErrorKind.CTRL_CHAR
    # A closing bracket of the wrong kind where a delimiter was expected
    offending_char = exc.doc[exc.pos:exc.pos + 1]
    if exc.msg == "Expecting ',' delimiter" and offending_char in ("]", "}"):
        return JsonErrorKind.STATE_MISMATCH
    return JsonErrorKind.SYNTAX


def _validate_depth(depth: int) -> None:
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise TypeError(f"depth must be an int, got {type(depth).__name__}")
    if depth < 1:
        raise ValueError(f"depth must be positive, got {depth}")


@dataclass
class _Frame:
    """A container being converted by _to_json_ready."""
    source_id: int
    is_mapping: bool
    entries: Iterator[tuple[Any, Any]]
    converted: dict[Any, Any] = field(default_factory=dict)
    pending_key: Any = None


def _convert_leaf(x: Any) -> Any:
    """Convert scalars, bytes and structured values; containers come back plain."""
    if isinstance(x, _SCALAR_TYPES):
        return x
    if isinstance(x, (bytes, bytearray)):
        return bytes(x).decode("utf-8")
    return to_plain_value(x)


def _to_json_ready(x: Any, max_depth: int) -> Any:
    """Convert x into a structure json.dumps can encode directly.

    Structured values are flattened through to_array(), bytes are decoded as
    UTF-8, tuples become lists, mapping keys are normalized, and mappings
    with sequential positional keys become lists. Traversal uses an explicit
    stack, so the nesting limit does not depend on the interpreter's
    recursion limit.

    Args:
        x: The object to convert.
        max_depth: Maximum allowed container nesting.

    Returns:
        A JSON-ready structure. Unknown leaf types are returned unchanged so
        that json.dumps (or its default hook) can decide about them.

    Raises:
        RecursionError: If nesting exceeds max_depth or a cycle is found.
        UnicodeDecodeError: If a bytes value is not valid UTF-8.
    """
    stack: list[_Frame] = []
    active: set[int] = set()

    def enter(container: Any) -> None:
        obj_id = id(container)
        if obj_id in active:
            raise RecursionError(
                f"Cyclic reference detected while encoding {type(container).__name__}")
        if len(stack) + 1 > max_depth:
            raise RecursionError(f"Nesting exceeds maximum depth of {max_depth}")
        active.add(obj_id)
        is_mapping = isinstance(container, Mapping)
        entries = iter(container.items()) if is_mapping else enumerate(container)
        stack.append(_Frame(obj_id, is_mapping, entries))

    def leave(frame: _Frame) -> Any:
        active.remove(frame.source_id)
        if frame.is_mapping and not has_sequential_keys(frame.converted):
            return frame.converted
        return list(frame.converted.values())

    root = _convert_leaf(x)
    if not isinstance(root, _CONTAINER_TYPES):
        return root
    enter(root)

    while True:
        frame = stack[-1]
        for key, value in frame.entries:
            if frame.is_mapping:
                key = normalize_key(key)
            value = _convert_leaf(value)
            if isinstance(value, _CONTAINER_TYPES):
                frame.pending_key = key
                enter(value)
                break
            frame.converted[key] = value
        else:
            stack.pop()
            done = leave(frame)
            if not stack:
                return done
            parent = stack[-1]
            parent.converted[parent.pending_key] = done


def _check_depth(data: Any, max_depth: int) -> None:
    """Raise RecursionError if decoded data nests deeper than max_depth."""
    stack = [(data, 1)]
    while stack:
        x, level = stack.pop()
        if isinstance(x, dict):
            children = x.values()
        elif isinstance(x, list):
            children = x
        else:
            continue
        if level > max_depth:
            raise RecursionError(
                f"Nesting exceeds maximum depth of {max_depth}")
        stack.extend((child, level + 1) for child in children)


def _domain_error(exc: BaseException, operation: str) -> JsonDomainError:
    kind = classify_json_error(exc)
    _logger.debug("JSON %s failed (%s): %s", operation, kind.name, exc)
    return JsonDomainError(kind)


def encode_json(obj: Any, depth: int = DEFAULT_JSON_DEPTH, **kwargs) -> str:
    """Encode a mapping or structured value as JSON text.

    Args:
        obj: The object to encode.
        depth: Maximum allowed container nesting; the outermost container
            is level 1.
        **kwargs: Encoder options forwarded to json.dumps
            (e.g., indent=2, ensure_ascii=False).

    Returns:
        The JSON string.

    Raises:
        JsonDomainError: If encoding fails for any reason.
        TypeError: If depth is not an int.
        ValueError: If depth is not positive.
    """
    _validate_depth(depth)
    try:
        return json.dumps(_to_json_ready(obj, depth), **kwargs)
    except (ValueError, TypeError, RecursionError) as e:
        raise _domain_error(e, "encoding") from e


def decode_json(text: str | bytes | bytearray,
                depth: int = DEFAULT_JSON_DEPTH, **kwargs) -> Any:
    """Decode JSON text into plain Python objects.

    Args:
        text: JSON document as str, or as bytes in a UTF encoding.
        depth: Maximum allowed container nesting.
        **kwargs: Decoder options forwarded to json.loads (e.g., strict=False).

    Returns:
        The decoded object.

    Raises:
        JsonDomainError: If decoding fails for any reason.
        TypeError: If text is not str or bytes, or depth is not an int.
        ValueError: If depth is not positive.
    """
    if not isinstance(text, (str, bytes, bytearray)):
        raise TypeError(
            f"text must be str or bytes, got {type(text).__name__}")
    _validate_depth(depth)
    try:
        result = json.loads(text, **kwargs)
        _check_depth(result, depth)
    except (ValueError, TypeError, RecursionError) as e:
        raise _domain_error(e, "decoding") from e
    return result
