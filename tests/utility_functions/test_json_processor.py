"""Tests for JSON encoding helpers and error classification."""
import json
import logging

import pytest

from collectionforge import (
    DEFAULT_JSON_DEPTH,
    JsonDomainError,
    JsonErrorKind,
    classify_json_error,
    decode_json,
    encode_json,
)
from collectionforge.utility_functions import has_sequential_keys, is_positional_key, normalize_key


def _decode_error(text):
    with pytest.raises(json.JSONDecodeError) as exc_info:
        json.loads(text)
    return exc_info.value


@pytest.mark.parametrize("key,expected", [
    (0, True), (7, True), (-1, True), (True, False), ("0", False), (1.0, False),
])
def test_is_positional_key(key, expected):
    """Verify only real integers count as positional keys."""
    assert is_positional_key(key) is expected


@pytest.mark.parametrize("mapping,expected", [
    ({}, True),
    ({0: "a", 1: "b"}, True),
    ({1: "a"}, False),
    ({1: "b", 0: "a"}, False),
    ({0: "a", "k": "b"}, False),
    ({False: "a"}, False),
])
def test_has_sequential_keys(mapping, expected):
    """Verify sequential detection requires keys 0..n-1 in order."""
    assert has_sequential_keys(mapping) is expected


def test_default_depth():
    """Verify the default nesting limit."""
    assert DEFAULT_JSON_DEPTH == 512


@pytest.mark.parametrize("exc,kind", [
    (RecursionError("too deep"), JsonErrorKind.DEPTH),
    (ValueError("Circular reference detected"), JsonErrorKind.DEPTH),
    (UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"), JsonErrorKind.UTF8),
    (TypeError("Object of type set is not JSON serializable"), JsonErrorKind.UNKNOWN),
    (ValueError("Out of range float values are not JSON compliant"), JsonErrorKind.UNKNOWN),
    (KeyError("x"), JsonErrorKind.UNKNOWN),
])
def test_classify_plain_exceptions(exc, kind):
    """Verify classification of non-decoding exceptions."""
    assert classify_json_error(exc) is kind


@pytest.mark.parametrize("text,kind", [
    ("[1, 2", JsonErrorKind.SYNTAX),
    ("nope", JsonErrorKind.SYNTAX),
    ('{"a" 1}', JsonErrorKind.SYNTAX),
    ("[1}", JsonErrorKind.STATE_MISMATCH),
    ('{"a": 1]', JsonErrorKind.STATE_MISMATCH),
    ('"a\nb"', JsonErrorKind.CTRL_CHAR),
])
def test_classify_decode_errors(text, kind):
    """Verify decode errors are split into syntax, mismatch, and control chars."""
    assert classify_json_error(_decode_error(text)) is kind


def test_encode_json_accepts_plain_mappings():
    """Verify plain dicts encode with array detection."""
    assert encode_json({0: "a", 1: {0: "b"}}) == '["a", ["b"]]'
    assert encode_json({"k": [1, {0: 2}]}) == '{"k": [1, [2]]}'


def test_encode_json_passes_default_hook():
    """Verify a caller-provided default hook handles unknown leaves."""
    assert encode_json({"s": {1, 2}}, default=sorted) == '{"s": [1, 2]}'


def test_encode_json_shared_reference_is_not_a_cycle():
    """Verify the same object appearing twice is encoded twice."""
    shared = {"v": 1}
    assert encode_json({"a": shared, "b": shared}) == '{"a": {"v": 1}, "b": {"v": 1}}'


def test_encode_json_logs_failure(caplog):
    """Verify failures are logged with their classification."""
    with caplog.at_level(logging.DEBUG, logger="collectionforge"):
        with pytest.raises(JsonDomainError):
            encode_json({"v": object()})
    assert "JSON encoding failed (UNKNOWN)" in caplog.text


@pytest.mark.parametrize("depth,error", [(0, ValueError), (-3, ValueError), ("2", TypeError), (True, TypeError)])
def test_invalid_depth(depth, error):
    """Verify depth must be a positive integer."""
    with pytest.raises(error, match="depth must be"):
        encode_json({}, depth=depth)
    with pytest.raises(error, match="depth must be"):
        decode_json("{}", depth=depth)


def test_decode_json_returns_plain_objects():
    """Verify decoding yields standard Python values."""
    assert decode_json('{"a": [1, null]}') == {"a": [1, None]}
    assert decode_json(b'[true]') == [True]


def test_decode_json_forwards_options():
    """Verify decoder options such as strict=False are honoured."""
    assert decode_json('["a\tb"]', strict=False) == ["a\tb"]


def test_decode_json_depth_boundary():
    """Verify decoding allows nesting up to and including depth."""
    assert decode_json("[[1]]", depth=2) == [[1]]
    with pytest.raises(JsonDomainError) as exc_info:
        decode_json("[[1]]", depth=1)
    assert exc_info.value.kind is JsonErrorKind.DEPTH


def test_decode_json_rejects_non_text():
    """Verify decode_json() requires str or bytes."""
    with pytest.raises(TypeError, match="text must be str or bytes"):
        decode_json(123)


def test_domain_error_is_value_error():
    """Verify JsonDomainError carries its kind and subclasses ValueError."""
    err = JsonDomainError(JsonErrorKind.STATE_MISMATCH)
    assert isinstance(err, ValueError)
    assert err.kind is JsonErrorKind.STATE_MISMATCH
    assert str(err) == "JSON Error: Underflow or the modes mismatch"


@pytest.mark.parametrize("key,expected", [
    ("0", 0),
    ("12", 12),
    ("-3", -3),
    ("9223372036854775807", 9223372036854775807),
    ("-9223372036854775808", -9223372036854775808),
    ("9223372036854775808", "9223372036854775808"),
    ("012", "012"),
    ("+1", "+1"),
    (" 1", " 1"),
    ("1 ", "1 "),
    ("-0", "-0"),
    ("1.5", "1.5"),
    ("", ""),
    ("abc", "abc"),
    (7, 7),
    (True, True),
    (None, None),
])
def test_normalize_key(key, expected):
    """Verify only canonical 64-bit integer strings become ints."""
    result = normalize_key(key)
    assert result == expected
    assert type(result) is type(expected)


def test_encode_json_nests_to_default_depth():
    """Verify encoding reaches the default depth without exhausting the stack."""
    value = 0
    for _ in range(DEFAULT_JSON_DEPTH - 1):
        value = [value]
    assert encode_json([value]) == "[" * DEFAULT_JSON_DEPTH + "0" + "]" * DEFAULT_JSON_DEPTH
    with pytest.raises(JsonDomainError) as exc_info:
        encode_json([[value]])
    assert exc_info.value.kind is JsonErrorKind.DEPTH
