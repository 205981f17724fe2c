"""Ordered key-value collection behavior packaged as a mixin.

Provides CollectionMixin, which layers dictionary-style lookup, array-like
positional operations (push, pop, shift, unshift, reverse), merging,
mapping, JSON serialization, and method forwarding over a single ordered
dict stored in the ``_items`` attribute. Collection is the ready-to-use
concrete class.

Keys are strings or integers. Integer keys are positional keys: they are
assigned by push/unshift and renumbered by operations that behave like
array prepends or removals at the front. Strings holding a canonical
decimal integer ("7", "-2") are stored as that integer, so "7" and 7
address the same entry.
"""
from __future__ import annotations

import functools
import logging
from collections.abc import (
    Callable,
    ItemsView,
    Iterable,
    Iterator,
    KeysView,
    Mapping,
    ValuesView,
)
from typing import Any, Self

from ..utility_functions.json_processor import (
    DEFAULT_JSON_DEPTH,
    decode_json,
    encode_json,
    is_positional_key,
    normalize_key,
)
from ..utility_functions.structured_protocol import is_structured, to_plain_value

_logger = logging.getLogger(__name__)


def _renumber_positional_keys(entries: Iterable[tuple[Any, Any]]) -> dict[Any, Any]:
    """Rebuild entries into a dict, renumbering positional keys from 0."""
    result = {}
    next_position = 0
    for key, value in entries:
        if is_positional_key(key):
            result[next_position] = value
            next_position += 1
        else:
            result[key] = value
    return result


class CollectionMixin:
    """Mixin providing ordered collection semantics over ``self._items``.

    The mixin owns a single dict. All mutating operations change it in place
    and, unless documented otherwise, return self so calls can be chained.

    Besides the explicit API, instances support the standard container
    protocols: iteration yields (key, value) entries, ``len`` counts them,
    ``in`` checks keys, and subscripting reads, writes, and deletes through
    get, set, and remove.

    Public attribute names that the collection does not define are treated
    as method calls to forward to the contained values; see invoke().
    """

    _items: dict[Any, Any]

    def __init__(self, items: Any = None, *args, **kwargs):
        """Initialize the collection.

        Args:
            items: Optional initial content. Accepts anything merge() accepts:
                a mapping, another collection, or a structured value. The
                content is copied.
        """
        super().__init__(*args, **kwargs)
        self._items = {}
        if items is not None:
            self.merge(items)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def has(self, key: Any) -> bool:
        """Check whether the collection contains the given key."""
        return normalize_key(key) in self._items

    def get(self, key: Any, default: Any = None) -> Any:
        """Return the value stored under key, or default if it is absent.

        A key stored with the value None is present, so None is returned
        rather than default.
        """
        return self._items.get(normalize_key(key), default)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set(self, key: Any, value: Any = None) -> Self:
        """Store value under key, or bulk-set every entry of a mapping.

        Args:
            key: The key to assign, or a mapping whose entries are each set
                in turn (value is then ignored).
            value: The value to store.

        Returns:
            self.
        """
        if isinstance(key, Mapping):
            for k, v in key.items():
                self.set(k, v)
        else:
            self._items[normalize_key(key)] = value
        return self

    def remove(self, key: Any) -> None:
        """Delete key if present; absent keys are ignored."""
        self._items.pop(normalize_key(key), None)

    def _replace_items(self, new_items: dict[Any, Any]) -> None:
        # Keeps references handed out by get_all() live.
        self._items.clear()
        self._items.update(new_items)

    def _next_position(self) -> int:
        positions = [k for k in self._items if is_positional_key(k)]
        return max(max(positions, default=-1) + 1, 0)

    def push(self, value: Any) -> Self:
        """Append value at the next positional key."""
        self._items[self._next_position()] = value
        return self

    def pop(self) -> Any:
        """Remove and return the last value, or None if the collection is empty."""
        if not self._items:
            return None
        _, value = self._items.popitem()
        return value

    def unshift(self, value: Any) -> Self:
        """Prepend value, renumbering positional keys from 0.

        String keys keep their names and relative order.
        """
        entries = [(0, value), *self._items.items()]
        self._replace_items(_renumber_positional_keys(entries))
        return self

    def shift(self) -> Any:
        """Remove and return the first value, or None if the collection is empty.

        Remaining positional keys are renumbered from 0.
        """
        if not self._items:
            return None
        entries = iter(self._items.items())
        _, value = next(entries)
        self._replace_items(_renumber_positional_keys(entries))
        return value

    def reverse(self, preserve_keys: bool = False) -> Self:
        """Reverse the order of entries in place.

        Args:
            preserve_keys: If False (default), positional keys are renumbered
                from 0 in the new order; string keys are always kept.

        Returns:
            self.
        """
        entries = reversed(list(self._items.items()))
        if preserve_keys:
            self._replace_items(dict(entries))
        else:
            self._replace_items(_renumber_positional_keys(entries))
        return self

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def merge(self, source: Any) -> Self:
        """Merge entries from source; incoming entries win on conflicts.

        The result holds the incoming entries in their own order, followed
        by the existing entries whose keys the incoming set lacks.

        Args:
            source: Another collection, a structured value exposing
                to_array(), or a mapping.

        Returns:
            self.

        Raises:
            TypeError: If source is none of the accepted kinds.
        """
        if isinstance(source, CollectionMixin):
            incoming = source.get_all()
        elif is_structured(source):
            incoming = source.to_array()
        elif isinstance(source, Mapping):
            incoming = source
        else:
            raise TypeError(
                "Cannot merge a value that is not a mapping or an object "
                f"implementing to_array(), got {type(source).__name__}")

        merged = {normalize_key(k): v for k, v in incoming.items()}
        for key, value in self._items.items():
            merged.setdefault(key, value)
        self._replace_items(merged)
        return self

    def map(self, transform: Callable[[Any], Any]) -> Self:
        """Replace every value with transform(value), keeping keys and order."""
        if not callable(transform):
            raise TypeError(
                f"transform must be callable, got {type(transform).__name__}")
        for key, value in self._items.items():
            self._items[key] = transform(value)
        return self

    # ------------------------------------------------------------------
    # Inspection and conversion
    # ------------------------------------------------------------------

    def get_all(self) -> dict[Any, Any]:
        """Return the underlying dict itself; changes to it affect the collection."""
        return self._items

    def keys(self) -> KeysView:
        return self._items.keys()

    def values(self) -> ValuesView:
        return self._items.values()

    def items(self) -> ItemsView:
        return self._items.items()

    def to_array(self) -> dict[Any, Any]:
        """Return a new plain dict, converting structured values recursively.

        Values implementing to_array() (nested collections included) are
        replaced by the result of that call; other values are passed through
        unchanged.
        """
        return {key: to_plain_value(value) for key, value in self._items.items()}

    def is_empty(self) -> bool:
        return len(self._items) == 0

    def count(self) -> int:
        return len(self._items)

    def to_json(self, depth: int = DEFAULT_JSON_DEPTH, **kwargs) -> str:
        """Serialize the collection to JSON text.

        Collections holding only sequential positional keys (0..n-1 in order)
        are written as JSON arrays; all others as JSON objects.

        Args:
            depth: Maximum allowed container nesting.
            **kwargs: Encoder options forwarded to json.dumps.

        Returns:
            The JSON string.

        Raises:
            JsonDomainError: If encoding fails; its kind identifies the cause.
        """
        return encode_json(self, depth, **kwargs)

    @classmethod
    def from_json(cls, text: str | bytes, depth: int = DEFAULT_JSON_DEPTH,
                  **kwargs) -> Self:
        """Create a collection from JSON text.

        A JSON array becomes positional keys 0..n-1; a JSON object keeps its
        names as keys, except canonical integer names such as "0", which
        become positional keys. Nested values stay plain lists and dicts.

        Args:
            text: JSON document whose root is an object or an array.
            depth: Maximum allowed container nesting.
            **kwargs: Decoder options forwarded to json.loads.

        Returns:
            A new instance of cls holding the decoded entries.

        Raises:
            JsonDomainError: If decoding fails; its kind identifies the cause.
            TypeError: If the JSON root is not an object or an array.
        """
        data = decode_json(text, depth, **kwargs)
        if isinstance(data, list):
            data = dict(enumerate(data))
        elif not isinstance(data, dict):
            raise TypeError(
                f"JSON root must be an object or an array, got {type(data).__name__}")
        return cls(data)

    def __json__(self) -> dict[Any, Any]:
        """Serialization hook returning the same value as to_array()."""
        return self.to_array()

    # ------------------------------------------------------------------
    # Method forwarding
    # ------------------------------------------------------------------

    def invoke(self, name: str, *args, **kwargs) -> Self:
        """Call method name on every value that has it; skip the others.

        Results of the individual calls are discarded.

        Args:
            name: Method name to look up on each value.
            *args: Positional arguments passed to each call.
            **kwargs: Keyword arguments passed to each call.

        Returns:
            self.
        """
        called = 0
        for value in list(self._items.values()):
            method = getattr(value, name, None)
            if callable(method):
                method(*args, **kwargs)
                called += 1
        _logger.debug("Forwarded %s() to %d of %d items",
                      name, called, len(self._items))
        return self

    def __getattr__(self, name: str) -> Callable[..., Self]:
        # Only reached for names not found through normal lookup.
        if name.startswith("_"):
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}")
        return functools.partial(self.invoke, name)

    # ------------------------------------------------------------------
    # Container protocols
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        return iter(self._items.items())

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: Any) -> bool:
        return self.has(key)

    def __getitem__(self, key: Any) -> Any:
        return self.get(key)

    def __setitem__(self, key: Any, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: Any) -> None:
        self.remove(key)


class Collection(CollectionMixin):
    """Concrete ordered key-value collection.

    Example:
        >>> c = Collection().push("a").push("b").unshift("z")
        >>> c.to_array()
        {0: 'z', 1: 'a', 2: 'b'}
        >>> c.pop()
        'b'
        >>> c.to_json()
        '["z", "a"]'
    """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r})"

    def __eq__(self, other: Any) -> bool:
        """Collections are equal when they hold equal entries in the same order."""
        if self is other:
            return True
        if not isinstance(other, CollectionMixin):
            return NotImplemented
        return list(self._items.items()) == list(other.get_all().items())
