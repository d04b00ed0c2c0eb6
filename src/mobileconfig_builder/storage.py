"""
Validating storage for payload contents.

PayloadFields holds the values of one payload, keyed by payload key.
PayloadArray and PayloadDict hold the contents of array and dictionary
keys. All three validate values before storing them, so stored contents
always match the schema; a failed validation leaves them unchanged.
"""

import logging
import weakref
from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import InvalidValueError, MissingInputError, UnsupportedOperationError
from .types import ValueType

logger = logging.getLogger(__name__)

Validator = Callable[[Any], Any]


class PayloadArray(Sequence):
    """
    An ordered list whose items are all validated on insertion.

    Items can be added with append/extend/prepend/insert/splice and
    removed with pop/shift/splice/clear. Assigning to or deleting a
    specific index is not allowed, as plist arrays are never sparse.
    Each insertion validates every new item before any is added.
    """

    def __init__(self, validator: Validator, items: Iterable[Any] = ()):
        self._validator = validator
        self._items: List[Any] = []
        self.extend(items)

    def _validate(self, values: Iterable[Any]) -> List[Any]:
        validated = []
        for index, value in enumerate(values):
            if value is None:
                raise MissingInputError(f"Adding None items is not allowed (item {index})")
            validated.append(self._validator(value))
        return validated

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __setitem__(self, index, value):
        raise UnsupportedOperationError("Storing items at specific indexes is not allowed")

    def __delitem__(self, index):
        raise UnsupportedOperationError("Deleting items at specific indexes is not allowed")

    def __eq__(self, other) -> bool:
        if isinstance(other, PayloadArray):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    def __iadd__(self, values: Iterable[Any]) -> "PayloadArray":
        self.extend(values)
        return self

    def __repr__(self) -> str:
        return f"PayloadArray({self._items!r})"

    def append(self, *values: Any) -> int:
        """Add values to the end. Returns the new length."""
        self._items.extend(self._validate(values))
        return len(self._items)

    def extend(self, values: Iterable[Any]) -> int:
        return self.append(*values)

    def prepend(self, *values: Any) -> int:
        """Add values to the start, keeping their order. Returns the new length."""
        self._items[0:0] = self._validate(values)
        return len(self._items)

    def insert(self, index: int, value: Any) -> None:
        self.splice(index, 0, value)

    def pop(self) -> Any:
        """Remove and return the last item, or None if empty."""
        return self._items.pop() if self._items else None

    def shift(self) -> Any:
        """Remove and return the first item, or None if empty."""
        return self._items.pop(0) if self._items else None

    def splice(self, offset: int = 0, length: Optional[int] = None, *values: Any) -> List[Any]:
        """
        Remove length items starting at offset, insert values in their place.

        A negative offset counts from the end. Omitting length removes
        everything from offset onwards.

        Returns:
            The removed items.
        """
        size = len(self._items)
        if offset < 0:
            offset = max(size + offset, 0)
        offset = min(offset, size)
        if length is None:
            length = size - offset
        end = offset + length if length >= 0 else max(size + length, offset)

        replacement = self._validate(values)
        removed = self._items[offset:end]
        self._items[offset:end] = replacement
        return removed

    def clear(self) -> None:
        self._items = []


class PayloadDict(MutableMapping):
    """
    A dictionary with non-empty string keys and validated values.

    key_validator, if given, may reject or normalize keys.
    """

    def __init__(
        self,
        validator: Validator,
        items: Optional[Dict[str, Any]] = None,
        key_validator: Optional[Validator] = None,
    ):
        self._validator = validator
        self._key_validator = key_validator
        self._items: Dict[str, Any] = {}
        if items:
            self.update(items)

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidValueError(f"Dictionary keys must be non-empty strings, not {key!r}")
        if value is None:
            raise MissingInputError(f"Storing None under {key!r} is not allowed")
        if self._key_validator is not None:
            key = self._key_validator(key)
        self._items[key] = self._validator(value)

    def __delitem__(self, key: str) -> None:
        del self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"PayloadDict({self._items!r})"

    def clear(self) -> None:
        self._items = {}


class PayloadFields(MutableMapping):
    """
    The contents of a single payload.

    Only keys in the payload's schema may be used. Reading a key that is
    unset returns None, except for array, dictionary and class keys, which
    are created empty on first read so they can be filled in place.

    ``key in fields`` tests whether the key is in the schema; use is_set()
    to test whether it has a value. Iteration, len() and items() only cover
    keys that have values.
    """

    def __init__(self, payload):
        # Only used to reach the schema and validators. The payload owns us,
        # so hold it weakly.
        self._owner = weakref.ref(payload)
        self._values: Dict[str, Any] = {}

    @property
    def payload(self):
        owner = self._owner()
        if owner is None:
            raise ReferenceError("Payload for these fields no longer exists")
        return owner

    def _field(self, key: str):
        return self.payload.schema.field(key)

    def __getitem__(self, key: str) -> Any:
        field = self._field(key)

        if field.fixed:
            return field.value

        if key in self._values:
            return self._values[key]

        if field.type == ValueType.ARRAY:
            value = PayloadArray(self._element_validator(key))
        elif field.type == ValueType.DICT:
            value = PayloadDict(self._element_validator(key), key_validator=self._key_validator(key))
        elif field.type == ValueType.CLASS:
            value = self.payload.construct(key)
        else:
            return None

        logger.debug(f"Created empty {field.type.value} for {key}")
        self._values[key] = value
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        field = self._field(key)
        payload = self.payload

        if field.fixed:
            raise UnsupportedOperationError(f"{key} has a fixed value and can not be set")
        if value is None and field.type.is_collection:
            raise MissingInputError(f"Passing None to {field.type.value} key", key)

        if field.type == ValueType.ARRAY:
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                raise InvalidValueError(f"Array key needs a list, not {type(value).__name__}", key)
            stored = PayloadArray(self._element_validator(key), value)
        elif field.type == ValueType.DICT:
            if not isinstance(value, Mapping):
                raise InvalidValueError(f"Dictionary key needs a dict, not {type(value).__name__}", key)
            stored = PayloadDict(
                self._element_validator(key), dict(value), key_validator=self._key_validator(key)
            )
        else:
            stored = payload.validate_field(key, value)

        self._values[key] = stored

    def __delitem__(self, key: str) -> None:
        self._values.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self.payload.schema

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"PayloadFields({self._values!r})"

    def _element_validator(self, key: str) -> Validator:
        # Collections live inside the payload, so they must not keep it alive
        owner = self._owner

        def validator(value):
            payload = owner()
            if payload is None:
                raise ReferenceError("Payload for this collection no longer exists")
            return payload.validate_field(key, value)

        return validator

    def _key_validator(self, key: str) -> Validator:
        owner = self._owner

        def validator(dict_key):
            payload = owner()
            if payload is None:
                raise ReferenceError("Payload for this collection no longer exists")
            return payload.validate_dict_key(key, dict_key)

        return validator

    def is_set(self, key: str) -> bool:
        """True if the key has a fixed value or a stored value."""
        field = self.payload.schema.get(key)
        if field is None:
            return False
        return field.fixed or key in self._values

    def peek(self, key: str) -> Any:
        """Like fields[key], but never creates empty containers."""
        field = self._field(key)
        if field.fixed:
            return field.value
        return self._values.get(key)

    def clear(self) -> None:
        self._values.clear()
