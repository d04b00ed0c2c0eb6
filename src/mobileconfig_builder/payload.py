"""
Base class for all payloads.

A payload couples a schema (shared by every instance of the class) with a
PayloadFields store (owned by the instance). Subclasses set ``schema`` and
may add per-key checks with the ``@validates`` decorator.

Example:
    class ExamplePayload(Payload):
        schema = COMMON_FIELDS.extend(
            fixed_payload_type("com.example.settings"),
            Port=Field(ValueType.INTEGER, ALL_TARGETS),
        )

        @validates("Port")
        def _check_port(self, key, value, proceed):
            port = proceed(value)
            if not 1 <= port <= 65534:
                raise InvalidValueError("Port out of range", key)
            return port
"""

import logging
import random
import uuid
from typing import Any, Callable, Dict, Iterator, Tuple

from . import validation
from .errors import InvalidValueError, ProfileError
from .schema import COMMON_FIELDS, Field, Schema
from .storage import PayloadArray, PayloadDict, PayloadFields
from .types import ValueType

logger = logging.getLogger(__name__)

Check = Callable[..., Any]


def validates(*keys: str) -> Callable[[Check], Check]:
    """
    Register a method as a check for the given payload keys.

    The method is called as ``check(self, key, value, proceed)``. It can
    raise InvalidValueError to reject the value, return the value to store,
    or call ``proceed(value)`` to pass the value along to the next check
    (and finally to the basic type validator), returning what that gives.
    """
    if not keys:
        raise ProfileError("validates() needs at least one key")

    def decorator(func: Check) -> Check:
        func.__validates__ = tuple(keys)
        return func

    return decorator


class Payload:
    """
    A payload: a set of typed keys and their values.

    Attributes:
        schema: The keys this payload supports. Set by each subclass.
    """

    schema: Schema = COMMON_FIELDS

    # key -> checks, most specific class first. Built by __init_subclass__.
    _field_checks: Dict[str, Tuple[Check, ...]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        own: Dict[str, list] = {}
        for attr in vars(cls).values():
            for key in getattr(attr, "__validates__", ()):
                own.setdefault(key, []).append(attr)

        checks = dict(cls._field_checks)
        for key, funcs in own.items():
            checks[key] = tuple(funcs) + checks.get(key, ())
        cls._field_checks = checks

        for key in own:
            if key not in cls.schema:
                raise ProfileError(f"{cls.__name__} validates unknown key {key}")

    def __init__(self):
        self._fields = PayloadFields(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {dict(self._fields.items())!r}>"

    @property
    def fields(self) -> PayloadFields:
        """The payload's contents, keyed by payload key."""
        return self._fields

    @property
    def payload_type(self) -> str:
        """The fixed PayloadType of this payload, or the class name."""
        field = self.schema.get("PayloadType")
        if field is not None and field.fixed:
            return field.value
        return type(self).__name__

    def construct(self, key: str) -> "Payload":
        """Build an empty nested payload for a class key."""
        field = self.schema.field(key)
        if field.type != ValueType.CLASS:
            raise ProfileError(f"{key} does not hold a payload")
        return field.payload_class()

    def validate_field(self, key: str, value: Any) -> Any:
        """
        Validate a value (or, for array and dict keys, one element) for key.

        Registered checks for the key run first, most specific class first;
        the last step is the basic validator for the key's type.

        Returns:
            The value to store.

        Raises:
            UnknownFieldError: key is not in the schema.
            InvalidValueError: The value was rejected.
        """
        field = self.schema.field(key)
        checks = self._field_checks.get(key, ())

        def proceed_from(index: int) -> Callable[[Any], Any]:
            def proceed(value: Any) -> Any:
                if index < len(checks):
                    return checks[index](self, key, value, proceed_from(index + 1))
                return self._validate_type(key, field, value)
            return proceed

        return proceed_from(0)(value)

    def validate_dict_key(self, key: str, dict_key: str) -> str:
        """
        Validate a key inside the dictionary stored under key.

        Any non-empty string is accepted; override to restrict.
        """
        return dict_key

    def _validate_type(self, key: str, field: Field, value: Any) -> Any:
        try:
            if field.element_type == ValueType.CLASS:
                return validation.validate_class(value, field.payload_class)
            return validation.validate(field.element_type, value)
        except InvalidValueError as e:
            if e.key is None:
                e.key = key
            raise

    def populate_id(self) -> None:
        """
        Fill in unset UUID and Identifier keys, here and in nested payloads.

        Keys that already have values are left alone.
        """
        fields = self._fields
        for key, field in self.schema.items():
            if field.fixed:
                continue

            if field.type == ValueType.UUID and not fields.is_set(key):
                fields[key] = uuid.uuid4()
                logger.debug(f"Generated {key} {fields[key]} for {self.payload_type}")

            elif field.type == ValueType.IDENTIFIER and not fields.is_set(key):
                fields[key] = f"payload{random.randrange(2 ** 30)}"
                logger.debug(f"Generated {key} {fields[key]} for {self.payload_type}")

            elif field.holds_payloads and fields.is_set(key):
                for nested in self._nested(fields.peek(key)):
                    nested.populate_id()

    @staticmethod
    def _nested(value: Any) -> Iterator["Payload"]:
        if isinstance(value, PayloadArray):
            yield from value
        elif isinstance(value, PayloadDict):
            yield from value.values()
        elif value is not None:
            yield value

    def missing_fields(self, prefix: str = "") -> Iterator[str]:
        """
        Yield the key paths of required keys that keep this payload from
        being exported: unset keys, empty collections, and (recursively)
        the missing keys of nested payloads.
        """
        fields = self._fields
        for key, field in self.schema.items():
            path = f"{prefix}.{key}" if prefix else key
            value = fields.peek(key)

            if not field.optional:
                if value is None:
                    yield path
                    continue
                if field.type.is_collection and len(value) == 0:
                    yield path
                    continue

            # Optional nested payloads are only checked once created
            if field.holds_payloads and value is not None:
                if isinstance(value, PayloadArray):
                    items = [(f"{path}[{i}]", v) for i, v in enumerate(value)]
                elif isinstance(value, PayloadDict):
                    items = [(f"{path}.{k}", v) for k, v in value.items()]
                else:
                    items = [(path, value)]
                for item_path, nested in items:
                    yield from nested.missing_fields(item_path)

    def exportable(self) -> bool:
        """
        True if every required key has a value (non-empty, for arrays and
        dicts) and every nested payload is exportable too.

        UUID and Identifier keys count, so call populate_id() first.
        """
        return next(self.missing_fields(), None) is None

    def plist(self, target=None, version=None, completeness: bool = False) -> dict:
        """
        Serialize this payload to a plist dict (see serialize.ExportOptions).
        """
        from .serialize import ExportOptions, serialize_payload

        options = ExportOptions(target=target, version=version, completeness=completeness)
        return serialize_payload(self, options)
