"""
Validation of basic payload value types.

Each validator takes an arbitrary input and either returns the normalized
value to store, or raises. None always raises MissingInputError; any other
unacceptable input raises InvalidValueError.
"""

import base64
import binascii
import io
import math
import re
import uuid
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict, Optional

from . import dates
from .errors import (
    InvalidValueError,
    MissingInputError,
    ProfileError,
    StreamUnusableError,
)
from .types import ValueType

# Integers are pinned to the signed 64-bit range plists can carry
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_REAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

# RFC 1035 host/domain name: labels start with a letter, end with a letter
# or digit, and may contain hyphens in between.
_LABEL = r"[A-Za-z](?:[-A-Za-z0-9]{0,61}[A-Za-z0-9])?"
DOMAIN_RE = re.compile(rf"^{_LABEL}(?:\.{_LABEL})*$")


def _reject_none(value: Any, name: str) -> None:
    if value is None:
        raise MissingInputError(f"Passing None to {name}")


def validate_string(value: Any) -> str:
    """
    Accept a non-empty str that can be encoded as strict UTF-8.

    Multi-line strings and spaces are fine.
    """
    _reject_none(value, "validate_string")
    if not isinstance(value, str):
        raise InvalidValueError(
            f"Passing {type(value).__name__} to validate_string"
        )
    if not value:
        raise InvalidValueError("Passing empty string to validate_string")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidValueError(
            "validate_string unable to encode string as UTF-8"
        ) from None
    return value


def validate_integer(value: Any) -> int:
    """Accept an int, or a base-10 integer string with optional sign."""
    _reject_none(value, "validate_integer")
    if isinstance(value, bool):
        raise InvalidValueError("Passing boolean to validate_integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        try:
            number = int(value.strip())
        except ValueError:
            # Beyond the interpreter's int string conversion limit
            raise InvalidValueError(f"Integer string of {len(value)} characters is too long") from None
    else:
        raise InvalidValueError(f"Passing invalid number {value!r} to validate_integer")
    if not INT_MIN <= number <= INT_MAX:
        raise InvalidValueError("Integer is outside the signed 64-bit range")
    return number


def validate_real(value: Any) -> float:
    """Accept a finite number, or a base-10 real string (exponent allowed)."""
    _reject_none(value, "validate_real")
    if isinstance(value, bool):
        raise InvalidValueError("Passing boolean to validate_real")
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str) and _REAL_RE.match(value.strip()):
            number = float(value.strip())
        else:
            raise InvalidValueError(f"Passing invalid real {value!r} to validate_real")
    except OverflowError:
        raise InvalidValueError("Real is too large for a double") from None
    if not math.isfinite(number):
        raise InvalidValueError("Passing non-finite real to validate_real")
    return number


def validate_boolean(value: Any) -> bool:
    """Anything with a truth value is accepted; only None is refused."""
    _reject_none(value, "validate_boolean")
    return bool(value)


def validate_data(value: Any) -> Any:
    """
    Accept binary data.

    An open, readable, seekable binary stream is returned as-is (its
    position is unchanged). Non-empty bytes are wrapped in an in-memory
    stream positioned at the start. Text is refused: encode it first.
    """
    _reject_none(value, "validate_data")

    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        if not data:
            raise InvalidValueError("Passing empty bytes to validate_data")
        return io.BytesIO(data)

    if isinstance(value, str):
        raise InvalidValueError("Passing text to validate_data; encode it to bytes first")

    if not (hasattr(value, "read") and hasattr(value, "seek")):
        raise InvalidValueError(f"Passing unknown item {type(value).__name__} to validate_data")

    # Probe: read one byte, then step back over whatever was read
    try:
        chunk = value.read(1)
    except (OSError, ValueError) as e:
        raise StreamUnusableError(f"Unable to read from handle passed to validate_data: {e}") from None
    if not isinstance(chunk, (bytes, bytearray)):
        raise InvalidValueError("Handle passed to validate_data is not a binary stream")
    try:
        value.seek(-len(chunk), io.SEEK_CUR)
    except (OSError, ValueError) as e:
        raise StreamUnusableError(f"Unable to seek on handle passed to validate_data: {e}") from None
    return value


def validate_date(value: Any) -> datetime:
    """
    Accept a datetime (or date), or a string in a recognisable date format.

    Naive values are taken to be UTC. datetime.min and datetime.max stand
    in for "infinitely past/future" and are refused.
    """
    _reject_none(value, "validate_date")

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time(0, 0))
    elif isinstance(value, str):
        try:
            moment = dates.parse_datetime(value)
        except ValueError:
            raise InvalidValueError(f"Passing unparseable string {value!r} to validate_date") from None
    else:
        raise InvalidValueError(f"Passing {type(value).__name__} to validate_date")

    if moment.replace(tzinfo=None) in (datetime.min, datetime.max):
        raise InvalidValueError("Passing infinite datetime to validate_date")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    try:
        moment.astimezone(timezone.utc)
    except OverflowError:
        raise InvalidValueError(f"Date {value!r} is outside the representable UTC range") from None
    return moment


def validate_identifier(value: Any) -> str:
    """Accept a single-line, reverse-DNS style identifier with no spaces."""
    _reject_none(value, "validate_identifier")
    if not isinstance(value, str):
        raise InvalidValueError(f"Passing {type(value).__name__} to validate_identifier")
    if "\n" in value or not DOMAIN_RE.match(value):
        raise InvalidValueError(f"Passing empty or invalid value {value!r} to validate_identifier")
    return value


def validate_uuid(value: Any) -> uuid.UUID:
    """
    Accept a UUID, 16 raw bytes, or a string in any common form.

    Strings may be hyphenated, braced, URN, plain hex, 0x-prefixed hex,
    or base64 of the 16 bytes.
    """
    _reject_none(value, "validate_uuid")
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    if not isinstance(value, str):
        raise InvalidValueError(f"Passing unknown {type(value).__name__} to validate_uuid")

    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        return uuid.UUID(text)
    except ValueError:
        pass
    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        raw = b""
    if len(raw) == 16:
        return uuid.UUID(bytes=raw)
    raise InvalidValueError(f"Passing unknown value {value!r} to validate_uuid")


def validate_class(value: Any, payload_class: Optional[type] = None) -> Any:
    """Accept a payload object, of payload_class when one is given."""
    # Imported here: payload imports this module
    from .payload import Payload

    _reject_none(value, "validate_class")
    expected = payload_class or Payload
    if not isinstance(value, expected):
        raise InvalidValueError(
            f"Passing {type(value).__name__} where a {expected.__name__} payload is required"
        )
    return value


VALIDATORS: Dict[ValueType, Callable[[Any], Any]] = {
    ValueType.STRING: validate_string,
    ValueType.INTEGER: validate_integer,
    ValueType.REAL: validate_real,
    ValueType.BOOLEAN: validate_boolean,
    ValueType.DATA: validate_data,
    ValueType.NSDATA_BLOB: validate_data,
    ValueType.DATE: validate_date,
    ValueType.IDENTIFIER: validate_identifier,
    ValueType.UUID: validate_uuid,
    ValueType.CLASS: validate_class,
}


def validate(value_type: ValueType, value: Any) -> Any:
    """
    Validate value as value_type and return the normalized value.

    Raises:
        MissingInputError: value is None.
        InvalidValueError: value is not acceptable.
        ProfileError: value_type is a collection type (validate elements instead).
    """
    validator = VALIDATORS.get(value_type)
    if validator is None:
        raise ProfileError(f"Attempting to validate unknown type {value_type}")
    return validator(value)
