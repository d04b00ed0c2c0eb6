"""
Conversion of payloads into plist value trees.

The value tree uses the native types plistlib writes: str, int, float,
bool, bytes, datetime (naive, UTC), list and dict.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Union

from .errors import IncompleteExportError, ProfileError
from .types import Target, ValueType, Version, parse_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportOptions:
    """
    Controls which keys are exported.

    Args:
        target: Only export keys supported on this platform.
        version: Only export keys supported on this OS version of target.
            Requires target.
        completeness: Raise IncompleteExportError instead of silently
            dropping keys excluded by target or version.
    """
    target: Optional[Union[Target, str]] = None
    version: Optional[Union[str, Version]] = None
    completeness: bool = False

    def __post_init__(self):
        if self.version is not None and self.target is None:
            raise ProfileError("Version has been set, but no target was provided")
        if self.target is not None:
            object.__setattr__(self, "target", Target.parse(self.target))
        if self.version is not None:
            object.__setattr__(self, "version", parse_version(self.version))
        object.__setattr__(self, "completeness", bool(self.completeness))


def _exclusion_reason(field, options: ExportOptions) -> Optional[str]:
    if options.target is None:
        return None
    min_version = field.min_version(options.target)
    if min_version is None:
        return f"has been set, but isn't supported on {options.target.value}"
    if options.version is not None and options.version < min_version:
        return f"is only supported in {options.target.value} {'.'.join(map(str, min_version))} and later"
    return None


def serialize_payload(payload, options: Optional[ExportOptions] = None) -> dict:
    """
    Serialize a payload's set keys into a plist dict.

    Keys are visited in schema order; unset keys are skipped.

    Raises:
        IncompleteExportError: A set key was excluded by target/version
            and options.completeness is true.
    """
    options = options or ExportOptions()
    fields = payload.fields
    result = {}

    for key, field in payload.schema.items():
        if not fields.is_set(key):
            continue

        reason = _exclusion_reason(field, options)
        if reason:
            if options.completeness:
                raise IncompleteExportError(key, reason)
            logger.debug(f"Excluding {payload.payload_type}.{key}: {reason}")
            continue

        result[key] = serialize_value(field.type, fields.peek(key), field.subtype, options)

    return result


def serialize_value(
    value_type: ValueType,
    value: Any,
    subtype: Optional[ValueType] = None,
    options: Optional[ExportOptions] = None,
) -> Any:
    """Serialize a single value of value_type into a plist value."""
    if value_type in (ValueType.STRING, ValueType.IDENTIFIER):
        return str(value)

    if value_type == ValueType.INTEGER:
        return int(value)

    if value_type == ValueType.REAL:
        return float(value)

    if value_type == ValueType.BOOLEAN:
        return bool(value)

    if value_type in (ValueType.DATA, ValueType.NSDATA_BLOB):
        # Read from the current position to EOF, then step back
        position = value.tell()
        try:
            return bytes(value.read())
        finally:
            value.seek(position)

    if value_type == ValueType.DATE:
        return _plist_date(value)

    if value_type == ValueType.UUID:
        return str(value).upper()

    if value_type == ValueType.ARRAY:
        if subtype is None:
            raise ProfileError("Array serialization needs a subtype")
        return [serialize_value(subtype, item, None, options) for item in value]

    if value_type == ValueType.DICT:
        if subtype is None:
            raise ProfileError("Dict serialization needs a subtype")
        return {k: serialize_value(subtype, v, None, options) for k, v in value.items()}

    if value_type == ValueType.CLASS:
        return serialize_payload(value, options)

    raise ProfileError(f"Unknown type {value_type}")


def _plist_date(value: datetime) -> datetime:
    """UTC, whole seconds, naive: what plistlib writes as ...Z."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=0)
