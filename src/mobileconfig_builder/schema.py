"""
Payload schemas: which keys a payload has, and what each key may hold.

A schema is built once per payload family and shared by every instance of
that family. Families compose schemas by map-union, starting from
COMMON_FIELDS and pinning PayloadType/PayloadVersion to fixed values.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional, Union

from .errors import ProfileError, UnknownFieldError
from .types import Target, ValueType, Version, parse_version


@dataclass(frozen=True)
class Field:
    """
    Descriptor for a single payload key.

    Args:
        type: The ValueType of the key.
        targets: Platform -> earliest OS version string supporting this key.
            Must have at least one entry.
        subtype: Element type, required for (and only for) ARRAY and DICT.
        optional: The key does not have to be set for the payload to export.
        unique: Values must be unique across all payloads in a profile.
        private: The value should only be sent when the profile is encrypted.
        value: Fixed value. The key then always reads as this value and
            can not be set.
        payload_class: Payload subclass for CLASS keys (or CLASS subtypes).
            Used to validate values and to construct empty objects on demand.
        description: Human-readable summary.
    """
    type: ValueType
    targets: Dict[Target, str]
    subtype: Optional[ValueType] = None
    optional: bool = False
    unique: bool = False
    private: bool = False
    value: Any = None
    payload_class: Optional[type] = None
    description: str = ""
    _versions: Dict[Target, Version] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        if self.type.is_collection != (self.subtype is not None):
            raise ProfileError(
                f"subtype must be given iff type is array or dict (type={self.type.value})"
            )
        if self.subtype is not None and self.subtype.is_collection:
            raise ProfileError("Nested arrays and dicts are not supported")
        if not self.targets:
            raise ProfileError("At least one target is required")
        if ValueType.CLASS in (self.type, self.subtype) and self.payload_class is None:
            raise ProfileError("payload_class is required for class keys")
        # Targets are frozen too, and parsed once
        object.__setattr__(self, "targets", MappingProxyType(dict(self.targets)))
        object.__setattr__(
            self,
            "_versions",
            {t: parse_version(v) for t, v in self.targets.items()},
        )

    @property
    def fixed(self) -> bool:
        return self.value is not None

    @property
    def element_type(self) -> ValueType:
        """The type individual values are validated as."""
        return self.subtype if self.type.is_collection else self.type

    @property
    def holds_payloads(self) -> bool:
        return self.element_type == ValueType.CLASS

    def min_version(self, target: Target) -> Optional[Version]:
        """Earliest supported version on target, or None if unsupported."""
        return self._versions.get(target)


class Schema(Mapping):
    """Immutable mapping of payload key name to Field."""

    def __init__(self, fields: Union[Mapping, None] = None, name: str = "", **kwargs: Field):
        merged: Dict[str, Field] = {}
        merged.update(fields or {})
        merged.update(kwargs)
        for key, descriptor in merged.items():
            if not isinstance(descriptor, Field):
                raise ProfileError(f"Schema entry {key} is not a Field")
        self._fields = MappingProxyType(merged)
        self.name = name

    def __getitem__(self, key: str) -> Field:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Schema({self.name or '?'}, {len(self)} keys)"

    def field(self, key: str) -> Field:
        """Look up a key, raising UnknownFieldError if it is not defined."""
        try:
            return self._fields[key]
        except (KeyError, TypeError):
            raise UnknownFieldError(key, self.name) from None

    def extend(self, fields: Union[Mapping, None] = None, name: str = "", **kwargs: Field) -> "Schema":
        """Return a new schema with these fields added (or replacing existing ones)."""
        merged = dict(self._fields)
        merged.update(fields or {})
        merged.update(kwargs)
        return Schema(merged, name=name or self.name)


# Most payloads run on every OS version that supports configuration profiles
ALL_TARGETS = {Target.IOS: "5.0", Target.MACOS: "10.7"}
IOS_ONLY = {Target.IOS: "5.0"}


def fixed_payload_type(payload_type: str, targets: Optional[Dict[Target, str]] = None) -> Dict[str, Field]:
    """PayloadType and PayloadVersion fields pinned for a payload family."""
    targets = targets or ALL_TARGETS
    return {
        "PayloadType": Field(
            ValueType.STRING,
            targets,
            value=payload_type,
            description="The type of payload.",
        ),
        "PayloadVersion": Field(
            ValueType.INTEGER,
            targets,
            value=1,
            description="Version of the payload type standard.",
        ),
    }


COMMON_FIELDS = Schema(
    name="Common",
    PayloadIdentifier=Field(
        ValueType.IDENTIFIER,
        ALL_TARGETS,
        unique=True,
        description="A Java-style reversed-domain-name identifier for this payload.",
    ),
    PayloadUUID=Field(
        ValueType.UUID,
        ALL_TARGETS,
        unique=True,
        description="A GUID for this payload.",
    ),
    PayloadDisplayName=Field(
        ValueType.STRING,
        ALL_TARGETS,
        optional=True,
        description="A short string that the user will see when installing the profile.",
    ),
    PayloadDescription=Field(
        ValueType.STRING,
        ALL_TARGETS,
        optional=True,
        description="A longer description of the payload's purpose.",
    ),
    PayloadOrganization=Field(
        ValueType.STRING,
        ALL_TARGETS,
        optional=True,
        description="The name of the payload's creator.",
    ),
)
