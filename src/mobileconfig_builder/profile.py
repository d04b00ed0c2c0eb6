"""
The top-level Configuration profile, which carries the other payloads.
"""

import re
from typing import Optional

from .errors import InvalidValueError
from .payload import Payload, validates
from .schema import ALL_TARGETS, COMMON_FIELDS, Field, fixed_payload_type
from .types import Target, ValueType

PAYLOAD_SCOPES = ("System", "User")

# "default", or a BCP 47 style tag such as "en", "en-US" or "zh-Hant-TW"
LOCALE_RE = re.compile(r"^(?:default|[A-Za-z]{2,3}(?:[-_][A-Za-z0-9]{2,8})*)$")

PROFILE_FIELDS = COMMON_FIELDS.extend(
    fixed_payload_type("Configuration"),
    name="Configuration",
    PayloadContent=Field(
        ValueType.ARRAY,
        ALL_TARGETS,
        subtype=ValueType.CLASS,
        payload_class=Payload,
        optional=True,
        description="The payloads to be delivered in this profile.",
    ),
    EncryptedPayloadContent=Field(
        ValueType.DATA,
        ALL_TARGETS,
        optional=True,
        description="PayloadContent serialized as an array plist, CMS-encrypted and DER-encoded.",
    ),
    PayloadExpirationDate=Field(
        ValueType.DATE,
        ALL_TARGETS,
        optional=True,
        description="For profiles delivered over the air, when the profile expires.",
    ),
    PayloadRemovalDisallowed=Field(
        ValueType.BOOLEAN,
        ALL_TARGETS,
        optional=True,
        description="If true, the profile can only be removed with the removal password.",
    ),
    PayloadScope=Field(
        ValueType.STRING,
        {Target.MACOS: "10.7"},
        optional=True,
        description='Whether the profile applies to the whole "System" or one "User".',
    ),
    RemovalDate=Field(
        ValueType.DATE,
        ALL_TARGETS,
        optional=True,
        description="When the profile is removed automatically. Overrides DurationUntilRemoval.",
    ),
    DurationUntilRemoval=Field(
        ValueType.REAL,
        ALL_TARGETS,
        optional=True,
        description="Seconds until the profile is removed automatically.",
    ),
    ConsentText=Field(
        ValueType.DICT,
        ALL_TARGETS,
        subtype=ValueType.STRING,
        optional=True,
        description="Locale -> message the user must accept before installing.",
    ),
)


class Profile(Payload):
    """
    A configuration profile.

    Add payloads to ``fields["PayloadContent"]`` and call export() to get
    the profile as plist XML.
    """

    schema = PROFILE_FIELDS

    @validates("PayloadScope")
    def _check_scope(self, key, value, proceed):
        if value not in PAYLOAD_SCOPES:
            raise InvalidValueError(f"Must be one of {', '.join(PAYLOAD_SCOPES)}", key)
        return proceed(value)

    def validate_dict_key(self, key: str, dict_key: str) -> str:
        if key == "ConsentText" and not LOCALE_RE.match(dict_key):
            raise InvalidValueError(f"{dict_key!r} is not a locale", key)
        return super().validate_dict_key(key, dict_key)

    def export(self, target=None, version=None, completeness: bool = False) -> bytes:
        """
        Fill in missing identifiers, then render the profile as plist XML.

        See serialize.ExportOptions for the arguments.
        """
        from .api import export

        return export(self, target=target, version=version, completeness=completeness)

    def payloads(self, payload_type: Optional[str] = None):
        """The payloads in PayloadContent, optionally only those of one type."""
        content = self.fields.peek("PayloadContent") or ()
        return [p for p in content if payload_type is None or p.payload_type == payload_type]
