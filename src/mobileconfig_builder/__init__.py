"""
Mobileconfig Builder

Builds Apple Configuration Profiles (.mobileconfig) from typed, validated
payload objects.

Usage:
    from mobileconfig_builder import Profile
    from mobileconfig_builder.payloads import WiFi

    wifi = WiFi()
    wifi.fields["SSID_STR"] = "Office"
    wifi.fields["EncryptionType"] = "WPA"

    profile = Profile()
    profile.fields["PayloadContent"].append(wifi)
    xml = profile.export(target="iOS", version="7.0")
"""

__version__ = "1.0.0"

from .api import build_file, check_payload, export, export_file, render
from .errors import (
    IncompleteExportError,
    InvalidValueError,
    MissingInputError,
    ProfileError,
    StreamUnusableError,
    UnknownFieldError,
    UnsupportedOperationError,
)
from .payload import Payload, validates
from .profile import Profile
from .schema import ALL_TARGETS, COMMON_FIELDS, IOS_ONLY, Field, Schema, fixed_payload_type
from .types import CheckResult, Severity, Target, ValidationIssue, ValueType

__all__ = [
    "ALL_TARGETS",
    "COMMON_FIELDS",
    "IOS_ONLY",
    "CheckResult",
    "Field",
    "IncompleteExportError",
    "InvalidValueError",
    "MissingInputError",
    "Payload",
    "Profile",
    "ProfileError",
    "Schema",
    "Severity",
    "StreamUnusableError",
    "Target",
    "UnknownFieldError",
    "UnsupportedOperationError",
    "ValidationIssue",
    "ValueType",
    "build_file",
    "check_payload",
    "export",
    "export_file",
    "fixed_payload_type",
    "render",
    "validates",
]
