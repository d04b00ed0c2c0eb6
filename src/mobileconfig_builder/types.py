"""
Type definitions for payload schemas and profile check reports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from .errors import ProfileError


class ValueType(Enum):
    """Value types a payload key can hold."""
    STRING = "string"
    INTEGER = "integer"
    REAL = "real"
    BOOLEAN = "boolean"
    DATA = "data"
    DATE = "date"
    DICT = "dictionary"
    ARRAY = "array"
    # Not plist types, but given their own validation
    UUID = "uuid"
    IDENTIFIER = "identifier"
    CLASS = "class"          # A nested payload object
    NSDATA_BLOB = "nsdata"   # Treated exactly like DATA

    @property
    def is_collection(self) -> bool:
        return self in (ValueType.ARRAY, ValueType.DICT)


class Target(Enum):
    """Platforms a configuration profile can be installed on."""
    IOS = "iOS"
    MACOS = "macOS"

    @classmethod
    def parse(cls, value: Union["Target", str]) -> "Target":
        """Accept a Target, or a platform name in any case ("iOS", "macOS", "OS X")."""
        if isinstance(value, cls):
            return value
        aliases = {
            "ios": cls.IOS,
            "macos": cls.MACOS,
            "macosx": cls.MACOS,
            "osx": cls.MACOS,
        }
        target = aliases.get(str(value).replace(" ", "").lower())
        if target is None:
            raise ProfileError(f"Invalid target {value}")
        return target


Version = Tuple[int, ...]


def parse_version(value: Union[str, int, float, Tuple[int, ...]]) -> Version:
    """
    Parse a dotted OS version ("10.7", "5.0.1") into a comparable tuple.

    Trailing zero components are dropped, so "5" and "5.0" compare equal.

    Raises:
        ProfileError: If the version is not a dotted sequence of integers.
    """
    if isinstance(value, tuple):
        parts = list(value)
    else:
        text = str(value).strip()
        try:
            parts = [int(p) for p in text.split(".")]
        except ValueError:
            raise ProfileError(f"Failed to parse version {value}") from None
        if not text or any(p < 0 for p in parts):
            raise ProfileError(f"Failed to parse version {value}")
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


class Severity(Enum):
    """Profile check issue severity levels."""
    ERROR = "error"      # Export would fail or produce an unusable profile
    WARNING = "warning"  # Exported, but with fields dropped
    INFO = "info"        # Suggestions


@dataclass
class ValidationIssue:
    """A single issue found while checking a payload tree."""
    severity: Severity
    code: str           # e.g., "E002", "W003", "I004"
    message: str
    key_path: str       # e.g., "PayloadContent[0].EAPClientConfiguration.AcceptEAPTypes"
    expected: Optional[Any] = None
    actual: Optional[Any] = None

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.key_path}: {self.message}"]
        if self.expected is not None:
            parts.append(f"  Expected: {self.expected}")
        if self.actual is not None:
            parts.append(f"  Got: {self.actual}")
        return "\n".join(parts)

    def as_dict(self) -> dict:
        """JSON-ready form; expected/actual are stringified and left out when unset."""
        data = {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "key_path": self.key_path,
        }
        for name in ("expected", "actual"):
            value = getattr(self, name)
            if value is not None:
                data[name] = str(value)
        return data


@dataclass
class CheckResult:
    """Issues found in one payload tree, rooted at the payload called name."""
    name: str
    payload_types: List[str] = field(default_factory=list)  # root first, then nested in walk order
    issues: List[ValidationIssue] = field(default_factory=list)

    def count(self, severity: Severity) -> int:
        return len([issue for issue in self.issues if issue.severity is severity])

    @property
    def is_valid(self) -> bool:
        """Warnings and info never make a tree invalid."""
        return self.count(Severity.ERROR) == 0

    @property
    def error_count(self) -> int:
        return self.count(Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return self.count(Severity.WARNING)

    @property
    def info_count(self) -> int:
        return self.count(Severity.INFO)
