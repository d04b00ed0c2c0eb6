"""
Exceptions raised while building and exporting configuration profiles.

Every failure is scoped to the single operation that raised it; the payload
tree it was working on is left unchanged and usable.
"""


class ProfileError(Exception):
    """Base class for all mobileconfig-builder errors."""


class UnknownFieldError(ProfileError, KeyError):
    """A field name was used that is not in the payload's schema."""

    def __init__(self, key: str, payload_name: str = ""):
        self.key = key
        self.payload_name = payload_name
        where = f" in {payload_name}" if payload_name else ""
        super().__init__(f"Payload key {key!r} not defined{where}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidValueError(ProfileError, ValueError):
    """A value was provided but failed a type or semantic check."""

    def __init__(self, message: str, key: str = None):
        self.key = key
        self.reason = message
        if key:
            message = f"{key}: {message}"
        super().__init__(message)


class MissingInputError(InvalidValueError):
    """No value at all (None) was provided where one was required."""


class StreamUnusableError(InvalidValueError):
    """A Data stream could not be read from or could not seek."""


class UnsupportedOperationError(ProfileError, TypeError):
    """A structurally disallowed operation, e.g. indexed array assignment."""


class IncompleteExportError(ProfileError):
    """A set field was excluded from export while completeness was requested."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Key {key} {reason}")
