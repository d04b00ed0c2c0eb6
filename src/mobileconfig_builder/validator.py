"""
Pre-export checks for payload trees.

Reports everything that would stop a profile from exporting, or would
change what it exports, without touching the payloads.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .payload import Payload
from .serialize import ExportOptions
from .storage import PayloadArray, PayloadDict
from .types import CheckResult, Severity, ValidationIssue

logger = logging.getLogger(__name__)


def _version_text(version) -> str:
    return ".".join(str(part) for part in version)


class ProfileChecker:
    """
    Checks a payload tree before export.

    Checks performed:

    ERRORS (export would fail):
    - E002: Required key is not set
    - E009: Duplicate value for a key that must be unique (PayloadUUID,
      PayloadIdentifier) anywhere in the tree
    - E010: Required array or dictionary is empty

    WARNINGS (exported, but keys dropped):
    - W003: Key is set but not supported on the target platform
    - W004: Key needs a newer OS version than the one targeted

    INFO (suggestions):
    - I004: Private key (a password) will be exported in the clear
    """

    def __init__(self, target=None, version=None):
        """
        Args:
            target: Platform to check support against. Without a target,
                W003/W004 are never reported.
            version: Minimum OS version of the target. Requires target.
        """
        self.options = ExportOptions(target=target, version=version)

    def check(self, payload: Payload, name: Optional[str] = None) -> CheckResult:
        """
        Check a payload and everything nested in it.

        Args:
            payload: The root of the tree, usually a Profile.
            name: Label for the result; defaults to the root's PayloadType.

        Returns:
            CheckResult with any issues found.
        """
        result = CheckResult(name=name or payload.payload_type)
        seen: Dict[Tuple[str, str], str] = {}

        for path, nested in self._walk(payload, ""):
            result.payload_types.append(nested.payload_type)
            result.issues.extend(self._check_payload(nested, path, seen))

        logger.debug(
            f"Checked {result.name}: {result.error_count} errors, "
            f"{result.warning_count} warnings, {result.info_count} info"
        )
        return result

    def _walk(self, payload: Payload, prefix: str) -> Iterator[Tuple[str, Payload]]:
        """Yield (path prefix, payload) for payload and every nested payload."""
        yield prefix, payload
        fields = payload.fields
        for key, field in payload.schema.items():
            if not field.holds_payloads:
                continue
            value = fields.peek(key)
            path = f"{prefix}.{key}" if prefix else key
            if isinstance(value, PayloadArray):
                for index, item in enumerate(value):
                    yield from self._walk(item, f"{path}[{index}]")
            elif isinstance(value, PayloadDict):
                for dict_key, item in value.items():
                    yield from self._walk(item, f"{path}.{dict_key}")
            elif value is not None:
                yield from self._walk(value, path)

    def _check_payload(
        self, payload: Payload, prefix: str, seen: Dict[Tuple[str, str], str]
    ) -> List[ValidationIssue]:
        issues = []
        fields = payload.fields

        for key, field in payload.schema.items():
            key_path = f"{prefix}.{key}" if prefix else key
            value = fields.peek(key)

            if value is None:
                if not field.optional:
                    issues.append(
                        ValidationIssue(
                            severity=Severity.ERROR,
                            code="E002",
                            message="Missing required key",
                            key_path=key_path,
                            expected=field.type.value,
                        )
                    )
                continue

            if field.type.is_collection and len(value) == 0 and not field.optional:
                issues.append(
                    ValidationIssue(
                        severity=Severity.ERROR,
                        code="E010",
                        message=f"Required {field.type.value} is empty",
                        key_path=key_path,
                    )
                )

            if field.unique:
                issues.extend(self._check_unique(key, key_path, value, seen))

            issues.extend(self._check_target(field, key_path))

            if field.private:
                issues.append(
                    ValidationIssue(
                        severity=Severity.INFO,
                        code="I004",
                        message="Private key will be exported unencrypted",
                        key_path=key_path,
                    )
                )

        return issues

    def _check_unique(
        self, key: str, key_path: str, value: Any, seen: Dict[Tuple[str, str], str]
    ) -> List[ValidationIssue]:
        # UUIDs compare case-insensitively, as they are exported uppercase
        marker = (key, str(value).upper())
        first = seen.get(marker)
        if first is None:
            seen[marker] = key_path
            return []
        return [
            ValidationIssue(
                severity=Severity.ERROR,
                code="E009",
                message=f"Duplicate {key}, first used at {first}",
                key_path=key_path,
                actual=str(value),
            )
        ]

    def _check_target(self, field, key_path: str) -> List[ValidationIssue]:
        target = self.options.target
        if target is None:
            return []

        min_version = field.min_version(target)
        if min_version is None:
            return [
                ValidationIssue(
                    severity=Severity.WARNING,
                    code="W003",
                    message=f"Not supported on {target.value}; will not be exported",
                    key_path=key_path,
                    expected=", ".join(t.value for t in field.targets),
                    actual=target.value,
                )
            ]

        version = self.options.version
        if version is not None and version < min_version:
            return [
                ValidationIssue(
                    severity=Severity.WARNING,
                    code="W004",
                    message=f"Requires {target.value} {_version_text(min_version)}; will not be exported",
                    key_path=key_path,
                    expected=_version_text(min_version),
                    actual=_version_text(version),
                )
            ]
        return []
