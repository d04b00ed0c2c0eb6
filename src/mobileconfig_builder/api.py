"""
Lightweight API for programmatic profile building.

This module provides simple functions for exporting and checking profiles
without the overhead of CLI argument parsing.
"""

import plistlib
import re
from pathlib import Path
from typing import Any, Optional, Union

from .loader import RecipeLoader
from .payload import Payload
from .serialize import ExportOptions, serialize_payload
from .types import CheckResult
from .validator import ProfileChecker

# plistlib writes reals with repr(), which uses a lowercase exponent
_REAL_EXPONENT_RE = re.compile(rb"(<real>[^<]*?)e([^<]*</real>)")


def render(tree: Any) -> bytes:
    """Render a plist value tree as XML plist bytes."""
    xml = plistlib.dumps(tree, fmt=plistlib.FMT_XML, sort_keys=True)
    return _REAL_EXPONENT_RE.sub(rb"\1E\2", xml)


def export(
    root: Payload,
    target=None,
    version=None,
    completeness: bool = False,
) -> bytes:
    """
    Export a payload tree as an XML plist.

    Fills in unset PayloadUUID/PayloadIdentifier keys first, so the same
    payload gets the same identifiers on every later export.

    Args:
        root: The payload to export, usually a Profile.
        target: Only export keys supported on this platform ("iOS" or "macOS").
        version: Only export keys supported on this OS version. Requires target.
        completeness: Raise instead of dropping keys excluded by target/version.

    Returns:
        The profile as XML plist bytes.

    Raises:
        IncompleteExportError: completeness was requested and a set key was excluded.
        ProfileError: target or version could not be parsed.

    Example:
        from mobileconfig_builder import Profile, export

        profile = Profile()
        profile.fields["PayloadDisplayName"] = "Example"
        xml = export(profile, target="iOS", version="7.0")
    """
    options = ExportOptions(target=target, version=version, completeness=completeness)
    root.populate_id()
    return render(serialize_payload(root, options))


def export_file(
    root: Payload,
    path: Union[str, Path],
    target=None,
    version=None,
    completeness: bool = False,
) -> Path:
    """
    Export a payload tree to a .mobileconfig file.

    The file is only written once the export has succeeded.

    Returns:
        The path written to.
    """
    path = Path(path)
    xml = export(root, target=target, version=version, completeness=completeness)
    path.write_bytes(xml)
    return path


def build_file(
    recipe: Union[str, Path],
    output: Optional[Union[str, Path]] = None,
    target=None,
    version=None,
    completeness: bool = False,
) -> bytes:
    """
    Build a profile from a JSON recipe, optionally writing it to output.

    Example:
        from mobileconfig_builder import build_file

        build_file("wifi.json", "wifi.mobileconfig", target="iOS")
    """
    profile = RecipeLoader().load(recipe)
    xml = export(profile, target=target, version=version, completeness=completeness)
    if output is not None:
        Path(output).write_bytes(xml)
    return xml


def check_payload(
    root: Payload,
    target=None,
    version=None,
) -> CheckResult:
    """
    Check a payload tree for problems that would affect its export.

    The tree is not modified, so unset identifiers are reported as missing
    unless populate_id() has been called.

    Example:
        from mobileconfig_builder import check_payload

        result = check_payload(profile, target="macOS")
        if not result.is_valid:
            for issue in result.issues:
                print(f"[{issue.code}] {issue.message}")
    """
    return ProfileChecker(target=target, version=version).check(root)
