"""
Command-line interface for building configuration profiles.

Usage:
    mobileconfig-builder wifi.json -o wifi.mobileconfig
    mobileconfig-builder --check --target iOS --min-version 7 wifi.json
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .api import check_payload, export
from .errors import IncompleteExportError, ProfileError
from .formatter import BaseFormatter, get_formatter
from .loader import RecipeLoader
from .profile import Profile

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

EPILOG = """
Examples:
  %(prog)s recipe.json                          Write the profile to stdout
  %(prog)s recipe.json -o out.mobileconfig      Write the profile to a file
  %(prog)s --target iOS --min-version 7 recipe.json
                                                Drop keys iOS 7 does not support
  %(prog)s --strict --target macOS recipe.json  Fail instead of dropping keys
  %(prog)s --check recipe.json                  Report problems, write nothing
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mobileconfig-builder",
        description="Build Apple configuration profiles (.mobileconfig) from JSON recipes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument("recipe", type=Path, help="JSON recipe describing the profile")
    parser.add_argument("-o", "--output", type=Path, help="Write the profile here instead of stdout")

    filtering = parser.add_argument_group("target filtering")
    filtering.add_argument("-t", "--target", help="Only export keys supported on this platform (iOS or macOS)")
    filtering.add_argument("--min-version", help="Only export keys supported on this OS version of --target")
    filtering.add_argument(
        "-s", "--strict", action="store_true",
        help="Fail (exit 1) if any set key would be dropped; with --check, fail on warnings",
    )

    report = parser.add_argument_group("reporting")
    report.add_argument("-c", "--check", action="store_true",
                        help="Check the profile and report issues instead of writing it")
    report.add_argument("-f", "--format", choices=["text", "json"], default="text",
                        help="Report format for --check and errors (default: text)")
    report.add_argument("-q", "--quiet", action="store_true", help="Only report errors")
    report.add_argument("--no-colour", action="store_true", help="Plain output without ANSI colours")
    report.add_argument("-v", "--verbose", action="store_true", help="Log debug messages to stderr")

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _fail(formatter: BaseFormatter, message: str, code: int) -> int:
    print(formatter.format_error(message), file=sys.stderr)
    return code


def _check(profile: Profile, parsed, formatter: BaseFormatter) -> int:
    # UUIDs and identifiers are filled in on export, so a recipe may leave them out
    profile.populate_id()
    result = check_payload(profile, target=parsed.target, version=parsed.min_version)
    print(formatter.format_result(result))

    if not result.is_valid or (parsed.strict and result.warning_count):
        return EXIT_FAILED
    return EXIT_OK


def _build(profile: Profile, parsed, formatter: BaseFormatter) -> int:
    profile.populate_id()
    missing = list(profile.missing_fields())
    if missing:
        return _fail(formatter, f"Missing required keys: {', '.join(missing)}", EXIT_FAILED)

    try:
        xml = export(profile, target=parsed.target, version=parsed.min_version, completeness=parsed.strict)
    except IncompleteExportError as e:
        return _fail(formatter, str(e), EXIT_FAILED)

    if parsed.output is None:
        sys.stdout.write(xml.decode("utf-8"))
    else:
        parsed.output.write_bytes(xml)
        logger.debug(f"Wrote {len(xml)} bytes to {parsed.output}")
    return EXIT_OK


def main(args: list[str] = None) -> int:
    """
    Entry point of the mobileconfig-builder command.

    Args:
        args: Command-line arguments. Uses sys.argv if None.

    Returns:
        0 on success, 1 when the check finds errors or the profile is
        incomplete, 2 for usage, recipe or value errors.
    """
    parsed = build_parser().parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    formatter = get_formatter(parsed.format, colour=not parsed.no_colour, quiet=parsed.quiet)

    if parsed.min_version and not parsed.target:
        return _fail(formatter, "--min-version requires --target", EXIT_USAGE)

    try:
        profile = RecipeLoader().load(parsed.recipe)
        if parsed.check:
            return _check(profile, parsed, formatter)
        return _build(profile, parsed, formatter)
    except ProfileError as e:
        return _fail(formatter, str(e), EXIT_USAGE)
    except Exception as e:
        logger.exception("Unexpected error while building the profile")
        return _fail(formatter, str(e), EXIT_USAGE)


if __name__ == "__main__":
    sys.exit(main())
