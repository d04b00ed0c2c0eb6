"""
Report formatters for the profile checker.

The text form is meant for a terminal (ANSI colours when writing to a TTY),
the JSON form for scripts and CI jobs.
"""

import json
import sys
from typing import List

from .types import CheckResult, Severity, ValidationIssue

_ANSI = {
    Severity.ERROR: "91",
    Severity.WARNING: "93",
    Severity.INFO: "94",
    "pass": "92",
}

_ORDER = (Severity.ERROR, Severity.WARNING, Severity.INFO)


def _shown(result: CheckResult, quiet: bool) -> List[ValidationIssue]:
    if not quiet:
        return list(result.issues)
    return [issue for issue in result.issues if issue.severity is Severity.ERROR]


class BaseFormatter:
    """Turns a CheckResult, or a fatal message, into printable text."""

    def format_result(self, result: CheckResult) -> str:
        raise NotImplementedError

    def format_error(self, message: str) -> str:
        raise NotImplementedError


class PlainTextFormatter(BaseFormatter):
    """
    One status line, the nested payload types, then the issues grouped by
    severity and a closing tally.
    """

    def __init__(self, colour: bool = True, quiet: bool = False):
        self.colour = colour and sys.stdout.isatty()
        self.quiet = quiet

    def _paint(self, text: str, tone) -> str:
        if not self.colour:
            return text
        return f"\033[{_ANSI[tone]}m{text}\033[0m"

    def format_result(self, result: CheckResult) -> str:
        if result.is_valid:
            out = [f"{self._paint('PASS', 'pass')} {result.name}"]
        else:
            out = [f"{self._paint('FAIL', Severity.ERROR)} {result.name}"]
        out += [f"  Payload: {nested}" for nested in result.payload_types[1:]]

        shown = _shown(result, self.quiet)
        for severity in _ORDER:
            group = [issue for issue in shown if issue.severity is severity]
            if group:
                heading = f"{severity.value.upper()}S ({len(group)}):"
                out += ["", "  " + self._paint(heading, severity)]
                out += [self._issue_text(issue) for issue in group]

        tally = f"{result.error_count} errors"
        if not self.quiet:
            tally = f"{tally}, {result.warning_count} warnings, {result.info_count} info"
        out += ["", tally]
        return "\n".join(out)

    def _issue_text(self, issue: ValidationIssue) -> str:
        first, *details = str(issue).split("\n")
        tag = f"[{issue.code}]"
        first = self._paint(tag, issue.severity) + first[len(tag):]
        return "\n".join(["    " + first] + ["         " + line for line in details])

    def format_error(self, message: str) -> str:
        return f"{self._paint('ERROR', Severity.ERROR)} {message}"


class JSONFormatter(BaseFormatter):
    """
    Machine-readable report. With quiet set only errors are listed, the
    counts still cover every issue.
    """

    def __init__(self, pretty: bool = True, quiet: bool = False):
        self.indent = 2 if pretty else None
        self.quiet = quiet

    def format_result(self, result: CheckResult) -> str:
        report = {
            "name": result.name,
            "is_valid": result.is_valid,
            "payload_types": result.payload_types,
        }
        for severity in _ORDER:
            report[f"{severity.value}_count"] = result.count(severity)
        report["issues"] = [issue.as_dict() for issue in _shown(result, self.quiet)]
        return json.dumps(report, indent=self.indent)

    def format_error(self, message: str) -> str:
        return json.dumps({"is_valid": False, "error": message}, indent=self.indent)


FORMATTERS = {
    "text": PlainTextFormatter,
    "json": JSONFormatter,
}


def get_formatter(format_name: str, **kwargs) -> BaseFormatter:
    """
    Look up a formatter by name ("text" or "json") and build it.

    kwargs go to the formatter's constructor; "colour" only applies to text.
    """
    cls = FORMATTERS.get(format_name.lower())
    if cls is None:
        raise ValueError(f"Unknown format: {format_name}. Use one of: {', '.join(FORMATTERS)}")
    if cls is JSONFormatter:
        kwargs.pop("colour", None)
    return cls(**kwargs)
