"""Report renderers for CIResult: default (text), json, github, junit."""

from __future__ import annotations

import json
import os
from typing import Any, TextIO
from xml.sax.saxutils import escape, quoteattr

from dsgate.ci.engine import CIResult, Violation


REPORT_FORMATS = ("default", "json", "github", "junit")

_ANSI = {
    "red": "\x1b[31m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "cyan": "\x1b[36m",
    "gray": "\x1b[90m",
}
_RESET = "\x1b[0m"


class Palette:
    def __init__(self, enabled: bool):
        self.enabled = enabled

    def paint(self, color: str, text: str) -> str:
        if not self.enabled or not text:
            return text
        return f"{_ANSI[color]}{text}{_RESET}"

    def __getattr__(self, color: str) -> Any:
        if color not in _ANSI:
            raise AttributeError(color)
        return lambda text: self.paint(color, text)


def color_enabled(stream: TextIO | None, *, no_color: bool = False) -> bool:
    if no_color or "NO_COLOR" in os.environ:
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def group_violations(violations: list[Violation], group_by: str) -> dict[str, list[Violation]]:
    grouped: dict[str, list[Violation]] = {}
    for v in violations:
        key = getattr(v, group_by, None) or "other"
        grouped.setdefault(str(key), []).append(v)
    return grouped


def render_default(result: CIResult, *, group_by: str = "type", color: bool = False) -> str:
    c = Palette(color)
    stats = result.stats
    out: list[str] = []
    if not result.violations:
        out.append(c.green("✅ Design system validation passed"))
        out.append(c.gray(f"Scanned {stats.files_scanned} files, checked {stats.components_checked} components"))
        return "\n".join(out) + "\n"

    out.append(c.red(f"❌ Found {len(result.violations)} design system violations"))
    out.append("")
    for group, items in group_violations(result.violations, group_by).items():
        out.append(c.yellow(f"{group.upper()} ({len(items)})"))
        for v in items:
            marker = "❌" if v.severity == "error" else "⚠️" if v.severity == "warning" else "ℹ️"
            out.append(f"  {marker} {v.message}")
            out.append(c.gray(f"     {v.file}:{v.line}:{v.column}"))
            if v.suggestion:
                out.append(c.cyan(f"     💡 {v.suggestion}"))
            out.append("")

    out.append(c.gray("Summary:"))
    out.append(c.gray(f"  Files scanned: {stats.files_scanned}"))
    out.append(c.gray(f"  Components checked: {stats.components_checked}"))
    out.append(c.gray(f"  Violations found: {stats.violations} ({result.error_count} errors, {result.warning_count} warnings)"))
    if stats.parse_errors:
        out.append(c.gray(f"  Files not parsed: {stats.parse_errors}"))
    return "\n".join(out) + "\n"


def render_json(result: CIResult) -> str:
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False) + "\n"


def _annotation_escape(text: str) -> str:
    # Workflow command data must not contain raw newlines.
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def render_github(result: CIResult) -> str:
    lines = []
    for v in result.violations:
        level = "error" if v.severity == "error" else "warning"
        lines.append(f"::{level} file={v.file},line={v.line},col={v.column}::{_annotation_escape(v.message)}")
    return "".join(line + "\n" for line in lines)


def render_junit(result: CIResult) -> str:
    out = ['<?xml version="1.0" encoding="UTF-8"?>']
    out.append(
        f'<testsuite name="Design System Validation" tests="{len(result.violations)}" '
        f'failures="{result.error_count}" errors="0">'
    )
    for v in result.violations:
        name = quoteattr(f"{v.file}:{v.line}:{v.column}")
        classname = quoteattr(f"DesignSystemValidation.{v.type}")
        if v.severity != "error":
            out.append(f"  <testcase name={name} classname={classname} />")
            continue
        out.append(f"  <testcase name={name} classname={classname}>")
        body = f"Location: {v.file}:{v.line}:{v.column}\nSuggestion: {v.suggestion or 'None'}"
        out.append(f"    <failure message={quoteattr(v.message)} type={quoteattr(v.type)}>{escape(body)}</failure>")
        out.append("  </testcase>")
    out.append("</testsuite>")
    return "\n".join(out) + "\n"


def render_report(result: CIResult, fmt: str = "default", *, group_by: str = "type", color: bool = False) -> str:
    if fmt == "json":
        return render_json(result)
    if fmt == "github":
        return render_github(result)
    if fmt == "junit":
        return render_junit(result)
    if fmt == "default":
        return render_default(result, group_by=group_by, color=color)
    raise ValueError(f"Unknown report format: {fmt} (expected one of: {', '.join(REPORT_FORMATS)})")
