"""Directory-level design system contract checks for CI.

CIReportEngine walks a source tree, runs the static contract rules on every
React-looking file and adds the registry contract checks (props, required
props, variants, token references) plus hard-coded value scanning. Results
are plain data; rendering lives in dsgate.ci.render.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dsgate.analysis.context import AnalysisContext
from dsgate.analysis.contract_validator import StaticContractValidator
from dsgate.analysis.nodes import JsxAttribute, JsxElement, NodeVisitor, StringLit, TemplateLit
from dsgate.analysis.parse import SourceParseError
from dsgate.analysis.rules.base import Diagnostic
from dsgate.analysis.rules.registry import DEFAULT_RULE_IDS
from dsgate.ci.similarity import closest_matches
from dsgate.core.paths import expand_braces, matches_any
from dsgate.registry import component_props, find_component, flatten_tokens, required_props, variant_values


DEFAULT_GLOB = "**/*.{tsx,jsx,ts,js}"
DEFAULT_IGNORES = ("node_modules/**", "dist/**", "build/**", ".next/**")

# The registry contract checks below cover what validate-components reports.
CI_STATIC_RULES = tuple(r for r in DEFAULT_RULE_IDS if r != "validate-components")

# Never forwarded to the component, so never part of its contract.
REACT_RESERVED_PROPS = ("key", "ref")

TOKENIZABLE_PROPS = (
    "color",
    "backgroundColor",
    "borderColor",
    "textColor",
    "spacing",
    "margin",
    "padding",
    "gap",
    "fontSize",
    "fontWeight",
    "lineHeight",
    "borderRadius",
    "boxShadow",
    "opacity",
)

_COLOR_PATTERNS = (
    re.compile(r"^#[0-9a-fA-F]{3,8}$"),
    re.compile(r"^rgba?\("),
    re.compile(r"^hsla?\("),
)
_SPACING_PATTERNS = (
    re.compile(r"^\d+px$"),
    re.compile(r"^\d+rem$"),
    re.compile(r"^\d+em$"),
)
_FONT_PATTERNS = (
    re.compile(r"^\d+px$"),
    re.compile(r"^(bold|normal|\d+)$"),
)
_TOKEN_REFERENCE = re.compile(r"^[a-zA-Z]+\w*$")


def is_tokenizable_prop(name: str) -> bool:
    lowered = name.lower()
    return any(p.lower() in lowered for p in TOKENIZABLE_PROPS)


def is_hardcoded_color(value: str) -> bool:
    return any(p.search(value) for p in _COLOR_PATTERNS)


def is_hardcoded_spacing(value: str) -> bool:
    return any(p.search(value) for p in _SPACING_PATTERNS)


def is_hardcoded_value(value: str) -> bool:
    return is_hardcoded_color(value) or is_hardcoded_spacing(value) or any(p.search(value) for p in _FONT_PATTERNS)


def looks_like_token_reference(value: str) -> bool:
    return "." in value or "-" in value or bool(_TOKEN_REFERENCE.match(value))


def is_valid_token_reference(value: str, token_names: list[str]) -> bool:
    return any(name == value or name.endswith(f".{value}") or value in name for name in token_names)


def is_react_file(content: str) -> bool:
    return (
        "import React" in content
        or "from 'react'" in content
        or 'from "react"' in content
        or ("<" in content and ">" in content)
    )


@dataclass
class Violation:
    type: str
    severity: str  # "error" | "warning" | "info"
    message: str
    file: str
    line: int
    column: int
    suggestion: str | None = None
    component: str | None = None
    prop: str | None = None
    value: str | None = None
    variant: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if v is not None:
                out[k] = v
        return out


@dataclass
class ScanStats:
    files_scanned: int = 0
    components_checked: int = 0
    tokens_validated: int = 0
    violations: int = 0
    parse_errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "filesScanned": self.files_scanned,
            "componentsChecked": self.components_checked,
            "tokensValidated": self.tokens_validated,
            "violations": self.violations,
            "parseErrors": self.parse_errors,
        }


@dataclass
class CIResult:
    violations: list[Violation] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)

    @property
    def is_valid(self) -> bool:
        # Warnings and info never fail CI.
        return not any(v.severity == "error" for v in self.violations)

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == "warning")

    def to_dict(self) -> dict[str, Any]:
        return {
            "violations": [v.to_dict() for v in self.violations],
            "stats": self.stats.to_dict(),
            "isValid": self.is_valid,
        }


@dataclass(frozen=True)
class ScanOptions:
    check_tokens: bool = True
    check_props: bool = True
    check_variants: bool = True
    allowed_hardcoded_values: tuple[str, ...] = ()


class _ContractScan(NodeVisitor):
    """Registry contract and hard-coded value checks over one file's nodes."""

    def __init__(self, engine: "CIReportEngine", file: str, opts: ScanOptions, result: CIResult):
        self.engine = engine
        self.file = file
        self.opts = opts
        self.result = result

    def add(self, where: Any, **fields: Any) -> None:
        self.engine.add_violation(
            self.result, Violation(file=self.file, line=where.pos.line, column=where.pos.column, **fields)
        )

    # -- JSX ------------------------------------------------------------------

    def visit_jsx_element(self, node: JsxElement) -> None:
        if not node.is_component:
            return
        self.result.stats.components_checked += 1
        component = find_component(self.engine.registry, node.name)
        if component is not None:
            if self.opts.check_props:
                self.check_props(node, component)
            if self.opts.check_variants:
                self.check_variants(node, component)
        if self.opts.check_tokens:
            for attr in node.attributes:
                self.check_token_prop(node, attr)
                self.result.stats.tokens_validated += 1

    def check_props(self, node: JsxElement, component: dict[str, Any]) -> None:
        valid = list(component_props(component))
        for attr in node.attributes:
            if attr.name in valid or attr.name in REACT_RESERVED_PROPS:
                continue
            hints = closest_matches(attr.name, valid)
            suggestion = f"Did you mean: {', '.join(hints)}?" if hints else f"Valid props: {', '.join(valid)}"
            self.add(
                node,
                type="invalid-prop",
                severity="error",
                message=f'Invalid prop "{attr.name}" for component "{node.name}"',
                suggestion=suggestion,
                component=node.name,
                prop=attr.name,
            )
        if node.has_spread:
            return
        for prop in required_props(component):
            if not node.has_attr(prop):
                self.add(
                    node,
                    type="missing-required-prop",
                    severity="error",
                    message=f'Missing required prop "{prop}" for component "{node.name}"',
                    component=node.name,
                    prop=prop,
                )

    def check_variants(self, node: JsxElement, component: dict[str, Any]) -> None:
        for attr in node.attributes:
            allowed = variant_values(component, attr.name)
            if allowed is None or not attr.is_string or not attr.value:
                continue
            if attr.value not in allowed:
                self.add(
                    node,
                    type="invalid-variant",
                    severity="error",
                    message=f'Invalid variant "{attr.value}" for prop "{attr.name}" on component "{node.name}"',
                    suggestion=f"Valid variants: {', '.join(allowed)}",
                    component=node.name,
                    prop=attr.name,
                    variant=str(attr.value),
                )

    def check_token_prop(self, node: JsxElement, attr: JsxAttribute) -> None:
        if not attr.is_string or not is_tokenizable_prop(attr.name):
            return
        value = str(attr.value)
        if not value:
            return

        if is_hardcoded_value(value):
            if value in self.opts.allowed_hardcoded_values:
                return
            token = self.engine.token_for_value(value)
            self.add(
                node,
                type="hardcoded-value",
                severity="warning",
                message=f'Hardcoded value "{value}" in prop "{attr.name}" should use design token',
                suggestion=f"Consider using token: {token}" if token else "Use a design token instead",
                component=node.name,
                prop=attr.name,
                value=value,
            )
            return

        names = self.engine.token_names
        if looks_like_token_reference(value) and not is_valid_token_reference(value, names):
            hints = closest_matches(value, names)
            self.add(
                node,
                type="invalid-token",
                severity="error",
                message=f'Invalid token reference "{value}" in prop "{attr.name}"',
                suggestion=f"Did you mean: {', '.join(hints)}?" if hints else "Check available tokens in your design system",
                component=node.name,
                prop=attr.name,
                value=value,
            )

    # -- literals outside JSX -------------------------------------------------

    def visit_string(self, node: StringLit) -> None:
        if not self.opts.check_tokens or node.in_jsx_attribute or node.in_import:
            return
        value = node.value
        if not (is_hardcoded_color(value) or is_hardcoded_spacing(value)):
            return
        if value in self.opts.allowed_hardcoded_values:
            return
        self.add(
            node,
            type="hardcoded-value",
            severity="warning",
            message=f'Hardcoded value "{value}" should use design token',
            suggestion="Replace with design token",
            value=value,
        )

    def visit_template(self, node: TemplateLit) -> None:
        if not self.opts.check_tokens or not node.head:
            return
        if not is_hardcoded_color(node.head) or node.head in self.opts.allowed_hardcoded_values:
            return
        self.add(
            node,
            type="hardcoded-value",
            severity="warning",
            message=f'Hardcoded value "{node.head}" in template literal should use design token',
            suggestion="Replace with design token",
            value=node.head,
        )


class CIReportEngine:
    def __init__(self, registry: dict[str, Any], *, verbose: bool = False):
        self.registry = registry
        self.verbose = verbose
        self.flat_tokens = flatten_tokens(registry.get("tokens") or {})
        self.token_names = list(self.flat_tokens)

    def _log(self, msg: str) -> None:
        if self.verbose:
            print(f"[dsgate validate-ci] {msg}", file=sys.stderr)

    def token_for_value(self, value: str) -> str | None:
        for name, leaf in self.flat_tokens.items():
            if leaf.get("value") == value:
                return name
        return None

    @staticmethod
    def add_violation(result: CIResult, violation: Violation) -> None:
        result.violations.append(violation)
        result.stats.violations += 1

    def collect_files(
        self,
        source_path: Path,
        *,
        glob_pattern: str = DEFAULT_GLOB,
        ignore_patterns: tuple[str, ...] | list[str] = DEFAULT_IGNORES,
    ) -> list[Path]:
        if source_path.is_file():
            return [source_path]
        found: set[Path] = set()
        for patt in expand_braces(glob_pattern):
            for p in source_path.glob(patt):
                if not p.is_file():
                    continue
                rel = p.relative_to(source_path).as_posix()
                if matches_any(rel, list(ignore_patterns)):
                    continue
                found.add(p)
        return sorted(found)

    def validate_directory(
        self,
        source_path: Path,
        *,
        glob_pattern: str = DEFAULT_GLOB,
        ignore_patterns: tuple[str, ...] | list[str] = DEFAULT_IGNORES,
        check_tokens: bool = True,
        check_props: bool = True,
        check_variants: bool = True,
        allowed_hardcoded_values: tuple[str, ...] | list[str] = (),
        rules: list[str] | None = None,
    ) -> CIResult:
        if not source_path.exists():
            raise FileNotFoundError(f"Source path not found: {source_path}")

        opts = ScanOptions(
            check_tokens=check_tokens,
            check_props=check_props,
            check_variants=check_variants,
            allowed_hardcoded_values=tuple(allowed_hardcoded_values),
        )
        static = StaticContractValidator(self.registry, rules=list(rules) if rules is not None else list(CI_STATIC_RULES))

        self._log(f"scanning {source_path} with pattern: {glob_pattern}")
        files = self.collect_files(source_path, glob_pattern=glob_pattern, ignore_patterns=ignore_patterns)
        self._log(f"found {len(files)} file(s)")

        result = CIResult()
        for path in files:
            text = path.read_text(encoding="utf-8", errors="replace")
            self.validate_source(text, str(path), result=result, options=opts, static=static)
        return result

    def validate_source(
        self,
        text: str,
        file_path: str,
        *,
        result: CIResult | None = None,
        options: ScanOptions | None = None,
        static: StaticContractValidator | None = None,
    ) -> CIResult:
        """Check one file's text, accumulating into result (a new one when omitted)."""

        if result is None:
            result = CIResult()
        if options is None:
            options = ScanOptions()
        if static is None:
            static = StaticContractValidator(self.registry, rules=list(CI_STATIC_RULES))

        result.stats.files_scanned += 1
        if not is_react_file(text):
            return result

        try:
            ctx = static.analyze(text, file_path)
        except SourceParseError as e:
            result.stats.parse_errors += 1
            self._log(f"could not parse {file_path}: {e}")
            return result

        for diag in static.run_rules(ctx).all():
            self.add_violation(result, self._from_diagnostic(diag, file_path))
        self._scan_contracts(ctx, file_path, options, result)
        return result

    def _scan_contracts(self, ctx: AnalysisContext, file_path: str, opts: ScanOptions, result: CIResult) -> None:
        ctx.source.walk(_ContractScan(self, file_path, opts, result))

    @staticmethod
    def _from_diagnostic(diag: Diagnostic, file_path: str) -> Violation:
        return Violation(
            type=diag.rule,
            severity=diag.severity,
            message=diag.message,
            file=file_path,
            line=diag.line,
            column=diag.column,
            suggestion=diag.suggestion,
        )
