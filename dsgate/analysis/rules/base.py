from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from dsgate.analysis.context import AnalysisContext
from dsgate.analysis.nodes import NodeVisitor, Pos


Severity = str  # "error" | "warning" | "info"


@dataclass(frozen=True)
class Diagnostic:
    line: int
    column: int
    message: str
    rule: str
    severity: Severity
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "rule": self.rule,
            "severity": self.severity,
        }
        if self.suggestion is not None:
            out["suggestion"] = self.suggestion
        return out


@dataclass
class RuleResult:
    errors: list[Diagnostic] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)
    suggestions: list[Diagnostic] = field(default_factory=list)

    def extend(self, other: "RuleResult") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.suggestions.extend(other.suggestions)

    def all(self) -> list[Diagnostic]:
        return [*self.errors, *self.warnings, *self.suggestions]


class Rule(NodeVisitor):
    """A rule family: visits the lowered nodes, then may scan raw lines in finish()."""

    rule_id: ClassVar[str] = ""

    def __init__(self, ctx: AnalysisContext):
        self.ctx = ctx
        self.result = RuleResult()

    @classmethod
    def run(cls, ctx: AnalysisContext) -> RuleResult:
        rule = cls(ctx)
        ctx.source.walk(rule)
        rule.finish()
        return rule.result

    def finish(self) -> None:
        pass

    def _diag(self, where: Pos | None, message: str, severity: Severity, suggestion: str | None) -> Diagnostic:
        # Diagnostics without a precise location are pinned to 1:1.
        line, column = (where.line, where.column) if where is not None else (1, 1)
        return Diagnostic(line, column, message, self.rule_id, severity, suggestion)

    def error(self, where: Pos | None, message: str, suggestion: str | None = None) -> None:
        self.result.errors.append(self._diag(where, message, "error", suggestion))

    def warning(self, where: Pos | None, message: str, suggestion: str | None = None) -> None:
        self.result.warnings.append(self._diag(where, message, "warning", suggestion))

    def suggest(self, where: Pos | None, message: str, suggestion: str | None = None) -> None:
        self.result.suggestions.append(self._diag(where, message, "info", suggestion))
