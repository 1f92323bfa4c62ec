"""StaticContractValidator: check one source file against registry contracts."""

from __future__ import annotations

from typing import Any

from dsgate.analysis.context import AnalysisContext, build_context
from dsgate.analysis.parse import SourceParseError, parse_source
from dsgate.analysis.rules.base import Diagnostic, Rule, RuleResult
from dsgate.analysis.rules.registry import select_rules


SYNTAX_RULE = "syntax"


class StaticContractValidator:
    def __init__(self, registry: dict[str, Any], *, rules: list[str] | None = None, strict: bool = False):
        self.registry = registry
        self.rules: list[type[Rule]] = select_rules(rules)
        self.strict = strict

    @property
    def rule_ids(self) -> list[str]:
        return [r.rule_id for r in self.rules]

    def analyze(self, source_text: str, file_path: str = "unknown") -> AnalysisContext:
        """Parse and build the context; SourceParseError propagates."""

        return build_context(parse_source(source_text, file_path), self.registry)

    def run_rules(self, ctx: AnalysisContext) -> RuleResult:
        result = RuleResult()
        for rule in self.rules:
            result.extend(rule.run(ctx))
        return result

    def validate(self, source_text: str, file_path: str = "unknown") -> dict[str, Any]:
        metadata = {
            "filePath": file_path,
            "linesChecked": len(source_text.split("\n")),
            "rulesApplied": len(self.rules),
        }
        try:
            ctx = self.analyze(source_text, file_path)
        except SourceParseError as e:
            syntax = Diagnostic(e.pos.line, e.pos.column, f"Parse error: {e}", SYNTAX_RULE, "error")
            return {
                "valid": False,
                "errors": [syntax.to_dict()],
                "warnings": [],
                "suggestions": [],
                "metadata": metadata,
            }

        result = self.run_rules(ctx)
        valid = not result.errors and not (self.strict and result.warnings)
        return {
            "valid": valid,
            "errors": [d.to_dict() for d in result.errors],
            "warnings": [d.to_dict() for d in result.warnings],
            "suggestions": [d.to_dict() for d in result.suggestions],
            "metadata": metadata,
        }
