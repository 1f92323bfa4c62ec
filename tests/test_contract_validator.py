from __future__ import annotations

from typing import Any

import pytest

from dsgate.analysis import StaticContractValidator
from dsgate.analysis.rules.registry import DEFAULT_RULE_IDS, select_rules


def _messages(report: dict[str, Any], bucket: str, rule: str) -> list[str]:
    return [d["message"] for d in report[bucket] if d["rule"] == rule]


def test_rule_order_is_fixed() -> None:
    assert DEFAULT_RULE_IDS == (
        "validate-tokens",
        "validate-components",
        "validate-props",
        "validate-accessibility",
        "validate-performance",
        "validate-patterns",
    )


def test_unknown_rule_is_rejected(registry: dict[str, Any]) -> None:
    with pytest.raises(ValueError, match="Unknown rule"):
        StaticContractValidator(registry, rules=["validate-tokens", "no-such-rule"])


def test_rule_subset_keeps_run_order() -> None:
    ids = [r.rule_id for r in select_rules(["validate-patterns", "validate-tokens"])]
    assert ids == ["validate-tokens", "validate-patterns"]


class TestComponents:
    def test_missing_required_prop(self, registry: dict[str, Any]) -> None:
        report = StaticContractValidator(registry).validate("const a = <Button />;\n", "A.jsx")
        assert report["valid"] is False
        errs = [d for d in report["errors"] if d["rule"] == "validate-components"]
        assert [d["message"] for d in errs] == ["Required prop 'label' missing for component 'Button'"]
        assert (errs[0]["line"], errs[0]["column"]) == (1, 11)

    def test_invalid_enumerated_value(self, registry: dict[str, Any]) -> None:
        report = StaticContractValidator(registry).validate(
            'const a = <Button label="Go" variant="tertiary" />;\n', "A.jsx"
        )
        assert _messages(report, "errors", "validate-components") == [
            "Invalid value 'tertiary' for prop 'variant' on 'Button'. Expected one of: primary, secondary"
        ]

    def test_spread_may_supply_required_props(self, registry: dict[str, Any]) -> None:
        report = StaticContractValidator(registry, rules=["validate-components"]).validate(
            "const a = (p) => <Button {...p} />;\n", "A.jsx"
        )
        assert report["valid"] is True
        assert report["errors"] == []

    def test_unknown_components(self, registry: dict[str, Any]) -> None:
        report = StaticContractValidator(registry, rules=["validate-components"]).validate(
            "const a = <><FancyThing /><Modal /><UiDialog /></>;\n", "A.jsx"
        )
        assert report["valid"] is True
        assert _messages(report, "warnings", "validate-components") == ["Component 'FancyThing' not found in registry"]

    def test_valid_usage(self, registry: dict[str, Any]) -> None:
        report = StaticContractValidator(registry, rules=["validate-components"]).validate(
            'const a = <Button label="Go" variant="primary" />;\n', "A.jsx"
        )
        assert report["valid"] is True
        assert report["errors"] == [] and report["warnings"] == []


class TestTokens:
    def test_hardcoded_literal_with_known_token(self, registry: dict[str, Any]) -> None:
        src = 'const bg = "#FFFFFF";\nconst odd = "#123456";\n'
        report = StaticContractValidator(registry, rules=["validate-tokens"]).validate(src, "a.js")
        warnings = report["warnings"]
        assert [d["message"] for d in warnings] == ["Hard-coded value '#FFFFFF' should use token 'color.white'"]
        assert warnings[0]["suggestion"] == "color.white"
        assert (warnings[0]["line"], warnings[0]["column"]) == (1, 13)

    def test_token_references(self, registry: dict[str, Any]) -> None:
        src = (
            'const a = "var(--color-primary)";\n'
            "const b = token('spacing.md');\n"
            'const c = "var(--color-missing)";\n'
        )
        report = StaticContractValidator(registry, rules=["validate-tokens"]).validate(src, "a.js")
        assert report["valid"] is False
        assert [d["message"] for d in report["errors"]] == ["Token 'color-missing' not found in registry"]
        assert report["errors"][0]["line"] == 3


def test_props_rule(registry: dict[str, Any]) -> None:
    src = 'const a = <div style={{ margin: 0 }} className="text-red card p-4" />;\n'
    report = StaticContractValidator(registry, rules=["validate-props"]).validate(src, "a.jsx")
    assert _messages(report, "warnings", "validate-props") == [
        "Avoid inline styles. Use design tokens or className instead."
    ]
    assert _messages(report, "suggestions", "validate-props") == [
        "Consider using a design token instead of hard-coded class 'text-red'",
        "Consider using a design token instead of hard-coded class 'p-4'",
    ]
    assert all(d["severity"] == "info" for d in report["suggestions"])


def test_accessibility_rule(registry: dict[str, Any]) -> None:
    src = 'const a = <section><img src="a.png" /><div onClick={go} /><span onClick={go} role="button" tabIndex={0} /></section>;\n'
    report = StaticContractValidator(registry, rules=["validate-accessibility"]).validate(src, "a.jsx")
    assert _messages(report, "errors", "validate-accessibility") == ["img elements must have an alt attribute"]
    assert _messages(report, "warnings", "validate-accessibility") == [
        "Clickable div should have a role attribute",
        "Clickable div should be keyboard accessible (tabIndex)",
    ]


def test_performance_rule(registry: dict[str, Any]) -> None:
    src = (
        "function List({ items }) {\n"
        "  const sorted = items.sort();\n"
        "  return <ul>{sorted.map((i) => <li>{i}</li>)}</ul>;\n"
        "}\n"
    )
    report = StaticContractValidator(registry, rules=["validate-performance"]).validate(src, "List.jsx")
    assert _messages(report, "warnings", "validate-performance") == ["Missing key prop in list element"]
    assert _messages(report, "suggestions", "validate-performance") == [
        "Consider memoizing sort operation with useMemo",
        "Consider memoizing map operation with useMemo",
    ]


def test_patterns_rule(registry: dict[str, Any]) -> None:
    src = "const css = `\n  padding: 10px;\n  margin: 8px;\n  gap: 6px;\n`;\n"
    report = StaticContractValidator(registry, rules=["validate-patterns"]).validate(src, "a.js")
    assert [(d["line"], d["message"]) for d in report["suggestions"]] == [
        (2, "Spacing value 10px is not aligned to 4px grid. Consider using a spacing token."),
        (4, "Spacing value 6px is not aligned to 4px grid. Consider using a spacing token."),
    ]
    assert report["valid"] is True


def test_strict_mode_fails_on_warnings(registry: dict[str, Any]) -> None:
    src = "const a = <div style={{}} />;\n"
    assert StaticContractValidator(registry, rules=["validate-props"]).validate(src, "a.jsx")["valid"] is True
    strict = StaticContractValidator(registry, rules=["validate-props"], strict=True)
    assert strict.validate(src, "a.jsx")["valid"] is False


def test_syntax_error_report(registry: dict[str, Any]) -> None:
    report = StaticContractValidator(registry).validate("const a = <div>;\n", "Bad.jsx")
    assert report["valid"] is False
    assert len(report["errors"]) == 1
    err = report["errors"][0]
    assert err["rule"] == "syntax"
    assert err["message"].startswith("Parse error: Unexpected token at")
    assert report["warnings"] == [] and report["suggestions"] == []


def test_metadata(registry: dict[str, Any]) -> None:
    validator = StaticContractValidator(registry, rules=["validate-props", "validate-patterns"])
    report = validator.validate("const a = 1;\nconst b = 2;\n", "src/a.js")
    assert report["metadata"] == {"filePath": "src/a.js", "linesChecked": 3, "rulesApplied": 2}
    assert report["valid"] is True


def test_analysis_context(registry: dict[str, Any]) -> None:
    src = (
        "import React, { useState } from 'react';\n"
        "import { Button as Btn } from '@acme/ui';\n"
        "export function Form() {\n"
        "  const [v, setV] = useState('');\n"
        "  const ref = React.useRef(null);\n"
        '  return <><Button label="a" size={2} onClick={submit} /><Button label="b" /><input /></>;\n'
        "}\n"
    )
    ctx = StaticContractValidator(registry).analyze(src, "Form.jsx")
    assert list(ctx.imports) == ["react", "@acme/ui"]
    assert [(s.kind, s.local, s.imported) for s in ctx.imports["@acme/ui"]] == [("named", "Btn", "Button")]
    assert ctx.components == {
        "Button": [
            {"label": "a", "size": 2, "onClick": "{submit}"},
            {"label": "b"},
        ]
    }
    assert ctx.hooks == {"useState"}
    assert "spacing.md" in ctx.token_names
    assert len(ctx.lines) == 8
