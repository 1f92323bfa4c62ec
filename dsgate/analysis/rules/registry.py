from __future__ import annotations

from dsgate.analysis.rules.base import Rule

from . import accessibility, components, patterns, performance, props, tokens


def get_rules() -> list[type[Rule]]:
    # Fixed order for deterministic output.
    return [
        tokens.TokenUsageRule,
        components.ComponentUsageRule,
        props.PropUsageRule,
        accessibility.AccessibilityRule,
        performance.PerformanceRule,
        patterns.DesignPatternRule,
    ]


DEFAULT_RULE_IDS: tuple[str, ...] = tuple(r.rule_id for r in get_rules())


def select_rules(rule_ids: list[str] | tuple[str, ...] | None) -> list[type[Rule]]:
    """Rules for the given ids in run order; None means all. Unknown ids raise ValueError."""

    rules = get_rules()
    if rule_ids is None:
        return rules
    known = {r.rule_id for r in rules}
    unknown = sorted(set(rule_ids) - known)
    if unknown:
        raise ValueError(f"Unknown rule(s): {', '.join(unknown)}")
    return [r for r in rules if r.rule_id in rule_ids]
