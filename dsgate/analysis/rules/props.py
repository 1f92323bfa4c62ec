from __future__ import annotations

import re

from dsgate.analysis.nodes import JsxElement
from dsgate.analysis.rules.base import Rule


# Utility classes that bake in a concrete value (color-red-500, bg-blue-100, p-4).
HARDCODED_CLASS_PATTERNS = (
    re.compile(r"^color-"),
    re.compile(r"^bg-"),
    re.compile(r"^text-"),
    re.compile(r"^p-\d"),
    re.compile(r"^m-\d"),
)


def is_hardcoded_class(name: str) -> bool:
    return any(p.search(name) for p in HARDCODED_CLASS_PATTERNS)


class PropUsageRule(Rule):
    rule_id = "validate-props"

    def visit_jsx_element(self, node: JsxElement) -> None:
        if node.has_attr("style"):
            self.warning(node.pos, "Avoid inline styles. Use design tokens or className instead.")

        cls = node.attr("className")
        if cls is None or not cls.is_string:
            return
        for name in str(cls.value).split():
            if is_hardcoded_class(name):
                self.suggest(node.pos, f"Consider using a design token instead of hard-coded class '{name}'")
