from __future__ import annotations

from dsgate.analysis.nodes import JsxElement
from dsgate.analysis.rules.base import Rule


CLICKABLE_ELEMENTS = ("div", "span")


class AccessibilityRule(Rule):
    rule_id = "validate-accessibility"

    def visit_jsx_element(self, node: JsxElement) -> None:
        if node.name == "img" and not node.has_attr("alt"):
            self.error(node.pos, "img elements must have an alt attribute")

        if node.name in CLICKABLE_ELEMENTS and node.has_attr("onClick"):
            if not node.has_attr("role"):
                self.warning(node.pos, f"Clickable {node.name} should have a role attribute")
            if not node.has_attr("tabIndex"):
                self.warning(node.pos, f"Clickable {node.name} should be keyboard accessible (tabIndex)")
