from __future__ import annotations

from dsgate.analysis.nodes import CallExpr, JsxElement
from dsgate.analysis.rules.base import Rule


MEMOIZABLE_CALLS = ("sort", "filter", "map")


class PerformanceRule(Rule):
    rule_id = "validate-performance"

    def visit_jsx_element(self, node: JsxElement) -> None:
        if node.is_map_item and not node.has_attr("key"):
            self.warning(node.pos, "Missing key prop in list element")

    def visit_call(self, node: CallExpr) -> None:
        if node.in_component_body and node.callee in MEMOIZABLE_CALLS:
            self.suggest(node.pos, f"Consider memoizing {node.callee} operation with useMemo")
