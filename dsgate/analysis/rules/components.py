from __future__ import annotations

import re

from dsgate.analysis.nodes import JsxElement
from dsgate.analysis.rules.base import Rule
from dsgate.registry import component_props, find_component, required_props


# Names that look like they come from a third-party library rather than the registry.
EXTERNAL_COMPONENT_PATTERNS = (
    re.compile(r"^[A-Z][a-z]+$"),
    re.compile(r"^Ui[A-Z]"),
    re.compile(r"^React\."),
)


def is_external_component(name: str) -> bool:
    return any(p.search(name) for p in EXTERNAL_COMPONENT_PATTERNS)


class ComponentUsageRule(Rule):
    rule_id = "validate-components"

    def visit_jsx_element(self, node: JsxElement) -> None:
        if not node.is_component:
            return

        component = find_component(self.ctx.registry, node.name)
        if component is None:
            if not is_external_component(node.name):
                self.warning(node.pos, f"Component '{node.name}' not found in registry")
            return

        # A spread attribute may supply any required prop.
        if not node.has_spread:
            for prop in required_props(component):
                if not node.has_attr(prop):
                    self.error(node.pos, f"Required prop '{prop}' missing for component '{node.name}'")

        props = component_props(component)
        for attr in node.attributes:
            values = (props.get(attr.name) or {}).get("values")
            if not isinstance(values, list) or not attr.is_string:
                continue
            if attr.value not in values:
                self.error(
                    attr.pos,
                    f"Invalid value '{attr.value}' for prop '{attr.name}' on '{node.name}'. "
                    f"Expected one of: {', '.join(str(v) for v in values)}",
                )
