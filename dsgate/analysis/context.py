from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dsgate.analysis.nodes import (
    AttrValue,
    CallExpr,
    ImportDecl,
    ImportSpecifier,
    JsxElement,
    NodeVisitor,
    SourceFile,
)
from dsgate.registry import token_name_set


@dataclass
class AnalysisContext:
    """Everything a rule may consult for one source file."""

    source: SourceFile
    registry: dict[str, Any]
    imports: dict[str, tuple[ImportSpecifier, ...]] = field(default_factory=dict)
    # PascalCase element name -> attributes of each occurrence, in source order.
    components: dict[str, list[dict[str, AttrValue]]] = field(default_factory=dict)
    hooks: set[str] = field(default_factory=set)
    token_names: set[str] = field(default_factory=set)

    @property
    def lines(self) -> list[str]:
        return self.source.lines


class _ContextBuilder(NodeVisitor):
    def __init__(self, ctx: AnalysisContext):
        self.ctx = ctx

    def visit_import(self, node: ImportDecl) -> None:
        self.ctx.imports[node.source] = node.specifiers

    def visit_jsx_element(self, node: JsxElement) -> None:
        if node.is_component:
            props = {a.name: a.value for a in node.attributes}
            self.ctx.components.setdefault(node.name, []).append(props)

    def visit_call(self, node: CallExpr) -> None:
        if not node.is_member and node.callee.startswith("use"):
            self.ctx.hooks.add(node.callee)


def build_context(source: SourceFile, registry: dict[str, Any]) -> AnalysisContext:
    ctx = AnalysisContext(source=source, registry=registry, token_names=token_name_set(registry))
    source.walk(_ContextBuilder(ctx))
    return ctx
