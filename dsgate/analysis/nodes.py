"""Source model consumed by the contract rules.

The parser lowers a concrete syntax tree into this closed set of node kinds.
Rules subclass NodeVisitor and override the visit_* methods they need;
every node dispatches through accept(), so adding a node kind means adding a
visit method here, not teaching each rule a new type string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Pos:
    line: int  # 1-based
    column: int  # 1-based


# Static value of a JSX attribute: literal str/int/float/bool, True for a bare
# boolean attribute, or the opaque source text for anything else.
AttrValue = Union[str, int, float, bool]


@dataclass(frozen=True)
class JsxAttribute:
    name: str
    value: AttrValue
    is_static: bool  # literal (or bare) value
    is_string: bool  # string literal or string-literal expression
    pos: Pos


@dataclass(frozen=True)
class JsxElement:
    name: str
    attributes: tuple[JsxAttribute, ...]
    pos: Pos
    is_map_item: bool = False  # outermost element returned from a .map() callback
    has_spread: bool = False  # carries a {...props} attribute

    def accept(self, visitor: "NodeVisitor") -> None:
        visitor.visit_jsx_element(self)

    def attr(self, name: str) -> JsxAttribute | None:
        for a in self.attributes:
            if a.name == name:
                return a
        return None

    def has_attr(self, name: str) -> bool:
        return self.attr(name) is not None

    @property
    def is_component(self) -> bool:
        return bool(self.name) and self.name[0].isupper()


@dataclass(frozen=True)
class ImportSpecifier:
    kind: str  # "default" | "named" | "namespace"
    local: str
    imported: str | None = None


@dataclass(frozen=True)
class ImportDecl:
    source: str
    specifiers: tuple[ImportSpecifier, ...]
    pos: Pos

    def accept(self, visitor: "NodeVisitor") -> None:
        visitor.visit_import(self)


@dataclass(frozen=True)
class CallExpr:
    callee: str  # identifier, or property name for member calls
    is_member: bool
    pos: Pos
    in_component_body: bool = False  # nearest enclosing function renders a component

    def accept(self, visitor: "NodeVisitor") -> None:
        visitor.visit_call(self)


@dataclass(frozen=True)
class StringLit:
    value: str
    pos: Pos
    in_jsx_attribute: bool = False
    in_import: bool = False

    def accept(self, visitor: "NodeVisitor") -> None:
        visitor.visit_string(self)


@dataclass(frozen=True)
class TemplateLit:
    head: str  # raw text before the first substitution
    pos: Pos

    def accept(self, visitor: "NodeVisitor") -> None:
        visitor.visit_template(self)


Node = Union[JsxElement, ImportDecl, CallExpr, StringLit, TemplateLit]


@dataclass(frozen=True)
class SourceFile:
    path: str
    text: str
    typed: bool
    nodes: tuple[Node, ...] = field(default_factory=tuple)

    @property
    def lines(self) -> list[str]:
        return self.text.split("\n")

    def walk(self, visitor: "NodeVisitor") -> None:
        for node in self.nodes:
            node.accept(visitor)


class NodeVisitor:
    def visit_jsx_element(self, node: JsxElement) -> None:
        pass

    def visit_import(self, node: ImportDecl) -> None:
        pass

    def visit_call(self, node: CallExpr) -> None:
        pass

    def visit_string(self, node: StringLit) -> None:
        pass

    def visit_template(self, node: TemplateLit) -> None:
        pass
