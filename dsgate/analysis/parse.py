"""Lower JavaScript/TypeScript/JSX source into dsgate.analysis.nodes.

Parsing uses tree-sitter grammars: the JavaScript grammar (which includes
JSX) for plain files, and the TypeScript grammars when the path or the
content indicates typed syntax.
"""

from __future__ import annotations

from typing import Any

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node as TSNode, Parser

from dsgate.analysis.nodes import (
    AttrValue,
    CallExpr,
    ImportDecl,
    ImportSpecifier,
    JsxAttribute,
    JsxElement,
    Node,
    Pos,
    SourceFile,
    StringLit,
    TemplateLit,
)


class SourceParseError(ValueError):
    def __init__(self, message: str, pos: Pos):
        super().__init__(message)
        self.pos = pos


_JAVASCRIPT = Language(tree_sitter_javascript.language())
_TYPESCRIPT = Language(tree_sitter_typescript.language_typescript())
_TSX = Language(tree_sitter_typescript.language_tsx())

_FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "method_definition",
        "generator_function_declaration",
        "generator_function",
    }
)
# Wrappers between a function expression and the variable it is bound to,
# e.g. const Card = memo(forwardRef((props, ref) => ...)).
_BINDING_WRAPPERS = frozenset({"arguments", "call_expression", "parenthesized_expression"})


def is_typed_source(path: str, text: str) -> bool:
    return path.endswith((".ts", ".tsx")) or "interface " in text or ": React." in text


def _language_for(path: str, text: str) -> Language:
    if path.endswith(".ts"):
        return _TYPESCRIPT
    if is_typed_source(path, text):
        return _TSX
    return _JAVASCRIPT


class _Lowerer:
    def __init__(self, src: bytes):
        self.src = src
        self.line_starts = [0]
        for i, b in enumerate(src):
            if b == 0x0A:
                self.line_starts.append(i + 1)

    def text(self, n: TSNode | None) -> str:
        if n is None:
            return ""
        return self.src[n.start_byte : n.end_byte].decode("utf-8", errors="replace")

    def pos(self, n: TSNode) -> Pos:
        row, col = n.start_point[0], n.start_point[1]
        # tree-sitter columns are byte offsets; report characters.
        start = self.line_starts[row] if row < len(self.line_starts) else 0
        prefix = self.src[start : start + col].decode("utf-8", errors="replace")
        return Pos(line=row + 1, column=len(prefix) + 1)

    # -- literals -------------------------------------------------------------

    def string_value(self, n: TSNode) -> str:
        raw = self.text(n)
        return raw[1:-1] if len(raw) >= 2 else raw

    def number_value(self, n: TSNode) -> int | float | str:
        raw = self.text(n).replace("_", "")
        try:
            return int(raw, 0)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            return raw

    # -- JSX ------------------------------------------------------------------

    def attribute(self, n: TSNode) -> JsxAttribute | None:
        named = n.named_children
        if not named:
            return None
        name = self.text(named[0])
        if len(named) < 2:
            return JsxAttribute(name=name, value=True, is_static=True, is_string=False, pos=self.pos(n))

        value_node = named[1]
        value: AttrValue
        is_static = True
        is_string = False
        if value_node.type == "string":
            value, is_string = self.string_value(value_node), True
        elif value_node.type == "jsx_expression":
            inner = value_node.named_children[0] if value_node.named_children else None
            kind = inner.type if inner is not None else ""
            if kind == "string":
                value, is_string = self.string_value(inner), True
            elif kind == "number":
                value = self.number_value(inner)
            elif kind in ("true", "false"):
                value = kind == "true"
            else:
                value, is_static = "{" + self.text(inner) + "}", False
        else:
            value, is_static = self.text(value_node), False
        return JsxAttribute(name=name, value=value, is_static=is_static, is_string=is_string, pos=self.pos(n))

    def element(self, n: TSNode) -> JsxElement | None:
        opening = n
        if n.type == "jsx_element":
            opening = next((c for c in n.children if c.type == "jsx_opening_element"), None)
            if opening is None:
                return None
        name_node = opening.child_by_field_name("name")
        if name_node is None:
            return None  # fragment
        attrs = tuple(a for a in (self.attribute(c) for c in opening.named_children if c.type == "jsx_attribute") if a)
        spread = any(
            c.type == "jsx_expression" and any(x.type == "spread_element" for x in c.named_children)
            for c in opening.named_children
        )
        return JsxElement(
            name=self.text(name_node),
            attributes=attrs,
            pos=self.pos(n),
            is_map_item=self.is_map_item(n),
            has_spread=spread,
        )

    def is_map_item(self, n: TSNode) -> bool:
        cur = n.parent
        while cur is not None:
            if cur.type == "jsx_element":
                return False
            if cur.type == "call_expression" and self.member_property(cur.child_by_field_name("function")) == "map":
                return True
            cur = cur.parent
        return False

    # -- calls ----------------------------------------------------------------

    def member_property(self, fn: TSNode | None) -> str | None:
        if fn is None or fn.type != "member_expression":
            return None
        return self.text(fn.child_by_field_name("property"))

    def call(self, n: TSNode) -> CallExpr | None:
        fn = n.child_by_field_name("function")
        if fn is None:
            return None
        if fn.type == "identifier":
            callee, is_member = self.text(fn), False
        elif fn.type == "member_expression":
            callee, is_member = self.text(fn.child_by_field_name("property")), True
        else:
            return None
        return CallExpr(callee=callee, is_member=is_member, pos=self.pos(n), in_component_body=self.in_component_body(n))

    def function_name(self, fn: TSNode) -> str:
        named = fn.child_by_field_name("name")
        if named is not None:
            return self.text(named)
        cur = fn.parent
        while cur is not None and cur.type in _BINDING_WRAPPERS:
            cur = cur.parent
        if cur is not None and cur.type == "variable_declarator":
            return self.text(cur.child_by_field_name("name"))
        return ""

    def in_component_body(self, n: TSNode) -> bool:
        cur = n.parent
        while cur is not None:
            if cur.type in _FUNCTION_TYPES:
                name = self.function_name(cur)
                if cur.type == "method_definition":
                    return name == "render"
                return bool(name) and name[0].isupper()
            cur = cur.parent
        return False

    # -- imports --------------------------------------------------------------

    def import_decl(self, n: TSNode) -> ImportDecl | None:
        source = n.child_by_field_name("source")
        if source is None:
            return None
        specs: list[ImportSpecifier] = []
        clause = next((c for c in n.named_children if c.type == "import_clause"), None)
        if clause is not None:
            for c in clause.named_children:
                if c.type == "identifier":
                    specs.append(ImportSpecifier(kind="default", local=self.text(c)))
                elif c.type == "namespace_import":
                    ident = next((x for x in c.named_children if x.type == "identifier"), None)
                    specs.append(ImportSpecifier(kind="namespace", local=self.text(ident)))
                elif c.type == "named_imports":
                    for spec in c.named_children:
                        if spec.type != "import_specifier":
                            continue
                        imported = self.text(spec.child_by_field_name("name"))
                        alias = spec.child_by_field_name("alias")
                        specs.append(
                            ImportSpecifier(kind="named", local=self.text(alias) if alias else imported, imported=imported)
                        )
        return ImportDecl(source=self.string_value(source), specifiers=tuple(specs), pos=self.pos(n))

    # -- strings --------------------------------------------------------------

    def string_lit(self, n: TSNode) -> StringLit:
        parent = n.parent
        ptype = parent.type if parent is not None else ""
        in_attr = ptype == "jsx_attribute" or (
            ptype == "jsx_expression" and parent.parent is not None and parent.parent.type == "jsx_attribute"
        )
        in_import = ptype in ("import_statement", "export_statement")
        return StringLit(value=self.string_value(n), pos=self.pos(n), in_jsx_attribute=in_attr, in_import=in_import)

    def template(self, n: TSNode) -> TemplateLit:
        body = self.text(n)[1:-1]
        return TemplateLit(head=body.split("${", 1)[0], pos=self.pos(n))

    # -- driver ---------------------------------------------------------------

    def lower(self, root: TSNode) -> list[Node]:
        out: list[Node] = []
        stack = [root]
        while stack:
            n = stack.pop()
            kind = n.type
            lowered: Any = None
            if kind in ("jsx_element", "jsx_self_closing_element"):
                lowered = self.element(n)
            elif kind == "import_statement":
                lowered = self.import_decl(n)
            elif kind == "call_expression":
                lowered = self.call(n)
            elif kind == "string":
                lowered = self.string_lit(n)
            elif kind == "template_string":
                lowered = self.template(n)
            if lowered is not None:
                out.append(lowered)
            stack.extend(reversed(n.children))
        return out


def _first_error(root: TSNode) -> TSNode | None:
    stack = [root]
    while stack:
        n = stack.pop()
        if n.type == "ERROR" or n.is_missing:
            return n
        if n.has_error:
            stack.extend(reversed(n.children))
    return None


def parse_source(text: str, path: str = "unknown") -> SourceFile:
    """Parse source text; raises SourceParseError on syntax errors."""

    src = text.encode("utf-8", errors="surrogatepass")
    parser = Parser(_language_for(path, text))
    tree = parser.parse(src)
    root = tree.root_node
    lowerer = _Lowerer(src)
    if root.has_error:
        bad = _first_error(root) or root
        pos = lowerer.pos(bad)
        raise SourceParseError(f"Unexpected token at {pos.line}:{pos.column}", pos)
    return SourceFile(path=path, text=text, typed=is_typed_source(path, text), nodes=tuple(lowerer.lower(root)))
