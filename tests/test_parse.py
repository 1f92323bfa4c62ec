from __future__ import annotations

import pytest

from dsgate.analysis.nodes import CallExpr, ImportDecl, JsxElement, StringLit, TemplateLit
from dsgate.analysis.parse import SourceParseError, is_typed_source, parse_source


def _of(kind, source):
    return [n for n in source.nodes if isinstance(n, kind)]


def test_imports_are_lowered() -> None:
    src = parse_source(
        "import React, { useMemo as memoize, useState } from 'react';\n"
        "import * as ui from '@acme/ui';\n",
        "App.jsx",
    )
    decls = _of(ImportDecl, src)
    assert [d.source for d in decls] == ["react", "@acme/ui"]

    react = decls[0]
    assert [(s.kind, s.local, s.imported) for s in react.specifiers] == [
        ("default", "React", None),
        ("named", "memoize", "useMemo"),
        ("named", "useState", "useState"),
    ]
    assert [(s.kind, s.local) for s in decls[1].specifiers] == [("namespace", "ui")]

    strings = _of(StringLit, src)
    assert strings and all(s.in_import for s in strings)


def test_jsx_attributes() -> None:
    src = parse_source(
        'const App = () => <Button label="Save" size={2} disabled onClick={handle} tone={"dark"} />;\n',
        "App.jsx",
    )
    (button,) = _of(JsxElement, src)
    assert button.name == "Button"
    assert button.is_component
    assert button.pos.line == 1

    label = button.attr("label")
    assert label is not None and label.value == "Save" and label.is_string and label.is_static
    assert button.attr("size").value == 2
    assert button.attr("disabled").value is True
    on_click = button.attr("onClick")
    assert on_click.is_static is False and on_click.value == "{handle}"
    tone = button.attr("tone")
    assert tone.value == "dark" and tone.is_string

    attr_strings = [s for s in _of(StringLit, src) if s.in_jsx_attribute]
    assert {s.value for s in attr_strings} == {"Save", "dark"}


def test_spread_attributes() -> None:
    src = parse_source(
        'const App = (rest) => <><Button {...rest} label="Save" /><Card title="x" /></>;\n',
        "App.jsx",
    )
    button, card = _of(JsxElement, src)
    assert button.has_spread is True
    assert [a.name for a in button.attributes] == ["label"]
    assert card.has_spread is False


def test_nested_elements_and_fragments() -> None:
    src = parse_source(
        "const App = () => (\n"
        "  <>\n"
        "    <Card title=\"x\">\n"
        "      <span>hi</span>\n"
        "    </Card>\n"
        "  </>\n"
        ");\n",
        "App.jsx",
    )
    names = [e.name for e in _of(JsxElement, src)]
    assert names == ["Card", "span"]
    card = _of(JsxElement, src)[0]
    assert (card.pos.line, card.pos.column) == (3, 5)


def test_map_items() -> None:
    src = parse_source(
        "const List = ({ items }) => (\n"
        "  <ul>\n"
        "    {items.map((item) => <li key={item.id}><b>{item.name}</b></li>)}\n"
        "  </ul>\n"
        ");\n",
        "List.jsx",
    )
    by_name = {e.name: e for e in _of(JsxElement, src)}
    assert by_name["ul"].is_map_item is False
    assert by_name["li"].is_map_item is True
    assert by_name["b"].is_map_item is False


def test_component_body_calls() -> None:
    src = parse_source(
        "function helper(xs) { return xs.filter(Boolean); }\n"
        "function Table({ rows }) {\n"
        "  const sorted = rows.sort();\n"
        "  return <div>{sorted.length}</div>;\n"
        "}\n"
        "const Panel = memo((props) => { const v = props.xs.map(f); return <div />; });\n",
        "Table.jsx",
    )
    calls = {(c.callee, c.in_component_body) for c in _of(CallExpr, src)}
    assert ("filter", False) in calls
    assert ("sort", True) in calls
    assert ("map", True) in calls
    memo = [c for c in _of(CallExpr, src) if c.callee == "memo"]
    assert memo and memo[0].is_member is False


def test_template_head() -> None:
    src = parse_source("const c = `rgba(0,0,0,${alpha})`;\n", "x.js")
    (tpl,) = _of(TemplateLit, src)
    assert tpl.head == "rgba(0,0,0,"


def test_columns_count_characters() -> None:
    src = parse_source('const s = "é"; const t = "#fff";\n', "x.js")
    strings = _of(StringLit, src)
    assert [s.value for s in strings] == ["é", "#fff"]
    assert strings[1].pos.column == 26


def test_typescript_sources() -> None:
    text = "interface Props { label: string }\nexport const B = (p: Props) => <Button label={p.label} />;\n"
    assert is_typed_source("B.jsx", text)
    src = parse_source(text, "B.tsx")
    assert src.typed
    assert [e.name for e in _of(JsxElement, src)] == ["Button"]

    plain = parse_source("export const n: number = 1;\n", "n.ts")
    assert plain.typed


def test_syntax_error_has_position() -> None:
    with pytest.raises(SourceParseError, match=r"Unexpected token at \d+:\d+") as exc:
        parse_source("const x = <div>;\n", "Bad.jsx")
    assert exc.value.pos.line >= 1
