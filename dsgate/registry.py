from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

from dsgate.core.json_canon import read_json
from dsgate.errors import RegistryLoadError


PROP_TYPES = ("string", "number", "boolean", "object", "array", "function", "element", "node")


def load_registry(path: Path) -> dict[str, Any]:
    """Read a registry JSON file; a directory means <dir>/registry.json."""

    if path.is_dir():
        path = path / "registry.json"
    if not path.exists():
        raise RegistryLoadError(f"Registry file not found: {path}")
    try:
        obj = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RegistryLoadError(f"Failed to load registry {path}: {e}") from e
    if not isinstance(obj, dict):
        raise RegistryLoadError(f"Registry must be a JSON object: {path}")
    return obj


def iter_components(registry: dict[str, Any]) -> Iterator[dict[str, Any]]:
    comps = registry.get("components")
    if not isinstance(comps, list):
        return
    for c in comps:
        if isinstance(c, dict) and isinstance(c.get("name"), str):
            yield c


def find_component(registry: dict[str, Any], name: str) -> dict[str, Any] | None:
    for c in iter_components(registry):
        if name in (c.get("name"), c.get("displayName"), c.get("exportName")):
            return c
    return None


def component_props(component: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Return props as name -> PropDef.

    Registries carry props as a mapping; older extractor output uses a list of
    PropDefs with a 'name' key. Both shapes are accepted.
    """

    props = component.get("props")
    if isinstance(props, dict):
        return {str(k): v for k, v in props.items() if isinstance(v, dict)}
    if isinstance(props, list):
        out: dict[str, dict[str, Any]] = {}
        for p in props:
            if isinstance(p, dict) and isinstance(p.get("name"), str):
                out[p["name"]] = p
        return out
    return {}


def required_props(component: dict[str, Any]) -> list[str]:
    return [name for name, d in component_props(component).items() if d.get("required") is True]


def variant_values(component: dict[str, Any], prop_name: str) -> list[str] | None:
    """Allowed values for a variant-bearing prop, or None when it declares none."""

    variants = component.get("variants")
    if not isinstance(variants, dict):
        return None
    declared = variants.get(prop_name)
    if isinstance(declared, dict):
        return [str(k) for k in declared.keys()]
    if isinstance(declared, list):
        return [str(v) for v in declared]
    return None


def flatten_tokens(tokens: Any, prefix: str = "") -> dict[str, dict[str, Any]]:
    """Flatten a token tree into dotted name -> leaf.

    A node is a leaf iff it carries a 'value' key; recursion stops there.
    Scalars found in place of a node are wrapped as {'value': scalar}.
    """

    out: dict[str, dict[str, Any]] = {}
    if not isinstance(tokens, dict):
        return out
    for key, value in tokens.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            if "value" in value:
                out[path] = value
            else:
                out.update(flatten_tokens(value, path))
        elif not isinstance(value, list):
            out[path] = {"value": value}
    return out


def token_name_set(registry: dict[str, Any]) -> set[str]:
    """Dotted token names plus their CSS-variable (dashed) spelling."""

    names: set[str] = set()
    for path, leaf in flatten_tokens(registry.get("tokens") or {}).items():
        names.add(path)
        names.add(path.replace(".", "-"))
    return names
