"""Registry document validation: schema plus the contract checks a schema cannot express."""

from __future__ import annotations

import json
import re
import sys
from pathlib import Path
from typing import Any

from dsgate.registry import PROP_TYPES, component_props, load_registry, variant_values
from dsgate.schema_validator import MANIFEST, SchemaValidator


STANDARD_REACT_PROPS = (
    "key",
    "ref",
    "className",
    "style",
    "id",
    "onClick",
    "onChange",
    "onSubmit",
    "onFocus",
    "onBlur",
    "children",
    "title",
    "role",
)

_EXAMPLE_PROP = re.compile(r"(\w+)=[{\"']")
_EXAMPLE_VARIANT = re.compile(r"variant=[\"'](\w+)[\"']")
_WORD = re.compile(r"\b[\w-]+\b")
_PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
_VALID_COLOR = (re.compile(r"^#[0-9a-fA-F]{6}$"), re.compile(r"^rgb\(\d+,\s*\d+,\s*\d+\)$"))
_NAMED_COLORS = ("red", "green", "blue", "white", "black")
_VALID_SPACING = (re.compile(r"^\d+px$"), re.compile(r"^\d+rem$"), re.compile(r"^\d+em$"))


def is_standard_react_prop(name: str) -> bool:
    return name in STANDARD_REACT_PROPS or name.startswith(("aria-", "data-"))


def _is_valid_color(value: Any) -> bool:
    s = str(value)
    return s in _NAMED_COLORS or any(p.match(s) for p in _VALID_COLOR)


def _is_valid_spacing(value: Any) -> bool:
    return any(p.match(str(value)) for p in _VALID_SPACING)


def _component_id(component: Any, index: int) -> str:
    if isinstance(component, dict) and isinstance(component.get("name"), str) and component["name"]:
        return component["name"]
    return f"component[{index}]"


def _listed_prop_name(prop: Any, index: int) -> str:
    if isinstance(prop, dict) and isinstance(prop.get("name"), str) and prop["name"]:
        return prop["name"]
    return f"[{index}]"


def prop_structure_errors(component: dict[str, Any], index: int) -> list[str]:
    cid = _component_id(component, index)
    props = component.get("props")
    if props is None:
        return []
    if isinstance(props, dict):
        entries = list(props.items())
    elif isinstance(props, list):
        entries = [(_listed_prop_name(p, i), p) for i, p in enumerate(props)]
    else:
        return [f"Component {cid}: props must be an object or a list of prop definitions"]

    errors: list[str] = []
    for name, prop in entries:
        if not isinstance(prop, dict):
            errors.append(f"Component {cid}: prop '{name}' must be an object")
            continue
        if isinstance(props, list) and name.startswith("["):
            errors.append(f"Component {cid}: prop {name} is missing required 'name' field")
            continue
        ptype = prop.get("type")
        if not ptype:
            errors.append(f"Component {cid}: prop '{name}' is missing required 'type' field")
            continue
        if ptype not in PROP_TYPES:
            errors.append(
                f"Component {cid}: prop '{name}' has invalid type '{ptype}'. Valid types: {', '.join(PROP_TYPES)}"
            )
        if prop.get("values") and ptype != "string":
            errors.append(f"Component {cid}: prop '{name}' cannot have 'values' field unless type is 'string'")
    return errors


def _allowed_variants(component: dict[str, Any]) -> set[str]:
    allowed = set(variant_values(component, "variant") or [])
    variants = component.get("variants")
    if isinstance(variants, dict):
        # Flat maps keyed by variant name are accepted as well.
        allowed.update(k for k, v in variants.items() if not isinstance(v, (dict, list)))
    variant = component_props(component).get("variant")
    if variant is not None:
        values = variant.get("values")
        if isinstance(values, list):
            allowed.update(str(v) for v in values)
    return allowed


def _examples(component: dict[str, Any]) -> list[str]:
    examples = component.get("examples")
    if not isinstance(examples, list):
        return []
    return [e for e in examples if isinstance(e, str)]


def check_example_usage(component: dict[str, Any], errors: list[str]) -> None:
    name = component.get("name")
    props = component_props(component) if isinstance(component.get("props"), (dict, list)) else None
    has_variants = isinstance(component.get("variants"), dict)
    allowed = _allowed_variants(component)
    for i, example in enumerate(_examples(component), start=1):
        if props is not None:
            for prop in _EXAMPLE_PROP.findall(example):
                if prop not in props and not is_standard_react_prop(prop):
                    errors.append(f"Invalid prop '{prop}' in example {i} of {name}")
        if has_variants:
            m = _EXAMPLE_VARIANT.search(example)
            if m and m.group(1) not in allowed:
                errors.append(f"Invalid variant '{m.group(1)}' in example of {name}")


def check_unused_variants(component: dict[str, Any], warnings: list[str]) -> None:
    if not isinstance(component.get("variants"), dict) or not _examples(component):
        return
    used = {m.group(1) for e in _examples(component) for m in [_EXAMPLE_VARIANT.search(e)] if m}
    for variant in sorted(_allowed_variants(component)):
        if variant not in used:
            warnings.append(f"unused variant '{variant}' in {component.get('name')}")


def check_component_tokens(component: dict[str, Any], warnings: list[str], *, strict: bool) -> None:
    tokens = component.get("tokens")
    if not isinstance(tokens, dict):
        return
    name = component.get("name")
    declared = [str(k) for k in tokens]
    dashed = [d.replace(".", "-") for d in declared]

    used: list[str] = []
    styles = component.get("styles")
    if isinstance(styles, dict):
        for style in styles.values():
            if isinstance(style, str):
                used.extend(_WORD.findall(style))
    if isinstance(component.get("className"), str):
        used.extend(_WORD.findall(component["className"]))

    for token, dash in zip(declared, dashed):
        if not any(dash in u for u in used):
            warnings.append(f"Unused token '{token}' in {name}")
    for u in used:
        if "-" in u and not any(d in u for d in dashed):
            warnings.append(f"Undefined token referenced: {u} in {name}")

    if strict:
        for key, value in tokens.items():
            if "color" in key and not _is_valid_color(value):
                warnings.append(f"Invalid color token value '{value}' for {key}")
            if "spacing" in key and not _is_valid_spacing(value):
                warnings.append(f"Invalid spacing token value '{value}' for {key}")


def check_naming_conventions(component: dict[str, Any], warnings: list[str]) -> None:
    name = component.get("name")
    if isinstance(name, str) and name and not _PASCAL_CASE.match(name):
        warnings.append(f"Component name '{name}' should be PascalCase")
    for prop in component_props(component):
        if not _CAMEL_CASE.match(prop) and not prop.startswith(("aria-", "data-")):
            warnings.append(f"Prop name '{prop}' in {name} should be camelCase")


def validate_registry(
    registry: Any,
    validator: SchemaValidator,
    *,
    strict: bool = False,
    check_tokens: bool = False,
    check_examples: bool = False,
    check_naming: bool = False,
) -> dict[str, Any]:
    errors: list[str] = []
    warnings: list[str] = []

    schema_result = validator.validate(registry, MANIFEST)
    for e in schema_result.errors:
        # Prop definitions are reported below with component-level messages.
        if ".props" in e["path"]:
            continue
        errors.append(f"{e['path']}: {e['message']}")

    components = registry.get("components") if isinstance(registry, dict) else None
    if not isinstance(components, list):
        components = []

    for index, component in enumerate(components):
        if not isinstance(component, dict):
            continue
        errors.extend(prop_structure_errors(component, index))
        check_example_usage(component, errors)
        if check_examples or strict:
            check_unused_variants(component, warnings)
        if check_tokens or strict:
            check_component_tokens(component, warnings, strict=strict)
        if check_naming:
            check_naming_conventions(component, warnings)

    valid = not errors
    return {
        "success": valid,
        "valid": valid,
        "componentsValidated": len(components),
        "errors": errors,
        "warnings": warnings,
    }


def run_validate(
    *,
    registry_path: Path,
    strict: bool,
    check_tokens: bool,
    check_examples: bool,
    check_naming: bool,
    verbose: bool,
    json_output: bool,
) -> int:
    registry = load_registry(registry_path)
    if verbose:
        print(f"[dsgate validate] registry: {registry_path}", file=sys.stderr)
    result = validate_registry(
        registry,
        SchemaValidator(verbose=verbose),
        strict=strict,
        check_tokens=check_tokens,
        check_examples=check_examples,
        check_naming=check_naming,
    )

    if json_output:
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return 0 if result["valid"] else 1

    if result["valid"]:
        print(f"✅ Registry is valid ({result['componentsValidated']} components)")
    else:
        print(f"❌ Registry validation failed ({len(result['errors'])} errors)")
        for e in result["errors"]:
            print(f"  - {e}")
    if result["warnings"]:
        print(f"⚠️  {len(result['warnings'])} warnings:")
        for w in result["warnings"]:
            print(f"  - {w}")
    return 0 if result["valid"] else 1
