"""Schema validation for registry documents.

A SchemaValidator compiles the bundled schemas once and is then passed by
reference to the mutation and rollback engines and to CLI commands. There is
no module-level instance; construct one per process (or per test).
"""

from __future__ import annotations

import importlib.resources
import json
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from dsgate.core.schema import SchemaError, validate_schema
from dsgate.errors import SchemaNotFoundError, SchemaValidationError


COMPONENT = "component"
MANIFEST = "manifest"
THEME = "theme"
CONFIG = "config"

# Schema tag -> bundled file under dsgate/schemas/.
SCHEMA_FILES: dict[str, str] = {
    COMPONENT: "component.schema.json",
    MANIFEST: "manifest.schema.json",
    THEME: "theme.schema.json",
    CONFIG: "config.schema.json",
}


def _has_components(doc: Any) -> bool:
    return isinstance(doc, dict) and "components" in doc


def _has_name_and_props(doc: Any) -> bool:
    return isinstance(doc, dict) and bool(doc.get("name")) and "props" in doc


def _has_registry_name(doc: Any) -> bool:
    return isinstance(doc, dict) and "registryName" in doc


# Ordered predicate -> tag rules; first match wins, THEME is the fallback.
# Callers that know what they hold should pass the tag explicitly instead.
SCHEMA_DETECTION_RULES: tuple[tuple[str, Callable[[Any], bool], str], ...] = (
    ("has-components", _has_components, MANIFEST),
    ("has-name-and-props", _has_name_and_props, COMPONENT),
    ("has-registry-name", _has_registry_name, CONFIG),
)


def detect_schema(document: Any) -> str:
    for _rule_name, predicate, tag in SCHEMA_DETECTION_RULES:
        if predicate(document):
            return tag
    return THEME


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    schema_name: str
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "schemaName": self.schema_name, "errors": list(self.errors)}


def _load_bundled_schema(filename: str) -> dict[str, Any]:
    text = importlib.resources.files("dsgate.schemas").joinpath(filename).read_text(encoding="utf-8")
    obj = json.loads(text)
    if not isinstance(obj, dict):
        raise ValueError(f"Schema is not a JSON object: {filename}")
    return obj


class SchemaValidator:
    def __init__(self, schemas: Mapping[str, dict[str, Any]] | None = None, *, verbose: bool = False):
        self.verbose = verbose
        self._compiled: dict[str, dict[str, Any]] = {}
        self.compile(schemas)

    def compile(self, schemas: Mapping[str, dict[str, Any]] | None = None) -> None:
        """Load and cache the named schema set.

        With no argument the four bundled schemas are loaded. Compilation is
        idempotent: names already cached are kept as-is.
        """

        if schemas is None:
            schemas = {name: _load_bundled_schema(fn) for name, fn in SCHEMA_FILES.items()}
        for name, schema in schemas.items():
            if name in self._compiled:
                continue
            if not isinstance(schema, dict):
                raise ValueError(f"Schema {name!r} is not a JSON object")
            self._compiled[name] = schema
            if self.verbose:
                print(f"[dsgate schema] loaded: {name}", file=sys.stderr)

    def available_schemas(self) -> list[str]:
        return sorted(self._compiled.keys())

    def validate(self, document: Any, schema_name: str) -> ValidationResult:
        schema = self._compiled.get(schema_name)
        if schema is None:
            raise SchemaNotFoundError(f"Schema not found: {schema_name}")

        errs: list[SchemaError] = validate_schema(document, schema, root_schema=schema, path="$")
        result = ValidationResult(
            valid=len(errs) == 0,
            schema_name=schema_name,
            errors=[e.to_dict() for e in errs],
        )
        if self.verbose and not result.valid:
            print(f"[dsgate schema] {schema_name}: {len(errs)} error(s)", file=sys.stderr)
            for e in result.errors:
                print(f"  - {e['path']}: {e['message']}", file=sys.stderr)
        return result

    def validate_or_throw(self, document: Any, schema_name: str) -> ValidationResult:
        result = self.validate(document, schema_name)
        if not result.valid:
            raise SchemaValidationError(schema_name, result.errors)
        return result

    def validate_detected(self, document: Any) -> ValidationResult:
        return self.validate(document, detect_schema(document))

    def validate_component(self, component: Any) -> ValidationResult:
        return self.validate(component, COMPONENT)

    def validate_manifest(self, manifest: Any) -> ValidationResult:
        return self.validate(manifest, MANIFEST)

    def validate_tokens(self, tokens: Any) -> ValidationResult:
        return self.validate(tokens, THEME)

    def validate_config(self, config: Any) -> ValidationResult:
        return self.validate(config, CONFIG)


def check_document_structure(document: Any) -> list[str]:
    """Minimal structural check for documents that match no schema predicate."""

    if not isinstance(document, dict):
        return ["document must be an object"]
    components = document.get("components")
    if not isinstance(components, list):
        return ["document must have a components array"]
    problems: list[str] = []
    for i, comp in enumerate(components):
        if not isinstance(comp, dict) or not isinstance(comp.get("name"), str) or not comp.get("name"):
            problems.append(f"components[{i}] must have a name")
    return problems


def advisory_check(validator: SchemaValidator, document: Any) -> list[str]:
    """Validate a mutation/rollback document without raising.

    Manifests and components go through their schema; anything else gets the
    structural check. Returns human-readable problems (empty when valid).
    """

    tag = detect_schema(document)
    if tag in (MANIFEST, COMPONENT):
        result = validator.validate(document, tag)
        return [f"{e['path']}: {e['message']}" for e in result.errors]
    return check_document_structure(document)
