from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import re
from datetime import datetime


@dataclass(frozen=True)
class SchemaError:
    path: str
    message: str
    keyword: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "message": self.message, "value": self.value, "keyword": self.keyword}


_RFC3339_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T"
    r"\d{2}:\d{2}:\d{2}"
    r"(?:\.\d{1,9})?"
    r"(?:Z|[+\-]\d{2}:\d{2})$"
)

def parse_rfc3339(dt: str) -> None:
    if not isinstance(dt, str) or not dt:
        raise ValueError("date-time missing/empty")
    if _RFC3339_RE.match(dt) is None:
        raise ValueError("invalid RFC3339 format")
    if dt.endswith("Z"):
        dt = dt[:-1] + "+00:00"
    parsed = datetime.fromisoformat(dt)
    if parsed.tzinfo is None:
        raise ValueError("missing timezone offset")


def json_type_name(v: Any) -> str:
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "boolean"
    if isinstance(v, int):
        return "integer"
    if isinstance(v, float):
        return "number"
    if isinstance(v, str):
        return "string"
    if isinstance(v, list):
        return "array"
    if isinstance(v, dict):
        return "object"
    return type(v).__name__


def _type_matches(v: Any, expected: str) -> bool:
    actual = json_type_name(v)
    if expected == "number":
        return actual in ("number", "integer")
    return actual == expected


def resolve_json_pointer(root: Any, ptr: str) -> Any:
    # Internal refs only: '#/...'.
    if ptr == "#":
        return root
    if not ptr.startswith("#/"):
        raise ValueError(f"Unsupported $ref (only internal refs supported): {ptr}")
    cur: Any = root
    for raw in ptr[2:].split("/"):
        part = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(cur, dict):
            if part not in cur:
                raise KeyError(f"Missing ref path segment: {part}")
            cur = cur[part]
        elif isinstance(cur, list):
            cur = cur[int(part)]
        else:
            raise TypeError("Cannot traverse non-container")
    return cur


def validate_schema(obj: Any, schema: dict[str, Any], *, root_schema: dict[str, Any], path: str = "$") -> list[SchemaError]:
    """Deterministic, stdlib-only validator sufficient for the bundled registry schemas.

    Supported keywords:
      - $ref (internal only)
      - type (string or list; "number" accepts integers)
      - required
      - properties / patternProperties
      - additionalProperties (false or a schema)
      - minLength / maxLength
      - minimum / maximum
      - pattern
      - enum / const
      - minItems / maxItems / uniqueItems
      - items
      - allOf / anyOf / oneOf
      - if/then/else
      - format: date-time

    Every violation is collected (no fail-fast across siblings). Returns a
    stable list of SchemaError objects sorted by (path, keyword, message).
    """

    errors: list[SchemaError] = []

    def err(p: str, keyword: str, msg: str, value: Any = None) -> None:
        errors.append(SchemaError(path=p, message=msg, keyword=keyword, value=value))

    def trial(cur_obj: Any, sch: Any, cur_path: str) -> list[SchemaError]:
        # Run a sub-schema without recording its errors.
        before = len(errors)
        walk(cur_obj, sch, cur_path)
        found = errors[before:]
        del errors[before:]
        return found

    def walk(cur_obj: Any, sch: Any, cur_path: str) -> None:
        if sch is True:
            return
        if sch is False:
            err(cur_path, "schema", "no value is allowed here", cur_obj)
            return
        if not isinstance(sch, dict):
            err(cur_path, "schema", "schema node is not an object")
            return

        if "$ref" in sch:
            ref = sch.get("$ref")
            if not isinstance(ref, str):
                err(cur_path, "$ref", "$ref must be string")
                return
            try:
                target = resolve_json_pointer(root_schema, ref)
            except (ValueError, KeyError, TypeError, IndexError) as e:
                err(cur_path, "$ref", f"unresolvable $ref: {e}")
                return
            walk(cur_obj, target, cur_path)
            return

        # Composition
        all_of = sch.get("allOf")
        if isinstance(all_of, list):
            for sub in all_of:
                walk(cur_obj, sub, cur_path)

        any_of = sch.get("anyOf")
        if isinstance(any_of, list) and any_of:
            if not any(len(trial(cur_obj, sub, cur_path)) == 0 for sub in any_of):
                err(cur_path, "anyOf", "must match at least one schema in anyOf", cur_obj)

        one_of = sch.get("oneOf")
        if isinstance(one_of, list):
            match_count = sum(1 for sub in one_of if len(trial(cur_obj, sub, cur_path)) == 0)
            if match_count != 1:
                err(cur_path, "oneOf", f"must match exactly one schema in oneOf (matched {match_count})", cur_obj)

        if_s = sch.get("if")
        if isinstance(if_s, dict):
            # Condition holds iff it yields no errors.
            if len(trial(cur_obj, if_s, cur_path)) == 0:
                if "then" in sch:
                    walk(cur_obj, sch.get("then"), cur_path)
            elif "else" in sch:
                walk(cur_obj, sch.get("else"), cur_path)

        # Type
        expected_type = sch.get("type")
        if isinstance(expected_type, list):
            allowed = [str(x) for x in expected_type]
            if not any(_type_matches(cur_obj, t) for t in allowed):
                err(cur_path, "type", f"must be one of types {allowed}, got {json_type_name(cur_obj)}", cur_obj)
                return
        elif isinstance(expected_type, str):
            if not _type_matches(cur_obj, expected_type):
                err(cur_path, "type", f"must be {expected_type}, got {json_type_name(cur_obj)}", cur_obj)
                return

        # enum / const
        if "const" in sch and cur_obj != sch.get("const"):
            err(cur_path, "const", f"must be equal to constant {sch.get('const')!r}", cur_obj)
            return

        enum_vals = sch.get("enum")
        if isinstance(enum_vals, list) and cur_obj not in enum_vals:
            err(cur_path, "enum", f"must be one of {enum_vals}", cur_obj)
            return

        # Scalars
        if isinstance(cur_obj, str):
            min_len = sch.get("minLength")
            if min_len is not None and len(cur_obj) < int(min_len):
                err(cur_path, "minLength", f"must NOT have fewer than {min_len} characters", cur_obj)

            max_len = sch.get("maxLength")
            if max_len is not None and len(cur_obj) > int(max_len):
                err(cur_path, "maxLength", f"must NOT have more than {max_len} characters", cur_obj)

            patt = sch.get("pattern")
            if isinstance(patt, str) and re.search(patt, cur_obj) is None:
                err(cur_path, "pattern", f'must match pattern "{patt}"', cur_obj)

            if sch.get("format") == "date-time":
                try:
                    parse_rfc3339(cur_obj)
                except ValueError:
                    err(cur_path, "format", 'must match format "date-time"', cur_obj)

        if isinstance(cur_obj, (int, float)) and not isinstance(cur_obj, bool):
            minimum = sch.get("minimum")
            if minimum is not None and float(cur_obj) < float(minimum):
                err(cur_path, "minimum", f"must be >= {minimum}", cur_obj)
            maximum = sch.get("maximum")
            if maximum is not None and float(cur_obj) > float(maximum):
                err(cur_path, "maximum", f"must be <= {maximum}", cur_obj)

        # Objects
        if isinstance(cur_obj, dict):
            required = sch.get("required")
            if isinstance(required, list):
                for k in required:
                    if k not in cur_obj:
                        err(cur_path, "required", f"must have required property '{k}'")

            props = sch.get("properties")
            props = props if isinstance(props, dict) else {}
            for k in sorted(props.keys()):
                if k in cur_obj:
                    walk(cur_obj[k], props[k], f"{cur_path}.{k}")

            pattern_props = sch.get("patternProperties")
            pattern_props = pattern_props if isinstance(pattern_props, dict) else {}
            matched_by_pattern: set[str] = set()
            for patt_key in sorted(pattern_props.keys()):
                for k in sorted(cur_obj.keys()):
                    if re.search(patt_key, k) is not None:
                        matched_by_pattern.add(k)
                        walk(cur_obj[k], pattern_props[patt_key], f"{cur_path}.{k}")

            if "additionalProperties" in sch:
                addl = sch.get("additionalProperties")
                extra = sorted(k for k in cur_obj.keys() if k not in props and k not in matched_by_pattern)
                for k in extra:
                    if addl is False:
                        err(f"{cur_path}.{k}", "additionalProperties", "must NOT have additional properties", cur_obj[k])
                    elif isinstance(addl, dict):
                        walk(cur_obj[k], addl, f"{cur_path}.{k}")

        # Arrays
        if isinstance(cur_obj, list):
            min_items = sch.get("minItems")
            if min_items is not None and len(cur_obj) < int(min_items):
                err(cur_path, "minItems", f"must NOT have fewer than {min_items} items", cur_obj)

            max_items = sch.get("maxItems")
            if max_items is not None and len(cur_obj) > int(max_items):
                err(cur_path, "maxItems", f"must NOT have more than {max_items} items", cur_obj)

            if sch.get("uniqueItems") is True:
                seen: list[Any] = []
                for i, item in enumerate(cur_obj):
                    if item in seen:
                        err(f"{cur_path}[{i}]", "uniqueItems", "must NOT have duplicate items", item)
                    else:
                        seen.append(item)

            item_schema = sch.get("items")
            if isinstance(item_schema, (dict, bool)):
                for i, item in enumerate(cur_obj):
                    walk(item, item_schema, f"{cur_path}[{i}]")

    walk(obj, schema, path)
    errors.sort(key=lambda e: (e.path, e.keyword, e.message))
    return errors
