from __future__ import annotations

import json
from pathlib import Path

from dsgate.core.json_canon import read_json
from dsgate.schema_validator import SchemaValidator


def run_schema_list(*, json_output: bool) -> int:
    names = SchemaValidator().available_schemas()
    if json_output:
        print(json.dumps({"schemas": names}))
    else:
        for name in names:
            print(name)
    return 0


def run_schema_check(*, document_path: Path, schema_name: str | None, verbose: bool, json_output: bool) -> int:
    if not document_path.exists():
        raise FileNotFoundError(f"File not found: {document_path}")
    document = read_json(document_path)
    validator = SchemaValidator(verbose=verbose)
    if schema_name is None:
        result = validator.validate_detected(document)
    else:
        result = validator.validate(document, schema_name)
    tag = result.schema_name

    if json_output:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif result.valid:
        print(f"✅ {document_path} is a valid {tag}")
    else:
        print(f"❌ {document_path} failed {tag} schema validation ({len(result.errors)} errors)")
        for e in result.errors:
            print(f"  - {e['path']}: {e['message']}")
    return 0 if result.valid else 1
