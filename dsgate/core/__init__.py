"""Lowest-level dsgate utilities.

Dependency direction rules:
- dsgate.core must not import any other dsgate module
"""

from dsgate.core.json_canon import append_jsonl, pretty_json_text, read_json, write_json
from dsgate.core.paths import expand_braces, matches_any
from dsgate.core.schema import SchemaError, json_type_name, parse_rfc3339, validate_schema
from dsgate.core.time import filename_stamp, utc_timestamp_iso_z

__all__ = [
	"SchemaError",
	"append_jsonl",
	"expand_braces",
	"filename_stamp",
	"json_type_name",
	"matches_any",
	"parse_rfc3339",
	"pretty_json_text",
	"read_json",
	"utc_timestamp_iso_z",
	"validate_schema",
	"write_json",
]
