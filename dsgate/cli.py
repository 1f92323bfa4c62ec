#!/usr/bin/env python3
"""dsgate CLI: registry mutation, rollback and design system contract checks.

Subcommands:
- dsgate mutate       → Apply JSON Patch operations to a registry (with backup and undo)
- dsgate rollback     → Reverse a mutation from an undo patch, a backup or "last"
- dsgate validate     → Validate a registry document and its component contracts
- dsgate validate-ci  → Check source files against the registry (CI gate)
- dsgate schema       → Validate any document against a bundled schema

Exit codes:
- 0: success / valid
- 1: validation failed, or any error
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dsgate.backup_store import DEFAULT_AUDIT_LOG, DEFAULT_BACKUP_DIR
from dsgate.ci.engine import DEFAULT_GLOB, DEFAULT_IGNORES
from dsgate.ci.render import REPORT_FORMATS


def _fail(e: BaseException, *, json_output: bool) -> int:
    if json_output:
        print(json.dumps({"error": str(e)}), file=sys.stderr)
    else:
        print(f"❌ {e}", file=sys.stderr)
    return 1


# ---------------------------------------------------------------------------
# mutate
# ---------------------------------------------------------------------------

def cmd_mutate(args: argparse.Namespace) -> int:
    from dsgate.commands.mutate import run_mutate
    try:
        return run_mutate(
            registry_path=Path(args.registry),
            patch_path=Path(args.patch),
            output_path=Path(args.output),
            undo_path=Path(args.undo) if args.undo else None,
            dry_run=bool(args.dry_run),
            create_backup=not args.no_backup,
            backup_dir=Path(args.backup_dir),
            audit_log_path=Path(args.audit_log),
            verbose=bool(args.verbose),
            json_output=bool(args.json),
        )
    except Exception as e:
        return _fail(e, json_output=bool(args.json))


# ---------------------------------------------------------------------------
# rollback
# ---------------------------------------------------------------------------

def cmd_rollback(args: argparse.Namespace) -> int:
    from dsgate.commands.rollback import run_rollback, run_rollback_cleanup, run_rollback_list
    try:
        if args.list:
            return run_rollback_list(backup_dir=Path(args.backup_dir), json_output=bool(args.json))
        if args.cleanup:
            return run_rollback_cleanup(
                backup_dir=Path(args.backup_dir),
                keep=int(args.keep),
                verbose=bool(args.verbose),
                json_output=bool(args.json),
            )
        if not args.registry:
            raise ValueError("registry path required (or use --list / --cleanup)")
        return run_rollback(
            registry_path=Path(args.registry),
            source=args.source,
            output_path=Path(args.output) if args.output else None,
            create_backup=not args.no_backup,
            validate=not args.no_validate,
            backup_dir=Path(args.backup_dir),
            audit_log_path=Path(args.audit_log),
            verbose=bool(args.verbose),
            json_output=bool(args.json),
        )
    except Exception as e:
        return _fail(e, json_output=bool(args.json))


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------

def cmd_validate(args: argparse.Namespace) -> int:
    from dsgate.commands.validate import run_validate
    try:
        return run_validate(
            registry_path=Path(args.registry),
            strict=bool(args.strict),
            check_tokens=bool(args.check_tokens),
            check_examples=bool(args.check_examples),
            check_naming=bool(args.check_naming),
            verbose=bool(args.verbose),
            json_output=bool(args.json),
        )
    except Exception as e:
        return _fail(e, json_output=bool(args.json))


# ---------------------------------------------------------------------------
# validate-ci
# ---------------------------------------------------------------------------

def cmd_validate_ci(args: argparse.Namespace) -> int:
    from dsgate.commands.validate_ci import run_validate_ci
    try:
        return run_validate_ci(
            source_path=Path(args.source),
            registry_path=Path(args.registry),
            fmt=str(args.format),
            output_path=Path(args.output) if args.output else None,
            fail_on_violations=bool(args.fail_on_violations),
            json_output=bool(args.json),
            allowed_hardcoded_values=list(args.allow),
            glob_pattern=str(args.glob),
            ignore_patterns=list(args.ignore) if args.ignore else list(DEFAULT_IGNORES),
            check_tokens=not args.no_tokens,
            check_props=not args.no_props,
            check_variants=not args.no_variants,
            group_by=str(args.group_by),
            verbose=bool(args.verbose),
            no_color=bool(args.no_color),
        )
    except Exception as e:
        return _fail(e, json_output=bool(args.json))


# ---------------------------------------------------------------------------
# schema
# ---------------------------------------------------------------------------

def cmd_schema(args: argparse.Namespace) -> int:
    from dsgate.commands.schema import run_schema_check, run_schema_list
    try:
        if args.list:
            return run_schema_list(json_output=bool(args.json))
        if not args.document:
            raise ValueError("document path required (or use --list)")
        return run_schema_check(
            document_path=Path(args.document),
            schema_name=args.schema,
            verbose=bool(args.verbose),
            json_output=bool(args.json),
        )
    except Exception as e:
        return _fail(e, json_output=bool(args.json))


def _version() -> str:
    import dsgate

    return str(dsgate.__version__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dsgate",
        description="dsgate: component registry mutation, rollback and contract validation",
    )
    parser.add_argument("--version", action="version", version=f"dsgate {_version()}")
    subparsers = parser.add_subparsers(dest="command", help="Subcommand")

    # mutate
    p_mut = subparsers.add_parser("mutate", help="Apply JSON Patch mutations to a registry")
    p_mut.add_argument("registry", help="Registry JSON file")
    p_mut.add_argument("patch", help="Patch file: a list, {patches: [...]} or {undoPatches: [...]}")
    p_mut.add_argument("output", help="Where to write the mutated registry")
    p_mut.add_argument("--undo", help="Write the inverse patch set to this file")
    p_mut.add_argument("--dry-run", action="store_true", help="Preview changes without writing anything")
    p_mut.add_argument("--no-backup", action="store_true", help="Do not snapshot the registry first")
    p_mut.add_argument("--backup-dir", default=DEFAULT_BACKUP_DIR, help=f"Backup directory (default: {DEFAULT_BACKUP_DIR})")
    p_mut.add_argument("--audit-log", default=DEFAULT_AUDIT_LOG, help=f"Audit log path (default: {DEFAULT_AUDIT_LOG})")
    p_mut.add_argument("--verbose", action="store_true", help="Verbose output")
    p_mut.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    p_mut.set_defaults(func=cmd_mutate)

    # rollback
    p_rb = subparsers.add_parser("rollback", help="Roll back a mutation")
    p_rb.add_argument("registry", nargs="?", help="Registry JSON file to restore")
    p_rb.add_argument("source", nargs="?", default="last", help='Undo patch file, backup file or "last" (default: last)')
    p_rb.add_argument("output", nargs="?", help="Write the restored registry here instead of in place")
    p_rb.add_argument("--no-backup", action="store_true", help="Do not snapshot the current state first")
    p_rb.add_argument("--no-validate", action="store_true", help="Skip validation of the restored state")
    p_rb.add_argument("--list", action="store_true", help="List available rollback points")
    p_rb.add_argument("--cleanup", action="store_true", help="Delete all but the most recent backups")
    p_rb.add_argument("--keep", type=int, default=10, help="Backups kept by --cleanup (default: 10)")
    p_rb.add_argument("--backup-dir", default=DEFAULT_BACKUP_DIR, help=f"Backup directory (default: {DEFAULT_BACKUP_DIR})")
    p_rb.add_argument("--audit-log", default=DEFAULT_AUDIT_LOG, help=f"Audit log path (default: {DEFAULT_AUDIT_LOG})")
    p_rb.add_argument("--verbose", action="store_true", help="Verbose output")
    p_rb.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    p_rb.set_defaults(func=cmd_rollback)

    # validate
    p_val = subparsers.add_parser("validate", help="Validate a registry document")
    p_val.add_argument("registry", help="Registry JSON file")
    p_val.add_argument("--strict", action="store_true", help="Enable all example and token checks")
    p_val.add_argument("--check-tokens", action="store_true", help="Check component token usage")
    p_val.add_argument("--check-examples", action="store_true", help="Warn on variants unused by examples")
    p_val.add_argument("--check-naming", action="store_true", help="Check component/prop naming conventions")
    p_val.add_argument("--verbose", action="store_true", help="Verbose output")
    p_val.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    p_val.set_defaults(func=cmd_validate)

    # validate-ci
    p_ci = subparsers.add_parser("validate-ci", help="Check source files against the registry")
    p_ci.add_argument("source", help="Source directory (or a single file)")
    p_ci.add_argument("--registry", default="./registry", help="Registry file or directory with registry.json")
    p_ci.add_argument("--format", default="default", choices=REPORT_FORMATS, help="Report format")
    p_ci.add_argument("--output", help="Write the report to this file")
    p_ci.add_argument(
        "--fail-on-violations",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Exit 1 when error-severity violations are found (default: on)",
    )
    p_ci.add_argument("--allow", action="append", default=[], help="Allowed hard-coded value (repeatable)")
    p_ci.add_argument("--glob", default=DEFAULT_GLOB, help=f"File pattern (default: {DEFAULT_GLOB})")
    p_ci.add_argument("--ignore", action="append", default=[], help="Ignore pattern (repeatable; replaces defaults)")
    p_ci.add_argument("--no-tokens", action="store_true", help="Skip token and hard-coded value checks")
    p_ci.add_argument("--no-props", action="store_true", help="Skip prop contract checks")
    p_ci.add_argument("--no-variants", action="store_true", help="Skip variant checks")
    p_ci.add_argument("--group-by", default="type", help="Group default report by this violation field")
    p_ci.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    p_ci.add_argument("--verbose", action="store_true", help="Verbose output")
    p_ci.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    p_ci.set_defaults(func=cmd_validate_ci)

    # schema
    p_sch = subparsers.add_parser("schema", help="Validate a document against a bundled schema")
    p_sch.add_argument("document", nargs="?", help="JSON document")
    p_sch.add_argument("--schema", help="Schema name (default: detected from the document)")
    p_sch.add_argument("--list", action="store_true", help="List bundled schemas")
    p_sch.add_argument("--verbose", action="store_true", help="Verbose output")
    p_sch.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    p_sch.set_defaults(func=cmd_schema)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 1
    return int(func(args))


if __name__ == "__main__":
    sys.exit(main())
