from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from dsgate.backup_store import AuditLog, FileBackupStore
from dsgate.rollback import RollbackEngine, rollback_from_source
from dsgate.schema_validator import SchemaValidator


def _engine(*, backup_dir: Path, audit_log_path: Path | None, validate: bool, verbose: bool) -> RollbackEngine:
    return RollbackEngine(
        SchemaValidator(verbose=verbose),
        FileBackupStore(backup_dir),
        audit_log=AuditLog(audit_log_path) if audit_log_path is not None else None,
        validate_on_rollback=validate,
        verbose=verbose,
    )


def run_rollback_list(*, backup_dir: Path, json_output: bool) -> int:
    engine = _engine(backup_dir=backup_dir, audit_log_path=None, validate=False, verbose=False)
    points = engine.list_rollback_points()
    if json_output:
        print(json.dumps({"rollbackPoints": [p.to_dict() for p in points]}, indent=2))
        return 0
    if not points:
        print(f"No backups found in {backup_dir}")
        return 0
    print(f"📋 {len(points)} rollback point(s) in {backup_dir}:")
    for p in points:
        created = datetime.fromtimestamp(p.created, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        print(f"  {created}  {p.size:>8} B  {p.path}")
    return 0


def run_rollback_cleanup(*, backup_dir: Path, keep: int, verbose: bool, json_output: bool) -> int:
    if keep < 0:
        raise ValueError("--keep must be >= 0")
    engine = _engine(backup_dir=backup_dir, audit_log_path=None, validate=False, verbose=verbose)
    results = engine.cleanup_backups(keep)
    deleted = [r.path for r in results if r.ok]
    failed = [{"path": r.path, "error": r.error} for r in results if not r.ok]
    if json_output:
        print(json.dumps({"deleted": deleted, "failed": failed, "kept": keep}, indent=2))
    else:
        print(f"🧹 Removed {len(deleted)} old backup(s), keeping the {keep} most recent")
    return 0


def run_rollback(
    *,
    registry_path: Path,
    source: str | None,
    output_path: Path | None,
    create_backup: bool,
    validate: bool,
    backup_dir: Path,
    audit_log_path: Path,
    verbose: bool,
    json_output: bool,
) -> int:
    engine = _engine(backup_dir=backup_dir, audit_log_path=audit_log_path, validate=validate, verbose=verbose)
    result = rollback_from_source(
        engine,
        registry_path,
        source,
        output_path=output_path,
        create_backup=create_backup,
    )
    target = output_path if output_path is not None else registry_path

    if json_output:
        payload = result.to_dict(include_document=False)
        payload["output"] = str(target)
        payload["validationWarnings"] = result.validation_warnings
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    print(f"✅ Rollback complete ({result.method}): {target}")
    if result.patches_applied is not None:
        print(f"↩️  Applied {result.patches_applied} undo patches")
    if result.backup_path:
        print(f"💾 Pre-rollback backup: {result.backup_path}")
    for w in result.validation_warnings:
        print(f"⚠️  {w}")
    return 0
