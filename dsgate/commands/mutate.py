from __future__ import annotations

import json
import sys
from pathlib import Path

from dsgate.backup_store import AuditLog, FileBackupStore
from dsgate.core.json_canon import read_json
from dsgate.mutate import BatchMutator, load_patches
from dsgate.schema_validator import SchemaValidator


def run_mutate(
    *,
    registry_path: Path,
    patch_path: Path,
    output_path: Path,
    undo_path: Path | None,
    dry_run: bool,
    create_backup: bool,
    backup_dir: Path,
    audit_log_path: Path,
    verbose: bool,
    json_output: bool,
) -> int:
    if not registry_path.exists():
        raise FileNotFoundError(f"Registry file not found: {registry_path}")
    document = read_json(registry_path)
    patches = load_patches(patch_path)

    mutator = BatchMutator(
        SchemaValidator(verbose=verbose),
        FileBackupStore(backup_dir),
        audit_log=AuditLog(audit_log_path),
        verbose=verbose,
    )
    result = mutator.apply_mutations(
        document,
        patches,
        dry_run=dry_run,
        create_backup=create_backup,
        output_path=output_path,
        undo_path=undo_path,
        source_path=str(registry_path),
    )

    if json_output:
        payload = result.to_dict(include_document=dry_run)
        payload["output"] = None if dry_run else str(output_path)
        payload["undo"] = None if dry_run or undo_path is None else str(undo_path)
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    if dry_run:
        print(f"🔍 DRY RUN: Would apply {result.successful} of {result.mutations} mutations")
        print(f"   Registry: {registry_path}")
        print(f"   Patch: {patch_path}")
        print(f"   Output: {output_path}")
        if undo_path is not None:
            print(f"   Undo: {undo_path}")
    else:
        print(f"✅ Applied {result.successful} of {result.mutations} mutations -> {output_path}")
        if result.backup_path:
            print(f"💾 Backup: {result.backup_path}")
        if undo_path is not None:
            print(f"↩️  Undo patch available: {undo_path}")
    for f in result.failed:
        print(f"[dsgate mutate] patch {f.index + 1} failed: {f.error}", file=sys.stderr)
    return 0
