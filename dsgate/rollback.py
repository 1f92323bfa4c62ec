"""Rollback engine.

Undo-patch rollback is all-or-nothing: the first failing undo patch aborts
the rollback, nothing is written and the pre-rollback snapshot is discarded.
Restoring a snapshot is always allowed; schema validation of the restored
state only produces warnings.
"""

from __future__ import annotations

import copy
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dsgate.backup_store import ROLLBACK_PREFIX, AuditLog, BackupEntry, BackupStore, DeleteResult
from dsgate.core.json_canon import read_json, write_json
from dsgate.errors import PatchFileError, RollbackError
from dsgate.mutate import PATCH_ERRORS, apply_single_patch, load_patches
from dsgate.schema_validator import SchemaValidator, advisory_check


DEFAULT_UNDO_FILENAMES = ("undo.json", "mutation-undo.json", ".last-undo.json")


@dataclass
class RollbackResult:
    success: bool
    method: str  # "patch" | "backup"
    rolled_back_state: Any
    backup_path: str | None = None
    patches_applied: int | None = None
    validation_warnings: list[str] = field(default_factory=list)

    def to_dict(self, *, include_document: bool = True) -> dict[str, Any]:
        out: dict[str, Any] = {
            "success": self.success,
            "method": self.method,
            "backupPath": self.backup_path,
        }
        if self.patches_applied is not None:
            out["patchesApplied"] = self.patches_applied
        if include_document:
            out["rolledBackState"] = self.rolled_back_state
        return out


@dataclass(frozen=True)
class RollbackPoint:
    type: str  # "backup" | "patch"
    path: str


def _load_document(path: Path, *, what: str) -> Any:
    if not path.exists():
        raise RollbackError(f"{what} not found: {path}")
    try:
        return read_json(path)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RollbackError(f"{what} is not valid JSON: {path}: {e}") from e


class RollbackEngine:
    def __init__(
        self,
        validator: SchemaValidator,
        store: BackupStore,
        *,
        audit_log: AuditLog | None = None,
        validate_on_rollback: bool = True,
        undo_candidates: tuple[str, ...] = DEFAULT_UNDO_FILENAMES,
        undo_search_dir: Path | None = None,
        verbose: bool = False,
    ):
        self.validator = validator
        self.store = store
        self.audit_log = audit_log
        self.validate_on_rollback = validate_on_rollback
        self.undo_candidates = undo_candidates
        self.undo_search_dir = undo_search_dir
        self.verbose = verbose

    def _log(self, msg: str) -> None:
        if self.verbose:
            print(f"[dsgate rollback] {msg}", file=sys.stderr)

    def _check_state(self, state: Any) -> list[str]:
        if not self.validate_on_rollback:
            return []
        problems = advisory_check(self.validator, state)
        if problems:
            self._log("WARNING: rolled-back state failed validation: " + "; ".join(problems))
        return problems

    def _snapshot(self, state: Any, create_backup: bool) -> str | None:
        if not create_backup or state is None:
            return None
        ref = self.store.save(state, prefix=ROLLBACK_PREFIX)
        self._log(f"pre-rollback backup: {ref}")
        return ref

    def _discard_snapshot(self, ref: str | None) -> None:
        # An aborted rollback must not become the newest rollback point.
        if ref is None:
            return
        result = self.store.discard(ref)
        if result.ok:
            self._log(f"discarded pre-rollback backup: {ref}")
        else:
            self._log(f"WARNING: failed to discard pre-rollback backup {ref}: {result.error}")

    # -- in-memory operations -------------------------------------------------

    def rollback_with_patch(
        self,
        document: Any,
        undo_patches: list[Any],
        *,
        create_backup: bool = True,
    ) -> RollbackResult:
        if not isinstance(undo_patches, list) or len(undo_patches) == 0:
            raise RollbackError("No undo patches to apply")

        backup_path = self._snapshot(document, create_backup)

        state = copy.deepcopy(document)
        for index, patch in enumerate(undo_patches):
            try:
                state = apply_single_patch(state, patch)
            except PATCH_ERRORS as e:
                self._discard_snapshot(backup_path)
                raise RollbackError(f"Failed to apply undo patch {index + 1}: {e}") from e
            self._log(f"ok undo patch {index + 1}: {patch.get('op')} {patch.get('path')}")

        return RollbackResult(
            success=True,
            method="patch",
            rolled_back_state=state,
            backup_path=backup_path,
            patches_applied=len(undo_patches),
            validation_warnings=self._check_state(state),
        )

    def rollback_with_backup(
        self,
        document: Any,
        backup_document: Any,
        *,
        create_backup: bool = True,
    ) -> RollbackResult:
        backup_path = self._snapshot(document, create_backup)
        state = copy.deepcopy(backup_document)
        return RollbackResult(
            success=True,
            method="backup",
            rolled_back_state=state,
            backup_path=backup_path,
            validation_warnings=self._check_state(state),
        )

    # -- file operations ------------------------------------------------------

    def _finish(
        self,
        result: RollbackResult,
        *,
        registry_path: Path,
        output_path: Path | None,
        restored_from: str,
        log_rollback: bool,
    ) -> RollbackResult:
        target = output_path if output_path is not None else registry_path
        write_json(target, result.rolled_back_state)
        self._log(f"wrote: {target}")
        if log_rollback and self.audit_log is not None:
            self.audit_log.append(
                entry_type="rollback",
                source_path=str(registry_path),
                output_path=str(target),
                backup_path=result.backup_path,
                applied_ops_count=result.patches_applied or 0,
                method=result.method,
                restoredFrom=restored_from,
            )
        return result

    def rollback_file_with_patch(
        self,
        registry_path: Path,
        undo_path: Path,
        *,
        output_path: Path | None = None,
        create_backup: bool = True,
        log_rollback: bool = True,
    ) -> RollbackResult:
        current = _load_document(registry_path, what="Registry file")
        try:
            undo_patches = load_patches(undo_path)
        except PatchFileError as e:
            raise RollbackError(str(e)) from e
        result = self.rollback_with_patch(current, undo_patches, create_backup=create_backup)
        return self._finish(
            result,
            registry_path=registry_path,
            output_path=output_path,
            restored_from=str(undo_path),
            log_rollback=log_rollback,
        )

    def rollback_file_with_backup(
        self,
        registry_path: Path,
        backup_ref: str,
        *,
        output_path: Path | None = None,
        create_backup: bool = True,
        log_rollback: bool = True,
    ) -> RollbackResult:
        try:
            backup_document = self.store.load(backup_ref)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RollbackError(f"Cannot read backup {backup_ref}: {e}") from e
        current = _load_document(registry_path, what="Registry file") if create_backup else None
        result = self.rollback_with_backup(current, backup_document, create_backup=create_backup)
        return self._finish(
            result,
            registry_path=registry_path,
            output_path=output_path,
            restored_from=backup_ref,
            log_rollback=log_rollback,
        )

    def find_last_rollback_point(self) -> RollbackPoint | None:
        backups = self.store.list()
        if backups:
            return RollbackPoint(type="backup", path=backups[0].path)
        base = self.undo_search_dir if self.undo_search_dir is not None else Path.cwd()
        for name in self.undo_candidates:
            candidate = base / name
            if candidate.is_file():
                return RollbackPoint(type="patch", path=str(candidate))
        return None

    def rollback_last(
        self,
        registry_path: Path,
        *,
        output_path: Path | None = None,
        create_backup: bool = True,
        log_rollback: bool = True,
    ) -> RollbackResult:
        point = self.find_last_rollback_point()
        if point is None:
            raise RollbackError("No rollback information found")
        self._log(f"last rollback point: {point.type} {point.path}")
        if point.type == "patch":
            return self.rollback_file_with_patch(
                registry_path,
                Path(point.path),
                output_path=output_path,
                create_backup=create_backup,
                log_rollback=log_rollback,
            )
        return self.rollback_file_with_backup(
            registry_path,
            point.path,
            output_path=output_path,
            create_backup=create_backup,
            log_rollback=log_rollback,
        )

    # -- housekeeping -----------------------------------------------------------

    def list_rollback_points(self) -> list[BackupEntry]:
        return self.store.list()

    def cleanup_backups(self, keep_count: int = 10) -> list[DeleteResult]:
        results = self.store.prune(keep_count)
        for r in results:
            if not r.ok:
                self._log(f"WARNING: failed to delete backup {r.path}: {r.error}")
        deleted = sum(1 for r in results if r.ok)
        if deleted:
            self._log(f"cleaned up {deleted} old backup file(s)")
        return results


def rollback_from_source(
    engine: RollbackEngine,
    registry_path: Path,
    source: str | None,
    *,
    output_path: Path | None = None,
    create_backup: bool = True,
) -> RollbackResult:
    """Dispatch 'last', a backup file or an undo-patch file to the right rollback."""

    if source is None or source == "last":
        return engine.rollback_last(registry_path, output_path=output_path, create_backup=create_backup)
    if source.endswith(".json"):
        name = Path(source).name
        if "backup" in name or "undo" not in name:
            return engine.rollback_file_with_backup(
                registry_path, source, output_path=output_path, create_backup=create_backup
            )
        return engine.rollback_file_with_patch(
            registry_path, Path(source), output_path=output_path, create_backup=create_backup
        )
    raise RollbackError('Invalid rollback source. Use "last", a backup file path, or an undo patch path.')
