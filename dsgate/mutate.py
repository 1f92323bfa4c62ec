"""Batch mutation engine.

Patches are applied one at a time on a deep copy of the document. A failing
patch is recorded and skipped; the document keeps the state from before that
patch and the remaining patches still run. Callers decide whether a partially
applied batch is acceptable by inspecting ``failed``.

Schema validation before and after the batch is advisory: problems are
printed in verbose mode and never change the result.
"""

from __future__ import annotations

import copy
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonpatch
import jsonpointer

from dsgate.backup_store import MUTATION_PREFIX, AuditLog, BackupStore
from dsgate.core.json_canon import pretty_json_text, read_json, write_json
from dsgate.errors import PatchFileError
from dsgate.schema_validator import SchemaValidator, advisory_check


PATCH_OPS = ("add", "remove", "replace", "move", "copy", "test")
_OPS_NEEDING_VALUE = ("add", "replace", "test")
_OPS_NEEDING_FROM = ("move", "copy")

PATCH_ERRORS = (
    jsonpatch.JsonPatchException,
    jsonpointer.JsonPointerException,
    KeyError,
    IndexError,
    TypeError,
    ValueError,
)


@dataclass(frozen=True)
class FailedPatch:
    index: int
    patch: Any
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "patch": self.patch, "error": self.error}


@dataclass
class MutationResult:
    success: bool
    mutations: int
    successful: int
    failed: list[FailedPatch]
    mutated_document: Any
    diff: dict[str, Any]
    undo_patches: list[dict[str, Any]]
    backup_path: str | None = None
    dry_run: bool = False
    validation_warnings: list[str] = field(default_factory=list)

    def to_dict(self, *, include_document: bool = True) -> dict[str, Any]:
        out: dict[str, Any] = {
            "success": self.success,
            "mutations": self.mutations,
            "successful": self.successful,
            "failed": [f.to_dict() for f in self.failed],
            "diff": self.diff,
            "undoPatches": self.undo_patches,
            "backupPath": self.backup_path,
            "dryRun": self.dry_run,
        }
        if include_document:
            out["mutatedDocument"] = self.mutated_document
        return out


def patch_problem(patch: Any) -> str | None:
    """Return why a patch is structurally malformed, or None if it is well-formed."""

    if not isinstance(patch, dict):
        return "patch must be an object"
    op = patch.get("op")
    if op not in PATCH_OPS:
        return f"invalid op {op!r} (expected one of {', '.join(PATCH_OPS)})"
    if not isinstance(patch.get("path"), str):
        return "path must be a string"
    if op in _OPS_NEEDING_VALUE and "value" not in patch:
        return f"'{op}' requires a value"
    if op in _OPS_NEEDING_FROM and not isinstance(patch.get("from"), str):
        return f"'{op}' requires a string 'from'"
    return None


def apply_single_patch(document: Any, patch: dict[str, Any]) -> Any:
    """Apply one well-formed patch, returning a new document (input untouched)."""

    problem = patch_problem(patch)
    if problem is not None:
        raise ValueError(f"Invalid patch structure: {problem}: {json.dumps(patch, sort_keys=True)}")
    return jsonpatch.apply_patch(document, [patch], in_place=False)


def make_undo_patches(mutated: Any, original: Any) -> list[dict[str, Any]]:
    """RFC-6902 operations that turn ``mutated`` back into ``original``."""

    return list(jsonpatch.make_patch(mutated, original).patch)


def compute_diff(original: Any, modified: Any) -> dict[str, Any]:
    original_text = pretty_json_text(original)
    modified_text = pretty_json_text(modified)
    changes: list[dict[str, Any]] = []
    if original_text != modified_text:
        changes.append(
            {
                "type": "modified",
                "description": "registry structure changed",
                "original": len(original_text.encode("utf-8")),
                "modified": len(modified_text.encode("utf-8")),
            }
        )
    return {
        "hasChanges": len(changes) > 0,
        "changes": changes,
        "summary": f"{len(changes)} change(s) detected",
    }


def load_patches(path: Path) -> list[Any]:
    """Read a patch file: a bare list, {"patches": [...]} or {"undoPatches": [...]}."""

    if not path.exists():
        raise PatchFileError(f"Patch file not found: {path}")
    try:
        data = read_json(path)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PatchFileError(f"Patch file is not valid JSON: {path}: {e}") from e
    return coerce_patch_list(data, where=str(path))


def coerce_patch_list(data: Any, *, where: str = "patch data") -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("patches", "undoPatches"):
            if isinstance(data.get(key), list):
                return data[key]
    raise PatchFileError(f"Invalid patch file format: {where} (expected a list, {{patches}} or {{undoPatches}})")


class BatchMutator:
    def __init__(
        self,
        validator: SchemaValidator,
        store: BackupStore,
        *,
        audit_log: AuditLog | None = None,
        verbose: bool = False,
    ):
        self.validator = validator
        self.store = store
        self.audit_log = audit_log
        self.verbose = verbose

    def _log(self, msg: str) -> None:
        if self.verbose:
            print(f"[dsgate mutate] {msg}", file=sys.stderr)

    def _advisory_validate(self, document: Any, stage: str) -> list[str]:
        problems = advisory_check(self.validator, document)
        if problems:
            self._log(f"WARNING: schema validation failed ({stage}), continuing: " + "; ".join(problems))
        else:
            self._log(f"schema validation passed ({stage})")
        return [f"{stage}: {p}" for p in problems]

    def apply_mutations(
        self,
        document: Any,
        patches: list[Any],
        *,
        dry_run: bool = False,
        create_backup: bool = True,
        validate: bool = True,
        output_path: Path | None = None,
        undo_path: Path | None = None,
        source_path: str | None = None,
    ) -> MutationResult:
        self._log(f"processing {len(patches)} patch(es)" + (" (dry run)" if dry_run else ""))

        backup_path: str | None = None
        if create_backup and not dry_run:
            backup_path = self.store.save(document, prefix=MUTATION_PREFIX)
            self._log(f"backup: {backup_path}")

        warnings: list[str] = []
        if validate:
            warnings.extend(self._advisory_validate(document, "pre-mutation"))

        original = copy.deepcopy(document)
        current = copy.deepcopy(document)
        successful = 0
        failed: list[FailedPatch] = []
        for index, patch in enumerate(patches):
            try:
                current = apply_single_patch(current, patch)
            except PATCH_ERRORS as e:
                failed.append(FailedPatch(index=index, patch=patch, error=str(e) or type(e).__name__))
                self._log(f"FAIL patch {index + 1}: {e}")
                continue
            successful += 1
            self._log(f"ok patch {index + 1}: {patch.get('op')} {patch.get('path')}")

        if validate:
            warnings.extend(self._advisory_validate(current, "post-mutation"))

        undo_patches = make_undo_patches(current, original)

        if not dry_run and output_path is not None:
            write_json(output_path, current)
            self._log(f"wrote: {output_path}")

        if not dry_run and undo_path is not None:
            write_json(undo_path, {"undoPatches": undo_patches})
            self._log(f"undo patch: {undo_path}")

        if not dry_run and self.audit_log is not None:
            self.audit_log.append(
                entry_type="mutation",
                source_path=source_path,
                output_path=str(output_path) if output_path is not None else None,
                backup_path=backup_path,
                applied_ops_count=successful,
                undoPath=str(undo_path) if undo_path is not None else None,
            )

        self._log(f"applied {successful} of {len(patches)} patch(es)")
        return MutationResult(
            success=True,
            mutations=len(patches),
            successful=successful,
            failed=failed,
            mutated_document=current,
            diff=compute_diff(original, current),
            undo_patches=undo_patches,
            backup_path=backup_path,
            dry_run=dry_run,
            validation_warnings=warnings,
        )

    def restore(self, backup_path: Path, target_path: Path) -> None:
        """Copy a backup file's document over target_path."""

        if not backup_path.exists():
            raise FileNotFoundError(f"Backup file not found: {backup_path}")
        write_json(target_path, read_json(backup_path))
        self._log(f"restored {target_path} from {backup_path}")
