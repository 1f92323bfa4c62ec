from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from dsgate.backup_store import AuditLog, FileBackupStore, MemoryBackupStore
from dsgate.errors import PatchFileError
from dsgate.mutate import BatchMutator, coerce_patch_list, load_patches, patch_problem
from dsgate.rollback import RollbackEngine
from dsgate.schema_validator import SchemaValidator


def _write_json(path: Path, obj: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2) + "\n", encoding="utf-8", newline="\n")


VALID_ADD = {"op": "add", "path": "/components/-", "value": {"name": "Badge"}}
MALFORMED = {"op": "frobnicate", "path": "/name"}
VALID_REPLACE = {"op": "replace", "path": "/version", "value": "2.0.0"}


def test_partial_failure_applies_the_valid_patches(validator: SchemaValidator, registry: dict[str, Any]) -> None:
    mutator = BatchMutator(validator, MemoryBackupStore())
    result = mutator.apply_mutations(registry, [VALID_ADD, MALFORMED, VALID_REPLACE])

    assert result.success is True
    assert result.mutations == 3
    assert result.successful == 2
    assert len(result.failed) == 1
    assert result.failed[0].index == 1
    assert "invalid op" in result.failed[0].error
    assert result.mutated_document["components"][-1] == {"name": "Badge"}
    assert result.mutated_document["version"] == "2.0.0"


def test_failed_patch_leaves_prior_state(validator: SchemaValidator, registry: dict[str, Any]) -> None:
    patches = [
        {"op": "replace", "path": "/name", "value": "renamed"},
        {"op": "remove", "path": "/does/not/exist"},
        {"op": "test", "path": "/name", "value": "acme-ui"},
    ]
    result = BatchMutator(validator, MemoryBackupStore()).apply_mutations(registry, patches)
    assert [f.index for f in result.failed] == [1, 2]
    assert result.mutated_document["name"] == "renamed"


def test_input_document_is_not_mutated(validator: SchemaValidator, registry: dict[str, Any]) -> None:
    before = copy.deepcopy(registry)
    BatchMutator(validator, MemoryBackupStore()).apply_mutations(registry, [VALID_REPLACE])
    assert registry == before


def test_backup_holds_pre_mutation_document(tmp_path: Path, validator: SchemaValidator, registry: dict[str, Any]) -> None:
    backups = tmp_path / "backups"
    store = FileBackupStore(backups)
    original = copy.deepcopy(registry)

    result = BatchMutator(validator, store).apply_mutations(registry, [VALID_REPLACE])

    files = list(backups.iterdir())
    assert len(files) == 1
    assert result.backup_path == str(files[0])
    assert json.loads(files[0].read_text(encoding="utf-8")) == original


def test_no_backup_and_dry_run_write_nothing(tmp_path: Path, validator: SchemaValidator, registry: dict[str, Any]) -> None:
    store = FileBackupStore(tmp_path / "backups")
    log = AuditLog(tmp_path / "audit.jsonl")
    out = tmp_path / "out.json"
    mutator = BatchMutator(validator, store, audit_log=log)

    dry = mutator.apply_mutations(registry, [VALID_REPLACE], dry_run=True, output_path=out)
    assert dry.dry_run is True
    assert dry.backup_path is None
    assert dry.mutated_document["version"] == "2.0.0"
    assert not out.exists()
    assert not log.path.exists()

    mutator.apply_mutations(registry, [VALID_REPLACE], create_backup=False, output_path=out)
    assert store.list() == []
    assert json.loads(out.read_text(encoding="utf-8"))["version"] == "2.0.0"


def test_undo_round_trip(validator: SchemaValidator, registry: dict[str, Any]) -> None:
    patches = [
        VALID_ADD,
        VALID_REPLACE,
        {"op": "remove", "path": "/components/1"},
        {"op": "copy", "from": "/name", "path": "/description"},
        {"op": "move", "from": "/tokens/spacing", "path": "/tokens/space"},
    ]
    store = MemoryBackupStore()
    mutated = BatchMutator(validator, store).apply_mutations(registry, patches)
    assert mutated.failed == []
    assert mutated.undo_patches

    rolled = RollbackEngine(validator, store).rollback_with_patch(
        mutated.mutated_document, mutated.undo_patches, create_backup=False
    )
    assert rolled.rolled_back_state == registry


def test_outputs_undo_file_and_audit_entry(tmp_path: Path, validator: SchemaValidator, registry: dict[str, Any]) -> None:
    out = tmp_path / "out.json"
    undo = tmp_path / "undo.json"
    log = AuditLog(tmp_path / "audit.jsonl")
    mutator = BatchMutator(validator, FileBackupStore(tmp_path / "b"), audit_log=log)

    result = mutator.apply_mutations(
        registry,
        [VALID_REPLACE, MALFORMED],
        output_path=out,
        undo_path=undo,
        source_path="registry.json",
    )

    assert json.loads(undo.read_text(encoding="utf-8")) == {"undoPatches": result.undo_patches}
    entries = log.entries()
    assert len(entries) == 1
    assert entries[0]["type"] == "mutation"
    assert entries[0]["sourcePath"] == "registry.json"
    assert entries[0]["outputPath"] == str(out)
    assert entries[0]["appliedOpsCount"] == 1
    assert entries[0]["undoPath"] == str(undo)
    assert entries[0]["backupPath"] == result.backup_path


def test_diff_summary(validator: SchemaValidator, registry: dict[str, Any]) -> None:
    mutator = BatchMutator(validator, MemoryBackupStore())
    changed = mutator.apply_mutations(registry, [VALID_REPLACE]).diff
    assert changed["hasChanges"] is True
    assert changed["changes"][0]["type"] == "modified"
    unchanged = mutator.apply_mutations(registry, []).diff
    assert unchanged == {"hasChanges": False, "changes": [], "summary": "0 change(s) detected"}


def test_advisory_validation_never_fails(validator: SchemaValidator, registry: dict[str, Any]) -> None:
    bad = {"op": "replace", "path": "/version", "value": "not-semver"}
    result = BatchMutator(validator, MemoryBackupStore()).apply_mutations(registry, [bad])
    assert result.success is True
    assert result.successful == 1
    assert any(w.startswith("post-mutation: $.version") for w in result.validation_warnings)

    skipped = BatchMutator(validator, MemoryBackupStore()).apply_mutations(registry, [bad], validate=False)
    assert skipped.validation_warnings == []


def test_to_dict_shape(validator: SchemaValidator, registry: dict[str, Any]) -> None:
    d = BatchMutator(validator, MemoryBackupStore()).apply_mutations(registry, [MALFORMED]).to_dict()
    assert d["failed"][0]["index"] == 0
    assert set(d) >= {"success", "mutations", "successful", "failed", "diff", "undoPatches", "mutatedDocument"}


def test_restore_copies_backup(tmp_path: Path, validator: SchemaValidator) -> None:
    backup = tmp_path / "b.json"
    target = tmp_path / "registry.json"
    _write_json(backup, {"name": "old"})
    _write_json(target, {"name": "new"})
    BatchMutator(validator, MemoryBackupStore()).restore(backup, target)
    assert json.loads(target.read_text(encoding="utf-8")) == {"name": "old"}
    with pytest.raises(FileNotFoundError):
        BatchMutator(validator, MemoryBackupStore()).restore(tmp_path / "missing.json", target)


class TestPatchFiles:
    @pytest.mark.parametrize(
        "data",
        [
            [VALID_REPLACE],
            {"patches": [VALID_REPLACE]},
            {"undoPatches": [VALID_REPLACE]},
        ],
    )
    def test_three_accepted_shapes(self, tmp_path: Path, data: object) -> None:
        p = tmp_path / "patch.json"
        _write_json(p, data)
        assert load_patches(p) == [VALID_REPLACE]

    def test_unknown_shape(self) -> None:
        with pytest.raises(PatchFileError, match="Invalid patch file format"):
            coerce_patch_list({"ops": []})

    def test_missing_and_broken_files(self, tmp_path: Path) -> None:
        with pytest.raises(PatchFileError, match="not found"):
            load_patches(tmp_path / "nope.json")
        broken = tmp_path / "broken.json"
        broken.write_text("[{", encoding="utf-8")
        with pytest.raises(PatchFileError, match="not valid JSON"):
            load_patches(broken)


@pytest.mark.parametrize(
    "patch, problem",
    [
        ("replace", "patch must be an object"),
        ({"op": "add", "path": "/x"}, "'add' requires a value"),
        ({"op": "move", "path": "/x"}, "'move' requires a string 'from'"),
        ({"op": "remove", "path": 3}, "path must be a string"),
    ],
)
def test_patch_problem(patch: object, problem: str) -> None:
    assert patch_problem(patch) == problem


def test_well_formed_patch_has_no_problem() -> None:
    assert patch_problem({"op": "remove", "path": "/x"}) is None
