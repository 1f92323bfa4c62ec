"""Snapshot storage and the append-only audit log.

The backup directory is a single-writer resource: saving and pruning must not
run concurrently from several processes against the same directory. Backups
are never rewritten once saved.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from dsgate.core.json_canon import append_jsonl, pretty_json_text, read_json
from dsgate.core.time import filename_stamp, utc_timestamp_iso_z


DEFAULT_BACKUP_DIR = ".dcp-backups"
DEFAULT_AUDIT_LOG = "mutations.log.jsonl"
MUTATION_PREFIX = "dcp"
ROLLBACK_PREFIX = "rollback"


@dataclass(frozen=True)
class BackupEntry:
    path: str
    filename: str
    created: float  # mtime, seconds since epoch
    size: int
    type: str = "backup"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "path": self.path, "filename": self.filename, "created": self.created, "size": self.size}


@dataclass(frozen=True)
class DeleteResult:
    path: str
    ok: bool
    error: str | None = None


def try_delete(path: Path) -> DeleteResult:
    try:
        path.unlink()
    except OSError as e:
        return DeleteResult(path=str(path), ok=False, error=str(e))
    return DeleteResult(path=str(path), ok=True)


def backup_filename(prefix: str, timestamp: str) -> str:
    return f"{prefix}-backup-{filename_stamp(timestamp)}.json"


class BackupStore(Protocol):
    def save(self, document: Any, *, prefix: str = MUTATION_PREFIX) -> str: ...

    def load(self, ref: str) -> Any: ...

    def list(self) -> list[BackupEntry]: ...

    def prune(self, keep_count: int) -> list[DeleteResult]: ...

    def discard(self, ref: str) -> DeleteResult: ...


class FileBackupStore:
    """One pretty-printed JSON file per snapshot under backup_dir."""

    def __init__(self, backup_dir: str | Path = DEFAULT_BACKUP_DIR):
        self.backup_dir = Path(backup_dir)

    def save(self, document: Any, *, prefix: str = MUTATION_PREFIX) -> str:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        name = backup_filename(prefix, utc_timestamp_iso_z())
        path = self.backup_dir / name
        n = 1
        while path.exists():
            # Same-millisecond snapshot: never overwrite an existing backup.
            path = self.backup_dir / f"{name[:-len('.json')]}-{n}.json"
            n += 1
        with path.open("x", encoding="utf-8", errors="strict", newline="\n") as f:
            f.write(pretty_json_text(document))
        return str(path)

    def load(self, ref: str) -> Any:
        return read_json(Path(ref))

    def list(self) -> list[BackupEntry]:
        if not self.backup_dir.is_dir():
            return []
        entries: list[BackupEntry] = []
        for p in self.backup_dir.iterdir():
            if not p.is_file() or not p.name.endswith(".json"):
                continue
            st = p.stat()
            entries.append(BackupEntry(path=str(p), filename=p.name, created=st.st_mtime, size=st.st_size))
        # Newest first; the timestamped filename breaks mtime ties.
        entries.sort(key=lambda e: (e.created, e.filename), reverse=True)
        return entries

    def prune(self, keep_count: int) -> list[DeleteResult]:
        if keep_count < 0:
            raise ValueError("keep_count must be >= 0")
        return [try_delete(Path(e.path)) for e in self.list()[keep_count:]]

    def discard(self, ref: str) -> DeleteResult:
        return try_delete(Path(ref))


class MemoryBackupStore:
    """In-process BackupStore; refs are synthetic 'memory://' names."""

    def __init__(self) -> None:
        self._items: list[tuple[str, Any]] = []
        self._seq = 0

    def save(self, document: Any, *, prefix: str = MUTATION_PREFIX) -> str:
        ref = f"memory://{backup_filename(prefix, utc_timestamp_iso_z())}#{self._seq}"
        self._seq += 1
        self._items.append((ref, copy.deepcopy(document)))
        return ref

    def load(self, ref: str) -> Any:
        for r, doc in self._items:
            if r == ref:
                return copy.deepcopy(doc)
        raise FileNotFoundError(f"Backup not found: {ref}")

    def list(self) -> list[BackupEntry]:
        out: list[BackupEntry] = []
        for i, (ref, doc) in enumerate(self._items):
            size = len(json.dumps(doc).encode("utf-8"))
            out.append(BackupEntry(path=ref, filename=ref.split("://", 1)[1], created=float(i), size=size))
        out.reverse()
        return out

    def prune(self, keep_count: int) -> list[DeleteResult]:
        if keep_count < 0:
            raise ValueError("keep_count must be >= 0")
        doomed = self.list()[keep_count:]
        refs = {e.path for e in doomed}
        self._items = [(r, d) for r, d in self._items if r not in refs]
        return [DeleteResult(path=e.path, ok=True) for e in doomed]

    def discard(self, ref: str) -> DeleteResult:
        kept = [(r, d) for r, d in self._items if r != ref]
        if len(kept) == len(self._items):
            return DeleteResult(path=ref, ok=False, error="Backup not found")
        self._items = kept
        return DeleteResult(path=ref, ok=True)


class AuditLog:
    """Append-only JSONL history of mutations and rollbacks."""

    def __init__(self, path: str | Path = DEFAULT_AUDIT_LOG):
        self.path = Path(path)

    def append(
        self,
        *,
        entry_type: str,
        source_path: str | None,
        output_path: str | None,
        backup_path: str | None,
        applied_ops_count: int,
        **extra: Any,
    ) -> dict[str, Any]:
        if entry_type not in ("mutation", "rollback"):
            raise ValueError(f"Invalid audit entry type: {entry_type}")
        entry: dict[str, Any] = {
            "timestamp": utc_timestamp_iso_z(),
            "type": entry_type,
            "sourcePath": source_path,
            "outputPath": output_path,
            "backupPath": backup_path,
            "appliedOpsCount": applied_ops_count,
        }
        for k, v in extra.items():
            if v is not None:
                entry[k] = v
        append_jsonl(self.path, entry)
        return entry

    def entries(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        out: list[dict[str, Any]] = []
        with self.path.open("r", encoding="utf-8", errors="strict") as f:
            for line in f:
                line = line.strip()
                if line:
                    out.append(json.loads(line))
        return out
