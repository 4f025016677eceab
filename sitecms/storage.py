"""
File-backed collection store.

A collection is a JSON array of records, newest first. Every mutation is a
whole-file read-modify-write, serialized by a lock shared by all stores that
point at the same file, and persisted via temp file + atomic replace so a
reader never sees a half-written document.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import StorageCorruptError, StorageWriteError
from .logger import StructuredLogger, get_logger
from .retry import RetryError, exponential_backoff

Record = Dict[str, Any]

# Read once at import, before any worker threads exist
_UMASK = os.umask(0)
os.umask(_UMASK)

_file_locks: Dict[Path, threading.RLock] = {}
_file_locks_guard = threading.Lock()


def default_file_mode() -> int:
    """Mode a plain open() would give a new file under the process umask."""
    return 0o666 & ~_UMASK


def lock_for(path: Path) -> threading.RLock:
    """Return the process-wide lock for `path` (one per resolved file)."""
    key = Path(path).resolve()
    with _file_locks_guard:
        lock = _file_locks.get(key)
        if lock is None:
            lock = _file_locks[key] = threading.RLock()
        return lock


@exponential_backoff(max_retries=3, exceptions=(PermissionError,))
def _replace(src: str, dst: Path) -> None:
    os.replace(src, dst)


def load_records(path: Path) -> List[Record]:
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
    except UnicodeDecodeError as e:
        raise StorageCorruptError(f"{path} is not valid UTF-8 text") from e
    if not content:
        return []
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageCorruptError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise StorageCorruptError(f"{path} must hold a JSON array, found {type(data).__name__}")
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise StorageCorruptError(f"{path} entry {index} is {type(item).__name__}, expected an object")
    return data


def save_records(path: Path, records: List[Record]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, default_file_mode())
        _replace(tmp_name, path)
    except (OSError, RetryError) as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise StorageWriteError(f"Could not write {path}: {e}") from e
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class CollectionStore:
    """Single owner of one collection file."""

    def __init__(self, path: Path, name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
        self.path = Path(path)
        self.name = name or self.path.stem
        self.logger = logger or get_logger()
        self._lock = lock_for(self.path)

    def exists(self) -> bool:
        return self.path.exists()

    def load_all(self) -> List[Record]:
        """Return every record, newest first. A missing file is an empty collection."""
        with self._lock:
            try:
                return load_records(self.path)
            except StorageCorruptError as e:
                self.logger.error("Collection file is corrupt", collection=self.name,
                                  path=str(self.path), error=str(e))
                raise

    def save_all(self, records: List[Record]) -> None:
        with self._lock:
            save_records(self.path, list(records))

    def prepend(self, record: Record) -> None:
        with self._lock:
            records = self.load_all()
            records.insert(0, record)
            self.save_all(records)
        self.logger.record_created(self.name)
        self.logger.info("Record created", collection=self.name, id=record.get("id"),
                         total=len(records))

    def delete_by_id(self, record_id: Any) -> bool:
        """
        Remove every record whose id equals `record_id`.

        Returns True if anything was removed. When the backing file does not
        exist yet nothing is written and False is returned.
        """
        with self._lock:
            if not self.exists():
                return False
            records = self.load_all()
            kept = [r for r in records if r.get("id") != record_id]
            removed = len(records) - len(kept)
            self.save_all(kept)

        if removed:
            self.logger.record_deleted(self.name, removed)
        self.logger.info("Delete by id", collection=self.name, id=record_id, removed=removed)
        return removed > 0
