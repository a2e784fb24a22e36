"""Snapshot stores — where the marketplace state is kept between runs.

A store holds a single JSON-compatible snapshot. Any read or write problem
is raised as ``PersistenceError``; deciding whether that is fatal is up to
the caller (the marketplace treats it as a warning).
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from streetmarket.shared.errors import PersistenceError


class SnapshotStore(ABC):
    @abstractmethod
    def load(self) -> dict | None:
        """Return the saved snapshot, or None when nothing was saved yet."""
        ...

    @abstractmethod
    def save(self, snapshot: dict) -> None: ...


class MemoryStore(SnapshotStore):
    """Keeps the snapshot as a JSON string, the same way a file would."""

    def __init__(self, snapshot: dict | None = None):
        self._raw = json.dumps(snapshot) if snapshot is not None else None
        self.saves = 0
        self.fail_saves = False
        self.fail_loads = False

    def configure(self, fail_saves: bool = False, fail_loads: bool = False):
        self.fail_saves = fail_saves
        self.fail_loads = fail_loads

    def load(self) -> dict | None:
        if self.fail_loads:
            raise PersistenceError("Snapshot could not be read")
        return json.loads(self._raw) if self._raw is not None else None

    def save(self, snapshot: dict) -> None:
        if self.fail_saves:
            raise PersistenceError("Snapshot could not be written")
        try:
            self._raw = json.dumps(snapshot)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Snapshot is not serializable: {exc}") from exc
        self.saves += 1

    @property
    def snapshot(self) -> dict | None:
        return json.loads(self._raw) if self._raw is not None else None


class JsonFileStore(SnapshotStore):
    """A JSON file, replaced atomically on every save."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> dict | None:
        if not self.path.exists():
            return None
        try:
            with self.path.open(encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc

    def save(self, snapshot: dict) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_path = fh.name
                json.dump(snapshot, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc
