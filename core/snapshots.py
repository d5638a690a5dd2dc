"""Named snapshots of a table, persisted as one JSON blob under a single key.

The registry loads its collection once and rewrites the whole collection on
every mutation. Memory is only updated after the storage write succeeds, so
the in-memory registry and the persisted one never drift apart.

Concurrency: mutations on one registry instance are serialized by a lock.
Two processes sharing a storage file still race read-modify-write on the
whole collection; the last writer wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from core.table import TabularModel

logger = logging.getLogger(__name__)

SAVED_AT_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


class PersistenceError(RuntimeError):
    """The storage backend refused a read or write."""


class Storage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStorage:
    """Key/value strings kept in one JSON object on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring storage file %s: expected a JSON object", self.path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".snapshots-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc


@dataclass
class Snapshot:
    name: str
    data: TabularModel
    saved_at: str

    def to_record(self) -> dict:
        return {"name": self.name, "data": self.data.to_dict(), "savedAt": self.saved_at}

    @classmethod
    def from_record(cls, raw: object) -> "Snapshot":
        if not isinstance(raw, dict):
            raise ValueError("snapshot record must be an object")
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("snapshot record needs a name")
        data = raw.get("data")
        if isinstance(data, list):
            # plain matrix with the header as its first row
            if any(not isinstance(r, list) for r in data):
                raise ValueError("snapshot matrix rows must be lists")
            table = TabularModel.from_matrix(data)
        elif isinstance(data, dict):
            table = TabularModel.from_dict(data)
        else:
            raise ValueError("snapshot record needs table data")
        saved_at = raw.get("savedAt")
        return cls(name=name, data=table, saved_at=str(saved_at) if saved_at is not None else "")

    def copy(self) -> "Snapshot":
        return Snapshot(name=self.name, data=self.data.copy(), saved_at=self.saved_at)


def decode_snapshots(payload: Optional[str]) -> List[Snapshot]:
    """Parse a stored collection; anything unreadable counts as no snapshots."""
    if payload is None:
        return []
    try:
        records = json.loads(payload)
        if not isinstance(records, list):
            raise ValueError("expected a list of snapshots")
        snapshots: Dict[str, Snapshot] = {}
        for record in records:
            snap = Snapshot.from_record(record)
            snapshots[snap.name] = snap
    except ValueError as exc:
        logger.warning("Discarding corrupt snapshot storage: %s", exc)
        return []
    return list(snapshots.values())


def encode_snapshots(snapshots: List[Snapshot]) -> str:
    return json.dumps([s.to_record() for s in snapshots])


def now_display() -> str:
    return datetime.now().strftime(SAVED_AT_FORMAT)


class SnapshotRegistry:
    def __init__(self, storage: Storage, *, key: str = "savedDashboards", clock=now_display):
        self.storage = storage
        self.key = key
        self._clock = clock
        self._lock = threading.Lock()
        try:
            payload = storage.get(key)
        except Exception as exc:
            logger.warning("Snapshot storage unavailable, starting empty: %s", exc)
            payload = None
        self._snapshots: List[Snapshot] = decode_snapshots(payload)
        logger.info("Loaded %d saved snapshot(s)", len(self._snapshots))

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, name: object) -> bool:
        return any(s.name == name for s in self._snapshots)

    def _write(self, snapshots: List[Snapshot]) -> None:
        try:
            self.storage.set(self.key, encode_snapshots(snapshots))
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Could not persist snapshots: {exc}") from exc

    def save(self, name: str, table: TabularModel) -> Snapshot:
        if not name or not name.strip():
            raise ValueError("Snapshot name must not be blank")
        if name != name.strip():
            raise ValueError("Snapshot name must not start or end with whitespace")
        snapshot = Snapshot(name=name, data=table.copy(), saved_at=self._clock())
        with self._lock:
            updated = list(self._snapshots)
            for idx, existing in enumerate(updated):
                if existing.name == name:
                    updated[idx] = snapshot
                    break
            else:
                updated.append(snapshot)
            self._write(updated)
            self._snapshots = updated
        logger.info("Saved snapshot %r (%d rows)", name, table.row_count)
        return snapshot.copy()

    def get(self, name: str) -> Optional[Snapshot]:
        for snap in self._snapshots:
            if snap.name == name:
                return snap.copy()
        return None

    def delete(self, name: str) -> bool:
        with self._lock:
            remaining = [s for s in self._snapshots if s.name != name]
            if len(remaining) == len(self._snapshots):
                return False
            self._write(remaining)
            self._snapshots = remaining
        logger.info("Deleted snapshot %r", name)
        return True

    def list(self) -> List[Snapshot]:
        return [s.copy() for s in self._snapshots]

    def names(self) -> List[str]:
        return [s.name for s in self._snapshots]
