"""Key-value persistence port and its adapters.

The engine persists every piece of state as a JSON document under a string
key. Each record carries an integer `revision` that moves on every write,
which doubles as the optimistic concurrency token: writes may be made
conditional on the revision the caller last read, and `compare_and_set`
swaps a value only when the stored value still equals the expected one.

Adapters:
- `SqlKeyValueStore`: SQLAlchemy Core over the `kv_record` table.
- `InMemoryKeyValueStore`: lock-guarded dict for tests and local runs.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from assessment_service.logic.errors import ConflictError

logger = logging.getLogger(__name__)

# expected_revision value meaning "the key must not exist yet"
ABSENT = 0

REVISION_CONFLICT = "REVISION_CONFLICT"


@dataclass(frozen=True)
class Record:
    key: str
    value: Dict[str, Any]
    revision: int


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dump(value: Dict[str, Any]) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def _revision_conflict(key: str, expected: Optional[int], actual: Optional[int]) -> ConflictError:
    return ConflictError(
        f"record {key} was modified concurrently",
        code=REVISION_CONFLICT,
        key=key,
        expected_revision=expected,
        actual_revision=actual,
    )


class KeyValueStore:
    """Persistence interface consumed by the engine."""

    def get(self, key: str) -> Optional[Record]:
        raise NotImplementedError

    def put(self, key: str, value: Dict[str, Any], expected_revision: Optional[int] = None) -> Record:
        """Write `value` under `key`.

        `expected_revision=None` writes unconditionally, `ABSENT` requires the
        key to be new, any other value must equal the stored revision. A
        mismatch raises `ConflictError` with code REVISION_CONFLICT.
        """
        raise NotImplementedError

    def delete(self, key: str, expected_revision: Optional[int] = None) -> bool:
        raise NotImplementedError

    def list_prefix(self, prefix: str) -> List[Record]:
        raise NotImplementedError

    def compare_and_set(
        self,
        key: str,
        expected: Optional[Dict[str, Any]],
        new: Optional[Dict[str, Any]],
    ) -> bool:
        """Atomically replace `expected` with `new`.

        `expected=None` means the key must be absent; `new=None` deletes the
        key. Returns False without writing when the stored value differs.
        """
        raise NotImplementedError

    def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Remove every record. Used by test-support resets only."""
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self) -> None:
        self._data: Dict[str, tuple[str, int]] = {}
        self._lock = threading.RLock()

    def _record(self, key: str) -> Optional[Record]:
        entry = self._data.get(key)
        if entry is None:
            return None
        raw, revision = entry
        return Record(key=key, value=json.loads(raw), revision=revision)

    def get(self, key: str) -> Optional[Record]:
        with self._lock:
            return self._record(key)

    def put(self, key: str, value: Dict[str, Any], expected_revision: Optional[int] = None) -> Record:
        with self._lock:
            current = self._data.get(key)
            current_rev = current[1] if current else None
            if expected_revision is not None and (current_rev or ABSENT) != expected_revision:
                raise _revision_conflict(key, expected_revision, current_rev)
            revision = (current_rev or 0) + 1
            self._data[key] = (_dump(value), revision)
            return Record(key=key, value=json.loads(_dump(value)), revision=revision)

    def delete(self, key: str, expected_revision: Optional[int] = None) -> bool:
        with self._lock:
            current = self._data.get(key)
            if current is None:
                return False
            if expected_revision is not None and current[1] != expected_revision:
                raise _revision_conflict(key, expected_revision, current[1])
            del self._data[key]
            return True

    def list_prefix(self, prefix: str) -> List[Record]:
        with self._lock:
            keys = sorted(k for k in self._data if k.startswith(prefix))
            return [r for r in (self._record(k) for k in keys) if r is not None]

    def compare_and_set(self, key, expected, new) -> bool:  # type: ignore[no-untyped-def]
        with self._lock:
            current = self._record(key)
            current_value = current.value if current else None
            if current_value != expected:
                return False
            if new is None:
                self._data.pop(key, None)
            else:
                revision = (current.revision if current else 0) + 1
                self._data[key] = (_dump(new), revision)
            return True

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


def _like_escape(prefix: str) -> str:
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlKeyValueStore(KeyValueStore):
    """Store adapter over the `kv_record` table (see migrations/)."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get(self, key: str) -> Optional[Record]:
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text("SELECT record_value, revision FROM kv_record WHERE record_key = :k"),
                {"k": key},
            ).fetchone()
        if row is None:
            return None
        return Record(key=key, value=json.loads(row[0]), revision=int(row[1]))

    def put(self, key: str, value: Dict[str, Any], expected_revision: Optional[int] = None) -> Record:
        payload = _dump(value)
        try:
            with self.engine.begin() as conn:
                if expected_revision is None:
                    row = conn.execute(
                        sql_text("SELECT revision FROM kv_record WHERE record_key = :k"),
                        {"k": key},
                    ).fetchone()
                    expected_revision = int(row[0]) if row else ABSENT
                if expected_revision == ABSENT:
                    conn.execute(
                        sql_text(
                            "INSERT INTO kv_record (record_key, record_value, revision, updated_at) "
                            "VALUES (:k, :v, 1, :ts)"
                        ),
                        {"k": key, "v": payload, "ts": _now_iso()},
                    )
                    new_revision = 1
                else:
                    result = conn.execute(
                        sql_text(
                            "UPDATE kv_record SET record_value = :v, revision = revision + 1, updated_at = :ts "
                            "WHERE record_key = :k AND revision = :rev"
                        ),
                        {"k": key, "v": payload, "ts": _now_iso(), "rev": int(expected_revision)},
                    )
                    if result.rowcount != 1:
                        raise _revision_conflict(key, expected_revision, None)
                    new_revision = int(expected_revision) + 1
        except IntegrityError:
            logger.warning("kv_store.put.insert_conflict key=%s", key)
            raise _revision_conflict(key, ABSENT, None)
        return Record(key=key, value=json.loads(payload), revision=new_revision)

    def delete(self, key: str, expected_revision: Optional[int] = None) -> bool:
        with self.engine.begin() as conn:
            if expected_revision is None:
                result = conn.execute(
                    sql_text("DELETE FROM kv_record WHERE record_key = :k"),
                    {"k": key},
                )
                return result.rowcount > 0
            result = conn.execute(
                sql_text("DELETE FROM kv_record WHERE record_key = :k AND revision = :rev"),
                {"k": key, "rev": int(expected_revision)},
            )
            if result.rowcount > 0:
                return True
            row = conn.execute(
                sql_text("SELECT revision FROM kv_record WHERE record_key = :k"),
                {"k": key},
            ).fetchone()
        if row is None:
            return False
        raise _revision_conflict(key, expected_revision, int(row[0]))

    def list_prefix(self, prefix: str) -> List[Record]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                sql_text(
                    "SELECT record_key, record_value, revision FROM kv_record "
                    "WHERE record_key LIKE :p ESCAPE '\\' ORDER BY record_key"
                ),
                {"p": _like_escape(prefix) + "%"},
            ).fetchall()
        return [Record(key=str(r[0]), value=json.loads(r[1]), revision=int(r[2])) for r in rows]

    def compare_and_set(self, key, expected, new) -> bool:  # type: ignore[no-untyped-def]
        """Single-statement CAS: the expected value is matched inside the write.

        Revisions restart at 1 when a key is deleted and re-inserted, so the
        comparison is on the canonical JSON text, never on the revision.
        """
        if expected is None and new is None:
            return self.get(key) is None
        if expected is None:
            try:
                self.put(key, new, expected_revision=ABSENT)
            except ConflictError:
                logger.info("kv_store.cas.lost key=%s", key)
                return False
            return True
        with self.engine.begin() as conn:
            if new is None:
                result = conn.execute(
                    sql_text("DELETE FROM kv_record WHERE record_key = :k AND record_value = :expected"),
                    {"k": key, "expected": _dump(expected)},
                )
            else:
                result = conn.execute(
                    sql_text(
                        "UPDATE kv_record SET record_value = :v, revision = revision + 1, updated_at = :ts "
                        "WHERE record_key = :k AND record_value = :expected"
                    ),
                    {"k": key, "v": _dump(new), "ts": _now_iso(), "expected": _dump(expected)},
                )
        if result.rowcount != 1:
            logger.info("kv_store.cas.lost key=%s", key)
            return False
        return True

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(sql_text("SELECT 1"))
        return True

    def clear(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(sql_text("DELETE FROM kv_record"))


__all__ = [
    "ABSENT",
    "Record",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SqlKeyValueStore",
]
