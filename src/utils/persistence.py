"""
Record persistence with validation.

Provides the abstract store the managers write to, an in-memory store for
tests and single-process runs, and a JSON-file store that validates every
record against its schema before writing.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from src.config import config
from src.errors import PersistenceError
from src.utils.validation import validate_record

logger = logging.getLogger(__name__)

# Field holding each kind's record id
ID_FIELDS = {
    "study_session": "session_id",
    "study_progress": "user_id",
    "learning_profile": "user_id",
    "quiz_result": "quiz_id",
    "battle": "battle_id",
}

# Field used to order list() results newest first
ORDER_FIELDS = {
    "study_session": "ended_at",
    "quiz_result": "completed_at",
    "battle": "created_at",
}

SaveOutcome = Tuple[bool, Optional[str], Optional[List[str]]]


def record_id(kind: str, data: Dict[str, Any]) -> Optional[str]:
    if kind not in ID_FIELDS:
        raise KeyError(f"Unknown record kind: {kind}")
    return data.get(ID_FIELDS[kind])


def _matches(record: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    return all(record.get(k) == v for k, v in filters.items())


def _newest_first(kind: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    order_field = ORDER_FIELDS.get(kind)
    if order_field:
        records.sort(key=lambda r: r.get(order_field) or "", reverse=True)
    return records


class RecordStore:
    """
    Abstract record store keyed by (kind, id).

    save() returns (success, record_id, errors) rather than raising so callers
    decide how a rejected write affects their state.
    """

    def save(self, kind: str, data: Dict[str, Any], validate: bool = True) -> SaveOutcome:
        raise NotImplementedError

    def load(self, kind: str, record_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def list(self, kind: str, limit: Optional[int] = None, **filters: Any) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def delete(self, kind: str, record_id: str) -> bool:
        raise NotImplementedError

    def _check(self, kind: str, data: Dict[str, Any], validate: bool) -> SaveOutcome:
        rid = record_id(kind, data)
        if not rid:
            return False, None, [f"{kind} record is missing '{ID_FIELDS[kind]}'"]
        if validate:
            result = validate_record(kind, data)
            if not result.valid:
                return False, None, result.errors
        return True, rid, None


class InMemoryStore(RecordStore):
    """Dict-backed store. Records are deep-copied in and out."""

    def __init__(self):
        self._records: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def save(self, kind: str, data: Dict[str, Any], validate: bool = True) -> SaveOutcome:
        ok, rid, errors = self._check(kind, data, validate)
        if not ok:
            return ok, rid, errors
        with self._lock:
            self._records.setdefault(kind, {})[rid] = deepcopy(data)
        return True, rid, None

    def load(self, kind: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(kind, {}).get(record_id)
            return deepcopy(record) if record is not None else None

    def list(self, kind: str, limit: Optional[int] = None, **filters: Any) -> List[Dict[str, Any]]:
        with self._lock:
            records = [
                deepcopy(r) for r in self._records.get(kind, {}).values() if _matches(r, filters)
            ]
        records = _newest_first(kind, records)
        return records[:limit] if limit else records

    def delete(self, kind: str, record_id: str) -> bool:
        with self._lock:
            return self._records.get(kind, {}).pop(record_id, None) is not None


class JsonFileStore(RecordStore):
    """
    One JSON file per record under <records_dir>/<kind>/<id>.json.

    Features:
    - Validate records against schemas/<kind>.schema.json
    - Load records by id or filter
    - Thread-safe file operations
    """

    def __init__(self, records_dir: Path | str = None):
        """
        Initialize persistence manager.

        Args:
            records_dir: Base directory (default: config.paths.records_dir)
        """
        self.records_dir = Path(records_dir) if records_dir else config.paths.records_dir
        self.records_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, kind: str, record_id: str) -> Path:
        return self.records_dir / kind / f"{record_id}.json"

    def save(self, kind: str, data: Dict[str, Any], validate: bool = True) -> SaveOutcome:
        ok, rid, errors = self._check(kind, data, validate)
        if not ok:
            return ok, rid, errors

        try:
            payload = json.dumps(data, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            return False, None, [f"{kind} {rid} is not JSON-serializable: {e}"]

        filepath = self._path(kind, rid)
        tmp_path = filepath.with_suffix(".json.tmp")
        try:
            with self._lock:
                filepath.parent.mkdir(parents=True, exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, filepath)
            return True, rid, None
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            return False, None, [f"Failed to save {kind} {rid}: {e}"]

    def load(self, kind: str, record_id: str) -> Optional[Dict[str, Any]]:
        filepath = self._path(kind, record_id)
        if not filepath.exists():
            return None

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load %s %s: %s", kind, record_id, e)
            return None

    def list(self, kind: str, limit: Optional[int] = None, **filters: Any) -> List[Dict[str, Any]]:
        records = []
        for filepath in (self.records_dir / kind).glob("*.json"):
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    record = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Failed to load %s: %s", filepath, e)
                continue
            if _matches(record, filters):
                records.append(record)

        records = _newest_first(kind, records)
        return records[:limit] if limit else records

    def delete(self, kind: str, record_id: str) -> bool:
        filepath = self._path(kind, record_id)
        with self._lock:
            if not filepath.exists():
                return False
            filepath.unlink()
        return True


def persist(store: Optional[RecordStore], kind: str, data: Dict[str, Any]) -> None:
    """
    Save a record or raise PersistenceError.

    Managers call this before committing in-memory state so a rejected write
    leaves them unchanged. A None store means persistence is disabled.
    """
    if store is None:
        return
    ok, rid, errors = store.save(kind, data)
    if not ok:
        raise PersistenceError(f"Could not save {kind} record", errors)
    logger.debug("Saved %s %s", kind, rid)
