from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Dict, Optional

from .errors import StorageError


class KeyValueStorage:
    """Durable string slots persisted as one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        """Purpose: Bind the storage to a JSON file.
        Inputs/Outputs: Input is a Path; no return value.
        Side Effects / State: None until the first read or write.
        Dependencies: json and Path.
        Failure Modes: None at init.
        If Removed: Selection state no longer survives restarts.
        Testing Notes: Use a tmp_path file and read back after set_item.
        """
        # Keep the backing file path; every access re-reads the file.
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> Optional[str]:
        """Purpose: Read the string stored under key.
        Inputs/Outputs: Input is the key; returns the string or None when absent.
        Side Effects / State: Reads the backing file.
        Dependencies: Uses _read_all.
        Failure Modes: Unreadable file or corrupt JSON raises StorageError.
        If Removed: Selection cannot be restored at startup.
        Testing Notes: Missing file returns None; garbage file raises StorageError.
        """
        with self._lock:
            value = self._read_all().get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise StorageError(f"Slot {key!r} does not hold a string")
        return value

    def set_item(self, key: str, value: str) -> None:
        """Purpose: Store value under key, keeping other slots intact.
        Inputs/Outputs: Inputs are key and string value; no return value.
        Side Effects / State: Rewrites the backing file.
        Dependencies: Uses _read_all and _write_all.
        Failure Modes: IO errors raise StorageError; a corrupt file is replaced.
        If Removed: Selection changes are never made durable.
        Testing Notes: Set two keys and check both survive.
        """
        with self._lock:
            try:
                slots = self._read_all()
            except StorageError:
                slots = {}
            slots[key] = value
            self._write_all(slots)

    def _read_all(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StorageError(f"Could not read storage file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self._path} does not hold an object")
        return data

    def _write_all(self, slots: Dict[str, object]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(slots, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Could not write storage file {self._path}: {exc}") from exc
