"""Client-local key/value storage backed by a JSON document.

:class:`LocalStorage` mirrors the browser ``localStorage`` contract: string
keys map to string values (typically JSON) and every write rewrites the
whole document.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from voice_cal.exceptions import StorageError

logger = logging.getLogger(__name__)


class _CorruptStorage(StorageError):
    """The storage document exists but is not a JSON object."""


class LocalStorage:
    """String key/value store persisted as one JSON object.

    Args:
        path: Location of the JSON document.  It is created on first write.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None`` if absent.

        Raises:
            StorageError: If the document exists but cannot be read or is
                not a JSON object.
        """
        value = self._read().get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else json.dumps(value)

    def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key*, rewriting the document.

        A document that is not valid JSON is replaced by a fresh one.

        Raises:
            StorageError: If the document cannot be read or written.
        """
        try:
            data = self._read()
        except _CorruptStorage as exc:
            logger.warning("Overwriting unreadable storage: %s", exc)
            data = {}
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        """Remove *key*; a missing key is ignored."""
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise _CorruptStorage(f"Corrupt storage file {self._path}: {exc}") from exc
        except OSError as exc:
            raise StorageError(f"Cannot read {self._path}: {exc}") from exc
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise _CorruptStorage(f"Corrupt storage file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise _CorruptStorage(f"Corrupt storage file {self._path}: expected a JSON object")
        return data

    def _write(self, data: dict) -> None:
        # The document is replaced atomically.
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StorageError(f"Cannot write {self._path}: {exc}") from exc
        logger.debug("Storage written: %s", self._path)
