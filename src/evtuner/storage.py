"""Key-value persistence media for the store.

The store only needs ``get``/``set``/``remove`` on text values.  Two
implementations are provided: an in-memory dict and a directory holding
one JSON file per key.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from evtuner.exceptions import EvTunerStorageError

_logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStorage(Protocol):
    """Synchronous text key-value medium."""

    def get(self, key: str) -> str | None:
        """Return the stored text for *key* or ``None`` when absent."""

    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, raising on failure."""

    def remove(self, key: str) -> None:
        """Delete *key*; absent keys are ignored."""


class MemoryStorage:
    """Dict-backed storage, useful for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage:
    """One UTF-8 file per key inside *directory*.

    Writes go to a temporary file in the same directory followed by
    :func:`os.replace`, so a failed write leaves the previous value intact.
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise EvTunerStorageError(f"invalid storage key {key!r}", key=key)
        return self._directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise EvTunerStorageError(f"failed to read {path}: {exc}", key=key) from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise EvTunerStorageError(f"failed to write {path}: {exc}", key=key) from exc
        _logger.debug("Wrote %d chars to %s", len(value), path)

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise EvTunerStorageError(f"failed to remove {path}: {exc}", key=key) from exc
