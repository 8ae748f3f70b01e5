"""Durable scalar key-value slots.

The SDK persists two strings per device: the anonymous identity and the
id of the last reported transaction.  Both live in a
:class:`KeyValueStore`; the JSON file implementation is the default for
real installs, the memory one for tests and ephemeral runs.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pyrevenew.exceptions import RevenewError

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryKeyValueStore:
    """Process-lifetime store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileKeyValueStore:
    """Store backed by a single JSON object on disk.

    Writes go to a temporary file in the same directory that is then
    renamed over the target, so a crash never leaves a half-written file.
    A corrupt or unreadable file is treated as empty.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._values: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._values is not None:
            return self._values
        values: dict[str, str] = {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raw = {}
        except (OSError, json.JSONDecodeError):
            _logger.warning("State file %s is unreadable; starting empty", self._path, exc_info=True)
            raw = {}
        if isinstance(raw, dict):
            values = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        self._values = values
        return values

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._write(values)

    def _write(self, values: dict[str, str]) -> None:
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(values, handle, indent=2, sort_keys=True)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise RevenewError(f"Could not persist state to {self._path}: {exc}") from exc


def open_store(path: Path | None) -> KeyValueStore:
    """File store for *path*, memory store when ``None``."""
    if path is None:
        return MemoryKeyValueStore()
    return JsonFileKeyValueStore(path)
