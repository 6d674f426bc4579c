"""Persistence boundary: anything with ``load`` and ``save`` will do."""
from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Store(Protocol):
    def load(self) -> dict[str, Any] | None: ...

    def save(self, snapshot: dict[str, Any]) -> bool: ...


class MemoryStore:
    """Keeps one snapshot in memory. Copies on the way in and out."""

    def __init__(self, snapshot: dict[str, Any] | None = None) -> None:
        self._snapshot = copy.deepcopy(snapshot)
        self.saves = 0

    def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._snapshot)

    def save(self, snapshot: dict[str, Any]) -> bool:
        self._snapshot = copy.deepcopy(snapshot)
        self.saves += 1
        return True

    def clear(self) -> None:
        self._snapshot = None


class JsonFileStore:
    """One JSON document on disk, replaced atomically on save."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any] | None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("could not read save %s: %s", self._path, exc)
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("save %s is not valid JSON: %s", self._path, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("save %s does not hold an object", self._path)
            return None
        return data

    def save(self, snapshot: dict[str, Any]) -> bool:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(snapshot), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            logger.warning("could not write save %s: %s", self._path, exc)
            return False
        return True

    def delete(self) -> None:
        self._path.unlink(missing_ok=True)
