from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from clientauth.errors import CredentialError
from relay.constants import LOGGER, NAME


def store_key(kind: str, client_id: str) -> str:
    return f"{NAME}:{kind}:{client_id}"


class Store(ABC):
    """Single-value async store; ``set(None)`` deletes the value."""

    @abstractmethod
    async def get(self) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    async def set(self, value: Any | None) -> None:
        raise NotImplementedError


class MemoryStore(Store):
    def __init__(self, value: Any | None = None) -> None:
        self._value = value

    async def get(self) -> Any | None:
        return self._value

    async def set(self, value: Any | None) -> None:
        self._value = value


class FileStore(Store):
    """Keeps every key in one JSON object file, like browser localStorage."""

    def __init__(self, path: str | Path, key: str) -> None:
        self._path = Path(path)
        self.key = key

    async def get(self) -> Any | None:
        return self._entries().get(self.key)

    async def set(self, value: Any | None) -> None:
        entries = self._entries()
        if value is None:
            if self.key not in entries:
                return
            del entries[self.key]
        else:
            entries[self.key] = value
        LOGGER.debug("Writing %s to %s", self.key, self._path)
        self._replace_file(entries)

    def _entries(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        entries = json.loads(text) if text.strip() else {}
        if not isinstance(entries, dict):
            raise CredentialError(f"Token store {self._path} must hold a JSON object of keys.")
        return entries

    def _replace_file(self, entries: dict[str, Any]) -> None:
        # Readers never observe a half-written file: write a sibling, then rename over.
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, staged = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle, indent=2, sort_keys=True)
            os.replace(staged, self._path)
        except BaseException:
            Path(staged).unlink(missing_ok=True)
            raise
