# File: doc_scout/storage.py
"""doc_scout.storage: key/value persistence behind the activation policy.

The policy only needs ``get(key, default)`` and ``set(key, value)``. Two
implementations are provided: :class:`MemoryStorage` (tests, one-off runs)
and :class:`JsonFileStorage`, which keeps the values in a JSON file so they
survive page reloads and separate CLI invocations.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from doc_scout.logger import get_logger

__all__ = ["KeyValueStorage", "MemoryStorage", "JsonFileStorage"]

logger = get_logger("storage")


class KeyValueStorage(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStorage:
    """Dictionary-backed storage."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value


class JsonFileStorage:
    """JSON-file storage; the file is re-read on every ``get``.

    Writes go to a temporary file in the same directory and are moved into
    place, so a crashed write never leaves a truncated state file.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {}
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in state file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise TypeError(
                f"Top level of state file must be a mapping, got {type(data).__name__}"
            )
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Persisted %s=%r to %s", key, value, self.path)
