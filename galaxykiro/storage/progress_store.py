from __future__ import annotations

"""Key/value progress stores for resumable assessment sessions.

The engine only needs ``get_item`` / ``set_item`` / ``remove_item`` with
string values. Two implementations ship here:

- ``MemoryProgressStore``: a dict, for tests and single-process callers.
- ``JsonFileProgressStore``: one JSON document on disk holding every slot.

File schema (v1):
{
  "schema": 1,
  "items": {"assessment_<assessment_id>_<user_id>": "<serialized state>", ...}
}

A missing, unreadable, or foreign-schema file reads as empty.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def progress_key(assessment_id: str, user_id: str) -> str:
    return f"assessment_{assessment_id}_{user_id}"


class ProgressStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryProgressStore:
    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


def _empty() -> Dict[str, Any]:
    return {"schema": SCHEMA_VERSION, "items": {}}


class JsonFileProgressStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        p = self.path
        if not p.exists():
            return _empty()
        try:
            with p.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable progress file %s: %s", p, exc)
            return _empty()
        if not isinstance(data, dict) or data.get("schema") != SCHEMA_VERSION:
            return _empty()
        items = data.get("items")
        if not isinstance(items, dict):
            data["items"] = {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get_item(self, key: str) -> Optional[str]:
        value = self._load()["items"].get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data["items"][key] = str(value)
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data["items"].pop(key, None) is not None:
            self._save(data)

    def keys(self) -> list[str]:
        return sorted(self._load()["items"])
