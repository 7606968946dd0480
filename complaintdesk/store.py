# Local key-value storage: string keys to string values, like a browser's localStorage

import os
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import StoreParseError

logger = logging.getLogger(__name__)


class KeyValueStore:
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """Keeps the whole store in one JSON object file, rewritten on every change."""

    def __init__(self, path):
        self.path = Path(path)
        self._data: Optional[Dict[str, str]] = None
        self._unreadable = False

    def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data
        self._data = {}
        if not self.path.exists():
            return self._data
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable store file %s: %s", self.path, e)
            self._unreadable = True
            return self._data
        if not isinstance(raw, dict):
            logger.warning("Ignoring store file %s: top level is %s, not an object",
                           self.path, type(raw).__name__)
            self._unreadable = True
            return self._data
        # Non-string values are kept as their JSON text
        self._data = {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in raw.items()}
        return self._data

    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".corrupt")

    def _set_aside_unreadable(self) -> None:
        if not self._unreadable:
            return
        if self.path.exists():
            os.replace(self.path, self.backup_path())
            logger.warning("Moved unreadable store file aside to %s", self.backup_path())
        self._unreadable = False

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._set_aside_unreadable()
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._flush()

    def keys(self) -> List[str]:
        return list(self._load())


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------
def load_json(store: KeyValueStore, key: str) -> Any:
    """Return the decoded value under *key*, or None if absent.

    Raises StoreParseError if the stored text is not valid JSON.
    """
    text = store.get(key)
    if text is None:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise StoreParseError(key, str(e))


def dump_json(store: KeyValueStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value))
