"""
Durable key/value store for notebook state
Each logical key is persisted as its own JSON file and rewritten on every mutation
"""
import copy
import os
import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from loguru import logger
from pydantic import TypeAdapter

from notebook_studio.models import ConversationMessage, Notebook


class StoreKey(str, Enum):
    NOTEBOOKS = "notebooks"
    ACTIVE_NOTEBOOK_ID = "activeNotebookId"
    CHAT_HISTORY = "chatHistory"
    DARK_MODE = "darkMode"


# key -> (validator, default factory)
_SCHEMA: Dict[StoreKey, Tuple[TypeAdapter, Callable[[], Any]]] = {
    StoreKey.NOTEBOOKS: (TypeAdapter(List[Notebook]), list),
    StoreKey.ACTIVE_NOTEBOOK_ID: (TypeAdapter(Optional[str]), lambda: None),
    StoreKey.CHAT_HISTORY: (TypeAdapter(Dict[str, List[ConversationMessage]]), dict),
    StoreKey.DARK_MODE: (TypeAdapter(bool), lambda: False),
}


class DurableStore:
    """
    Process-wide state container surviving restarts

    Values are loaded once by ``load()``; reads hand out deep copies so no
    caller ever holds the store's own objects, and every write is flushed to
    disk before returning.
    """

    def __init__(self, data_dir: Path, namespace: str = "intelligent-notebook"):
        """
        Initialize durable store

        Args:
            data_dir: Directory holding the JSON files (created if missing)
            namespace: Prefix of every file name
        """
        self.data_dir = Path(data_dir)
        self.namespace = namespace
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._data: Dict[StoreKey, Any] = {key: default() for key, (_, default) in _SCHEMA.items()}

    def path_for(self, key: StoreKey) -> Path:
        return self.data_dir / f"{self.namespace}-{key.value}.json"

    def load(self) -> None:
        """Load every key from disk, falling back to its default when absent or corrupt"""
        with self._lock:
            for key in StoreKey:
                self._data[key] = self._load_key(key)
        logger.info(f"Loaded notebook state from {self.data_dir}")

    def _load_key(self, key: StoreKey) -> Any:
        adapter, default = _SCHEMA[key]
        path = self.path_for(key)
        if not path.exists():
            logger.debug(f"No persisted value for '{key.value}', using default")
            return default()

        try:
            return adapter.validate_json(path.read_bytes())
        except (OSError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            logger.warning(f"Persisted value for '{key.value}' is unreadable, resetting to default: {e}")
            self._set_aside(path)
            return default()

    def _set_aside(self, path: Path) -> None:
        """Keep a corrupt file next to the store instead of overwriting it"""
        try:
            os.replace(path, path.with_suffix(".json.corrupt"))
        except OSError as e:
            logger.warning(f"Could not move corrupt file {path.name} aside: {e}")

    def get(self, key: StoreKey) -> Any:
        with self._lock:
            return copy.deepcopy(self._data[key])

    def set(self, key: StoreKey, value: Any) -> None:
        adapter, _ = _SCHEMA[key]
        validated = adapter.validate_python(value)
        with self._lock:
            self._data[key] = copy.deepcopy(validated)
            self._persist(key)

    def update(self, key: StoreKey, mutator: Callable[[Any], Any]) -> Any:
        """
        Atomic read-modify-write of one key

        Args:
            key: Key to modify
            mutator: Receives a private copy of the current value and either
                mutates it in place (returning None) or returns the new value

        Returns:
            Copy of the stored value
        """
        adapter, _ = _SCHEMA[key]
        with self._lock:
            current = copy.deepcopy(self._data[key])
            result = mutator(current)
            new_value = adapter.validate_python(current if result is None else result)
            self._data[key] = new_value
            self._persist(key)
            return copy.deepcopy(new_value)

    @contextmanager
    def transaction(self) -> Iterator["DurableStore"]:
        """Hold the store lock across several updates so readers never see a partial change"""
        with self._lock:
            yield self

    def flush(self) -> None:
        with self._lock:
            for key in StoreKey:
                self._persist(key)

    def close(self) -> None:
        self.flush()
        logger.info("Durable store closed")

    def _persist(self, key: StoreKey) -> None:
        adapter, _ = _SCHEMA[key]
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            payload = adapter.dump_json(self._data[key], by_alias=True, indent=2)
            tmp_path.write_bytes(payload)
            os.replace(tmp_path, path)
        except OSError as e:
            # In-memory state stays authoritative; the next mutation retries the write
            logger.error(f"Failed to persist '{key.value}' to {path}: {e}")
