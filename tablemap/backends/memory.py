"""In-memory storage backend for testing."""

import random
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..exceptions import StorageClosed
from .base import StorageBackend


class MemoryBackend(StorageBackend):
    """In-memory storage backend.

    Useful for testing and throwaway collections. Data is lost when the
    backend is closed or the process ends.

    Example:
        backend = MemoryBackend()
        backend.connect(table="scratch")

        backend.put("a", '{"x":1}')
        backend.get("a")  # '{"x":1}'
    """

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._counter = 0
        self._connected = False

    def connect(self, table: str = "memory", **kwargs) -> None:
        """Initialize the in-memory store."""
        self.table = table
        self._data = {}
        self._counter = 0
        self._connected = True

    def close(self) -> None:
        """Clear the in-memory store."""
        self._data.clear()
        self._connected = False

    @property
    def is_open(self) -> bool:
        return self._connected

    def _require_open(self) -> None:
        if not self._connected:
            raise StorageClosed(self.table)

    def get(self, key: str) -> Optional[str]:
        self._require_open()
        return self._data.get(key)

    def put(self, key: str, data: str) -> None:
        self._require_open()
        self._data[key] = data

    def delete(self, key: str) -> bool:
        self._require_open()
        return self._data.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        self._require_open()
        return key in self._data

    def count(self) -> int:
        self._require_open()
        return len(self._data)

    def keys(self) -> Iterator[str]:
        self._require_open()
        for key in sorted(self._data):
            self._require_open()
            if key in self._data:
                yield key

    def entries(self) -> Iterator[Tuple[str, str]]:
        self._require_open()
        for key in sorted(self._data):
            self._require_open()
            data = self._data.get(key)
            if data is not None:
                yield key, data

    def clear(self) -> None:
        self._require_open()
        self._data.clear()

    def random(self, count: int = 1) -> List[Tuple[str, str]]:
        self._require_open()
        keys = random.sample(list(self._data), min(count, len(self._data)))
        return [(key, self._data[key]) for key in keys]

    def next_counter(self) -> int:
        self._require_open()
        self._counter += 1
        return self._counter

    # Transaction support - memory backend uses simple copy-on-write

    def begin_transaction(self) -> Any:
        """Begin a transaction by snapshotting current state."""
        self._require_open()
        return dict(self._data)

    def commit_transaction(self, handle: Any) -> None:
        """Commit transaction (nothing to do - changes already in place)."""
        pass

    def rollback_transaction(self, handle: Any) -> None:
        """Rollback transaction by restoring snapshot."""
        if handle is not None:
            self._data = handle

    @property
    def supports_transactions(self) -> bool:
        """Memory backend supports basic transactions."""
        return True
