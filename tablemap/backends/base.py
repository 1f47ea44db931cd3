"""Abstract base class for storage backends."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, List, Optional, Tuple


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    A backend is bound to a single table and stores already-encoded text
    by string key. It knows nothing about paths or value shapes; the
    Collection class handles encoding, path mutation and the public API.

    Every method raises StorageClosed once the backend is closed and
    StorageIOError when the underlying engine fails.
    """

    #: Collection name this backend serves; used in error messages.
    table: str = ""

    @abstractmethod
    def connect(self, **kwargs) -> None:
        """Open the backing storage and create the table if needed.

        Args:
            **kwargs: Backend-specific connection parameters
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the backend can currently serve requests."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Retrieve the encoded value for key.

        Returns:
            Encoded value, or None if the key is absent
        """
        pass

    @abstractmethod
    def put(self, key: str, data: str) -> None:
        """Insert or overwrite the encoded value for key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key.

        Returns:
            True if the key existed, False if it was already absent
        """
        pass

    def delete_many(self, keys: Iterable[str]) -> int:
        """Delete several keys.

        Returns:
            Number of keys that existed and were removed
        """
        return sum(1 for key in keys if self.delete(key))

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if key is stored."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored keys."""
        pass

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate keys in ascending key order.

        The iterator is lazy. Writes made while iterating may or may not be
        seen, but keys that were not concurrently written are yielded
        exactly once.
        """
        pass

    @abstractmethod
    def entries(self) -> Iterator[Tuple[str, str]]:
        """Iterate (key, encoded value) pairs in ascending key order.

        Same laziness and consistency guarantees as keys().
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every key from the table."""
        pass

    @abstractmethod
    def random(self, count: int = 1) -> List[Tuple[str, str]]:
        """Return up to count distinct (key, encoded value) pairs at random."""
        pass

    @abstractmethod
    def next_counter(self) -> int:
        """Increment and return this table's persisted autonum counter."""
        pass

    # Transaction support (optional - default implementations do nothing)

    def begin_transaction(self) -> Any:
        """Begin a transaction.

        Returns:
            Transaction handle (backend-specific), or None if not supported
        """
        return None

    def commit_transaction(self, handle: Any) -> None:
        """Commit transaction.

        Args:
            handle: Transaction handle from begin_transaction()
        """
        pass

    def rollback_transaction(self, handle: Any) -> None:
        """Rollback transaction.

        Args:
            handle: Transaction handle from begin_transaction()
        """
        pass

    @property
    def supports_transactions(self) -> bool:
        """Whether this backend supports transactions."""
        return False
