"""Exceptions for the tablemap package.

Every error carries a ``kind`` string so callers can branch on it without
importing the concrete classes, plus the offending ``key`` and ``path``
where one applies.
"""

from typing import Any, Optional, Sequence, Tuple, Union


Step = Union[str, int]


def _format_path(path: Sequence[Step]) -> str:
    return ".".join(str(step) for step in path)


class TablemapError(Exception):
    """Base exception for all tablemap errors."""

    kind = "TablemapError"

    def __init__(
        self,
        message: str,
        key: Any = None,
        path: Optional[Sequence[Step]] = None,
    ):
        self.key = key
        self.path: Tuple[Step, ...] = tuple(path) if path else ()
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class KeyTypeError(TablemapError, TypeError):
    """Key is not a string or integer."""

    kind = "KeyTypeError"

    def __init__(self, key: Any):
        super().__init__(
            f"Keys must be str or int, got {type(key).__name__}", key=key
        )


class PathNotFound(TablemapError, KeyError):
    """A key or path does not resolve to a stored value."""

    kind = "PathNotFound"

    def __init__(self, key: Any = None, path: Optional[Sequence[Step]] = None):
        if path:
            message = f"Path '{_format_path(path)}' does not exist in key {key!r}"
        else:
            message = f"Key {key!r} does not exist"
        super().__init__(message, key=key, path=path)


class NotIndexable(TablemapError, TypeError):
    """Attempted to traverse into a primitive value."""

    kind = "NotIndexable"

    def __init__(self, key: Any, path: Sequence[Step], found: Any):
        super().__init__(
            f"Cannot index into {type(found).__name__} at "
            f"'{_format_path(path) or '<root>'}' in key {key!r}",
            key=key,
            path=path,
        )


class NotAList(TablemapError, TypeError):
    """Value at the target location is not a list."""

    kind = "NotAList"

    def __init__(self, key: Any, path: Sequence[Step], found: Any):
        self.found_type = type(found).__name__
        super().__init__(
            f"Value at '{_format_path(path) or '<root>'}' in key {key!r} "
            f"is {self.found_type}, not a list",
            key=key,
            path=path,
        )


class NotAnObject(TablemapError, TypeError):
    """Value at the target location is not a mapping."""

    kind = "NotAnObject"

    def __init__(self, key: Any, path: Sequence[Step], found: Any, expected: str = "a mapping"):
        self.found_type = type(found).__name__
        super().__init__(
            f"Value at '{_format_path(path) or '<root>'}' in key {key!r} "
            f"is {self.found_type}, not {expected}",
            key=key,
            path=path,
        )


class NotANumber(TablemapError, TypeError):
    """Value at the target location is not numeric."""

    kind = "NotANumber"

    def __init__(self, key: Any, path: Sequence[Step], found: Any):
        self.found_type = type(found).__name__
        super().__init__(
            f"Value at '{_format_path(path) or '<root>'}' in key {key!r} "
            f"is {self.found_type}, not a number",
            key=key,
            path=path,
        )


class NotSerializable(TablemapError, TypeError):
    """Value cannot be structurally encoded."""

    kind = "NotSerializable"


class DecodeError(TablemapError, ValueError):
    """Stored data could not be decoded."""

    kind = "DecodeError"


class StorageClosed(TablemapError, RuntimeError):
    """Operation attempted on a closed collection."""

    kind = "StorageClosed"

    def __init__(self, name: str = ""):
        self.name = name
        super().__init__(f"Collection '{name}' is closed" if name else "Storage is closed")


class StorageIOError(TablemapError, OSError):
    """The storage engine failed. The original error is chained as __cause__."""

    kind = "StorageIOError"


class IncompatibleVersion(TablemapError, ValueError):
    """Import document was written by a newer version."""

    kind = "IncompatibleVersion"

    def __init__(self, found: str, supported: str):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Import document version {found} is newer than supported version {supported}"
        )


class ImportDataError(TablemapError, ValueError):
    """Import document is not valid."""

    kind = "ImportDataError"


class EmptyCollection(TablemapError, ValueError):
    """reduce() without an initial value on an empty collection."""

    kind = "EmptyCollection"


class ConfigurationError(TablemapError, ValueError):
    """Invalid collection options."""

    kind = "ConfigurationError"


class ArgumentError(TablemapError, ValueError):
    """Invalid arguments to an operation."""

    kind = "ArgumentError"
