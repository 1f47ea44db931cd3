"""Construction options for collections."""

import inspect
import re
import warnings
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .exceptions import ConfigurationError
from .serialization import DeserializeHook, SerializeHook


DEFAULT_NAME = "default"
DEFAULT_DATA_DIR = "data"
DATABASE_FILENAME = "tablemap.sqlite"

# Deprecated spelling of in_memory=True.
MEMORY_ALIAS = "::memory::"

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_RESERVED_NAMES = (
    {"con", "prn", "aux", "nul"}
    | {f"com{i}" for i in range(1, 10)}
    | {f"lpt{i}" for i in range(1, 10)}
)


def validate_name(name: Any) -> str:
    """Check that a collection name is safe to use as a table name.

    Names may contain ASCII letters, digits, underscores and hyphens.
    Reserved device names and SQLite's internal prefix are refused.

    Raises:
        ConfigurationError: If the name is not acceptable
    """
    if not isinstance(name, str) or not _NAME_PATTERN.match(name):
        raise ConfigurationError(
            f"Invalid collection name {name!r}: only letters, digits, "
            f"underscores and hyphens are allowed"
        )
    if name.lower() in _RESERVED_NAMES:
        raise ConfigurationError(f"Collection name {name!r} is a reserved device name")
    if name.lower().startswith("sqlite_"):
        raise ConfigurationError(f"Collection name {name!r} uses a reserved prefix")
    return name


def _check_hook(label: str, hook: Any) -> None:
    if hook is None:
        return
    if not callable(hook):
        raise ConfigurationError(f"{label} must be callable, got {type(hook).__name__}")
    if inspect.iscoroutinefunction(hook):
        raise ConfigurationError(f"{label} must be synchronous, not a coroutine function")


@dataclass
class CollectionOptions:
    """Options consumed by Collection and multi().

    Attributes:
        name: Collection name, also the backing table name
        data_dir: Directory holding the database file; defaults to ./data,
            which is created on demand. An explicit directory must exist.
        in_memory: Keep data in memory only; nothing touches the disk
        ensure_props: Create missing intermediate containers on path writes
        auto_ensure: When not None, reads of a missing key store and
            return this value instead of returning MISSING
        serializer: Synchronous hook applied before the default encoding
        deserializer: Synchronous hook applied after the default decoding
        storage_options: Passed through to the backend's connect()
    """

    name: str = DEFAULT_NAME
    data_dir: Optional[Union[str, Path]] = None
    in_memory: bool = False
    ensure_props: bool = True
    auto_ensure: Any = None
    serializer: Optional[SerializeHook] = None
    deserializer: Optional[DeserializeHook] = None
    storage_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.name == MEMORY_ALIAS:
            warnings.warn(
                f"Using {MEMORY_ALIAS!r} as a name is deprecated; "
                f"use in_memory=True instead.",
                DeprecationWarning,
                stacklevel=3,
            )
            self.name = "memory"
            self.in_memory = True
        validate_name(self.name)
        _check_hook("serializer", self.serializer)
        _check_hook("deserializer", self.deserializer)
        if self.storage_options is None:
            self.storage_options = {}
        if not isinstance(self.storage_options, dict):
            raise ConfigurationError("storage_options must be a dict")

    def database_path(self) -> Path:
        """Resolve the SQLite file for a persistent collection.

        Raises:
            ConfigurationError: If an explicit data_dir does not exist
        """
        if self.data_dir is None:
            directory = Path(DEFAULT_DATA_DIR).resolve()
            directory.mkdir(parents=True, exist_ok=True)
        else:
            directory = Path(self.data_dir).resolve()
            if not directory.is_dir():
                raise ConfigurationError(f"Data directory does not exist: {directory}")
        return directory / DATABASE_FILENAME

    def with_name(self, name: str) -> "CollectionOptions":
        """Copy of these options under another collection name."""
        return replace(self, name=name, storage_options=dict(self.storage_options))
