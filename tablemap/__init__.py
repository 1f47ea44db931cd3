"""Synchronous key/value collections on SQLite with path-addressed mutation.

This package provides a map-like interface over a SQLite table, plus
helpers that change one part of a stored JSON-like value in place using
dotted paths like "sub.values.are" or "items.0.name".

Quick Start:
    from tablemap import Collection, MISSING

    # Persistent collection in ./data/tablemap.sqlite
    scores = Collection("scores")

    # Store and read values
    scores.set("alice", {"points": 10, "badges": []})
    scores.get("alice", "points")          # 10
    scores.get("nobody") is MISSING        # True

    # Mutate nested values
    scores.inc("alice", "points")
    scores.push("alice", "early-bird", "badges")
    scores.update("alice", {"team": "red"})

    # Query
    scores.filter("team", "red")
    scores.reduce(lambda total, value, key: total + value["points"], 0)

Supported backends:
    - SQLite file storage (default, shared ./data/tablemap.sqlite)
    - SQLite in-memory (in_memory=True)
    - memory://           dict-backed storage (testing)

Key Classes:
    - Collection: Main interface with dict-like access
    - connect(): Create a Collection from a URL
    - multi(): Open several collections with shared options

Serialization:
    - Values are stored as JSON text
    - serializer / deserializer hooks wrap the default encoding
"""

from .core import Collection, connect, multi, calculate
from .config import CollectionOptions, validate_name
from .paths import MISSING, parse_path
from .serialization import Serializer
from .backends import StorageBackend, MemoryBackend, SQLiteBackend
from .exceptions import (
    TablemapError,
    KeyTypeError,
    PathNotFound,
    NotIndexable,
    NotAList,
    NotAnObject,
    NotANumber,
    NotSerializable,
    DecodeError,
    StorageClosed,
    StorageIOError,
    IncompatibleVersion,
    ImportDataError,
    EmptyCollection,
    ConfigurationError,
    ArgumentError,
)
from .version import __version__

__all__ = [
    # Main API
    "Collection",
    "CollectionOptions",
    "connect",
    "multi",
    "calculate",
    "MISSING",
    "parse_path",
    "validate_name",
    # Backends
    "StorageBackend",
    "MemoryBackend",
    "SQLiteBackend",
    # Serialization
    "Serializer",
    # Exceptions
    "TablemapError",
    "KeyTypeError",
    "PathNotFound",
    "NotIndexable",
    "NotAList",
    "NotAnObject",
    "NotANumber",
    "NotSerializable",
    "DecodeError",
    "StorageClosed",
    "StorageIOError",
    "IncompatibleVersion",
    "ImportDataError",
    "EmptyCollection",
    "ConfigurationError",
    "ArgumentError",
    "__version__",
]
