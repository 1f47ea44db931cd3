"""Core Collection class: a persistent map with path-addressed mutation."""

import copy
import json
import logging
import math
import random
import re
import threading
import time
import warnings
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse

from . import aggregation
from .backends.base import StorageBackend
from .backends.memory import MemoryBackend
from .backends.sqlite import SQLiteBackend
from .config import DEFAULT_NAME, CollectionOptions
from .exceptions import (
    ArgumentError,
    ConfigurationError,
    ImportDataError,
    IncompatibleVersion,
    KeyTypeError,
    NotAList,
    NotANumber,
    NotAnObject,
    PathNotFound,
)
from .paths import (
    MISSING,
    PathLike,
    Steps,
    deep_equal,
    deep_merge,
    delete_path,
    get_path,
    has_path,
    is_composite,
    is_number,
    parse_path,
    push_path,
    remove_path,
    set_path,
)
from .serialization import Serializer
from .version import __version__


logger = logging.getLogger(__name__)

Key = Union[str, int]
ChangeCallback = Callable[[str, Any, Any], None]

_OPERATORS = {
    "+": "+", "add": "+", "addition": "+",
    "-": "-", "sub": "-", "subtract": "-",
    "*": "*", "mult": "*", "multiply": "*",
    "/": "/", "div": "/", "divide": "/",
    "%": "%", "mod": "%", "modulo": "%",
    "^": "^", "exp": "^", "exponent": "^",
    "rand": "rand", "random": "rand",
}


def _divide(base: float, divisor: float) -> float:
    if divisor == 0:
        # IEEE-754: x/0 is a signed infinity, 0/0 is NaN.
        if base == 0 or math.isnan(base):
            return math.nan
        return math.copysign(math.inf, base) * math.copysign(1.0, divisor)
    return base / divisor


def _remainder(base: float, divisor: float) -> float:
    # Sign follows the dividend, as with C fmod.
    if divisor == 0:
        return math.nan
    if isinstance(base, int) and isinstance(divisor, int):
        result = abs(base) % abs(divisor)
        return -result if base < 0 else result
    try:
        return math.fmod(base, divisor)
    except ValueError:
        return math.nan


def _power(base: float, exponent: float) -> float:
    try:
        result = float(base) ** exponent
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        odd = isinstance(exponent, int) and exponent % 2 == 1
        return -math.inf if base < 0 and odd else math.inf
    if isinstance(result, complex):
        return math.nan
    # Integers stay exact while they fit a double's integer range.
    if isinstance(base, int) and isinstance(exponent, int) and exponent >= 0 and abs(result) < 2 ** 53:
        return base ** exponent
    return result


def calculate(base: float, operator: str, operand: float) -> float:
    """Apply a math operator by symbol or name.

    Raises:
        ArgumentError: If the operator is unknown
    """
    op = _OPERATORS.get(operator) if isinstance(operator, str) else None
    if op is None:
        raise ArgumentError(f"Unknown math operator: {operator!r}")
    if op == "+":
        return base + operand
    if op == "-":
        return base - operand
    if op == "*":
        return base * operand
    if op == "/":
        return _divide(base, operand)
    if op == "%":
        return _remainder(base, operand)
    if op == "^":
        return _power(base, operand)
    return math.floor(random.random() * math.floor(operand))


def _version_tuple(version: Any) -> Tuple[int, ...]:
    parts = []
    for piece in str(version).split("."):
        match = re.match(r"\d+", piece)
        if match is None:
            raise ImportDataError(f"Unrecognised version marker: {version!r}")
        parts.append(int(match.group()))
    while len(parts) < 3:
        parts.append(0)
    return tuple(parts)


class Collection:
    """A named, persistent key/value collection with path-addressed mutation.

    Values are JSON-like: None, bool, numbers, str, lists and str-keyed
    dicts. Every operation is a complete read-decode-modify-encode-write
    cycle under the collection's lock, so a half-applied change is never
    stored or returned. Failures in path resolution or encoding happen
    before anything is written.

    Example:
        from tablemap import Collection

        users = Collection("users")
        users.set("alice", {"name": "Alice", "tags": []})

        users.push("alice", "admin", "tags")
        users.set("alice", 30, "age")
        users.inc("alice", "age")

        users.get("alice", "age")      # 31
        users.get("bob")               # MISSING

        users.filter("name", "Alice")  # [{'name': 'Alice', ...}]
    """

    def __init__(
        self,
        name: str = DEFAULT_NAME,
        *,
        options: Optional[CollectionOptions] = None,
        backend: Optional[StorageBackend] = None,
        **kwargs,
    ):
        """Open (creating if needed) a collection.

        Use connect() for URL-based construction and multi() to open
        several collections with shared options.

        Args:
            name: Collection name
            options: Prebuilt options; mutually exclusive with keyword options
            backend: Connected backend to use instead of the one implied by
                the options
            **kwargs: CollectionOptions fields (data_dir, in_memory, ...)

        Raises:
            ConfigurationError: If the options are invalid
            StorageIOError: If the backing database cannot be opened
        """
        if options is None:
            try:
                options = CollectionOptions(name=name, **kwargs)
            except TypeError as e:
                raise ConfigurationError(str(e)) from e
        elif kwargs:
            raise ConfigurationError("Pass either options or keyword options, not both")

        if backend is None:
            backend = SQLiteBackend()
            path = ":memory:" if options.in_memory else str(options.database_path())
            backend.connect(path=path, table=options.name, **options.storage_options)

        self._options = options
        self._backend = backend
        self._serializer = Serializer(options.serializer, options.deserializer)
        self._changed: Optional[ChangeCallback] = None
        self._lock = threading.RLock()
        self._in_transaction = False

    @classmethod
    def multi(cls, names: Sequence[str], **options) -> Dict[str, "Collection"]:
        """Open one collection per name with otherwise shared options.

        Any "name" in options is ignored.

        Raises:
            ArgumentError: If names is empty or a bare string
        """
        if isinstance(names, str) or not names:
            raise ArgumentError('"names" must be a non-empty list of collection names')
        options.pop("name", None)
        try:
            shared = CollectionOptions(**options)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

        opened: Dict[str, Collection] = {}
        try:
            for name in names:
                opened[name] = cls(options=shared.with_name(name))
        except Exception:
            for collection in opened.values():
                collection.close()
            raise
        return opened

    # Properties

    @property
    def name(self) -> str:
        return self._options.name

    @property
    def options(self) -> CollectionOptions:
        return self._options

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def closed(self) -> bool:
        return not self._backend.is_open

    @property
    def size(self) -> int:
        return self.count()

    # Internal helpers

    @staticmethod
    def _key(key: Any) -> str:
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            raise KeyTypeError(key)
        return str(key)

    def _load(self, key: str) -> Any:
        data = self._backend.get(key)
        if data is None:
            return MISSING
        return self._serializer.decode(data, key)

    def _store(self, key: str, old: Any, new: Any) -> None:
        # Encode first: a value that cannot be stored never reaches the
        # callback or the backend.
        data = self._serializer.encode(new, key)
        if self._changed is not None:
            self._changed(key, old, new)
        self._backend.put(key, data)

    def _root_for(self, current: Any, steps: Steps) -> Any:
        if current is MISSING or current is None:
            return [] if steps and isinstance(steps[0], int) else {}
        return current

    def _decoded_entries(self) -> Iterator[Tuple[str, Any]]:
        for key, data in self._backend.entries():
            yield key, self._serializer.decode(data, key)

    # Reading

    def get(self, key: Key, path: PathLike = None, default: Any = MISSING) -> Any:
        """Return the value stored at key (and path).

        A missing key or path returns default (MISSING unless given). When
        the collection has auto_ensure set, a missing key is first stored
        with that value.

        Raises:
            KeyTypeError: If key is not str or int
            NotIndexable: If the path runs into a primitive
        """
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            value = self._load(k)
            if value is MISSING:
                if self._options.auto_ensure is None:
                    return default
                value = copy.deepcopy(self._options.auto_ensure)
                self._store(k, MISSING, value)
            if not steps:
                return value
            try:
                return get_path(value, steps, k)
            except PathNotFound:
                return default

    def has(self, key: Key, path: PathLike = None) -> bool:
        """Whether key (and path within it) exists. Never creates anything."""
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            if not steps:
                return self._backend.exists(k)
            value = self._load(k)
            if value is MISSING:
                return False
            return has_path(value, steps, k)

    exists = has

    def includes(self, key: Key, value: Any, path: PathLike = None) -> bool:
        """Whether the list at key (and path) holds an element equal to value.

        Raises:
            NotAList: If the target exists and is not a list
        """
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            current = self._load(k)
        if current is MISSING:
            return False
        try:
            target = get_path(current, steps, k)
        except PathNotFound:
            return False
        if not isinstance(target, list):
            raise NotAList(k, steps, target)
        return any(deep_equal(item, value) for item in target)

    # Writing

    def set(self, key: Key, value: Any, path: PathLike = None) -> None:
        """Store value at key, or at path inside the value stored at key.

        A path write on a new key starts from an empty dict (or an empty
        list when the first step is an index).

        Raises:
            NotSerializable: If value cannot be encoded
            PathNotFound: If ensure_props is off and an intermediate is missing
            NotIndexable: If the path runs into a primitive
        """
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            old = self._load(k)
            if steps:
                new = set_path(self._root_for(old, steps), steps, value, k, self._options.ensure_props)
            else:
                new = value
            self._store(k, old, new)

    def delete(self, key: Key, path: PathLike = None) -> None:
        """Delete key, or the location at path inside its value.

        Deleting a missing key is a no-op, as is a path delete on a missing
        key. A path delete on an existing key whose path does not resolve
        raises PathNotFound.
        """
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            if not steps:
                if self._changed is not None:
                    old = self._load(k)
                    if old is not MISSING:
                        self._changed(k, old, MISSING)
                self._backend.delete(k)
                return
            old = self._load(k)
            if old is MISSING:
                return
            self._store(k, old, delete_path(old, steps, k))

    def clear(self) -> None:
        """Delete every key in the collection."""
        with self._lock, self.transaction():
            self._backend.clear()
        logger.debug("Cleared collection %r", self.name)

    def ensure(self, key: Key, default: Any = MISSING, path: PathLike = None) -> Any:
        """Return the value at key (and path), storing default first if missing.

        An existing value is returned untouched. On a collection with
        auto_ensure, the key-level default is always auto_ensure.

        Raises:
            ArgumentError: If no default is available
        """
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            if not steps and self._options.auto_ensure is not None:
                if default is not MISSING:
                    warnings.warn(
                        f"auto_ensure is set for collection {self.name!r}; "
                        f"the default given for {k!r} is ignored.",
                        UserWarning,
                        stacklevel=2,
                    )
                default = self._options.auto_ensure
            if default is MISSING:
                raise ArgumentError("ensure() requires a default value", key=k, path=steps)

            old = self._load(k)
            if not steps:
                if old is not MISSING:
                    return old
                value = copy.deepcopy(default)
                self._store(k, MISSING, value)
                return copy.deepcopy(value)

            if old is not MISSING:
                try:
                    return get_path(old, steps, k)
                except PathNotFound:
                    pass
            value = copy.deepcopy(default)
            new = set_path(self._root_for(old, steps), steps, value, k, self._options.ensure_props)
            self._store(k, old, new)
            return copy.deepcopy(value)

    def update(self, key: Key, value_or_fn: Any) -> Any:
        """Deep-merge a dict into the dict stored at key, or replace it via a function.

        With a dict, nested dicts merge recursively and everything else
        (lists included) is replaced by the incoming side. With a callable,
        it receives the current value and its return value is stored as is.

        Returns:
            The stored result

        Raises:
            PathNotFound: If key is missing
            NotAnObject: If the stored value is not a dict
        """
        k = self._key(key)
        if not callable(value_or_fn) and not isinstance(value_or_fn, dict):
            raise ArgumentError("update() needs a dict or a function", key=k)
        with self._lock:
            old = self._load(k)
            if old is MISSING:
                raise PathNotFound(k)
            if not isinstance(old, dict):
                raise NotAnObject(k, (), old)
            if callable(value_or_fn):
                new = value_or_fn(copy.deepcopy(old))
            else:
                new = deep_merge(old, value_or_fn)
            self._store(k, old, new)
            return copy.deepcopy(new)

    # Arrays

    def push(self, key: Key, value: Any, path: PathLike = None, allow_dupes: bool = False) -> None:
        """Append value to the list at key (and path), creating the list if missing.

        Without allow_dupes, a value equal to an existing element is not added.

        Raises:
            NotAList: If the target exists and is not a list
        """
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            old = self._load(k)
            root = self._root_for(old, steps) if steps else ([] if old is MISSING else old)
            new = push_path(root, steps, value, allow_dupes, k, self._options.ensure_props)
            if new is old:
                return
            self._store(k, old, new)

    def remove(self, key: Key, value_or_fn: Any, path: PathLike = None) -> None:
        """Remove the first element of the list at key (and path) that matches.

        value_or_fn is either a value compared structurally or a predicate
        called with each element. No match leaves the list unchanged.

        Raises:
            PathNotFound: If key or path is missing
            NotAList: If the target is not a list
        """
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            old = self._load(k)
            if old is MISSING:
                raise PathNotFound(k)
            new = remove_path(old, steps, value_or_fn, k)
            if new is not old:
                self._store(k, old, new)

    # Numbers

    def math(self, key: Key, operator: str, operand: float, path: PathLike = None) -> float:
        """Apply an arithmetic operator to the number at key (and path).

        Operators: + add addition, - sub subtract, * mult multiply,
        / div divide, % mod modulo, ^ exp exponent, rand random.
        Division by zero yields inf or nan rather than raising.

        Returns:
            The new stored number

        Raises:
            PathNotFound: If key or path is missing
            NotANumber: If the target is not a number
            ArgumentError: If operator or operand is invalid
        """
        k = self._key(key)
        steps = parse_path(path)
        if not is_number(operand):
            raise ArgumentError(f"Math operand must be a number, got {operand!r}", key=k, path=steps)
        with self._lock:
            old = self._load(k)
            if old is MISSING:
                raise PathNotFound(k)
            current = get_path(old, steps, k)
            if not is_number(current):
                raise NotANumber(k, steps, current)
            result = calculate(current, operator, operand)
            self._store(k, old, set_path(old, steps, result, k))
            return result

    def inc(self, key: Key, path: PathLike = None) -> float:
        """Add one to the number at key (and path) and return it."""
        return self.math(key, "+", 1, path)

    def dec(self, key: Key, path: PathLike = None) -> float:
        """Subtract one from the number at key (and path) and return it."""
        return self.math(key, "-", 1, path)

    # Keys and enumeration

    def autonum(self) -> str:
        """Return a key that does not currently exist in the collection.

        Keys come from a persisted counter, so they only ever grow; gaps
        are possible.
        """
        with self._lock:
            while True:
                candidate = str(self._backend.next_counter())
                if not self._backend.exists(candidate):
                    return candidate

    def count(self) -> int:
        return self._backend.count()

    def keys(self) -> Iterator[str]:
        """Iterate keys in ascending key order."""
        return self._backend.keys()

    indexes = keys

    def values(self) -> Iterator[Any]:
        """Iterate decoded values in key order."""
        for _, value in self._decoded_entries():
            yield value

    def entries(self) -> Iterator[Tuple[str, Any]]:
        """Iterate (key, decoded value) pairs in key order."""
        return self._decoded_entries()

    items = entries

    def random(self, count: int = 1) -> List[Tuple[str, Any]]:
        """Return up to count distinct (key, value) pairs chosen at random."""
        if not isinstance(count, int) or count < 0:
            raise ArgumentError(f"count must be a non-negative int, got {count!r}")
        return [
            (key, self._serializer.decode(data, key))
            for key, data in self._backend.random(count)
        ]

    def random_key(self, count: int = 1) -> List[str]:
        """Return up to count distinct keys chosen at random."""
        if not isinstance(count, int) or count < 0:
            raise ArgumentError(f"count must be a non-negative int, got {count!r}")
        return [key for key, _ in self._backend.random(count)]

    # Aggregation

    def find(self, path_or_fn: Any, value: Any = MISSING) -> Any:
        """First value matching fn(value, key), or whose path equals value.

        Returns MISSING when nothing matches.
        """
        predicate = aggregation.build_predicate(path_or_fn, value)
        return aggregation.find(self._decoded_entries(), predicate)

    def find_index(self, path_or_fn: Any, value: Any = MISSING) -> Any:
        """Like find(), but returns the key of the match."""
        predicate = aggregation.build_predicate(path_or_fn, value)
        return aggregation.find_key(self._decoded_entries(), predicate)

    def filter(self, path_or_fn: Any, value: Any = MISSING) -> List[Any]:
        predicate = aggregation.build_predicate(path_or_fn, value)
        return aggregation.filter_values(self._decoded_entries(), predicate)

    def map(self, path_or_fn: Any) -> List[Any]:
        """Project every entry through fn(value, key), or to the value at a path."""
        mapper = aggregation.build_mapper(path_or_fn)
        return aggregation.map_values(self._decoded_entries(), mapper)

    def reduce(self, fn: Callable[[Any, Any, str], Any], initial: Any = MISSING) -> Any:
        """Fold fn(accumulator, value, key) over all entries in key order.

        Raises:
            EmptyCollection: If the collection is empty and no initial value is given
        """
        return aggregation.reduce_values(self._decoded_entries(), fn, initial)

    def every(self, path_or_fn: Any, value: Any = MISSING) -> bool:
        predicate = aggregation.build_predicate(path_or_fn, value)
        return aggregation.every(self._decoded_entries(), predicate)

    def some(self, path_or_fn: Any, value: Any = MISSING) -> bool:
        predicate = aggregation.build_predicate(path_or_fn, value)
        return aggregation.some(self._decoded_entries(), predicate)

    def partition(self, path_or_fn: Any, value: Any = MISSING) -> Tuple[List[Any], List[Any]]:
        """Split values into (matching, non_matching)."""
        predicate = aggregation.build_predicate(path_or_fn, value)
        return aggregation.partition(self._decoded_entries(), predicate)

    def sweep(self, path_or_fn: Any, value: Any = MISSING) -> int:
        """Delete every matching entry.

        Returns:
            Number of entries removed
        """
        predicate = aggregation.build_predicate(path_or_fn, value)
        with self._lock:
            doomed = aggregation.matching_keys(self._decoded_entries(), predicate)
            with self.transaction():
                removed = self._backend.delete_many(doomed)
        logger.debug("Swept %d entries from %r", removed, self.name)
        return removed

    # Observation and callbacks

    def changed(self, callback: Optional[ChangeCallback]) -> None:
        """Register callback(key, old_value, new_value) for single-key writes.

        The callback runs before each write made by set, the path and array
        helpers, math, update, ensure and delete. old_value is MISSING for a
        new key and new_value is MISSING for a deleted one. Bulk operations
        (clear, import_data, sweep) do not trigger it. Pass None to remove.
        """
        if callback is not None and not callable(callback):
            raise ArgumentError("changed() needs a callable or None")
        self._changed = callback

    @contextmanager
    def observe(self, key: Key, path: PathLike = None):
        """Context manager yielding a mutable dict or list stored at key (and path).

        Changes made inside the block are written back when it exits
        cleanly; if it raises, nothing is written.

        Example:
            with users.observe("alice", "tags") as tags:
                tags.append("editor")

        Raises:
            PathNotFound: If key or path is missing
            NotAnObject: If the target is not a dict or list
        """
        k = self._key(key)
        steps = parse_path(path)
        with self._lock:
            root = self._load(k)
            if root is MISSING:
                raise PathNotFound(k)
            target = get_path(root, steps, k)
            if not is_composite(target):
                raise NotAnObject(k, steps, target, expected="a mapping or list")
            before = copy.deepcopy(root) if self._changed is not None else None
            yield target
            self._store(k, before, root)

    # Import / export

    def export(self) -> str:
        """Serialize the whole collection to a JSON document.

        The document holds the collection name, export time in epoch
        milliseconds, the library version and every (key, encoded value).
        """
        with self._lock:
            rows = [{"key": key, "value": data} for key, data in self._backend.entries()]
        logger.debug("Exported %d entries from %r", len(rows), self.name)
        return json.dumps(
            {
                "name": self.name,
                "exportDate": int(time.time() * 1000),
                "version": __version__,
                "keys": rows,
            },
            ensure_ascii=False,
        )

    def import_data(self, document: str, overwrite: bool = True, clear: bool = False) -> int:
        """Load entries from an export() document.

        Args:
            document: JSON text produced by export()
            overwrite: Replace keys that already exist
            clear: Empty the collection first

        Returns:
            Number of entries written

        Raises:
            ImportDataError: If the document is not valid
            IncompatibleVersion: If the document comes from a newer version
        """
        try:
            parsed = json.loads(document)
        except (TypeError, ValueError) as e:
            raise ImportDataError("Data provided is not valid JSON") from e
        if parsed is None:
            raise ImportDataError(f"No data provided for import into {self.name!r}")
        if not isinstance(parsed, dict) or not isinstance(parsed.get("keys"), list):
            raise ImportDataError("Import document must be an object with a 'keys' list")

        version = parsed.get("version")
        if version is not None and _version_tuple(version) > _version_tuple(__version__):
            raise IncompatibleVersion(str(version), __version__)

        rows = []
        for entry in parsed["keys"]:
            if not isinstance(entry, dict) or "key" not in entry or not isinstance(entry.get("value"), str):
                raise ImportDataError(f"Malformed import entry: {entry!r}")
            rows.append((self._key(entry["key"]), entry["value"]))

        written = 0
        with self._lock, self.transaction():
            if clear:
                self._backend.clear()
            for key, data in rows:
                if not overwrite and self._backend.exists(key):
                    continue
                self._backend.put(key, data)
                written += 1
        logger.debug("Imported %d of %d entries into %r", written, len(rows), self.name)
        return written

    # Transaction support

    @contextmanager
    def transaction(self):
        """Context manager grouping operations into one atomic unit.

        Changes within the transaction are committed on successful exit,
        or rolled back on exception.

        Example:
            with users.transaction():
                users.set("alice", {...})
                users.delete("bob")
        """
        with self._lock:
            if self._in_transaction or not self._backend.supports_transactions:
                # Nested transaction - changes go to the outer one
                yield
                return

            self._in_transaction = True
            handle = self._backend.begin_transaction()
            try:
                yield
                self._backend.commit_transaction(handle)
            except Exception:
                self._backend.rollback_transaction(handle)
                raise
            finally:
                self._in_transaction = False

    # Dict-like interface

    def __getitem__(self, key: Key) -> Any:
        value = self.get(key)
        if value is MISSING:
            raise PathNotFound(key)
        return value

    def __setitem__(self, key: Key, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: Key) -> None:
        with self._lock:
            if not self.has(key):
                raise PathNotFound(key)
            self.delete(key)

    def __contains__(self, key: Any) -> bool:
        try:
            return self.has(key)
        except KeyTypeError:
            return False

    def __iter__(self) -> Iterator[str]:
        return self.keys()

    def __len__(self) -> int:
        return self.count()

    # Lifecycle

    def close(self) -> None:
        """Close the collection and release its backend."""
        with self._lock:
            self._backend.close()

    def __enter__(self) -> "Collection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Collection {self.name!r} ({type(self._backend).__name__}, {state})>"


def multi(names: Sequence[str], **options) -> Dict[str, Collection]:
    """Open one Collection per name with shared options. See Collection.multi()."""
    return Collection.multi(names, **options)


def connect(url: str, **options) -> Collection:
    """Open a collection from a URL.

    Supported URL schemes:
        - memory://          dict-backed storage (testing)
        - sqlite:///path.db  SQLite file storage
        - sqlite:///:memory: SQLite in-memory

    Args:
        url: Connection URL
        **options: CollectionOptions fields; data_dir and in_memory are
            ignored because the URL names the storage

    Returns:
        Connected Collection

    Example:
        users = connect("sqlite:///app.db", name="users")
        scratch = connect("memory://")
    """
    try:
        opts = CollectionOptions(**options)
    except TypeError as e:
        raise ConfigurationError(str(e)) from e

    parsed = urlparse(url)
    scheme = parsed.scheme

    if scheme == "memory":
        backend: StorageBackend = MemoryBackend()
        backend.connect(table=opts.name)
    elif scheme == "sqlite":
        # Handle sqlite:///path and sqlite:///:memory:
        path = parsed.path
        if path.startswith("/"):
            path = path[1:]
        backend = SQLiteBackend()
        backend.connect(path=path if path else ":memory:", table=opts.name, **opts.storage_options)
    else:
        raise ConfigurationError(f"Unknown storage scheme: {scheme!r}")

    return Collection(options=opts, backend=backend)
