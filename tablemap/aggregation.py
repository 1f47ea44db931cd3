"""Predicate and projection operations over a stream of entries.

Each function consumes an iterable of ``(key, value)`` pairs with values
already decoded, one at a time, and stops as early as its result allows.
Collection feeds them straight from a backend scan, so nothing here holds
more than the result it is building.

Matchers are either a callable ``fn(value, key) -> bool`` or a path paired
with a comparison value, in which case an entry matches when the value at
that path is structurally equal to it. A path of None compares whole
values.
"""

from typing import Any, Callable, Iterable, List, Tuple

from .exceptions import ArgumentError, EmptyCollection, NotIndexable, PathNotFound
from .paths import MISSING, deep_equal, get_path, parse_path


Entry = Tuple[str, Any]
Predicate = Callable[[Any, str], bool]
Mapper = Callable[[Any, str], Any]


def build_predicate(path_or_fn: Any, value: Any = MISSING) -> Predicate:
    """Normalise a callable or a (path, value) pair into a predicate.

    Raises:
        ArgumentError: If a path is given without a value to compare against
    """
    if callable(path_or_fn):
        return path_or_fn
    if value is MISSING:
        raise ArgumentError("A value is required when matching by path")
    steps = parse_path(path_or_fn)

    def matches(item: Any, key: str) -> bool:
        try:
            found = get_path(item, steps, key)
        except (PathNotFound, NotIndexable):
            return False
        return deep_equal(found, value)

    return matches


def build_mapper(path_or_fn: Any) -> Mapper:
    """Normalise a callable or a path into a projection.

    A path that does not resolve for an entry projects to None.
    """
    if callable(path_or_fn):
        return path_or_fn
    steps = parse_path(path_or_fn)

    def project(item: Any, key: str) -> Any:
        try:
            return get_path(item, steps, key)
        except (PathNotFound, NotIndexable):
            return None

    return project


def find(entries: Iterable[Entry], predicate: Predicate) -> Any:
    """First matching value, or MISSING."""
    for key, value in entries:
        if predicate(value, key):
            return value
    return MISSING


def find_key(entries: Iterable[Entry], predicate: Predicate) -> Any:
    """Key of the first matching value, or MISSING."""
    for key, value in entries:
        if predicate(value, key):
            return key
    return MISSING


def filter_values(entries: Iterable[Entry], predicate: Predicate) -> List[Any]:
    return [value for key, value in entries if predicate(value, key)]


def map_values(entries: Iterable[Entry], mapper: Mapper) -> List[Any]:
    return [mapper(value, key) for key, value in entries]


def reduce_values(
    entries: Iterable[Entry],
    fn: Callable[[Any, Any, str], Any],
    initial: Any = MISSING,
) -> Any:
    """Left fold of fn(accumulator, value, key) over the entries.

    Without an initial value the first entry's value seeds the fold.

    Raises:
        EmptyCollection: If there are no entries and no initial value
    """
    iterator = iter(entries)
    accumulator = initial
    if accumulator is MISSING:
        try:
            _, accumulator = next(iterator)
        except StopIteration:
            raise EmptyCollection("reduce() of an empty collection with no initial value") from None
    for key, value in iterator:
        accumulator = fn(accumulator, value, key)
    return accumulator


def every(entries: Iterable[Entry], predicate: Predicate) -> bool:
    return all(predicate(value, key) for key, value in entries)


def some(entries: Iterable[Entry], predicate: Predicate) -> bool:
    return any(predicate(value, key) for key, value in entries)


def partition(entries: Iterable[Entry], predicate: Predicate) -> Tuple[List[Any], List[Any]]:
    """Split values into (matching, non_matching) in one pass."""
    matching: List[Any] = []
    rest: List[Any] = []
    for key, value in entries:
        (matching if predicate(value, key) else rest).append(value)
    return matching, rest


def matching_keys(entries: Iterable[Entry], predicate: Predicate) -> List[str]:
    return [key for key, value in entries if predicate(value, key)]
