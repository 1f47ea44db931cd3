"""Path parsing and path-addressed operations on decoded values.

A path addresses a location inside a stored value, never across keys.
Paths are written as dotted strings where purely numeric segments are
list indices:

    "sub.values.are"      -> ("sub", "values", "are")
    "items.0.name"        -> ("items", 0, "name")
    "items[0].name"       -> ("items", 0, "name")

Every write-style function here returns a *new* root. Containers on the
path from the root to the target are shallow-copied; untouched siblings
are shared with the original, which is never modified.
"""

import re
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

from .exceptions import (
    ArgumentError,
    NotAList,
    NotAnObject,
    NotIndexable,
    PathNotFound,
)


Step = Union[str, int]
Steps = Tuple[Step, ...]
PathLike = Union[None, str, int, Sequence[Step]]

_BRACKET_INDEX = re.compile(r"\[(\d+)\]")


class _Missing:
    """Sentinel for an absent key or path. Distinct from a stored None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()


def parse_path(path: PathLike) -> Steps:
    """Parse a path expression into a tuple of steps.

    Args:
        path: Dotted string, a single int index, a sequence of steps, or
            None/"" for the root itself.

    Returns:
        Tuple of str (mapping key) and int (list index) steps

    Raises:
        ArgumentError: If the path is malformed
    """
    if path is None:
        return ()
    if isinstance(path, bool):
        raise ArgumentError(f"Invalid path: {path!r}")
    if isinstance(path, int):
        if path < 0:
            raise ArgumentError(f"List indexes must be non-negative: {path}")
        return (path,)
    if isinstance(path, str):
        if path == "":
            return ()
        normalized = _BRACKET_INDEX.sub(r".\1", path)
        if normalized.startswith(".") and not path.startswith("."):
            normalized = normalized[1:]
        steps: List[Step] = []
        for segment in normalized.split("."):
            if segment == "" or "[" in segment or "]" in segment:
                raise ArgumentError(f"Invalid path: {path!r}")
            steps.append(int(segment) if segment.isascii() and segment.isdigit() else segment)
        return tuple(steps)
    if isinstance(path, (list, tuple)):
        for step in path:
            valid_index = isinstance(step, int) and not isinstance(step, bool) and step >= 0
            if not (isinstance(step, str) or valid_index):
                raise ArgumentError(f"Invalid path step: {step!r}")
        return tuple(path)
    raise ArgumentError(f"Invalid path: {path!r}")


def is_composite(value: Any) -> bool:
    return isinstance(value, (dict, list))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _container_for(step: Step) -> Any:
    # The next step decides what gets created: an index needs a list.
    return [] if isinstance(step, int) else {}


def _child(node: Any, step: Step, key: Any, walked: Steps) -> Any:
    """Look up one step below node, raising if it is absent."""
    if isinstance(node, dict):
        name = str(step)
        if name in node:
            return node[name]
        raise PathNotFound(key, walked + (step,))
    if isinstance(node, list):
        if isinstance(step, int) and step < len(node):
            return node[step]
        raise PathNotFound(key, walked + (step,))
    raise NotIndexable(key, walked, node)


def _replace(node: Any, step: Step, child: Any) -> Any:
    """Shallow copy of node with one child swapped out."""
    if isinstance(node, dict):
        copy = dict(node)
        copy[str(step)] = child
        return copy
    copy = list(node)
    copy[step] = child
    return copy


def get_path(root: Any, steps: Steps, key: Any = None) -> Any:
    """Return the value at steps below root.

    Raises:
        PathNotFound: If any step is absent
        NotIndexable: If a primitive is reached with steps remaining
    """
    node = root
    for depth, step in enumerate(steps):
        node = _child(node, step, key, steps[:depth])
    return node


def has_path(root: Any, steps: Steps, key: Any = None) -> bool:
    """Like get_path(), but absence returns False instead of raising."""
    try:
        get_path(root, steps, key)
    except PathNotFound:
        return False
    return True


def set_path(
    root: Any,
    steps: Steps,
    value: Any,
    key: Any = None,
    vivify: bool = True,
) -> Any:
    """Return a copy of root with value written at steps.

    Missing intermediate containers (absent or None) are created when
    vivify is on: a list when the following step is an index, otherwise
    a mapping. Writing past the end of a list pads it with None.

    Raises:
        PathNotFound: If an intermediate container is missing and vivify is off
        NotIndexable: If a primitive sits on the path
        NotAnObject: If a key step is applied to a list
    """
    if not steps:
        return value
    return _assign(root, steps, value, key, vivify, ())


def _assign(node: Any, steps: Steps, value: Any, key: Any, vivify: bool, walked: Steps) -> Any:
    step, rest = steps[0], steps[1:]
    here = walked + (step,)

    if isinstance(node, dict):
        name = str(step)
        existing = node.get(name)
    elif isinstance(node, list):
        if not isinstance(step, int):
            raise NotAnObject(key, walked, node)
        existing = node[step] if step < len(node) else None
    else:
        raise NotIndexable(key, walked, node)

    if not rest:
        child = value
    else:
        if existing is None:
            if not vivify:
                raise PathNotFound(key, here)
            existing = _container_for(rest[0])
        child = _assign(existing, rest, value, key, vivify, here)

    if isinstance(node, dict):
        return _replace(node, name, child)

    copy = list(node)
    if step >= len(copy):
        copy.extend([None] * (step - len(copy) + 1))
    copy[step] = child
    return copy


def delete_path(root: Any, steps: Steps, key: Any = None) -> Any:
    """Return a copy of root with the location at steps removed.

    List elements are spliced out, so later indexes shift down by one.

    Raises:
        PathNotFound: If the location does not exist
        NotIndexable: If a primitive sits on the path
    """
    if not steps:
        raise ArgumentError("Cannot delete the root of a value by path", key=key)
    return _discard(root, steps, key, ())


def _discard(node: Any, steps: Steps, key: Any, walked: Steps) -> Any:
    step, rest = steps[0], steps[1:]
    if rest:
        child = _child(node, step, key, walked)
        return _replace(node, step, _discard(child, rest, key, walked + (step,)))

    if isinstance(node, dict):
        name = str(step)
        if name not in node:
            raise PathNotFound(key, walked + (step,))
        copy = dict(node)
        del copy[name]
        return copy
    if isinstance(node, list):
        if not isinstance(step, int) or step >= len(node):
            raise PathNotFound(key, walked + (step,))
        return node[:step] + node[step + 1 :]
    raise NotIndexable(key, walked, node)


def push_path(
    root: Any,
    steps: Steps,
    value: Any,
    allow_dupes: bool = False,
    key: Any = None,
    vivify: bool = True,
) -> Any:
    """Return a copy of root with value appended to the list at steps.

    A missing list is created. Without allow_dupes, pushing a value that
    is structurally equal to an existing element leaves root unchanged.

    Raises:
        NotAList: If the target exists and is not a list
    """
    try:
        current = get_path(root, steps, key)
    except PathNotFound:
        current = []
    if not isinstance(current, list):
        raise NotAList(key, steps, current)
    if not allow_dupes and any(deep_equal(item, value) for item in current):
        return root
    return set_path(root, steps, current + [value], key, vivify)


def make_matcher(value_or_fn: Any) -> Callable[[Any], bool]:
    """Turn a literal into a structural-equality predicate; pass callables through."""
    if callable(value_or_fn):
        return value_or_fn
    return lambda item: deep_equal(item, value_or_fn)


def remove_path(root: Any, steps: Steps, value_or_fn: Any, key: Any = None) -> Any:
    """Return a copy of root with the first matching list element removed.

    No match returns root unchanged.

    Raises:
        PathNotFound: If the target does not exist
        NotAList: If the target is not a list
    """
    current = get_path(root, steps, key)
    if not isinstance(current, list):
        raise NotAList(key, steps, current)
    matcher = make_matcher(value_or_fn)
    for index, item in enumerate(current):
        if matcher(item):
            return set_path(root, steps, current[:index] + current[index + 1 :], key)
    return root


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality that keeps booleans apart from numbers.

    Ints and floats compare numerically, mappings by key set and values,
    lists element-wise in order.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(deep_equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


def deep_merge(base: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge incoming into a copy of base.

    Nested mappings merge; anything else (lists included) from incoming
    replaces what base had.
    """
    merged = dict(base)
    for name, value in incoming.items():
        current = merged.get(name)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[name] = deep_merge(current, value)
        else:
            merged[name] = value
    return merged
