"""Encoding of logical values to and from their stored form."""

import inspect
import json
from datetime import datetime
from typing import Any, Callable, Optional, Set

from .exceptions import DecodeError, NotSerializable, TablemapError


SerializeHook = Callable[[Any, str], Any]
DeserializeHook = Callable[[Any, str], Any]

_DATETIME_MARKER = "__datetime__"
_ESCAPE_MARKER = "__dict__"

# A one-key user dict keyed by a marker is wrapped under _ESCAPE_MARKER.
_MARKERS = frozenset({_DATETIME_MARKER, _ESCAPE_MARKER})


class Serializer:
    """Convert values to JSON text and back, around optional user hooks.

    The default encoding accepts None, str, int, float, bool, lists (tuples
    are stored as lists), str-keyed dicts and datetimes. Anything else, or
    a value containing a reference cycle, raises NotSerializable.

    User hooks wrap the default encoding:

        encode(value) = to_json(serializer(value, key))
        decode(text)  = deserializer(from_json(text), key)

    Hooks must be plain synchronous callables. Path operations always see
    the deserialized value, never the hook's output.

    Example:
        serializer = Serializer()
        text = serializer.encode({"a": [1, 2]}, "key")   # '{"a":[1,2]}'
        serializer.decode(text, "key")                   # {'a': [1, 2]}
    """

    def __init__(
        self,
        serializer: Optional[SerializeHook] = None,
        deserializer: Optional[DeserializeHook] = None,
    ):
        self._serialize = serializer
        self._deserialize = deserializer

    def encode(self, value: Any, key: str = "") -> str:
        """Encode a logical value for storage.

        Raises:
            NotSerializable: If the (hook-transformed) value cannot be encoded
        """
        if self._serialize is not None:
            try:
                value = self._serialize(value, key)
            except TablemapError:
                raise
            except Exception as e:
                raise NotSerializable(
                    f"Serializer hook failed for key {key!r}: {e}", key=key
                ) from e
            if inspect.isawaitable(value):
                raise NotSerializable(
                    f"Serializer hook returned an awaitable for key {key!r}; "
                    f"hooks must be synchronous",
                    key=key,
                )

        data = self._to_json_compatible(value, key, set())
        try:
            return json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise NotSerializable(f"Cannot encode value for key {key!r}: {e}", key=key) from e

    def decode(self, data: str, key: str = "") -> Any:
        """Decode a stored value.

        Raises:
            DecodeError: If the stored text is corrupt or the hook fails
        """
        try:
            value = self._from_json_compatible(json.loads(data))
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Stored data for key {key!r} is not valid: {e}", key=key) from e

        if self._deserialize is not None:
            try:
                value = self._deserialize(value, key)
            except TablemapError:
                raise
            except Exception as e:
                raise DecodeError(
                    f"Deserializer hook failed for key {key!r}: {e}", key=key
                ) from e
        return value

    def _to_json_compatible(self, value: Any, key: str, active: Set[int]) -> Any:
        """Convert a value to JSON-compatible format, rejecting cycles."""
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        if isinstance(value, datetime):
            return {_DATETIME_MARKER: value.isoformat()}
        if isinstance(value, (list, tuple, dict)):
            marker = id(value)
            if marker in active:
                raise NotSerializable(
                    f"Value for key {key!r} contains a reference cycle", key=key
                )
            active.add(marker)
            try:
                if isinstance(value, dict):
                    result = {}
                    for name, item in value.items():
                        if not isinstance(name, str):
                            raise NotSerializable(
                                f"Mapping keys must be str, got {type(name).__name__} "
                                f"in key {key!r}",
                                key=key,
                            )
                        result[name] = self._to_json_compatible(item, key, active)
                    if len(result) == 1 and next(iter(result)) in _MARKERS:
                        return {_ESCAPE_MARKER: result}
                    return result
                return [self._to_json_compatible(item, key, active) for item in value]
            finally:
                active.discard(marker)
        raise NotSerializable(f"Cannot serialize type: {type(value).__name__}", key=key)

    def _from_json_compatible(self, value: Any) -> Any:
        """Convert a value from JSON-compatible format."""
        if isinstance(value, list):
            return [self._from_json_compatible(v) for v in value]
        if isinstance(value, dict):
            if len(value) == 1 and _DATETIME_MARKER in value:
                return datetime.fromisoformat(value[_DATETIME_MARKER])
            if len(value) == 1 and isinstance(value.get(_ESCAPE_MARKER), dict):
                value = value[_ESCAPE_MARKER]
            return {k: self._from_json_compatible(v) for k, v in value.items()}
        return value
