from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, List


class ValueKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    NULL = "null"


def _kind_of(raw: Any) -> ValueKind:
    if raw is None:
        return ValueKind.NULL
    if isinstance(raw, bool):
        return ValueKind.BOOL
    if isinstance(raw, (int, float)):
        return ValueKind.NUMBER
    if isinstance(raw, str):
        return ValueKind.STRING
    if isinstance(raw, dict):
        return ValueKind.OBJECT
    if isinstance(raw, (list, tuple)):
        return ValueKind.ARRAY
    raise TypeError(f"Unsupported structured value type: {type(raw).__name__}")


class Value:
    """
    Decoded command output with forgiving accessors.

    Navigating into a missing key, or through a value of the wrong kind,
    yields a NULL value instead of raising, so collectors can treat absent
    fields as empty data.
    """

    __slots__ = ("_raw", "_kind")

    def __init__(self, raw: Any = None) -> None:
        self._kind = _kind_of(raw)
        self._raw = raw

    @classmethod
    def empty(cls) -> Value:
        return cls(None)

    @property
    def kind(self) -> ValueKind:
        return self._kind

    @property
    def raw(self) -> Any:
        return self._raw

    @property
    def is_null(self) -> bool:
        return self._kind is ValueKind.NULL

    def get(self, *path: str) -> Value:
        """Follow object keys; any missing step returns a NULL value."""
        current: Any = self._raw
        for key in path:
            if not isinstance(current, dict) or key not in current:
                return Value.empty()
            current = current[key]
        return Value(current)

    def items(self) -> List[Value]:
        """Array elements wrapped as values; empty for anything but an array."""
        if self._kind is not ValueKind.ARRAY:
            return []
        return [Value(item) for item in self._raw]

    def keys(self) -> List[str]:
        if self._kind is not ValueKind.OBJECT:
            return []
        return list(self._raw.keys())

    def find(self, key: str, expected: Any) -> Value:
        """First object element of an array whose key equals expected."""
        for item in self.items():
            if item.get(key).raw == expected:
                return item
        return Value.empty()

    def text(self, default: str = "") -> str:
        """Scalar as text; default for NULL and containers."""
        if self._kind is ValueKind.STRING:
            return self._raw
        if self._kind is ValueKind.BOOL:
            return "true" if self._raw else "false"
        if self._kind is ValueKind.NUMBER:
            return str(self._raw)
        return default

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items())

    def __len__(self) -> int:
        if self._kind in (ValueKind.OBJECT, ValueKind.ARRAY, ValueKind.STRING):
            return len(self._raw)
        return 0

    def __bool__(self) -> bool:
        if self._kind is ValueKind.NULL:
            return False
        if self._kind in (ValueKind.OBJECT, ValueKind.ARRAY, ValueKind.STRING):
            return len(self._raw) > 0
        return True

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Value):
            return self._kind is other._kind and self._raw == other._raw
        return NotImplemented

    def __repr__(self) -> str:
        return f"Value({self._kind.value}, {self._raw!r})"
