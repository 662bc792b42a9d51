"""
The value set of a single directory attribute.

python-ldap hands back every attribute as a list of ``bytes``.  We convert that
list into a :py:class:`ValueList` as soon as an entry is built, so nothing above
the entry ever sees the raw form.
"""

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, overload


def decode_value(value: bytes) -> str | bytes:
    """
    Decode a raw attribute value as UTF-8.

    Binary values (``jpegPhoto``, ``objectSid``, certificates, ...) are not
    valid UTF-8 and are returned unchanged.

    Args:
        value: the raw value as returned by python-ldap

    Returns:
        The decoded string, or ``value`` itself if it is not valid UTF-8.

    """
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value


class ValueList(Sequence):
    """
    An ordered, immutable sequence of the values of one attribute.

    Values keep the order in which the server returned them.  A
    :py:class:`ValueList` compares equal to any list or tuple holding the same
    values in the same order.

    Args:
        raw: the raw ``bytes`` values for the attribute

    """

    __slots__ = ("_raw", "_values")

    def __init__(self, raw: Iterable[bytes]) -> None:
        self._raw: tuple[bytes, ...] = tuple(raw)
        self._values: tuple[str | bytes, ...] = tuple(
            decode_value(v) for v in self._raw
        )

    @overload
    def __getitem__(self, index: int) -> str | bytes: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[str | bytes, ...]: ...

    def __getitem__(self, index):
        return self._values[index]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str | bytes]:
        return iter(self._values)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ValueList):
            return self._values == other._values
        if isinstance(other, (list, tuple)):
            return list(self._values) == list(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"ValueList({list(self._values)!r})"

    @property
    def raw(self) -> tuple[bytes, ...]:
        """
        The values exactly as the server sent them.
        """
        return self._raw

    def first(self) -> str | bytes | None:
        """
        Return the first value, or ``None`` if there are no values.
        """
        if self._values:
            return self._values[0]
        return None
