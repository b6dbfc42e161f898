"""
Read-only mapping for values stored on frozen result dataclasses.

frozen=True only blocks attribute reassignment; a dict held by a frozen
dataclass can still be edited in place. FrozenMap has no mutating methods,
hashes by content and pickles like any plain object (joblib snapshots).
"""

from collections.abc import Iterator, Mapping
from typing import Any


class FrozenMap(Mapping):
    """Immutable, hashable, picklable mapping.

    Example:
        >>> ranks = FrozenMap({0: 1, 2: 3})
        >>> ranks == {0: 1, 2: 3}
        True
        >>> ranks[0] = 5
        Traceback (most recent call last):
        ...
        TypeError: 'FrozenMap' object does not support item assignment
    """

    def __init__(self, data: Mapping | None = None):
        self._data = dict(data or {})

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        return hash(frozenset(self._data.items()))

    def __repr__(self) -> str:
        return f"FrozenMap({self._data!r})"

    def to_dict(self) -> dict:
        """Mutable shallow copy."""
        return dict(self._data)


def freeze_mapping(data: Mapping | None) -> FrozenMap:
    """Return data as a FrozenMap (no copy if it already is one)."""
    if isinstance(data, FrozenMap):
        return data
    return FrozenMap(data)
