from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Protocol

from domain.models import Variant


class RowStore(Protocol):
    """Ordered rows observed by a display layer.

    ``get_row`` returns the live row; writes to it are visible to observers.
    """

    def add_row(self, values: Mapping[str, Variant]) -> int: ...

    def get_row(self, index: int) -> MutableMapping[str, Variant]: ...

    def remove_row(self, index: int) -> None: ...

    def clear(self) -> None: ...

    def size(self) -> int: ...


class PresentationSink(Protocol):
    @property
    def vertices(self) -> RowStore: ...

    @property
    def edges(self) -> RowStore: ...

    @property
    def graph(self) -> MutableMapping[str, Variant]: ...
