from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from domain.models import Variant
from domain.ports.presentation import PresentationSink, RowStore


class ListRowStore(RowStore):
    def __init__(self, name: str) -> None:
        self.name = name
        self._rows: list[dict[str, Variant]] = []

    def add_row(self, values: Mapping[str, Variant]) -> int:
        self._rows.append(dict(values))
        return len(self._rows) - 1

    def get_row(self, index: int) -> MutableMapping[str, Variant]:
        return self._rows[self._check_index(index)]

    def remove_row(self, index: int) -> None:
        del self._rows[self._check_index(index)]

    def clear(self) -> None:
        self._rows.clear()

    def size(self) -> int:
        return len(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def to_json(self) -> list[dict[str, Any]]:
        return [{key: value.to_json() for key, value in row.items()} for row in self._rows]

    def _check_index(self, index: int) -> int:
        if not 0 <= index < len(self._rows):
            msg = f"Row index {index} out of range for {self.name} ({len(self._rows)} rows)"
            raise IndexError(msg)
        return index


class InMemoryPresentationSink(PresentationSink):
    """Sink backed by plain lists, named ``<prefix>_vertices`` and so on."""

    def __init__(self, prefix: str = "graph") -> None:
        self.prefix = prefix
        self._vertices = ListRowStore(f"{prefix}_vertices")
        self._edges = ListRowStore(f"{prefix}_edges")
        self._graph: dict[str, Variant] = {}

    @property
    def vertices(self) -> ListRowStore:
        return self._vertices

    @property
    def edges(self) -> ListRowStore:
        return self._edges

    @property
    def graph(self) -> MutableMapping[str, Variant]:
        return self._graph

    def snapshot(self) -> dict[str, Any]:
        return {
            f"{self.prefix}_graph": {key: value.to_json() for key, value in self._graph.items()},
            f"{self.prefix}_vertices": self._vertices.to_json(),
            f"{self.prefix}_edges": self._edges.to_json(),
        }
