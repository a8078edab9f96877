from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from domain.documents import GraphDocument


class GraphDocumentRepository(Protocol):
    def load(self, path: Path) -> GraphDocument: ...

    def save(self, document: GraphDocument, path: Path) -> None: ...

    def save_layout(self, payload: Mapping[str, Any], path: Path) -> None: ...
