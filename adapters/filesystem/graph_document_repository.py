from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import orjson

from domain.documents import GraphDocument
from domain.ports.repositories import GraphDocumentRepository


def dump_json_bytes(payload: Any) -> bytes:
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2)


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    tmp_path.write_bytes(dump_json_bytes(payload))
    tmp_path.replace(path)


class FileSystemGraphDocumentRepository(GraphDocumentRepository):
    def load(self, path: Path) -> GraphDocument:
        return GraphDocument.model_validate(orjson.loads(path.read_bytes()))

    def save(self, document: GraphDocument, path: Path) -> None:
        write_json_atomic(path, document.model_dump(mode="json", exclude_none=True))

    def save_layout(self, payload: Mapping[str, Any], path: Path) -> None:
        write_json_atomic(path, dict(payload))
