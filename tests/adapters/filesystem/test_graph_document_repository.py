from __future__ import annotations

from pathlib import Path

import orjson
import pytest
from pydantic import ValidationError

from adapters.filesystem.graph_document_repository import FileSystemGraphDocumentRepository
from domain.documents import EdgeSpec, GraphDocument, VertexSpec


def test_save_then_load_document(tmp_path: Path) -> None:
    repo = FileSystemGraphDocumentRepository()
    document = GraphDocument(
        vertices=[VertexSpec(key="a", attributes={"label": "A"}), VertexSpec(key="b", width=2)],
        edges=[EdgeSpec(tail="a", head="b")],
    )
    path = tmp_path / "nested" / "graph.json"

    repo.save(document, path)

    assert repo.load(path) == document
    assert not path.with_suffix(".json.tmp").exists()


def test_load_rejects_invalid_document(tmp_path: Path) -> None:
    path = tmp_path / "graph.json"
    path.write_bytes(orjson.dumps({"vertices": [{"key": "a", "width": 0}]}))

    with pytest.raises(ValidationError):
        FileSystemGraphDocumentRepository().load(path)


def test_save_layout_writes_indented_json(tmp_path: Path) -> None:
    path = tmp_path / "layout.json"

    FileSystemGraphDocumentRepository().save_layout({"graph_graph": {"width": 96.0}}, path)

    assert orjson.loads(path.read_bytes()) == {"graph_graph": {"width": 96.0}}
    assert path.read_text(encoding="utf-8").startswith("{\n  ")
