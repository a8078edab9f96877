from __future__ import annotations

from dataclasses import dataclass

from adapters.execution.worker import LayoutWorker
from adapters.graphviz.process_engine import GraphvizLayoutEngine
from adapters.presentation.memory import InMemoryPresentationSink
from app.config import AppSettings
from domain.ports.layout import LayoutEngine
from domain.services.build_edge_geometry import EdgeGeometryBuilder
from domain.services.layout_graph import GraphLayoutService


@dataclass(frozen=True)
class LayoutContext:
    settings: AppSettings
    sink: InMemoryPresentationSink
    worker: LayoutWorker
    service: GraphLayoutService


def build_layout_engine(settings: AppSettings) -> LayoutEngine:
    return GraphvizLayoutEngine(settings.layout.resolved_dot_executable())


def build_layout_context(
    settings: AppSettings,
    engine: LayoutEngine | None = None,
) -> LayoutContext:
    layout = settings.layout
    worker = LayoutWorker()
    service = GraphLayoutService(
        engine or build_layout_engine(settings),
        worker,
        EdgeGeometryBuilder(layout.to_geometry_config()),
    )
    return LayoutContext(
        settings=settings,
        sink=InMemoryPresentationSink(layout.sink_prefix),
        worker=worker,
        service=service,
    )
