from __future__ import annotations

import logging
import time
from concurrent.futures import Future

from domain.graph import Graph, GraphBounds
from domain.models import Rect, RenderableEdge
from domain.ports.execution import TaskExecutor
from domain.ports.layout import LayoutEngine
from domain.services.build_edge_geometry import EdgeGeometryBuilder
from domain.services.encode_dot_graph import encode_dot_graph
from domain.services.parse_plain_layout import PlainLayout, parse_plain_layout

logger = logging.getLogger(__name__)


class GraphLayoutService:
    """Encodes a graph, runs the layout engine and publishes the result.

    ``layout`` blocks for the whole round trip. ``layout_async`` encodes the
    graph on the calling thread, runs the engine and the parser on ``worker``
    and schedules the apply step exactly once on the caller's executor.
    """

    def __init__(
        self,
        engine: LayoutEngine,
        worker: TaskExecutor,
        geometry_builder: EdgeGeometryBuilder | None = None,
    ) -> None:
        self._engine = engine
        self._worker = worker
        self._geometry_builder = geometry_builder or EdgeGeometryBuilder()

    def layout(self, graph: Graph) -> PlainLayout:
        started = time.perf_counter()
        parsed = self.run_engine(encode_dot_graph(graph), graph.dpi)
        self.apply(graph, parsed)
        logger.info(
            "Laid out %d vertices in %.1f ms",
            len(graph),
            (time.perf_counter() - started) * 1000.0,
        )
        return parsed

    def layout_async(self, graph: Graph, apply_executor: TaskExecutor) -> Future[None]:
        started = time.perf_counter()
        dot_text = encode_dot_graph(graph)
        completed: Future[None] = Future()
        parsed = self._worker.submit(self.run_engine, dot_text, graph.dpi)

        def _schedule_apply(done: Future[PlainLayout]) -> None:
            try:
                apply_executor.submit(self._finish_async, graph, done, completed, started)
            except Exception as exc:
                logger.exception("Could not schedule layout apply step")
                if not completed.done():
                    completed.set_exception(exc)

        parsed.add_done_callback(_schedule_apply)
        return completed

    def run_engine(self, dot_text: str, dpi: float) -> PlainLayout:
        logger.debug("Submitting %d bytes of DOT text to layout engine", len(dot_text))
        return parse_plain_layout(self._engine.run(dot_text), dpi)

    def apply(self, graph: Graph, parsed: PlainLayout) -> None:
        dpi = graph.dpi
        geometry: dict[str, Rect] = {
            vertex.id: parsed.node(vertex.id).to_device(dpi) for vertex in graph.vertices
        }
        edges: list[RenderableEdge] = [
            self._geometry_builder.build(edge, dpi)
            for vertex in graph.vertices
            for edge in parsed.edges_to(vertex.id)
        ]
        graph.publish_layout(
            GraphBounds(parsed.width * dpi, parsed.height * dpi),
            geometry,
            edges,
        )

    def _finish_async(
        self,
        graph: Graph,
        parsed: Future[PlainLayout],
        completed: Future[None],
        started: float,
    ) -> None:
        if not completed.set_running_or_notify_cancel():
            return
        try:
            self.apply(graph, parsed.result())
        except Exception as exc:
            logger.exception("Asynchronous layout failed")
            completed.set_exception(exc)
            return
        logger.info(
            "Laid out %d vertices asynchronously in %.1f ms",
            len(graph),
            (time.perf_counter() - started) * 1000.0,
        )
        completed.set_result(None)
