from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any, TypeVar

import pytest

from adapters.execution.worker import CallerThreadExecutor, LayoutWorker
from adapters.presentation.memory import InMemoryPresentationSink
from domain.errors import GraphLayoutError, LayoutConsistencyError, ParseError, ProcessError
from domain.graph import Graph, GraphBounds
from domain.models import PLACEHOLDER_GEOMETRY, Point, Rect
from domain.services.layout_graph import GraphLayoutService
from tests.helpers.plain_fixtures import (
    FailingLayoutEngine,
    FakeLayoutEngine,
    plain_output_for,
)

T = TypeVar("T")


class CountingCallerExecutor(CallerThreadExecutor):
    def __init__(self) -> None:
        super().__init__()
        self.submitted = 0

    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Future[T]:
        self.submitted += 1
        return super().submit(fn, *args, **kwargs)


class InlineExecutor:
    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Future[T]:
        future: Future[T] = Future()
        future.set_result(fn(*args, **kwargs))
        return future


def _two_vertex_graph(graph: Graph) -> Graph:
    parent = graph.create_vertex(1, 1)
    child = graph.create_vertex(1, 1)
    parent.add_child(child)
    return graph


def test_layout_publishes_geometry_bounds_and_edges(
    graph: Graph, sink: InMemoryPresentationSink
) -> None:
    _two_vertex_graph(graph)
    engine = FakeLayoutEngine(plain_output_for(graph))
    service = GraphLayoutService(engine, InlineExecutor())

    parsed = service.layout(graph)

    assert engine.requests[0].startswith("digraph {\n")
    assert "C -> {D} [arrowhead=none]" in engine.requests[0]
    assert parsed.width == 5.0
    assert graph.bounds == GraphBounds(480.0, 384.0)
    parent, child = graph.vertices
    assert parent.geometry == Rect(48.0, 0.0, 96.0, 96.0)
    assert child.geometry == Rect(144.0, 96.0, 96.0, 96.0)

    assert sink.edges.size() == 1
    row = sink.edges.get_row(0)
    assert row["tail_id"].value == "C"
    assert row["head_id"].value == "D"
    polyline = row["polyline"].value
    assert polyline[0] == Point(96.0, 48.0)
    assert polyline[-2] == Point(192.0, 144.0)
    assert len(polyline) >= 5


def test_layout_rebuilds_edges_on_every_run(graph: Graph, sink: InMemoryPresentationSink) -> None:
    _two_vertex_graph(graph)
    engine = FakeLayoutEngine(lambda _: plain_output_for(graph))
    service = GraphLayoutService(engine, InlineExecutor())
    service.layout(graph)
    parent, child = graph.vertices

    parent.remove_child(child)
    service.layout(graph)

    assert sink.edges.size() == 0


def test_layout_parse_failure_leaves_graph_untouched(
    graph: Graph, sink: InMemoryPresentationSink
) -> None:
    _two_vertex_graph(graph)
    service = GraphLayoutService(FakeLayoutEngine("graph 1 2\n"), InlineExecutor())

    with pytest.raises(ParseError):
        service.layout(graph)

    assert all(vertex.geometry == PLACEHOLDER_GEOMETRY for vertex in graph.vertices)
    assert graph.bounds == GraphBounds(96.0, 96.0)
    assert sink.edges.size() == 0


def test_layout_missing_node_is_consistency_error(graph: Graph) -> None:
    _two_vertex_graph(graph)
    output = plain_output_for(graph, skip={"D"})
    service = GraphLayoutService(FakeLayoutEngine(output), InlineExecutor())

    with pytest.raises(LayoutConsistencyError):
        service.layout(graph)

    assert graph.vertices[0].geometry == PLACEHOLDER_GEOMETRY


def test_layout_process_failure_propagates(graph: Graph) -> None:
    _two_vertex_graph(graph)
    service = GraphLayoutService(FailingLayoutEngine(ProcessError("dot missing")), InlineExecutor())

    with pytest.raises(ProcessError):
        service.layout(graph)


def test_layout_async_applies_on_caller_executor(graph: Graph) -> None:
    _two_vertex_graph(graph)
    caller = CountingCallerExecutor()

    with LayoutWorker() as worker:
        service = GraphLayoutService(FakeLayoutEngine(plain_output_for(graph)), worker)
        done = service.layout_async(graph, caller)

        assert all(vertex.geometry == PLACEHOLDER_GEOMETRY for vertex in graph.vertices)
        caller.run_until(done, timeout=5)

    assert done.result() is None
    assert caller.submitted == 1
    assert caller.pending() == 0
    assert graph.vertices[0].geometry == Rect(48.0, 0.0, 96.0, 96.0)


def test_layout_async_snapshot_is_taken_at_request_time(graph: Graph) -> None:
    parent, child = _two_vertex_graph(graph).vertices
    engine = FakeLayoutEngine(lambda _: plain_output_for(graph))
    caller = CallerThreadExecutor()

    with LayoutWorker() as worker:
        done = GraphLayoutService(engine, worker).layout_async(graph, caller)
        parent.set_size(4, 4)
        caller.run_until(done, timeout=5)

    assert "C [width=1.0 height=1.0 shape=box]" in engine.requests[0]


def test_layout_async_surfaces_engine_failure(graph: Graph) -> None:
    _two_vertex_graph(graph)
    caller = CountingCallerExecutor()

    with LayoutWorker() as worker:
        service = GraphLayoutService(FailingLayoutEngine(ProcessError("exit 1")), worker)
        done = service.layout_async(graph, caller)
        caller.run_until(done, timeout=5)

    assert isinstance(done.exception(), ProcessError)
    assert caller.submitted == 1
    assert all(vertex.geometry == PLACEHOLDER_GEOMETRY for vertex in graph.vertices)


def test_layout_async_surfaces_apply_failure(graph: Graph) -> None:
    _two_vertex_graph(graph)
    caller = CountingCallerExecutor()
    output = plain_output_for(graph, skip={"C"})

    with LayoutWorker() as worker:
        done = GraphLayoutService(FakeLayoutEngine(output), worker).layout_async(graph, caller)
        caller.run_until(done, timeout=5)

    assert isinstance(done.exception(), LayoutConsistencyError)
    assert caller.submitted == 1


def test_layout_async_cancelled_before_apply_skips_apply(graph: Graph) -> None:
    _two_vertex_graph(graph)
    caller = CallerThreadExecutor()

    with LayoutWorker() as worker:
        done = GraphLayoutService(FakeLayoutEngine(plain_output_for(graph)), worker).layout_async(
            graph, caller
        )
        assert done.cancel() is True

    assert caller.run_pending() == 1

    assert done.cancelled()
    assert graph.vertices[0].geometry == PLACEHOLDER_GEOMETRY


def test_layout_overflowing_geometry_leaves_graph_untouched(
    graph: Graph, sink: InMemoryPresentationSink
) -> None:
    graph.create_vertex(1, 1)
    output = "graph 1 5 4\nnode C 1e307 1 1 1 C solid box black lightgrey\nstop\n"
    service = GraphLayoutService(FakeLayoutEngine(output), InlineExecutor())

    with pytest.raises(GraphLayoutError):
        service.layout(graph)

    assert graph.bounds == GraphBounds(96.0, 96.0)
    assert graph.vertices[0].geometry == PLACEHOLDER_GEOMETRY
    assert sink.edges.size() == 0


class DeferredWorker:
    def __init__(self) -> None:
        self._pending: list[tuple[Future[Any], Callable[[], Any]]] = []

    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Future[T]:
        future: Future[T] = Future()
        self._pending.append((future, lambda: fn(*args, **kwargs)))
        return future

    def run_all(self) -> None:
        for future, task in self._pending:
            future.set_result(task())
        self._pending.clear()


class RejectingExecutor:
    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Future[T]:
        raise RuntimeError("executor is shut down")


def test_layout_async_reports_rejected_apply_step(graph: Graph) -> None:
    _two_vertex_graph(graph)
    worker = DeferredWorker()
    service = GraphLayoutService(FakeLayoutEngine(plain_output_for(graph)), worker)

    done = service.layout_async(graph, RejectingExecutor())
    worker.run_all()

    assert isinstance(done.exception(timeout=1), RuntimeError)


def test_layout_async_rejected_apply_after_cancel_is_quiet(
    graph: Graph, caplog: pytest.LogCaptureFixture
) -> None:
    _two_vertex_graph(graph)
    worker = DeferredWorker()
    service = GraphLayoutService(FakeLayoutEngine(plain_output_for(graph)), worker)

    done = service.layout_async(graph, RejectingExecutor())
    assert done.cancel() is True
    with caplog.at_level(logging.ERROR, logger="concurrent.futures"):
        worker.run_all()

    assert done.cancelled()
    assert not [record for record in caplog.records if record.name == "concurrent.futures"]
