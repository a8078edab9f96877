from __future__ import annotations

import argparse
import json
import time
from enum import Enum

from adapters.execution.worker import CallerThreadExecutor
from app.config import load_settings
from app.wiring import build_layout_context
from domain.graph import Graph


class GraphRole(Enum):
    text = "text"


def main() -> None:
    parser = argparse.ArgumentParser(description="Lay out a small cyclic graph with Graphviz.")
    parser.add_argument("--dpi", type=float, default=96.0)
    parser.add_argument("--dump", action="store_true", help="Print the presentation rows.")
    args = parser.parse_args()

    settings = load_settings()
    context = build_layout_context(settings)
    graph = Graph(context.sink, dpi=args.dpi, user_keys=GraphRole)

    vertices = []
    for index in range(1, 7):
        vertex = graph.create_vertex(1, 1)
        vertex.put(GraphRole.text, f"v{index}")
        vertices.append(vertex)
    v1, v2, v3, v4, v5, v6 = vertices
    v1.add_child(v2)
    v2.add_child(v3)
    v3.add_child(v2)
    v3.add_child(v4)
    v3.add_child(v5)
    v3.add_child(v6)
    v5.add_child(v6)

    caller = CallerThreadExecutor()
    start = time.perf_counter()
    with context.worker:
        done = context.service.layout_async(graph, caller)
        caller.run_until(done)
        done.result()
    print(f"Took {(time.perf_counter() - start) * 1000.0:.0f} milliseconds")

    if args.dump:
        print(json.dumps(context.sink.snapshot(), indent=2))


if __name__ == "__main__":
    main()
