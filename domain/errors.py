from __future__ import annotations


class GraphLayoutError(Exception):
    """Base class for every failure raised by the layout pipeline."""


class ValidationError(GraphLayoutError, ValueError):
    """Invalid argument; raised before any state is mutated."""


class DetachedVertexError(GraphLayoutError, RuntimeError):
    """Operation on a vertex that was removed from its graph."""


class ParseError(GraphLayoutError, ValueError):
    """Layout engine output does not follow the plain grammar."""


class ProcessError(GraphLayoutError, RuntimeError):
    """The layout engine process could not be run to completion."""


class LayoutConsistencyError(GraphLayoutError, RuntimeError):
    """Layout engine output does not cover the submitted graph."""
