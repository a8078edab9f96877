from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from adapters.presentation.memory import InMemoryPresentationSink
from app.config import AppSettings, LayoutSettings
from domain.graph import Graph


def _clear_graphlayout_env() -> None:
    for key in list(os.environ):
        if key.startswith("GRAPHLAYOUT_"):
            os.environ.pop(key, None)


_clear_graphlayout_env()


@pytest.fixture(autouse=True)
def clear_graphlayout_env() -> Generator[None, None, None]:
    _clear_graphlayout_env()
    yield
    _clear_graphlayout_env()


@pytest.fixture
def sink() -> InMemoryPresentationSink:
    return InMemoryPresentationSink("test")


@pytest.fixture
def graph(sink: InMemoryPresentationSink) -> Graph:
    return Graph(sink, dpi=96.0)


@pytest.fixture
def layout_settings() -> LayoutSettings:
    return LayoutSettings(
        dot_executable="dot",
        dpi=96.0,
        arrow_length_inches=0.125,
        flatness=0.5,
        min_interpolation_distance_sq=100.0,
        sink_prefix="test",
    )


@pytest.fixture
def app_settings_factory(
    layout_settings: LayoutSettings,
) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return AppSettings(layout=layout_settings.model_copy(update=overrides))

    return _factory
