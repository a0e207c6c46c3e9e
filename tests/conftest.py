from __future__ import annotations

import pytest

from lettersynth.engine.audio_graph import AudioGraph
from lettersynth.services.graph_compiler import NotationCompiler
from lettersynth.services.letter_registry import LetterRegistry
from lettersynth.services.unit_catalog import UnitCatalog, build_default_catalog


@pytest.fixture
def catalog() -> UnitCatalog:
    return build_default_catalog()


@pytest.fixture
def registry(catalog: UnitCatalog) -> LetterRegistry:
    return LetterRegistry(catalog)


@pytest.fixture
def graph() -> AudioGraph:
    return AudioGraph()


@pytest.fixture
def compiler(registry: LetterRegistry, graph: AudioGraph) -> NotationCompiler:
    registry.bind("a", "sin")
    registry.bind("b", "saw")
    registry.bind("c", "triangle")
    registry.bind("h", "sin")
    registry.bind("f", "filter")
    registry.bind("d", "delay")
    registry.bind("x", "midi")
    registry.bind("y", "midi")
    return NotationCompiler(registry, graph)
