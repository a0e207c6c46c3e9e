from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

import numpy as np

from lettersynth.engine.audio_graph import AudioGraph

logger = logging.getLogger(__name__)


class GraphPlayer:
    """Renders the graph block by block and guards it against mid-block edits."""

    def __init__(self, graph: AudioGraph, sample_rate: float, block_size: int) -> None:
        self._graph = graph
        self._sample_rate = float(sample_rate)
        self._block_size = int(block_size)
        self._lock = threading.RLock()
        self._paused = False
        self._blocks_rendered = 0
        self._graph.prepare(self._sample_rate, self._block_size)

    @property
    def graph(self) -> AudioGraph:
        return self._graph

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def blocks_rendered(self) -> int:
        return self._blocks_rendered

    @contextmanager
    def suspended(self) -> Iterator[AudioGraph]:
        with self._lock:
            was_paused = self._paused
            self._paused = True
            try:
                yield self._graph
            finally:
                self._graph.prepare(self._sample_rate, self._block_size)
                self._paused = was_paused
                logger.debug("Graph swapped and re-prepared")

    def pause(self) -> None:
        with self._lock:
            self._paused = True

    def resume(self) -> None:
        with self._lock:
            self._paused = False

    def render_block(self, num_samples: int | None = None) -> np.ndarray:
        count = self._block_size if num_samples is None else int(num_samples)
        with self._lock:
            if self._paused:
                return np.zeros((2, count), dtype=np.float64)
            block = self._graph.process_block(count)
            self._blocks_rendered += 1
            return block

    def render(self, num_samples: int) -> np.ndarray:
        """Render ``num_samples`` frames in block-sized steps."""
        chunks: list[np.ndarray] = []
        remaining = int(num_samples)
        while remaining > 0:
            count = min(self._block_size, remaining)
            chunks.append(self.render_block(count))
            remaining -= count
        if not chunks:
            return np.zeros((2, 0), dtype=np.float64)
        return np.concatenate(chunks, axis=1)
