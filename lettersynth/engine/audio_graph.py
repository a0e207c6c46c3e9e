from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass

import numpy as np

from lettersynth.engine.midi import MidiBuffer
from lettersynth.engine.units import AudioUnit
from lettersynth.models.graph import SINK_NAME, Channel, GraphConnectionInfo, GraphNodeInfo
from lettersynth.models.unit import UnitKind

logger = logging.getLogger(__name__)

_AUDIO_CHANNELS = (Channel.LEFT, Channel.RIGHT)


class OutputSink(AudioUnit):
    """Terminal node; whatever is summed into it is the rendered block."""

    name = SINK_NAME

    def process(self, audio: np.ndarray, midi: MidiBuffer) -> None:
        midi.clear()


@dataclass(slots=True)
class GraphNode:
    handle: int
    unit: AudioUnit

    @property
    def kind(self) -> UnitKind | None:
        return getattr(self.unit, "kind", None)

    @property
    def name(self) -> str:
        return self.unit.name


@dataclass(slots=True, frozen=True)
class Connection:
    source: int
    source_channel: Channel
    destination: int
    destination_channel: Channel

    @property
    def is_midi(self) -> bool:
        return self.destination_channel is Channel.MIDI


class AudioGraph:
    """Directed acyclic graph of audio units with stereo and MIDI edges.

    Nodes are processed in topological order (Kahn's algorithm). Audio inputs
    are summed per channel; MIDI inputs are merged in sample order.
    """

    def __init__(self) -> None:
        self._nodes: dict[int, GraphNode] = {}
        self._connections: list[Connection] = []
        self._next_handle = 1
        self._sample_rate = 0.0
        self._block_size = 0
        self._prepared = False
        self._order: list[int] | None = None
        self._output_handle = self._add_sink()

    @property
    def output_node(self) -> int:
        return self._output_handle

    @property
    def is_prepared(self) -> bool:
        return self._prepared

    def add_node(self, unit: AudioUnit) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._nodes[handle] = GraphNode(handle=handle, unit=unit)
        self._order = None
        if self._prepared:
            unit.prepare(self._sample_rate, self._block_size)
        logger.debug("Graph node added handle=%s unit=%r", handle, unit)
        return handle

    def node(self, handle: int) -> GraphNode:
        return self._nodes[handle]

    def nodes(self) -> list[GraphNode]:
        return list(self._nodes.values())

    def connections(self) -> list[Connection]:
        return list(self._connections)

    def add_connection(
        self,
        source: int,
        source_channel: Channel,
        destination: int,
        destination_channel: Channel,
    ) -> bool:
        source_node = self._nodes.get(source)
        destination_node = self._nodes.get(destination)
        if source_node is None or destination_node is None or source == destination:
            return False

        midi_source = source_channel == Channel.MIDI
        midi_destination = destination_channel == Channel.MIDI
        if midi_source != midi_destination:
            return False
        if midi_source:
            if not source_node.unit.produces_midi or not destination_node.unit.accepts_midi:
                return False
        elif source_channel not in _AUDIO_CHANNELS or destination_channel not in _AUDIO_CHANNELS:
            return False

        connection = Connection(source, Channel(source_channel), destination, Channel(destination_channel))
        if connection in self._connections:
            return False
        if self._reaches(destination, source):
            logger.debug("Rejected connection %s -> %s: would create a cycle", source, destination)
            return False

        self._connections.append(connection)
        self._order = None
        return True

    def connect_audio(self, source: int, destination: int) -> bool:
        left = self.add_connection(source, Channel.LEFT, destination, Channel.LEFT)
        right = self.add_connection(source, Channel.RIGHT, destination, Channel.RIGHT)
        return left and right

    def connect_midi(self, source: int, destination: int) -> bool:
        return self.add_connection(source, Channel.MIDI, destination, Channel.MIDI)

    def clear(self) -> None:
        self._nodes.clear()
        self._connections.clear()
        self._order = None
        self._output_handle = self._add_sink()
        logger.debug("Graph cleared")

    def prepare(self, sample_rate: float, block_size: int) -> None:
        self._sample_rate = float(sample_rate)
        self._block_size = int(block_size)
        for node in self._nodes.values():
            node.unit.prepare(self._sample_rate, self._block_size)
        self._prepared = True

    def process_block(self, num_samples: int) -> np.ndarray:
        incoming: dict[int, list[Connection]] = defaultdict(list)
        for connection in self._connections:
            incoming[connection.destination].append(connection)

        audio_out: dict[int, np.ndarray] = {}
        midi_out: dict[int, MidiBuffer] = {}
        for handle in self._processing_order():
            audio = np.zeros((2, num_samples), dtype=np.float64)
            midi = MidiBuffer()
            for connection in incoming[handle]:
                if connection.is_midi:
                    midi.add_events(midi_out[connection.source])
                else:
                    audio[connection.destination_channel] += audio_out[connection.source][connection.source_channel]

            self._nodes[handle].unit.process(audio, midi)
            audio_out[handle] = audio
            midi_out[handle] = midi

        return audio_out[self._output_handle]

    def node_infos(self) -> list[GraphNodeInfo]:
        return [GraphNodeInfo(handle=node.handle, name=node.name, kind=node.kind) for node in self._nodes.values()]

    def connection_infos(self) -> list[GraphConnectionInfo]:
        return [
            GraphConnectionInfo(
                source=connection.source,
                source_channel=connection.source_channel,
                destination=connection.destination,
                destination_channel=connection.destination_channel,
            )
            for connection in self._connections
        ]

    def _add_sink(self) -> int:
        return self.add_node(OutputSink())

    def _successors(self) -> dict[int, set[int]]:
        adjacency: dict[int, set[int]] = defaultdict(set)
        for connection in self._connections:
            adjacency[connection.source].add(connection.destination)
        return adjacency

    def _reaches(self, start: int, target: int) -> bool:
        adjacency = self._successors()
        stack = [start]
        seen: set[int] = set()
        while stack:
            current = stack.pop()
            if current == target:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(adjacency[current])
        return False

    def _processing_order(self) -> list[int]:
        if self._order is not None:
            return self._order

        adjacency = self._successors()
        in_degree = {handle: 0 for handle in self._nodes}
        for destinations in adjacency.values():
            for destination in destinations:
                in_degree[destination] += 1

        queue = deque(handle for handle, degree in in_degree.items() if degree == 0)
        order: list[int] = []
        while queue:
            handle = queue.popleft()
            order.append(handle)
            for destination in sorted(adjacency[handle]):
                in_degree[destination] -= 1
                if in_degree[destination] == 0:
                    queue.append(destination)

        self._order = order
        return order
