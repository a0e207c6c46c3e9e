from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from lettersynth.core.errors import UnbalancedParentheses
from lettersynth.engine.audio_graph import Connection, GraphNode
from lettersynth.engine.units import AudioUnit
from lettersynth.models.unit import UnitKind
from lettersynth.services.letter_registry import LetterRegistry

logger = logging.getLogger(__name__)

SINK = -1


class GraphTarget(Protocol):
    @property
    def output_node(self) -> int: ...

    def add_node(self, unit: AudioUnit) -> int: ...

    def connect_audio(self, source: int, destination: int) -> bool: ...

    def connect_midi(self, source: int, destination: int) -> bool: ...

    def clear(self) -> None: ...

    def nodes(self) -> list[GraphNode]: ...

    def connections(self) -> list[Connection]: ...


@dataclass(slots=True, frozen=True)
class PlannedLink:
    source: int
    destination: int
    midi: bool = False


@dataclass(slots=True)
class WordPlan:
    """Units and links of one word, indexed by position in ``units``.

    ``SINK`` stands for the graph's audio output node.
    """

    word: str
    units: list[AudioUnit] = field(default_factory=list)
    links: list[PlannedLink] = field(default_factory=list)


@dataclass(slots=True)
class CompiledWord:
    word: str
    handles: list[int]
    links: list[PlannedLink]


class NotationCompiler:
    def __init__(self, registry: LetterRegistry, graph: GraphTarget) -> None:
        self._registry = registry
        self._graph = graph

    @property
    def graph(self) -> GraphTarget:
        return self._graph

    def clear(self) -> None:
        self._graph.clear()

    def compile_line(self, line: str) -> list[CompiledWord]:
        return [self.compile_word(word) for word in line.split()]

    def plan_line(self, line: str) -> list[WordPlan]:
        return [self.plan_word(word) for word in line.split()]

    def compile_word(self, word: str) -> CompiledWord:
        return self.commit(self.plan_word(word))

    def commit(self, plan: WordPlan) -> CompiledWord:
        word = plan.word
        handles = [self._graph.add_node(unit) for unit in plan.units]
        output = self._graph.output_node

        def resolve(index: int) -> int:
            return output if index == SINK else handles[index]

        for link in plan.links:
            if link.midi:
                self._graph.connect_midi(resolve(link.source), resolve(link.destination))
            else:
                self._graph.connect_audio(resolve(link.source), resolve(link.destination))

        logger.debug("Compiled word '%s': %s node(s), %s link(s)", word, len(handles), len(plan.links))
        return CompiledWord(word=word, handles=handles, links=plan.links)

    def plan_word(self, word: str) -> WordPlan:
        """Instantiate and wire one word without touching the graph."""
        plan = WordPlan(word=word)
        depth = 0
        open_pulses: dict[int, int] = {}
        orphans: list[int] = []
        effects_tail: int | None = None
        last_pulse: int | None = None
        prev_was_pulse = False

        for position, char in enumerate(word):
            if char == "(":
                depth += 1
                prev_was_pulse = False
                continue

            if char == ")":
                if depth == 0:
                    raise UnbalancedParentheses(word, position)
                depth -= 1
                for closed in [key for key in open_pulses if key >= depth]:
                    del open_pulses[closed]
                prev_was_pulse = False
                continue

            unit = self._registry.instantiate(char)
            index = len(plan.units)
            plan.units.append(unit)

            if unit.accepts_midi:
                if prev_was_pulse and last_pulse is not None:
                    plan.links.append(PlannedLink(last_pulse, index, midi=True))
                    self._listen_to_all(unit)

                if depth > 0 and (depth - 1) in open_pulses:
                    generator_index = open_pulses[depth - 1]
                    voice = plan.units[generator_index].increment_fan_out()
                    plan.links.append(PlannedLink(generator_index, index, midi=True))
                    self._listen_to_voice(unit, voice)

            if unit.kind is UnitKind.OSCILLATOR:
                orphans.append(index)
                prev_was_pulse = False
            elif unit.kind is UnitKind.EFFECT:
                if orphans:
                    plan.links.extend(PlannedLink(orphan, index) for orphan in orphans)
                    orphans.clear()
                    prev_was_pulse = False
                if effects_tail is not None:
                    plan.links.append(PlannedLink(effects_tail, index))
                effects_tail = index
            elif unit.kind is UnitKind.PULSE_GENERATOR:
                open_pulses[depth] = index
                last_pulse = index
                prev_was_pulse = True

        if depth != 0:
            raise UnbalancedParentheses(word, len(word))

        if effects_tail is not None:
            plan.links.append(PlannedLink(effects_tail, SINK))
        plan.links.extend(PlannedLink(orphan, SINK) for orphan in orphans)
        return plan

    def describe_graph(self) -> list[str]:
        lines = ["=== Nodes ==="]
        lines.extend(f"Node ID: {node.handle}, Processor: {node.name}" for node in self._graph.nodes())
        lines.append("=== Connections ===")
        lines.extend(
            f"From Node {c.source} [ch {int(c.source_channel)}]  →  "
            f"Node {c.destination} [ch {int(c.destination_channel)}]"
            for c in self._graph.connections()
        )
        return lines

    @staticmethod
    def _listen_to_all(unit: AudioUnit) -> None:
        if unit.kind is UnitKind.OSCILLATOR:
            unit.set_midi_triggered(True)
            unit.open_on_all_velocities = True
        elif unit.kind is UnitKind.PULSE_GENERATOR:
            unit.set_midi_input_gating(True)
            unit.set_velocity_listening(False)

    @staticmethod
    def _listen_to_voice(unit: AudioUnit, voice: int) -> None:
        if unit.kind is UnitKind.OSCILLATOR:
            unit.set_midi_triggered(True)
            unit.open_on_all_velocities = False
            unit.listening_velocity = voice
        elif unit.kind is UnitKind.PULSE_GENERATOR:
            unit.set_midi_input_gating(True)
            unit.set_listening_velocity(voice)
            unit.set_velocity_listening(True)
