from __future__ import annotations

import logging
import re

from lettersynth.core.errors import LetterSynthError
from lettersynth.engine.player import GraphPlayer
from lettersynth.models.command import CommandResult, CommandVerb
from lettersynth.models.graph import GraphSnapshot
from lettersynth.services.command_interpreter import BindCommandInterpreter
from lettersynth.services.graph_compiler import NotationCompiler
from lettersynth.services.letter_registry import LetterRegistry

logger = logging.getLogger(__name__)

_QUOTED_NOTATION = re.compile(r'"([^"]*)"')

_PREFIX_VERBS: tuple[tuple[str, CommandVerb], ...] = (
    ("SET", CommandVerb.SET),
    ("PLAY", CommandVerb.PLAY),
    ("PAUSE", CommandVerb.PAUSE),
    ("PRINT", CommandVerb.PRINT),
)


def classify(line: str) -> CommandVerb:
    head = line.strip().upper()
    if head == "EXIT":
        return CommandVerb.EXIT
    for prefix, verb in _PREFIX_VERBS:
        if head.startswith(prefix):
            return verb
    if _QUOTED_NOTATION.search(line):
        return CommandVerb.NOTATION
    return CommandVerb.IGNORED


class CommandService:
    """Runs command lines against the registry, the compiler and the player."""

    def __init__(
        self,
        registry: LetterRegistry,
        interpreter: BindCommandInterpreter,
        compiler: NotationCompiler,
        player: GraphPlayer,
    ) -> None:
        self._registry = registry
        self._interpreter = interpreter
        self._compiler = compiler
        self._player = player
        self._notation = ""
        self._playing = False

    @property
    def notation(self) -> str:
        return self._notation

    @property
    def playing(self) -> bool:
        return self._playing

    def process_line(self, line: str) -> CommandResult:
        verb = classify(line)
        lowered = line.strip().lower()

        try:
            if verb is CommandVerb.SET:
                binding = self._interpreter.execute(lowered)
                output = [f"'{binding.letter}' -> {binding.type_name}"]
            elif verb is CommandVerb.PLAY:
                output = self.play()
            elif verb is CommandVerb.PAUSE:
                self.pause()
                output = []
            elif verb is CommandVerb.PRINT:
                output = self._registry.format_bindings(verbose="v" in lowered[len("print") :])
            elif verb is CommandVerb.NOTATION:
                match = _QUOTED_NOTATION.search(lowered)
                self.set_notation(match.group(1) if match else "")
                output = []
            else:
                output = []
        except LetterSynthError as exc:
            logger.warning("Command failed (%s): %s", exc.kind, exc.message)
            return CommandResult(verb=verb, ok=False, error=exc.message, error_kind=exc.kind)

        return CommandResult(verb=verb, output=output)

    def set_notation(self, notation: str) -> None:
        self._notation = notation
        logger.debug("Saved notation '%s'", notation)

    def play(self) -> list[str]:
        """Rebuild the graph from the saved notation and start rendering it.

        Every word is planned before the running graph is cleared, so a
        notation that fails to compile leaves the current graph playing.
        """
        plans = self._compiler.plan_line(self._notation)
        with self._player.suspended():
            self._compiler.clear()
            for plan in plans:
                self._compiler.commit(plan)
        self._playing = True
        self._player.resume()

        logger.info("Playing '%s'", self._notation)
        return self._compiler.describe_graph()

    def pause(self) -> None:
        with self._player.suspended():
            self._compiler.clear()
        self._playing = False
        self._player.pause()

    def snapshot(self) -> GraphSnapshot:
        graph = self._player.graph
        return GraphSnapshot(
            notation=self._notation,
            playing=self._playing,
            nodes=graph.node_infos(),
            connections=graph.connection_infos(),
        )
