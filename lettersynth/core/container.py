from __future__ import annotations

from dataclasses import dataclass

from lettersynth.core.config import Settings
from lettersynth.engine.audio_graph import AudioGraph
from lettersynth.engine.player import GraphPlayer
from lettersynth.services.command_interpreter import BindCommandInterpreter
from lettersynth.services.command_service import CommandService
from lettersynth.services.graph_compiler import NotationCompiler
from lettersynth.services.letter_registry import LetterRegistry, bind_all_letters_random
from lettersynth.services.unit_catalog import UnitCatalog, build_default_catalog


@dataclass(slots=True)
class AppContainer:
    settings: Settings
    catalog: UnitCatalog
    registry: LetterRegistry
    interpreter: BindCommandInterpreter
    graph: AudioGraph
    player: GraphPlayer
    compiler: NotationCompiler
    command_service: CommandService


def build_container(settings: Settings, seed: int | None = None) -> AppContainer:
    catalog = build_default_catalog(pulse_note_number=settings.pulse_note_number)
    registry = LetterRegistry(catalog)
    if settings.seed_bindings_on_startup:
        bind_all_letters_random(
            registry,
            seed=settings.binding_seed if seed is None else seed,
            randomize_params=settings.randomize_parameters,
        )

    interpreter = BindCommandInterpreter(registry)
    graph = AudioGraph()
    player = GraphPlayer(graph, sample_rate=settings.sample_rate, block_size=settings.block_size)
    compiler = NotationCompiler(registry, graph)
    command_service = CommandService(
        registry=registry,
        interpreter=interpreter,
        compiler=compiler,
        player=player,
    )

    return AppContainer(
        settings=settings,
        catalog=catalog,
        registry=registry,
        interpreter=interpreter,
        graph=graph,
        player=player,
        compiler=compiler,
        command_service=command_service,
    )
