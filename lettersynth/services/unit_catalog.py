from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Iterable

from lettersynth.core.errors import UnknownType
from lettersynth.engine.pulse_runtime import PulseGenerator
from lettersynth.engine.units import (
    DelayUnit,
    FilterUnit,
    NoiseOscillator,
    ReverbUnit,
    SawOscillator,
    SinOscillator,
    SquareOscillator,
    TriangleOscillator,
)
from lettersynth.models.unit import ParamKind, ParamSpec, UnitDescriptor, UnitKind

logger = logging.getLogger(__name__)

DEFAULT_OSCILLATOR_NOTE = 66


class UnitCatalog:
    """Type name -> unit descriptor, kept in registration order."""

    def __init__(self) -> None:
        self._descriptors: dict[str, UnitDescriptor] = {}

    def register(
        self,
        type_name: str,
        params: Iterable[ParamSpec],
        factory: Callable[..., Any],
        kind: UnitKind,
        description: str = "",
    ) -> UnitDescriptor:
        if not type_name:
            raise ValueError("Unit type name must not be empty.")

        descriptor = UnitDescriptor(
            name=type_name,
            kind=kind,
            description=description,
            params=tuple(params),
            factory=factory,
        )
        if type_name in self._descriptors:
            logger.debug("Overwriting unit descriptor '%s'", type_name)
        self._descriptors[type_name] = descriptor
        return descriptor

    def lookup(self, type_name: str) -> UnitDescriptor:
        descriptor = self._descriptors.get(type_name)
        if descriptor is None:
            raise UnknownType(type_name)
        return descriptor

    def get(self, type_name: str) -> UnitDescriptor | None:
        return self._descriptors.get(type_name)

    def is_known(self, type_name: str) -> bool:
        return type_name in self._descriptors

    def list_units(self, kind: UnitKind | None = None) -> list[UnitDescriptor]:
        descriptors = list(self._descriptors.values())
        if kind is not None:
            descriptors = [descriptor for descriptor in descriptors if descriptor.kind is kind]
        return descriptors

    def type_names(self) -> list[str]:
        return list(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._descriptors


def _note_param() -> ParamSpec:
    return ParamSpec(
        name="note",
        kind=ParamKind.INTEGER,
        default=DEFAULT_OSCILLATOR_NOTE,
        description="MIDI note number of the oscillator pitch.",
    )


def _real(name: str, default: float, description: str = "") -> ParamSpec:
    return ParamSpec(name=name, kind=ParamKind.REAL, default=default, description=description)


def build_default_catalog(pulse_note_number: int = 60) -> UnitCatalog:
    catalog = UnitCatalog()

    oscillators: list[tuple[str, type, str]] = [
        ("sin", SinOscillator, "Sine wave oscillator."),
        ("square", SquareOscillator, "Square wave oscillator."),
        ("saw", SawOscillator, "Sawtooth oscillator."),
        ("triangle", TriangleOscillator, "Triangle wave oscillator."),
        ("noise", NoiseOscillator, "White noise source."),
    ]
    for type_name, factory, description in oscillators:
        catalog.register(type_name, [_note_param()], factory, UnitKind.OSCILLATOR, description)

    catalog.register(
        "filter",
        [_real("cutoff", 2000.0, "Low-pass cutoff frequency in Hz.")],
        FilterUnit,
        UnitKind.EFFECT,
        "Low-pass filter.",
    )
    catalog.register(
        "delay",
        [
            _real("time", 0.5, "Delay time in seconds."),
            _real("feedback", 0.5),
            _real("wet", 0.5),
            _real("dry", 0.5),
        ],
        DelayUnit,
        UnitKind.EFFECT,
        "Feedback delay line.",
    )
    catalog.register(
        "reverb",
        [
            _real("size", 0.5, "Room size."),
            _real("damp", 0.4),
            _real("wet", 0.5),
            _real("dry", 0.5),
            _real("width", 0.2),
        ],
        ReverbUnit,
        UnitKind.EFFECT,
        "Stereo reverb.",
    )
    catalog.register(
        "midi",
        [
            _real("bpm", 120.0, "Tempo in beats per minute."),
            ParamSpec(name="on", kind=ParamKind.INTEGER, default=1, description="Beats sounding per cycle."),
            ParamSpec(name="off", kind=ParamKind.INTEGER, default=1, description="Beats silent per cycle."),
        ],
        partial(PulseGenerator, note=pulse_note_number),
        UnitKind.PULSE_GENERATOR,
        "Rhythmic MIDI pulse generator.",
    )
    return catalog
