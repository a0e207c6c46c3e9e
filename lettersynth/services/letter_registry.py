from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from typing import Mapping, Sequence

from lettersynth.core.errors import MalformedCommand, UnboundLetter
from lettersynth.engine.units import AudioUnit
from lettersynth.models.binding import BindingDescription, ParamValueInfo
from lettersynth.models.unit import ParamKind, ParamSpec, ParamValue, UnitDescriptor, UnitKind
from lettersynth.services.unit_catalog import UnitCatalog

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LetterBinding:
    letter: str
    descriptor: UnitDescriptor
    values: tuple[ParamValue, ...]

    @property
    def type_name(self) -> str:
        return self.descriptor.name

    @property
    def kind(self) -> UnitKind:
        return self.descriptor.kind

    def value(self, name: str) -> ParamValue:
        return self.values[self.descriptor.index_of(name)]


GROUP_MARKERS = "()"


def _check_letter(letter: str) -> str:
    if len(letter) != 1 or letter.isspace():
        raise MalformedCommand(f"Expected a single letter, got '{letter}'.")
    if letter in GROUP_MARKERS:
        raise MalformedCommand(f"'{letter}' groups letters in notation and cannot be bound.")
    return letter


def _format_value(value: ParamValue) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


class LetterRegistry:
    """Letter -> parameterized unit descriptor.

    Every mutation converts all incoming values before storing anything, so a
    failed call leaves the binding as it was.
    """

    def __init__(self, catalog: UnitCatalog) -> None:
        self._catalog = catalog
        self._bindings: dict[str, LetterBinding] = {}

    @property
    def catalog(self) -> UnitCatalog:
        return self._catalog

    def bind(
        self,
        letter: str,
        type_name: str,
        positional: Sequence[ParamValue] = (),
        overrides: Mapping[str, ParamValue] | None = None,
    ) -> LetterBinding:
        _check_letter(letter)
        descriptor = self._catalog.lookup(type_name)
        values = list(descriptor.merge_positional(positional))
        for name, value in (overrides or {}).items():
            values[descriptor.index_of(name)] = descriptor.coerce(name, value)

        binding = LetterBinding(letter=letter, descriptor=descriptor, values=tuple(values))
        self._bindings[letter] = binding
        logger.debug("Bound '%s' -> %s %s", letter, type_name, binding.values)
        return binding

    def set_params(self, letter: str, positional: Sequence[ParamValue]) -> LetterBinding:
        binding = self.binding(letter)
        merged = binding.descriptor.merge_positional(positional)
        # Trailing slots the caller did not pass keep their current values.
        values = merged[: len(positional)] + binding.values[len(positional) :]
        binding.values = tuple(values)
        return binding

    def set_param(self, letter: str, name: str, value: ParamValue) -> LetterBinding:
        return self.update(letter, {name: value})

    def update(self, letter: str, overrides: Mapping[str, ParamValue]) -> LetterBinding:
        binding = self.binding(letter)
        descriptor = binding.descriptor
        values = list(binding.values)
        for name, value in overrides.items():
            values[descriptor.index_of(name)] = descriptor.coerce(name, value)
        binding.values = tuple(values)
        return binding

    def instantiate(self, letter: str) -> AudioUnit:
        binding = self.binding(letter)
        unit = binding.descriptor.create(binding.values)
        unit.kind = binding.descriptor.kind
        return unit

    def is_bound(self, letter: str) -> bool:
        return letter in self._bindings

    def binding(self, letter: str) -> LetterBinding:
        binding = self._bindings.get(letter)
        if binding is None:
            raise UnboundLetter(letter)
        return binding

    def bound_letters(self) -> list[str]:
        return sorted(self._bindings)

    def unbind(self, letter: str) -> None:
        if self._bindings.pop(letter, None) is None:
            raise UnboundLetter(letter)

    def clear(self) -> None:
        self._bindings.clear()

    def describe(self, letter: str) -> BindingDescription:
        binding = self.binding(letter)
        return BindingDescription(
            letter=letter,
            type_name=binding.type_name,
            kind=binding.kind,
            params=[
                ParamValueInfo(name=spec.name, kind=spec.kind, value=value, default=spec.default)
                for spec, value in zip(binding.descriptor.params, binding.values)
            ],
        )

    def describe_all(self) -> list[BindingDescription]:
        return [self.describe(letter) for letter in self.bound_letters()]

    def format_bindings(self, verbose: bool = False) -> list[str]:
        if not self._bindings:
            return ["No letters are currently bound."]

        if not verbose:
            lines = ["Current letter bindings:", "------------------------"]
            lines.extend(f"  '{letter}' -> {self._bindings[letter].type_name}" for letter in self.bound_letters())
            lines.append("------------------------")
            return lines

        lines = ["Current letter bindings with parameters:", "----------------------------------------"]
        for letter in self.bound_letters():
            binding = self._bindings[letter]
            lines.append(f"Letter '{letter}': {binding.type_name}")
            for spec, value in zip(binding.descriptor.params, binding.values):
                lines.append(
                    f"    - {spec.name} = {_format_value(value)} (default: {_format_value(spec.default)})"
                )
            lines.append("")
        lines.append("----------------------------------------")
        return lines

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, letter: object) -> bool:
        return letter in self._bindings


def lcg(value: int) -> int:
    return (1103515245 * value + 12345) & 0x7FFFFFFF


def _random_value(descriptor: UnitDescriptor, spec: ParamSpec, draw: int) -> ParamValue:
    is_pulse = descriptor.kind is UnitKind.PULSE_GENERATOR
    if spec.kind is ParamKind.INTEGER:
        return 1 + draw % 8 if is_pulse else 36 + draw % 48
    if spec.kind is ParamKind.REAL:
        if descriptor.name == "filter" and spec.name == "cutoff":
            return float(200 + draw % 7800)
        if is_pulse and spec.name == "bpm":
            return float(60 + draw % 120)
        if descriptor.name == "delay" and spec.name == "time":
            return 0.1 + (draw % 1900) / 1000.0
        return (draw % 1000) / 1000.0
    return spec.default


def bind_all_letters_random(
    registry: LetterRegistry,
    seed: int,
    randomize_params: bool = True,
    letters: str = string.ascii_lowercase,
) -> None:
    """Bind every letter to a type picked from the catalog by a seeded LCG."""
    descriptors = registry.catalog.list_units()
    if not descriptors:
        raise ValueError("Cannot seed bindings from an empty catalog.")

    for letter in letters:
        descriptor = descriptors[lcg(seed + ord(letter)) % len(descriptors)]
        if not randomize_params:
            registry.bind(letter, descriptor.name)
            continue

        values = [
            _random_value(descriptor, spec, lcg(seed + 1000 + ord(letter) * 100 + index))
            for index, spec in enumerate(descriptor.params)
        ]
        registry.bind(letter, descriptor.name, values)

    logger.info("Seeded %s letter bindings (seed=%s, randomized=%s)", len(letters), seed, randomize_params)
