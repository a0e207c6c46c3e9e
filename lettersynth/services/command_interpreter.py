from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lettersynth.core.errors import MalformedCommand
from lettersynth.models.unit import ParamValue
from lettersynth.services.letter_registry import GROUP_MARKERS, LetterBinding, LetterRegistry

logger = logging.getLogger(__name__)

SET_VERB = "set"


def parse_token(token: str) -> ParamValue:
    """Interpret a command token as int, float or string.

    Tokens starting with a digit or a sign are numeric; they are real when they
    contain ``.``, ``e`` or ``E``. A numeric-looking token that fails to parse
    stays a string.
    """
    if not token or not (token[0].isdigit() or token[0] in "+-"):
        return token

    try:
        if any(marker in token for marker in ".eE"):
            return float(token)
        return int(token)
    except ValueError:
        return token


@dataclass(slots=True, frozen=True)
class BindCommand:
    letter: str
    type_name: str | None = None
    overrides: dict[str, ParamValue] = field(default_factory=dict)

    @property
    def rebinds(self) -> bool:
        return self.type_name is not None


class BindCommandInterpreter:
    """Executes ``SET <letter> [<type>] {<name> <value>}*`` against the registry."""

    def __init__(self, registry: LetterRegistry) -> None:
        self._registry = registry

    def parse(self, line: str) -> BindCommand:
        tokens = line.split()
        if not tokens or tokens[0].lower() != SET_VERB:
            raise MalformedCommand(f"Unknown command '{tokens[0] if tokens else ''}' (expected 'set').")
        if len(tokens) < 2:
            raise MalformedCommand("Incomplete set command: missing letter.")

        letter = tokens[1]
        if len(letter) != 1:
            raise MalformedCommand(f"Expected a single letter, got '{letter}'.")
        if letter in GROUP_MARKERS:
            raise MalformedCommand(f"'{letter}' groups letters in notation and cannot be bound.")
        if len(tokens) < 3:
            raise MalformedCommand("Incomplete set command: missing type or parameter.")

        first = tokens[2]
        treat_as_type = self._registry.catalog.is_known(first) or not self._registry.is_bound(letter)
        type_name = first if treat_as_type else None
        rest = tokens[3:] if treat_as_type else tokens[2:]
        if treat_as_type:
            self._registry.catalog.lookup(first)

        if len(rest) % 2:
            raise MalformedCommand(f"Parameter '{rest[-1]}' has no value.")

        overrides = {name: parse_token(value) for name, value in zip(rest[::2], rest[1::2])}
        return BindCommand(letter=letter, type_name=type_name, overrides=overrides)

    def execute(self, line: str) -> LetterBinding:
        command = self.parse(line)
        if command.rebinds:
            binding = self._registry.bind(command.letter, command.type_name, overrides=command.overrides)
        else:
            binding = self._registry.update(command.letter, command.overrides)
        logger.debug("SET '%s' -> %s %s", binding.letter, binding.type_name, binding.values)
        return binding
