from __future__ import annotations

import pytest

from lettersynth.core.errors import MalformedCommand, TypeMismatch, UnknownParameter, UnknownType
from lettersynth.services.command_interpreter import BindCommandInterpreter, parse_token
from lettersynth.services.letter_registry import LetterRegistry


@pytest.fixture
def interpreter(registry: LetterRegistry) -> BindCommandInterpreter:
    return BindCommandInterpreter(registry)


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("12", 12),
        ("-3", -3),
        ("+7", 7),
        ("0.5", 0.5),
        ("1e3", 1000.0),
        ("2E-1", 0.2),
        ("sin", "sin"),
        ("+x", "+x"),
        ("1.2.3", "1.2.3"),
        ("", ""),
    ],
)
def test_parse_token(token: str, expected: object) -> None:
    value = parse_token(token)
    assert value == expected
    assert type(value) is type(expected)


def test_set_type_binds_defaults(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    interpreter.execute("set a sin")
    assert registry.binding("a").type_name == "sin"
    assert registry.binding("a").values == (66,)


def test_set_type_with_named_overrides(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    interpreter.execute("set d delay time 1.5 feedback 0.4")
    assert registry.binding("d").values == (1.5, 0.4, 0.5, 0.5)


def test_set_known_type_rebinds_bound_letter(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    registry.bind("a", "sin", [70])
    interpreter.execute("set a filter cutoff 800")

    assert registry.binding("a").type_name == "filter"
    assert registry.binding("a").values == (800.0,)


def test_set_parameters_on_bound_letter(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    registry.bind("x", "midi")
    command = interpreter.parse("set x bpm 90 off 3")
    assert not command.rebinds

    interpreter.execute("set x bpm 90 off 3")
    assert registry.binding("x").type_name == "midi"
    assert registry.binding("x").values == (90.0, 1, 3)


def test_unbound_letter_needs_a_type(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    with pytest.raises(UnknownType):
        interpreter.execute("set q note 60")
    assert not registry.is_bound("q")


@pytest.mark.parametrize(
    "line",
    [
        "set",
        "set a",
        "set ab sin",
        "bind a sin",
        "set a sin note",
        "set a sin note 60 wet",
    ],
)
def test_malformed_commands(interpreter: BindCommandInterpreter, registry: LetterRegistry, line: str) -> None:
    registry.bind("a", "delay")
    with pytest.raises(MalformedCommand):
        interpreter.execute(line)
    assert registry.binding("a").type_name == "delay"


def test_unknown_parameter_does_not_rebind(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    registry.bind("a", "delay", [1.0])
    with pytest.raises(UnknownParameter):
        interpreter.execute("set a sin volume 3")

    assert registry.binding("a").type_name == "delay"
    assert registry.binding("a").values == (1.0, 0.5, 0.5, 0.5)


def test_bad_value_does_not_apply_earlier_pairs(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    registry.bind("r", "reverb")
    with pytest.raises(TypeMismatch):
        interpreter.execute("set r size 0.9 damp heavy")
    assert registry.binding("r").values == (0.5, 0.4, 0.5, 0.5, 0.2)


def test_later_pair_wins(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    interpreter.execute("set a sin note 40 note 50")
    assert registry.binding("a").values == (50,)


@pytest.mark.parametrize("line", ["set ( sin", "set ) midi"])
def test_group_markers_cannot_be_bound(interpreter: BindCommandInterpreter, registry: LetterRegistry, line: str) -> None:
    with pytest.raises(MalformedCommand):
        interpreter.execute(line)
    assert len(registry) == 0


def test_unknown_type_is_reported_before_pairs(interpreter: BindCommandInterpreter, registry: LetterRegistry) -> None:
    with pytest.raises(UnknownType):
        interpreter.execute("set q chorus depth")
    assert not registry.is_bound("q")
