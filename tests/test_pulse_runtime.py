from __future__ import annotations

import numpy as np

from lettersynth.engine.midi import MidiBuffer, MidiEvent, MidiMessage
from lettersynth.engine.pulse_runtime import CycleState, PulseGenerator


def _process(
    generator: PulseGenerator,
    num_samples: int,
    events: list[tuple[int, MidiMessage]] | None = None,
) -> list[MidiEvent]:
    audio = np.ones((2, num_samples))
    midi = MidiBuffer()
    for position, message in events or []:
        midi.add_event(message, position)
    generator.process(audio, midi)
    assert not audio.any()
    return midi.events()


def _fast(on: int = 1, off: int = 1) -> PulseGenerator:
    # 100 samples per beat.
    generator = PulseGenerator(600.0, on, off)
    generator.prepare(1000, 100)
    return generator


def test_first_cycle_timing_at_120_bpm() -> None:
    generator = PulseGenerator(120.0, 1, 1)
    generator.prepare(48_000, 512)
    assert generator.samples_per_beat == 24_000

    events = _process(generator, 1)
    assert [(e.sample_position, e.message) for e in events] == [(0, MidiMessage.note_on(1, 60, 1))]
    assert generator.loop_count == 0
    assert generator.state is CycleState.NOTE_IS_ON
    assert generator.note_is_on

    events = _process(generator, 48_000)
    assert [(e.sample_position, e.message.is_note_on) for e in events] == [(23_999, False), (47_999, True)]
    assert generator.loop_count == 1
    assert generator.note_is_on


def test_velocity_cycles_through_fan_out() -> None:
    generator = PulseGenerator(600.0, 1, 1)
    generator.increment_fan_out()
    generator.increment_fan_out()
    generator.prepare(1000, 100)

    events = _process(generator, 700)
    note_ons = [(e.sample_position, e.message.velocity) for e in events if e.message.is_note_on]
    note_offs = [(e.sample_position, e.message.velocity) for e in events if e.message.is_note_off]

    assert note_ons == [(0, 1), (200, 2), (400, 1), (600, 2)]
    # Note-off repeats the velocity of its note-on.
    assert note_offs == [(100, 1), (300, 2), (500, 1)]


def test_on_and_off_beats() -> None:
    generator = _fast(on=2, off=1)
    events = _process(generator, 600)
    assert [(e.sample_position, e.message.is_note_on) for e in events] == [
        (0, True),
        (200, False),
        (300, True),
        (500, False),
    ]


def test_zero_on_beats_never_sounds() -> None:
    generator = _fast(on=0, off=1)
    assert _process(generator, 400) == []
    assert generator.loop_count == 3


def test_pass_through_when_rhythm_is_empty() -> None:
    incoming = [(5, MidiMessage.note_on(1, 64, 100))]
    for generator in (_fast(on=0, off=0), PulseGenerator(0.0, 1, 1)):
        generator.prepare(1000, 100)
        events = _process(generator, 100, incoming)
        assert [(e.sample_position, e.message) for e in events] == incoming
        assert generator.state is CycleState.AWAITING_NOTE_ON


def test_gating_waits_for_upstream_note() -> None:
    generator = _fast(on=2, off=1)
    generator.set_midi_input_gating(True)

    # Closed gate: the cycle advances silently.
    assert _process(generator, 100) == []
    assert generator.state is CycleState.NOTE_IS_ON
    assert not generator.note_is_on

    # Upstream note-on at 150 opens the gate for the cycle starting at 300.
    events = _process(generator, 200, [(50, MidiMessage.note_on(1, 60, 1))])
    assert events == []
    events = _process(generator, 100)
    assert [(e.sample_position, e.message.is_note_on) for e in events] == [(0, True)]

    # Upstream note-off forces our note off immediately.
    events = _process(generator, 100, [(10, MidiMessage.note_off(1, 60, 1))])
    assert [(e.sample_position, e.message.is_note_off) for e in events] == [(10, True)]
    assert not generator.note_is_on


def test_all_notes_off_closes_gate() -> None:
    generator = _fast(on=4, off=1)
    generator.set_midi_input_gating(True)

    events = _process(generator, 100, [(0, MidiMessage.note_on(1, 60, 1))])
    assert [e.message.is_note_on for e in events] == [True]

    events = _process(generator, 100, [(20, MidiMessage.all_notes_off(1))])
    assert [(e.sample_position, e.message.is_note_off) for e in events] == [(20, True)]


def test_velocity_listening_ignores_other_voices() -> None:
    generator = _fast()
    generator.set_midi_input_gating(True)
    generator.set_velocity_listening(True)
    generator.set_listening_velocity(2)

    assert _process(generator, 100, [(0, MidiMessage.note_on(1, 60, 1))]) == []

    generator.prepare(1000, 100)
    events = _process(generator, 100, [(0, MidiMessage.note_on(1, 60, 2))])
    assert [(e.sample_position, e.message.is_note_on) for e in events] == [(0, True)]


def test_future_events_are_forwarded_in_order() -> None:
    generator = _fast()
    generator.set_midi_input_gating(True)
    late = MidiMessage.note_on(1, 72, 9)

    events = _process(generator, 100, [(150, late), (30, MidiMessage.note_on(1, 60, 1))])

    assert [(e.sample_position, e.message) for e in events] == [(150, late)]


def test_prepare_resets_state() -> None:
    generator = _fast()
    _process(generator, 500)
    assert generator.loop_count == 2

    generator.prepare(1000, 100)
    assert generator.loop_count == 0
    assert generator.state is CycleState.AWAITING_NOTE_ON
    assert not generator.note_is_on
