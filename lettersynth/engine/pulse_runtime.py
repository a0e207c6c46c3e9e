from __future__ import annotations

import logging
from enum import StrEnum

import numpy as np

from lettersynth.engine.midi import MidiBuffer, MidiMessage
from lettersynth.engine.units import AudioUnit
from lettersynth.models.unit import UnitKind

logger = logging.getLogger(__name__)

_PULSE_CHANNEL = 1


class CycleState(StrEnum):
    AWAITING_NOTE_ON = "awaiting_note_on"
    NOTE_IS_ON = "note_is_on"


class PulseGenerator(AudioUnit):
    """Emits a note-on / note-off pair per beat cycle, counted in samples.

    A cycle is ``on`` beats sounding followed by ``off`` beats silent. With
    upstream gating enabled the generator only sounds while an enclosing
    generator holds its note; ``fan_out`` is the number of voices fed by this
    generator and selects the velocity of each cycle round-robin.
    """

    kind = UnitKind.PULSE_GENERATOR
    name = "MIDI Pulse"
    accepts_midi = True
    produces_midi = True

    def __init__(self, bpm: float = 120.0, on: int = 1, off: int = 1, *, note: int = 60) -> None:
        super().__init__()
        self.bpm = float(bpm)
        self.beats_on = max(0, int(on))
        self.beats_off = max(0, int(off))
        self.note_number = max(0, min(127, int(note)))

        self._fan_out = 0
        self._gating = False
        self._velocity_listening = False
        self._listening_velocity = 1

        self._samples_per_beat = 0
        self._on_samples = 0
        self._off_samples = 0
        self._counter = 0
        self._next_transition = 0
        self._state = CycleState.AWAITING_NOTE_ON
        self._sounding = False
        self._loop_count = 0
        self._first_cycle = True
        self._gate_open = False
        self._velocity = 1

    # Wiring, set by the compiler before playback.

    def increment_fan_out(self, amount: int = 1) -> int:
        self._fan_out += amount
        return self._fan_out

    def set_midi_input_gating(self, enabled: bool) -> None:
        self._gating = enabled

    def set_velocity_listening(self, enabled: bool) -> None:
        self._velocity_listening = enabled

    def set_listening_velocity(self, velocity: int) -> None:
        self._listening_velocity = velocity & 0x7F

    @property
    def fan_out(self) -> int:
        return self._fan_out

    @property
    def midi_input_gating(self) -> bool:
        return self._gating

    @property
    def velocity_listening(self) -> bool:
        return self._velocity_listening

    @property
    def listening_velocity(self) -> int:
        return self._listening_velocity

    @property
    def loop_count(self) -> int:
        return self._loop_count

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def note_is_on(self) -> bool:
        return self._sounding

    @property
    def samples_per_beat(self) -> int:
        return self._samples_per_beat

    def prepare(self, sample_rate: float, block_size: int) -> None:
        super().prepare(sample_rate, block_size)
        if self.bpm > 0 and self.sample_rate > 0:
            self._samples_per_beat = int(round(self.sample_rate * 60.0 / self.bpm))
        else:
            self._samples_per_beat = 0

        self._on_samples = self.beats_on * self._samples_per_beat
        self._off_samples = self.beats_off * self._samples_per_beat
        self._counter = 0
        self._next_transition = 0
        self._state = CycleState.AWAITING_NOTE_ON
        self._sounding = False
        self._loop_count = 0
        self._first_cycle = True
        self._gate_open = False
        self._velocity = 1
        logger.debug(
            "Pulse prepared bpm=%s on=%s off=%s samples_per_beat=%s fan_out=%s",
            self.bpm,
            self.beats_on,
            self.beats_off,
            self._samples_per_beat,
            self._fan_out,
        )

    def process(self, audio: np.ndarray, midi: MidiBuffer) -> None:
        audio.fill(0.0)
        num_samples = audio.shape[1]

        if self._on_samples == 0 and self._off_samples == 0:
            self._counter += num_samples
            return

        incoming = midi.events()
        cursor = 0
        output = MidiBuffer()

        for offset in range(num_samples):
            while cursor < len(incoming) and incoming[cursor].sample_position <= offset:
                self._apply_gate(incoming[cursor].message)
                cursor += 1

            if self._gating and self._sounding and not self._gate_open:
                output.add_event(self._note_off(), offset)
                self._sounding = False

            while self._counter + offset == self._next_transition:
                self._transition(output, offset)

        # Events beyond this block belong to the next one.
        output.add_events(incoming[cursor:])
        midi.swap_with(output)
        self._counter += num_samples

    def _apply_gate(self, message: MidiMessage) -> None:
        if not self._gating:
            return

        if message.is_note_on:
            self._gate_open = True
        elif message.is_note_off or message.is_all_notes_off or message.is_all_sound_off:
            self._gate_open = False

        if self._velocity_listening and message.velocity != self._listening_velocity:
            self._gate_open = False

    def _transition(self, output: MidiBuffer, offset: int) -> None:
        if self._state is CycleState.AWAITING_NOTE_ON:
            if not self._first_cycle:
                self._loop_count += 1
            self._first_cycle = False
            self._velocity = self._loop_count % self._fan_out + 1 if self._fan_out > 0 else 1

            permitted = not self._gating or self._gate_open
            if self.beats_on > 0 and permitted and not self._sounding:
                output.add_event(MidiMessage.note_on(_PULSE_CHANNEL, self.note_number, self._velocity), offset)
                self._sounding = True

            self._state = CycleState.NOTE_IS_ON
            self._next_transition += self._on_samples
        else:
            if self._sounding:
                output.add_event(self._note_off(), offset)
                self._sounding = False

            self._state = CycleState.AWAITING_NOTE_ON
            self._next_transition += self._off_samples

    def _note_off(self) -> MidiMessage:
        return MidiMessage.note_off(_PULSE_CHANNEL, self.note_number, self._velocity)

    def __repr__(self) -> str:
        return f"PulseGenerator(bpm={self.bpm}, on={self.beats_on}, off={self.beats_off})"
