from __future__ import annotations

import math

import numpy as np

from lettersynth.engine.midi import MidiBuffer, MidiMessage
from lettersynth.models.unit import UnitKind

TWO_PI = 2.0 * math.pi


def midi_note_to_hz(note: int) -> float:
    return 440.0 * math.pow(2.0, (note - 69) / 12.0)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class AudioUnit:
    """A processing unit hosted by the audio graph.

    ``process`` receives a ``(2, n)`` float64 block and the block's MIDI; both
    are modified in place.
    """

    kind: UnitKind
    name = "Unit"
    accepts_midi = False
    produces_midi = False

    def __init__(self) -> None:
        self.sample_rate = 0.0
        self.block_size = 0

    def prepare(self, sample_rate: float, block_size: int) -> None:
        self.sample_rate = float(sample_rate)
        self.block_size = int(block_size)

    def process(self, audio: np.ndarray, midi: MidiBuffer) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class OscillatorUnit(AudioUnit):
    kind = UnitKind.OSCILLATOR
    name = "Oscillator"
    accepts_midi = True
    gain = 0.5

    def __init__(self, note: int = 69) -> None:
        super().__init__()
        self.note = int(_clamp(int(note), 0, 127))
        self.frequency = midi_note_to_hz(self.note)
        self.midi_triggered = False
        self.open_on_all_velocities = False
        self.listening_velocity = 1
        self.is_playing = True
        self._phase = 0.0
        self._increment = 0.0

    def set_midi_triggered(self, triggered: bool) -> None:
        self.midi_triggered = triggered
        self.is_playing = not triggered

    def prepare(self, sample_rate: float, block_size: int) -> None:
        super().prepare(sample_rate, block_size)
        self._phase = 0.0
        self._increment = TWO_PI * self.frequency / self.sample_rate if self.sample_rate > 0 else 0.0
        self.is_playing = not self.midi_triggered

    def process(self, audio: np.ndarray, midi: MidiBuffer) -> None:
        audio.fill(0.0)
        num_samples = audio.shape[1]
        if num_samples == 0 or self.sample_rate <= 0:
            return

        cursor = 0
        for event in midi:
            position = int(_clamp(event.sample_position, 0, num_samples - 1))
            if position > cursor:
                self._render(audio, cursor, position)
                cursor = position
            self._handle_midi(event.message)

        if cursor < num_samples:
            self._render(audio, cursor, num_samples)

    def waveform(self, phase: np.ndarray) -> np.ndarray:
        return np.sin(phase)

    def _handle_midi(self, message: MidiMessage) -> None:
        if not self.midi_triggered:
            return
        if not self.open_on_all_velocities and message.velocity != self.listening_velocity:
            return

        if message.is_note_on:
            self.is_playing = True
        elif message.is_note_off or message.is_all_notes_off or message.is_all_sound_off:
            self.is_playing = False

    def _render(self, audio: np.ndarray, start: int, end: int) -> None:
        if self.midi_triggered and not self.is_playing:
            return

        count = end - start
        phase = self._phase + self._increment * np.arange(count, dtype=np.float64)
        # Waveforms are defined over [-pi, pi).
        wrapped = np.mod(phase + math.pi, TWO_PI) - math.pi
        samples = self.gain * self.waveform(wrapped)
        audio[:, start:end] = samples
        self._phase = math.fmod(self._phase + self._increment * count, TWO_PI)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(note={self.note})"


class SinOscillator(OscillatorUnit):
    name = "Sine Oscillator"


class SquareOscillator(OscillatorUnit):
    name = "Square Oscillator"
    gain = 0.05

    def waveform(self, phase: np.ndarray) -> np.ndarray:
        return np.where(phase < 0.0, 1.0, -1.0)


class SawOscillator(OscillatorUnit):
    name = "Sawtooth Oscillator"
    gain = 0.15

    def waveform(self, phase: np.ndarray) -> np.ndarray:
        return phase / math.pi


class TriangleOscillator(OscillatorUnit):
    name = "Triangle Oscillator"

    def waveform(self, phase: np.ndarray) -> np.ndarray:
        return 1.0 - 2.0 * np.abs(phase) / math.pi


class NoiseOscillator(OscillatorUnit):
    name = "Noise Oscillator"
    gain = 0.02

    def __init__(self, note: int = 69) -> None:
        super().__init__(note)
        self._rng = np.random.default_rng()

    def waveform(self, phase: np.ndarray) -> np.ndarray:
        return self._rng.uniform(-1.0, 1.0, size=phase.shape)


class EffectUnit(AudioUnit):
    kind = UnitKind.EFFECT
    name = "Effect"


class FilterUnit(EffectUnit):
    """Second-order Butterworth low-pass."""

    name = "Filter"

    def __init__(self, cutoff: float = 2000.0) -> None:
        super().__init__()
        self.cutoff = float(cutoff)
        self._coefficients = (1.0, 0.0, 0.0, 0.0, 0.0)
        self._state = np.zeros((2, 2), dtype=np.float64)

    def prepare(self, sample_rate: float, block_size: int) -> None:
        super().prepare(sample_rate, block_size)
        self._state.fill(0.0)
        if self.sample_rate <= 0:
            return

        cutoff = _clamp(self.cutoff, 1.0, 0.49 * self.sample_rate)
        omega = TWO_PI * cutoff / self.sample_rate
        alpha = math.sin(omega) / (2.0 * math.sqrt(0.5))
        cos_omega = math.cos(omega)
        a0 = 1.0 + alpha
        b0 = (1.0 - cos_omega) / 2.0 / a0
        self._coefficients = (
            b0,
            (1.0 - cos_omega) / a0,
            b0,
            (-2.0 * cos_omega) / a0,
            (1.0 - alpha) / a0,
        )

    def process(self, audio: np.ndarray, midi: MidiBuffer) -> None:
        b0, b1, b2, a1, a2 = self._coefficients
        for channel in range(min(2, audio.shape[0])):
            z1, z2 = float(self._state[channel, 0]), float(self._state[channel, 1])
            samples = audio[channel]
            for index in range(samples.shape[0]):
                x = float(samples[index])
                y = b0 * x + z1
                z1 = b1 * x - a1 * y + z2
                z2 = b2 * x - a2 * y
                samples[index] = y
            self._state[channel, 0] = z1
            self._state[channel, 1] = z2

    def __repr__(self) -> str:
        return f"FilterUnit(cutoff={self.cutoff})"


class DelayUnit(EffectUnit):
    name = "Delay"
    max_delay_seconds = 2.0

    def __init__(self, time: float = 0.5, feedback: float = 0.5, wet: float = 0.5, dry: float = 0.5) -> None:
        super().__init__()
        self.time = _clamp(float(time), 0.0, self.max_delay_seconds)
        self.feedback = _clamp(float(feedback), 0.0, 0.99)
        self.wet = _clamp(float(wet), 0.0, 1.0)
        self.dry = _clamp(float(dry), 0.0, 1.0)
        self._lines = np.zeros((2, 1), dtype=np.float64)
        self._write = 0
        self._delay_samples = 1

    def prepare(self, sample_rate: float, block_size: int) -> None:
        super().prepare(sample_rate, block_size)
        length = max(2, int(self.sample_rate * self.max_delay_seconds) + 1)
        self._lines = np.zeros((2, length), dtype=np.float64)
        self._write = 0
        self._delay_samples = int(_clamp(round(self.sample_rate * self.time), 1, length - 1))

    def process(self, audio: np.ndarray, midi: MidiBuffer) -> None:
        length = self._lines.shape[1]
        num_samples = audio.shape[1]
        for channel in range(min(2, audio.shape[0])):
            line = self._lines[channel]
            samples = audio[channel]
            write = self._write
            for index in range(num_samples):
                dry = float(samples[index])
                delayed = float(line[(write - self._delay_samples) % length])
                samples[index] = dry * self.dry + delayed * self.wet
                line[write] = dry + delayed * self.feedback
                write = (write + 1) % length
        self._write = (self._write + num_samples) % length

    def __repr__(self) -> str:
        return f"DelayUnit(time={self.time}, feedback={self.feedback}, wet={self.wet}, dry={self.dry})"


class _Comb:
    __slots__ = ("buffer", "index", "filter_store")

    def __init__(self, size: int) -> None:
        self.buffer = [0.0] * max(1, size)
        self.index = 0
        self.filter_store = 0.0

    def process(self, value: float, feedback: float, damp: float) -> float:
        output = self.buffer[self.index]
        self.filter_store = output * (1.0 - damp) + self.filter_store * damp
        self.buffer[self.index] = value + self.filter_store * feedback
        self.index = (self.index + 1) % len(self.buffer)
        return output


class _AllPass:
    __slots__ = ("buffer", "index")

    def __init__(self, size: int) -> None:
        self.buffer = [0.0] * max(1, size)
        self.index = 0

    def process(self, value: float) -> float:
        buffered = self.buffer[self.index]
        self.buffer[self.index] = value + buffered * 0.5
        self.index = (self.index + 1) % len(self.buffer)
        return buffered - value


class ReverbUnit(EffectUnit):
    """Freeverb-style stereo reverb: parallel damped combs into serial all-passes."""

    name = "Reverb"
    comb_tunings = (1116, 1188, 1277, 1356)
    allpass_tunings = (556, 441)
    stereo_spread = 23

    def __init__(
        self,
        size: float = 0.5,
        damp: float = 0.4,
        wet: float = 0.5,
        dry: float = 0.5,
        width: float = 0.2,
    ) -> None:
        super().__init__()
        self.size = _clamp(float(size), 0.0, 1.0)
        self.damp = _clamp(float(damp), 0.0, 1.0)
        self.wet = _clamp(float(wet), 0.0, 1.0)
        self.dry = _clamp(float(dry), 0.0, 1.0)
        self.width = _clamp(float(width), 0.0, 1.0)
        self._combs: list[list[_Comb]] = [[], []]
        self._allpasses: list[list[_AllPass]] = [[], []]

    def prepare(self, sample_rate: float, block_size: int) -> None:
        super().prepare(sample_rate, block_size)
        scale = self.sample_rate / 44_100.0 if self.sample_rate > 0 else 1.0
        for channel in range(2):
            spread = self.stereo_spread * channel
            self._combs[channel] = [_Comb(int((tuning + spread) * scale)) for tuning in self.comb_tunings]
            self._allpasses[channel] = [_AllPass(int((tuning + spread) * scale)) for tuning in self.allpass_tunings]

    def process(self, audio: np.ndarray, midi: MidiBuffer) -> None:
        if audio.shape[0] < 2 or not self._combs[0]:
            return

        feedback = self.size * 0.28 + 0.7
        damp = self.damp * 0.4
        wet = self.wet * 3.0
        wet_direct = wet * (self.width / 2.0 + 0.5)
        wet_cross = wet * ((1.0 - self.width) / 2.0)
        dry = self.dry * 2.0

        left, right = audio[0], audio[1]
        for index in range(audio.shape[1]):
            in_left, in_right = float(left[index]), float(right[index])
            feed = (in_left + in_right) * 0.015
            outs = []
            for channel in range(2):
                out = sum(comb.process(feed, feedback, damp) for comb in self._combs[channel])
                for allpass in self._allpasses[channel]:
                    out = allpass.process(out)
                outs.append(out)
            left[index] = outs[0] * wet_direct + outs[1] * wet_cross + in_left * dry
            right[index] = outs[1] * wet_direct + outs[0] * wet_cross + in_right * dry

    def __repr__(self) -> str:
        return (
            f"ReverbUnit(size={self.size}, damp={self.damp}, wet={self.wet}, "
            f"dry={self.dry}, width={self.width})"
        )
