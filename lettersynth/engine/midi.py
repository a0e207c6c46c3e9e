from __future__ import annotations

import bisect
from dataclasses import dataclass
from operator import attrgetter
from typing import Iterable, Iterator

NOTE_OFF = 0x80
NOTE_ON = 0x90
CONTROL_CHANGE = 0xB0
ALL_SOUND_OFF = 120
ALL_NOTES_OFF = 123


def _channel_byte(channel: int) -> int:
    return (channel - 1) & 0x0F


@dataclass(slots=True, frozen=True)
class MidiMessage:
    status: int
    data1: int = 0
    data2: int = 0

    @classmethod
    def note_on(cls, channel: int, note: int, velocity: int) -> "MidiMessage":
        return cls(NOTE_ON + _channel_byte(channel), note & 0x7F, velocity & 0x7F)

    @classmethod
    def note_off(cls, channel: int, note: int, velocity: int = 0) -> "MidiMessage":
        return cls(NOTE_OFF + _channel_byte(channel), note & 0x7F, velocity & 0x7F)

    @classmethod
    def all_notes_off(cls, channel: int) -> "MidiMessage":
        return cls(CONTROL_CHANGE + _channel_byte(channel), ALL_NOTES_OFF, 0)

    @classmethod
    def all_sound_off(cls, channel: int) -> "MidiMessage":
        return cls(CONTROL_CHANGE + _channel_byte(channel), ALL_SOUND_OFF, 0)

    @property
    def channel(self) -> int:
        return (self.status & 0x0F) + 1

    @property
    def is_note_on(self) -> bool:
        return (self.status & 0xF0) == NOTE_ON and self.data2 > 0

    @property
    def is_note_off(self) -> bool:
        kind = self.status & 0xF0
        # A note-on with velocity 0 is a note-off on the wire.
        return kind == NOTE_OFF or (kind == NOTE_ON and self.data2 == 0)

    @property
    def is_all_notes_off(self) -> bool:
        return (self.status & 0xF0) == CONTROL_CHANGE and self.data1 == ALL_NOTES_OFF

    @property
    def is_all_sound_off(self) -> bool:
        return (self.status & 0xF0) == CONTROL_CHANGE and self.data1 == ALL_SOUND_OFF

    @property
    def velocity(self) -> int:
        if (self.status & 0xF0) in (NOTE_ON, NOTE_OFF):
            return self.data2
        return 0

    def to_bytes(self) -> list[int]:
        return [self.status & 0xFF, self.data1 & 0x7F, self.data2 & 0x7F]


@dataclass(slots=True, frozen=True)
class MidiEvent:
    sample_position: int
    message: MidiMessage


_position = attrgetter("sample_position")


class MidiBuffer:
    """Events of one processing block, always ordered by sample position.

    Events sharing a position keep their insertion order.
    """

    __slots__ = ("_events",)

    def __init__(self, events: Iterable[MidiEvent] = ()) -> None:
        self._events: list[MidiEvent] = sorted(events, key=_position)

    def add_event(self, message: MidiMessage, sample_position: int) -> None:
        bisect.insort_right(self._events, MidiEvent(sample_position, message), key=_position)

    def add_events(self, events: Iterable[MidiEvent]) -> None:
        for event in events:
            bisect.insort_right(self._events, event, key=_position)

    def swap_with(self, other: "MidiBuffer") -> None:
        self._events, other._events = other._events, self._events

    def clear(self) -> None:
        self._events.clear()

    def events(self) -> list[MidiEvent]:
        return list(self._events)

    def __iter__(self) -> Iterator[MidiEvent]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)
