from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, Field

from lettersynth.models.unit import UnitKind

SINK_NAME = "Audio Output"


class Channel(IntEnum):
    LEFT = 0
    RIGHT = 1
    MIDI = 0x1000


class GraphNodeInfo(BaseModel):
    handle: int
    name: str
    kind: UnitKind | None = None


class GraphConnectionInfo(BaseModel):
    source: int
    source_channel: Channel
    destination: int
    destination_channel: Channel


class GraphSnapshot(BaseModel):
    notation: str = ""
    playing: bool = False
    nodes: list[GraphNodeInfo] = Field(default_factory=list)
    connections: list[GraphConnectionInfo] = Field(default_factory=list)


class NotationRequest(BaseModel):
    notation: str
