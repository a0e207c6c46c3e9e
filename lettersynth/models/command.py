from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class CommandVerb(StrEnum):
    SET = "set"
    PLAY = "play"
    PAUSE = "pause"
    PRINT = "print"
    NOTATION = "notation"
    EXIT = "exit"
    IGNORED = "ignored"


class CommandRequest(BaseModel):
    line: str


class CommandResult(BaseModel):
    verb: CommandVerb
    ok: bool = True
    output: list[str] = Field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None

    @property
    def should_exit(self) -> bool:
        return self.verb is CommandVerb.EXIT
