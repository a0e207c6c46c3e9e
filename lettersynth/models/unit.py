from __future__ import annotations

import math
from enum import StrEnum
from typing import Any, Callable, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from lettersynth.core.errors import MalformedCommand, TypeMismatch, UnknownParameter

ParamValue = int | float | str


class UnitKind(StrEnum):
    OSCILLATOR = "oscillator"
    EFFECT = "effect"
    PULSE_GENERATOR = "pulse_generator"


class ParamKind(StrEnum):
    INTEGER = "int"
    REAL = "real"
    STRING = "string"


class ParamSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    kind: ParamKind
    default: ParamValue
    description: str = ""

    @model_validator(mode="after")
    def validate_default(self) -> "ParamSpec":
        if self.coerce(self.default) != self.default:
            raise ValueError(f"Default for '{self.name}' does not match parameter type '{self.kind}'.")
        return self

    def coerce(self, value: ParamValue) -> ParamValue:
        if self.kind is ParamKind.STRING:
            return value if isinstance(value, str) else str(value)

        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise TypeMismatch(self.name, self.kind.value, value)

        number: int | float = value if not isinstance(value, str) else self._parse_number(value)
        if isinstance(number, float) and not math.isfinite(number):
            raise TypeMismatch(self.name, self.kind.value, value)

        if self.kind is ParamKind.INTEGER:
            # Reals are truncated toward zero, the way a numeric cast would.
            return int(number)
        return float(number)

    def _parse_number(self, text: str) -> int | float:
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError as exc:
            raise TypeMismatch(self.name, self.kind.value, text) from exc


class UnitDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    kind: UnitKind
    description: str = ""
    params: tuple[ParamSpec, ...] = ()
    factory: Callable[..., Any] = Field(exclude=True, repr=False)

    @property
    def param_names(self) -> list[str]:
        return [spec.name for spec in self.params]

    def defaults(self) -> tuple[ParamValue, ...]:
        return tuple(spec.default for spec in self.params)

    def index_of(self, name: str) -> int:
        for index, spec in enumerate(self.params):
            if spec.name == name:
                return index
        raise UnknownParameter(self.name, name)

    def param(self, name: str) -> ParamSpec:
        return self.params[self.index_of(name)]

    def coerce(self, name: str, value: ParamValue) -> ParamValue:
        return self.param(name).coerce(value)

    def merge_positional(self, values: Sequence[ParamValue]) -> tuple[ParamValue, ...]:
        if len(values) > len(self.params):
            raise MalformedCommand(
                f"Unit type '{self.name}' takes {len(self.params)} parameter(s), got {len(values)}."
            )
        merged = list(self.defaults())
        for index, value in enumerate(values):
            merged[index] = self.params[index].coerce(value)
        return tuple(merged)

    def create(self, values: Sequence[ParamValue]) -> Any:
        return self.factory(*values)

    def info(self) -> "UnitInfo":
        return UnitInfo(name=self.name, kind=self.kind, description=self.description, params=list(self.params))


class UnitInfo(BaseModel):
    name: str
    kind: UnitKind
    description: str = ""
    params: list[ParamSpec] = Field(default_factory=list)
