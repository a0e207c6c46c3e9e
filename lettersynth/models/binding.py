from __future__ import annotations

from pydantic import BaseModel, Field

from lettersynth.models.unit import ParamKind, ParamValue, UnitKind


class ParamValueInfo(BaseModel):
    name: str
    kind: ParamKind
    value: ParamValue
    default: ParamValue


class BindingDescription(BaseModel):
    letter: str = Field(min_length=1, max_length=1)
    type_name: str
    kind: UnitKind
    params: list[ParamValueInfo] = Field(default_factory=list)

    def values(self) -> dict[str, ParamValue]:
        return {param.name: param.value for param in self.params}


class BindRequest(BaseModel):
    type_name: str = Field(min_length=1)
    params: list[ParamValue] = Field(default_factory=list)
    overrides: dict[str, ParamValue] = Field(default_factory=dict)


class ParamUpdateRequest(BaseModel):
    params: dict[str, ParamValue] = Field(min_length=1)
