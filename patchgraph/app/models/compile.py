from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, JsonValue, model_validator

MAX_UNITS = 64
MAX_WIRES = 512

# NaN and infinities have no spelling in Pd text or strict JSON.
FiniteFloat = Annotated[float, Field(allow_inf_nan=False)]


class UnitSpec(BaseModel):
    namespace: str = Field(min_length=1)
    name: str = Field(min_length=1)
    id: str | None = Field(default=None, min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    params: dict[str, FiniteFloat] = Field(default_factory=dict)
    filename: str | None = Field(default=None, min_length=1, max_length=128)


class WireSpec(BaseModel):
    from_unit: str = Field(min_length=1)
    output: str = Field(min_length=1)
    to_unit: str = Field(min_length=1)
    input: str = Field(min_length=1)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class CustomMapping(BaseModel):
    control: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    parameter: str = Field(min_length=1)


class ControllerConfig(BaseModel):
    device: str = Field(min_length=1)
    midi_channel: int | None = Field(default=None, ge=1, le=16)
    mappings: list[CustomMapping] = Field(default_factory=list)


class CompileRequestBase(BaseModel):
    units: list[UnitSpec] = Field(min_length=1, max_length=MAX_UNITS)
    wiring: list[WireSpec] = Field(default_factory=list, max_length=MAX_WIRES)

    @model_validator(mode="after")
    def validate_unique_unit_ids(self) -> "CompileRequestBase":
        ids = [unit.id for unit in self.units if unit.id is not None]
        if len(ids) != len(set(ids)):
            raise ValueError("Unit IDs must be unique")
        return self


class PdCompileRequest(CompileRequestBase):
    controller: ControllerConfig | None = None

    @model_validator(mode="after")
    def validate_unique_filenames(self) -> "PdCompileRequest":
        names = [unit.filename.removesuffix(".pd") for unit in self.units if unit.filename is not None]
        if len(names) != len(set(names)):
            raise ValueError("Unit filenames must be unique")
        return self


class RackCompileRequest(CompileRequestBase):
    pass


class MappingSummary(BaseModel):
    control: str
    cc: int | None
    unit: str
    parameter: str
    bus: str


class PdCompileResponse(BaseModel):
    rack: str
    units: dict[str, str]
    controller: str | None = None
    mappings: list[MappingSummary] = Field(default_factory=list)
    node_offsets: dict[str, int] = Field(default_factory=dict)
    k2_config: dict[str, JsonValue] | None = None


class RackCompileResponse(BaseModel):
    document: dict[str, JsonValue]
    text: str
