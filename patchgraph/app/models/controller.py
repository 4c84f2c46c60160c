from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from patchgraph.app.models.registry import ParameterSpec

BUS_NAME_SEPARATOR = "__p__"


class ControlType(StrEnum):
    FADER = "fader"
    POT = "pot"
    ENCODER = "encoder"
    BUTTON = "button"


class ControlInputType(StrEnum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"
    TRIGGER = "trigger"


class ControlCategory(StrEnum):
    AMPLITUDE = "amplitude"
    FREQUENCY = "frequency"
    GENERAL = "general"
    TRANSPORT = "transport"


class DeviceControl(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    type: ControlType
    cc: int | None = Field(default=None, ge=0, le=127)
    note: int | None = Field(default=None, ge=0, le=127)
    input_type: ControlInputType = ControlInputType.ABSOLUTE
    range: tuple[int, int] = (0, 127)
    category: ControlCategory = ControlCategory.GENERAL


class DeviceProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    label: str = ""
    midi_channel: int = Field(default=1, ge=1, le=16)
    controls: tuple[DeviceControl, ...] = ()

    @model_validator(mode="after")
    def validate_unique_controls(self) -> "DeviceProfile":
        names = [control.name for control in self.controls]
        if len(names) != len(set(names)):
            raise ValueError(f"Device '{self.name}' declares duplicate control names")
        return self


def bus_name(unit_id: str, parameter_name: str) -> str:
    return f"{unit_id}{BUS_NAME_SEPARATOR}{parameter_name}"


@dataclass(slots=True, frozen=True)
class ControllerMapping:
    control: DeviceControl
    unit_id: str
    parameter: ParameterSpec
    bus_name: str

    @classmethod
    def create(cls, control: DeviceControl, unit_id: str, parameter: ParameterSpec) -> "ControllerMapping":
        return cls(
            control=control,
            unit_id=unit_id,
            parameter=parameter,
            bus_name=bus_name(unit_id, parameter.name),
        )
