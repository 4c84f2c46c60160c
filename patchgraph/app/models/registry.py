from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

PdAtom = str | int | float


class PortDirection(StrEnum):
    INPUT = "input"
    OUTPUT = "output"


class SignalType(StrEnum):
    AUDIO = "audio"
    CONTROL = "control"


class Curve(StrEnum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class ParameterCategory(StrEnum):
    FILTER = "filter"
    OSCILLATOR = "oscillator"
    AMPLITUDE = "amplitude"
    EFFECT = "effect"
    TRANSPORT = "transport"


class TargetFormat(StrEnum):
    PD = "pd"
    RACK = "rack"


class NodeKind(StrEnum):
    OBJ = "obj"
    MSG = "msg"
    TEXT = "text"
    FLOATATOM = "floatatom"
    MODULE = "module"


class PortSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    name: str = Field(min_length=1)
    label: str = ""
    direction: PortDirection
    signal_type: SignalType = SignalType.AUDIO
    # Pd templates: the local node that owns inlet/outlet `id`.
    node_index: int = Field(default=0, ge=0)
    min: float | None = None
    max: float | None = None
    curve: Curve | None = None


class ParameterSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    name: str = Field(min_length=1)
    label: str = ""
    default: float = 0.0
    min: float | None = None
    max: float | None = None
    unit: str = ""
    curve: Curve = Curve.LINEAR
    category: ParameterCategory | None = None
    # Slot still occupies its id but is gone from the panel.
    removed: bool = False
    node_index: int | None = Field(default=None, ge=0)
    inlet: int = Field(default=0, ge=0)
    arg_index: int | None = Field(default=None, ge=0)
    mappable: bool = True

    @property
    def controllable(self) -> bool:
        return self.mappable and not self.removed and self.node_index is not None

    @property
    def value_range(self) -> tuple[float, float]:
        low = self.min if self.min is not None else 0.0
        high = self.max if self.max is not None else 1.0
        return low, high


class NodeBlueprint(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: NodeKind = NodeKind.OBJ
    name: str = ""
    args: tuple[PdAtom, ...] = ()
    x: float = 50.0
    y: float = 10.0


class ConnectionBlueprint(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: int = Field(ge=0)
    outlet: int = Field(default=0, ge=0)
    target: int = Field(ge=0)
    inlet: int = Field(default=0, ge=0)


class RegistryEntry(BaseModel):
    """Canonical definition of one instantiable building block.

    Rack modules carry only ports and parameters. Pd templates also carry a
    node/connection blueprint that the graph builder copies per unit.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(min_length=1)
    name: str = Field(min_length=1)
    version: str = ""
    width: float = Field(default=0.0, ge=0)
    description: str = ""
    tags: tuple[str, ...] = ()
    ports: tuple[PortSpec, ...] = ()
    parameters: tuple[ParameterSpec, ...] = ()
    nodes: tuple[NodeBlueprint, ...] = ()
    connections: tuple[ConnectionBlueprint, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def inputs(self) -> list[PortSpec]:
        return [port for port in self.ports if port.direction == PortDirection.INPUT]

    @property
    def outputs(self) -> list[PortSpec]:
        return [port for port in self.ports if port.direction == PortDirection.OUTPUT]

    @property
    def active_parameters(self) -> list[ParameterSpec]:
        return [parameter for parameter in self.parameters if not parameter.removed]

    @property
    def is_template(self) -> bool:
        return len(self.nodes) > 0

    @model_validator(mode="after")
    def validate_identifiers(self) -> "RegistryEntry":
        for direction in PortDirection:
            port_keys = [(port.node_index, port.id) for port in self.ports if port.direction == direction]
            if len(port_keys) != len(set(port_keys)):
                raise ValueError(f"{self.qualified_name}: duplicate {direction} port ids")

        parameter_ids = [parameter.id for parameter in self.parameters]
        if len(parameter_ids) != len(set(parameter_ids)):
            raise ValueError(f"{self.qualified_name}: duplicate parameter ids")

        if self.nodes:
            node_count = len(self.nodes)
            for connection in self.connections:
                if connection.source >= node_count or connection.target >= node_count:
                    raise ValueError(f"{self.qualified_name}: blueprint connection references a missing node")
            for port in self.ports:
                if port.node_index >= node_count:
                    raise ValueError(f"{self.qualified_name}: port '{port.name}' references a missing node")
            for parameter in self.parameters:
                if parameter.node_index is not None and parameter.node_index >= node_count:
                    raise ValueError(
                        f"{self.qualified_name}: parameter '{parameter.name}' references a missing node"
                    )
        return self
