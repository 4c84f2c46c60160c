from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field

from patchgraph.app.models.registry import ParameterSpec, PortDirection, PortSpec, RegistryEntry

logger = logging.getLogger(__name__)


class VcvPortDef(BaseModel):
    id: int = Field(ge=0)
    name: str = Field(min_length=1)
    label: str = ""


class VcvParamDef(VcvPortDef):
    min: float | None = None
    max: float | None = None
    default: float | None = None
    removed: bool = False


class VcvModuleDef(BaseModel):
    name: str = Field(min_length=1)
    hp: int = Field(ge=1)
    tags: list[str] = Field(default_factory=list)
    params: list[VcvParamDef] = Field(default_factory=list)
    inputs: list[VcvPortDef] = Field(default_factory=list)
    outputs: list[VcvPortDef] = Field(default_factory=list)


class VcvPluginFile(BaseModel):
    plugin: str = Field(min_length=1)
    version: str = Field(min_length=1)
    modules: dict[str, VcvModuleDef] = Field(default_factory=dict)


def _to_entry(plugin: VcvPluginFile, module: VcvModuleDef) -> RegistryEntry:
    ports = [
        PortSpec(id=port.id, name=port.name, label=port.label, direction=PortDirection.INPUT)
        for port in module.inputs
    ]
    ports.extend(
        PortSpec(id=port.id, name=port.name, label=port.label, direction=PortDirection.OUTPUT)
        for port in module.outputs
    )
    parameters = [
        ParameterSpec(
            id=param.id,
            name=param.name,
            label=param.label,
            default=param.default if param.default is not None else 0.0,
            min=param.min,
            max=param.max,
            removed=param.removed,
        )
        for param in module.params
    ]
    return RegistryEntry(
        namespace=plugin.plugin,
        name=module.name,
        version=plugin.version,
        width=module.hp,
        tags=tuple(module.tags),
        ports=tuple(ports),
        parameters=tuple(parameters),
    )


def load_vcv_plugin(path: Path) -> list[RegistryEntry]:
    plugin = VcvPluginFile.model_validate(json.loads(path.read_text(encoding="utf-8")))
    return [_to_entry(plugin, module) for module in plugin.modules.values()]


def load_vcv_plugins(directory: Path) -> list[RegistryEntry]:
    if not directory.is_dir():
        logger.warning("VCV registry directory '%s' not found; rack modules unavailable", directory)
        return []

    entries: list[RegistryEntry] = []
    for path in sorted(directory.glob("*.json")):
        loaded = load_vcv_plugin(path)
        logger.debug("Loaded %d VCV modules from %s", len(loaded), path.name)
        entries.extend(loaded)
    return entries
