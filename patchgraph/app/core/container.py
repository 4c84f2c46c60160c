from __future__ import annotations

from dataclasses import dataclass

from patchgraph.app.core.config import Settings
from patchgraph.app.services.compiler_service import CompilerService
from patchgraph.app.services.device_service import DeviceService
from patchgraph.app.services.registry_service import Registry
from patchgraph.app.services.resolver_service import ReferenceResolver


@dataclass(slots=True)
class AppContainer:
    settings: Settings
    registry: Registry
    resolver: ReferenceResolver
    device_service: DeviceService
    compiler_service: CompilerService
