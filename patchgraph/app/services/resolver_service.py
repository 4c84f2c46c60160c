from __future__ import annotations

from patchgraph.app.core.errors import UnknownParameter, UnknownPort
from patchgraph.app.models.registry import ParameterSpec, PortDirection, PortSpec, RegistryEntry
from patchgraph.app.services.registry_service import Registry


class ReferenceResolver:
    """Resolves user-facing names against registry entries.

    Ports and parameters match on their exact label first, then on their
    canonical identifier. Both comparisons are case-sensitive.
    """

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    @property
    def registry(self) -> Registry:
        return self._registry

    def resolve_module(self, namespace: str, name: str) -> RegistryEntry:
        return self._registry.get_entry(namespace, name)

    def resolve_port(
        self,
        entry: RegistryEntry,
        name: str,
        direction: PortDirection,
        *,
        owner: str | None = None,
    ) -> PortSpec:
        ports = entry.inputs if direction == PortDirection.INPUT else entry.outputs

        for port in ports:
            if port.label and port.label == name:
                return port
        for port in ports:
            if port.name == name:
                return port
        if name.isdigit():
            numeric_id = int(name)
            for port in ports:
                if port.id == numeric_id:
                    return port

        where = f"unit '{owner}' ({entry.qualified_name})" if owner else entry.qualified_name
        raise UnknownPort(
            f"Unknown {direction} port '{name}' on {where}",
            name=name,
            available=[self._describe(port.label, port.name) for port in ports],
        )

    def resolve_parameter(self, entry: RegistryEntry, name: str) -> ParameterSpec:
        parameters = entry.active_parameters

        for parameter in parameters:
            if parameter.label and parameter.label == name:
                return parameter
        for parameter in parameters:
            if parameter.name == name:
                return parameter

        raise UnknownParameter(
            f"Unknown parameter '{name}' on {entry.qualified_name}",
            name=name,
            available=[self._describe(parameter.label, parameter.name) for parameter in parameters],
        )

    @staticmethod
    def _describe(label: str, name: str) -> str:
        if label and label != name:
            return f"{label} ({name})"
        return name
