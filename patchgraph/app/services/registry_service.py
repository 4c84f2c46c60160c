from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from patchgraph.app.core.errors import UnknownEntry
from patchgraph.app.models.registry import RegistryEntry


class Registry:
    """Read-only catalog of building blocks keyed by (namespace, entry name).

    Built once at startup and handed to the resolver. Namespace and entry
    names are matched case-insensitively, with exact matches taking priority.
    """

    def __init__(
        self,
        entries: Iterable[RegistryEntry],
        namespace_aliases: Mapping[str, str] | None = None,
    ) -> None:
        namespaces: dict[str, str] = {}
        catalog: dict[str, dict[str, RegistryEntry]] = {}
        for entry in entries:
            key = entry.namespace.lower()
            namespaces.setdefault(key, entry.namespace)
            bucket = catalog.setdefault(key, {})
            if entry.name in bucket:
                raise ValueError(f"Duplicate registry entry '{entry.qualified_name}'")
            bucket[entry.name] = entry

        aliases = {alias.lower(): target.lower() for alias, target in (namespace_aliases or {}).items()}
        for alias, target in aliases.items():
            if target not in catalog:
                raise ValueError(f"Namespace alias '{alias}' points at unknown namespace '{target}'")

        self._namespaces = MappingProxyType(namespaces)
        self._catalog = MappingProxyType({key: MappingProxyType(bucket) for key, bucket in catalog.items()})
        self._aliases = MappingProxyType(aliases)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._catalog.values())

    def list_namespaces(self) -> list[str]:
        return sorted(self._namespaces.values(), key=str.lower)

    def list_entries(self, namespace: str) -> list[RegistryEntry]:
        key = self._namespace_key(namespace)
        return sorted(self._catalog[key].values(), key=lambda entry: entry.name.lower())

    def get_entry(self, namespace: str, name: str) -> RegistryEntry:
        key = self._namespace_key(namespace)
        bucket = self._catalog[key]

        entry = bucket.get(name)
        if entry is not None:
            return entry

        lowered = name.lower()
        for candidate_name, candidate in bucket.items():
            if candidate_name.lower() == lowered:
                return candidate

        raise UnknownEntry(
            f"Unknown entry '{name}' in namespace '{self._namespaces[key]}'",
            name=name,
            available=sorted(set(bucket), key=str.lower),
        )

    def _namespace_key(self, namespace: str) -> str:
        lowered = namespace.lower()
        key = self._aliases.get(lowered, lowered)
        if key not in self._catalog:
            raise UnknownEntry(
                f"Unknown namespace '{namespace}'",
                name=namespace,
                available=sorted(set(self._namespaces.values()), key=str.lower),
            )
        return key
