from __future__ import annotations

from typing import Iterable, Mapping

from patchgraph.app.core.errors import UnknownEntry
from patchgraph.app.models.controller import DeviceProfile


class DeviceService:
    def __init__(self, profiles: Iterable[DeviceProfile], aliases: Mapping[str, str] | None = None) -> None:
        self._profiles = {profile.name.lower(): profile for profile in profiles}
        self._aliases = {alias.lower(): target.lower() for alias, target in (aliases or {}).items()}

    def list_devices(self) -> list[DeviceProfile]:
        return sorted(self._profiles.values(), key=lambda profile: profile.name)

    def get_device(self, name: str) -> DeviceProfile:
        key = name.lower()
        profile = self._profiles.get(self._aliases.get(key, key))
        if profile is None:
            raise UnknownEntry(
                f"Unknown device '{name}'",
                name=name,
                available=sorted(self._profiles[key].name for key in self._profiles),
            )
        return profile
