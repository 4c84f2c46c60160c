from __future__ import annotations

from typing import Iterable


class PatchGraphError(Exception):
    """Base class for every failure that aborts a single compilation."""

    kind = "patch_graph_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_detail(self) -> dict[str, object]:
        return {"kind": self.kind, "message": self.message}


class ResolutionError(PatchGraphError):
    """A symbolic reference did not match anything the registry knows about."""

    kind = "resolution_error"

    def __init__(self, message: str, *, name: str, available: Iterable[str]) -> None:
        self.name = name
        self.available = list(available)
        listing = ", ".join(self.available) if self.available else "(none)"
        super().__init__(f"{message}. Available: {listing}")

    def to_detail(self) -> dict[str, object]:
        return {**super().to_detail(), "name": self.name, "available": self.available}


class UnknownEntry(ResolutionError):
    kind = "unknown_entry"


class UnknownPort(ResolutionError):
    kind = "unknown_port"


class UnknownParameter(ResolutionError):
    kind = "unknown_parameter"


class UnknownUnit(ResolutionError):
    kind = "unknown_unit"


class DuplicateInput(PatchGraphError):
    kind = "duplicate_input"

    def __init__(self, message: str, *, unit_id: str, port: str) -> None:
        self.unit_id = unit_id
        self.port = port
        super().__init__(message)

    def to_detail(self) -> dict[str, object]:
        return {**super().to_detail(), "unit": self.unit_id, "port": self.port}


class DuplicateUnit(PatchGraphError):
    kind = "duplicate_unit"


class IncompatibleEntry(PatchGraphError):
    kind = "incompatible_entry"


class MalformedGraph(PatchGraphError):
    kind = "malformed_graph"


class MappingError(PatchGraphError):
    kind = "mapping_error"
