from __future__ import annotations

from dataclasses import dataclass, field

from patchgraph.app.models.registry import NodeKind, PdAtom, RegistryEntry, TargetFormat


@dataclass(slots=True)
class GraphNode:
    kind: NodeKind
    name: str = ""
    args: list[PdAtom] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    # None for nodes synthesized after composition.
    unit_id: str | None = None


@dataclass(slots=True, frozen=True)
class GraphConnection:
    source: int
    outlet: int
    target: int
    inlet: int
    color: str | None = None

    def shifted(self, offset: int) -> "GraphConnection":
        return GraphConnection(
            source=self.source + offset,
            outlet=self.outlet,
            target=self.target + offset,
            inlet=self.inlet,
            color=self.color,
        )


@dataclass(slots=True)
class GraphUnit:
    id: str
    entry: RegistryEntry
    params: dict[int, float]
    nodes: list[GraphNode]
    connections: list[GraphConnection] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def width(self) -> float:
        return self.entry.width


@dataclass(slots=True, frozen=True)
class Placement:
    unit_id: str
    x: float
    y: float
    left_id: str | None
    right_id: str | None


@dataclass(slots=True)
class PatchDocument:
    """A standalone node/connection list that never went through the composer."""

    nodes: list[GraphNode] = field(default_factory=list)
    connections: list[GraphConnection] = field(default_factory=list)


@dataclass(slots=True)
class ComposedGraph:
    """Combined graph with finalized unit offsets.

    Only the composer creates these. Later stages may append nodes and
    connections but never renumber what is already there.
    """

    target: TargetFormat
    nodes: list[GraphNode]
    connections: list[GraphConnection]
    node_offsets: dict[str, int]
    units: dict[str, GraphUnit]
    placements: dict[str, Placement] = field(default_factory=dict)
