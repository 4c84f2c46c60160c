from __future__ import annotations

import logging
from typing import Mapping, Sequence

from patchgraph.app.core.errors import DuplicateInput, IncompatibleEntry, MalformedGraph, UnknownUnit
from patchgraph.app.models.compile import WireSpec
from patchgraph.app.models.graph import ComposedGraph, GraphConnection, GraphNode, GraphUnit, Placement
from patchgraph.app.models.registry import PortDirection, TargetFormat
from patchgraph.app.services.positioner import position_units
from patchgraph.app.services.resolver_service import ReferenceResolver

logger = logging.getLogger(__name__)

# Pd objects whose first argument names a global table.
TABLE_OBJECTS = frozenset({"table", "tabread", "tabwrite", "tabread~", "tabwrite~", "tabread4~", "tabosc4~", "tabplay~"})


class Composer:
    """Merges independently built units into one globally addressed graph."""

    def __init__(self, resolver: ReferenceResolver) -> None:
        self._resolver = resolver

    def compose(
        self,
        units: Sequence[GraphUnit],
        wiring: Sequence[WireSpec] = (),
        *,
        target: TargetFormat,
        placements: Sequence[Placement] | None = None,
    ) -> ComposedGraph:
        if placements is None:
            placements = position_units(units)
        placement_by_unit = {placement.unit_id: placement for placement in placements}

        nodes: list[GraphNode] = []
        connections: list[GraphConnection] = []
        node_offsets: dict[str, int] = {}
        unit_map: dict[str, GraphUnit] = {}

        for index, unit in enumerate(units):
            if unit.id in unit_map:
                raise MalformedGraph(f"Unit id '{unit.id}' appears more than once")
            self._check_compatible(unit, target)

            offset = len(nodes)
            node_offsets[unit.id] = offset
            unit_map[unit.id] = unit

            placement = placement_by_unit.get(unit.id)
            shift_x = placement.x if placement is not None else 0.0
            shift_y = placement.y if placement is not None else 0.0
            local_nodes = self._localize_tables(unit.nodes, index) if target == TargetFormat.PD else unit.nodes
            for node in local_nodes:
                nodes.append(
                    GraphNode(
                        kind=node.kind,
                        name=node.name,
                        args=list(node.args),
                        x=node.x + shift_x,
                        y=node.y + shift_y,
                        unit_id=unit.id,
                    )
                )
            connections.extend(connection.shifted(offset) for connection in unit.connections)

        occupied_inputs: set[tuple[int, int]] = set()
        if target == TargetFormat.RACK:
            occupied_inputs.update((connection.target, connection.inlet) for connection in connections)

        for wire in wiring:
            connection = self._resolve_wire(wire, unit_map, node_offsets)
            if target == TargetFormat.RACK:
                key = (connection.target, connection.inlet)
                if key in occupied_inputs:
                    raise DuplicateInput(
                        f"Duplicate connection to input '{wire.input}' on unit '{wire.to_unit}'. "
                        "Each input accepts only one cable.",
                        unit_id=wire.to_unit,
                        port=wire.input,
                    )
                occupied_inputs.add(key)
            connections.append(connection)

        logger.debug(
            "Composed %d units into %d nodes and %d connections (%s)",
            len(unit_map),
            len(nodes),
            len(connections),
            target,
        )
        return ComposedGraph(
            target=target,
            nodes=nodes,
            connections=connections,
            node_offsets=node_offsets,
            units=unit_map,
            placements={unit_id: placement_by_unit[unit_id] for unit_id in unit_map if unit_id in placement_by_unit},
        )

    def _resolve_wire(
        self,
        wire: WireSpec,
        unit_map: Mapping[str, GraphUnit],
        node_offsets: Mapping[str, int],
    ) -> GraphConnection:
        source_unit = self._lookup_unit(unit_map, wire.from_unit)
        target_unit = self._lookup_unit(unit_map, wire.to_unit)

        output = self._resolver.resolve_port(
            source_unit.entry, wire.output, PortDirection.OUTPUT, owner=source_unit.id
        )
        input_port = self._resolver.resolve_port(
            target_unit.entry, wire.input, PortDirection.INPUT, owner=target_unit.id
        )

        return GraphConnection(
            source=output.node_index + node_offsets[source_unit.id],
            outlet=output.id,
            target=input_port.node_index + node_offsets[target_unit.id],
            inlet=input_port.id,
            color=wire.color,
        )

    @staticmethod
    def _lookup_unit(unit_map: Mapping[str, GraphUnit], unit_id: str) -> GraphUnit:
        unit = unit_map.get(unit_id)
        if unit is None:
            raise UnknownUnit(f"Unknown unit '{unit_id}'", name=unit_id, available=sorted(unit_map))
        return unit

    @staticmethod
    def _check_compatible(unit: GraphUnit, target: TargetFormat) -> None:
        if target == TargetFormat.PD and not unit.entry.is_template:
            raise IncompatibleEntry(
                f"Unit '{unit.id}' uses {unit.entry.qualified_name}, which is a rack module, not a Pd template"
            )
        if target == TargetFormat.RACK and unit.entry.is_template:
            raise IncompatibleEntry(
                f"Unit '{unit.id}' uses {unit.entry.qualified_name}, which is a Pd template, not a rack module"
            )

    @staticmethod
    def _localize_tables(nodes: Sequence[GraphNode], unit_index: int) -> list[GraphNode]:
        """Suffix table names declared inside a unit so combined patches do not share them."""
        declared = {
            str(node.args[0]) for node in nodes if node.name == "table" and node.args
        }
        if not declared:
            return list(nodes)

        localized: list[GraphNode] = []
        for node in nodes:
            if node.name in TABLE_OBJECTS and node.args and str(node.args[0]) in declared:
                args = [f"{node.args[0]}_{unit_index}", *node.args[1:]]
                localized.append(
                    GraphNode(kind=node.kind, name=node.name, args=args, x=node.x, y=node.y, unit_id=node.unit_id)
                )
            else:
                localized.append(node)
        return localized
