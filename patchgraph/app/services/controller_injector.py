from __future__ import annotations

import logging
from typing import Sequence

from patchgraph.app.core.errors import MalformedGraph, MappingError
from patchgraph.app.models.controller import ControllerMapping
from patchgraph.app.models.graph import ComposedGraph, GraphConnection, GraphNode
from patchgraph.app.models.registry import NodeKind, TargetFormat

logger = logging.getLogger(__name__)

RECEIVER_X = 50
RECEIVER_Y = 10


class ControllerInjector:
    """Appends `receive <bus>` nodes that feed controller values into composed units."""

    def inject(self, graph: ComposedGraph, mappings: Sequence[ControllerMapping]) -> ComposedGraph:
        if not isinstance(graph, ComposedGraph):
            raise TypeError("Controller receivers can only be injected into a graph returned by the composer")
        if not mappings:
            return graph
        if graph.target != TargetFormat.PD:
            raise MappingError("Controller receivers are only supported for Pd output")

        # Resolve every target before touching the graph so a bad mapping leaves it unchanged.
        planned: list[tuple[ControllerMapping, int]] = []
        for mapping in mappings:
            offset = graph.node_offsets.get(mapping.unit_id)
            if offset is None:
                logger.warning(
                    "Skipping controller mapping '%s': unit '%s' is not part of the graph",
                    mapping.bus_name,
                    mapping.unit_id,
                )
                continue

            parameter = mapping.parameter
            if parameter.node_index is None:
                raise MappingError(
                    f"Parameter '{parameter.name}' on unit '{mapping.unit_id}' has no target node to control"
                )

            unit = graph.units[mapping.unit_id]
            absolute_target = parameter.node_index + offset
            if parameter.node_index >= unit.node_count or absolute_target >= len(graph.nodes):
                raise MalformedGraph(
                    f"Controller target {absolute_target} for '{mapping.bus_name}' is outside unit "
                    f"'{mapping.unit_id}' (offset {offset}, {unit.node_count} nodes)"
                )
            planned.append((mapping, absolute_target))

        for mapping, absolute_target in planned:
            receive_index = len(graph.nodes)
            graph.nodes.append(
                GraphNode(kind=NodeKind.OBJ, name="receive", args=[mapping.bus_name], x=RECEIVER_X, y=RECEIVER_Y)
            )
            graph.connections.append(
                GraphConnection(
                    source=receive_index,
                    outlet=0,
                    target=absolute_target,
                    inlet=mapping.parameter.inlet,
                )
            )

        logger.debug("Injected %d controller receivers", len(planned))
        return graph
