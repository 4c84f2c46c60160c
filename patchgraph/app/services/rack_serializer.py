from __future__ import annotations

import json
import logging
import math
import random
from typing import Any

from patchgraph.app.core.config import Settings
from patchgraph.app.core.errors import MalformedGraph
from patchgraph.app.models.graph import ComposedGraph, GraphUnit
from patchgraph.app.models.registry import NodeKind, TargetFormat

logger = logging.getLogger(__name__)

HIGH_BITS = 21
LOW_BITS = 32


class IdGenerator:
    """Produces 53-bit module and cable ids, small enough to survive a JSON float."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.SystemRandom()

    @classmethod
    def seeded(cls, seed: int) -> "IdGenerator":
        return cls(random.Random(seed))

    def __call__(self) -> int:
        high = self._rng.getrandbits(HIGH_BITS)
        low = self._rng.getrandbits(LOW_BITS)
        return high * (1 << LOW_BITS) + low


def _number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


class RackSerializer:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def build_document(self, graph: ComposedGraph, id_generator: IdGenerator) -> dict[str, Any]:
        if graph.target != TargetFormat.RACK:
            raise MalformedGraph(f"Cannot write a rack patch from a graph composed for '{graph.target}'")

        module_ids: dict[str, int] = {}
        node_to_unit: dict[int, str] = {}
        for unit_id, unit in graph.units.items():
            offset = graph.node_offsets[unit_id]
            if unit.node_count != 1 or graph.nodes[offset].kind != NodeKind.MODULE:
                raise MalformedGraph(f"Unit '{unit_id}' is not a single rack module")
            for parameter_id, value in unit.params.items():
                if not math.isfinite(value):
                    raise MalformedGraph(
                        f"Parameter {parameter_id} on unit '{unit_id}' is not a finite number: {value}"
                    )
            module_ids[unit_id] = id_generator()
            node_to_unit[offset] = unit_id

        modules = [self._module_json(unit, graph, module_ids) for unit in graph.units.values()]

        colors = self._settings.cable_colors
        cables: list[dict[str, Any]] = []
        occupied_inputs: set[tuple[int, int]] = set()
        for index, connection in enumerate(graph.connections):
            source_unit = node_to_unit.get(connection.source)
            target_unit = node_to_unit.get(connection.target)
            if source_unit is None or target_unit is None:
                raise MalformedGraph(
                    f"Cable {index} references node {connection.source} -> {connection.target}, "
                    "which is not a rack module"
                )
            key = (connection.target, connection.inlet)
            if key in occupied_inputs:
                raise MalformedGraph(
                    f"Input {connection.inlet} on unit '{target_unit}' has more than one cable"
                )
            occupied_inputs.add(key)
            cables.append(
                {
                    "id": id_generator(),
                    "outputModuleId": module_ids[source_unit],
                    "outputId": connection.outlet,
                    "inputModuleId": module_ids[target_unit],
                    "inputId": connection.inlet,
                    "color": connection.color or colors[index % len(colors)],
                }
            )

        logger.debug("Built rack document with %d modules and %d cables", len(modules), len(cables))
        return {
            "version": self._settings.rack_version,
            "modules": modules,
            "cables": cables,
        }

    def serialize(self, document: dict[str, Any]) -> str:
        return json.dumps(document, indent=2, allow_nan=False)

    @staticmethod
    def _module_json(unit: GraphUnit, graph: ComposedGraph, module_ids: dict[str, int]) -> dict[str, Any]:
        placement = graph.placements.get(unit.id)
        if placement is None:
            pos = [0, 0]
            left_id = right_id = None
        else:
            pos = [_number(placement.x), _number(placement.y)]
            left_id = module_ids.get(placement.left_id) if placement.left_id else None
            right_id = module_ids.get(placement.right_id) if placement.right_id else None

        return {
            "id": module_ids[unit.id],
            "plugin": unit.entry.namespace,
            "model": unit.entry.name,
            "version": unit.entry.version,
            "params": [
                {"id": parameter_id, "value": unit.params[parameter_id]}
                for parameter_id in sorted(unit.params)
            ],
            "pos": pos,
            "leftModuleId": left_id,
            "rightModuleId": right_id,
        }
