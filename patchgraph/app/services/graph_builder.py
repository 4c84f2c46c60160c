from __future__ import annotations

import logging
import re
from typing import Mapping, Sequence

from patchgraph.app.core.errors import DuplicateUnit, UnknownParameter
from patchgraph.app.models.compile import UnitSpec
from patchgraph.app.models.controller import ControllerMapping
from patchgraph.app.models.graph import GraphConnection, GraphNode, GraphUnit, PatchDocument
from patchgraph.app.models.registry import Curve, NodeKind, RegistryEntry
from patchgraph.app.services.resolver_service import ReferenceResolver

logger = logging.getLogger(__name__)

CONTROLLER_TITLE = "=== CONTROLLER ==="
CONTROLLER_COLUMN_WIDTH = 150
CONTROLLER_ROW_SPACING = 30
CONTROLLER_LABEL_SPACING = 20
MIDI_CC_MAX = 127
EXPONENTIAL_CURVE_POWER = 3
_UNIT_ID_SANITIZER = re.compile(r"[^A-Za-z0-9_.-]+")


class GraphBuilder:
    def __init__(self, resolver: ReferenceResolver) -> None:
        self._resolver = resolver

    def apply_overrides(self, entry: RegistryEntry, overrides: Mapping[str, float]) -> dict[int, float]:
        """Best-effort override application.

        Unlike port and entry lookups, an override key that does not resolve
        is dropped instead of failing the build: the same override map is
        routinely reused across units of different types.
        """
        resolved: dict[str, int] = {}
        for key in overrides:
            try:
                parameter = self._resolver.resolve_parameter(entry, key)
            except UnknownParameter:
                logger.debug("Ignoring override '%s' on %s: no such parameter", key, entry.qualified_name)
                continue
            resolved[key] = parameter.id

        values: dict[int, float] = {}
        for parameter in entry.active_parameters:
            value = parameter.default
            for key, parameter_id in resolved.items():
                if parameter_id == parameter.id:
                    value = overrides[key]
                    break
            values[parameter.id] = value
        return values

    def build_unit(
        self,
        spec: UnitSpec,
        unit_id: str | None = None,
        entry: RegistryEntry | None = None,
    ) -> GraphUnit:
        if entry is None:
            entry = self._resolver.resolve_module(spec.namespace, spec.name)
        resolved_id = unit_id or spec.id or self._derive_unit_id(entry)
        params = self.apply_overrides(entry, spec.params)

        if not entry.is_template:
            module = GraphNode(kind=NodeKind.MODULE, name=entry.name, unit_id=resolved_id)
            return GraphUnit(id=resolved_id, entry=entry, params=params, nodes=[module])

        nodes = [
            GraphNode(
                kind=blueprint.kind,
                name=blueprint.name,
                args=list(blueprint.args),
                x=blueprint.x,
                y=blueprint.y,
                unit_id=resolved_id,
            )
            for blueprint in entry.nodes
        ]
        for parameter in entry.active_parameters:
            if parameter.node_index is None or parameter.arg_index is None:
                continue
            args = nodes[parameter.node_index].args
            while len(args) <= parameter.arg_index:
                args.append(0)
            args[parameter.arg_index] = params[parameter.id]

        connections = [
            GraphConnection(
                source=blueprint.source,
                outlet=blueprint.outlet,
                target=blueprint.target,
                inlet=blueprint.inlet,
            )
            for blueprint in entry.connections
        ]
        return GraphUnit(id=resolved_id, entry=entry, params=params, nodes=nodes, connections=connections)

    def build_units(self, specs: Sequence[UnitSpec]) -> list[GraphUnit]:
        """Build every unit, deriving ids for the ones that did not name themselves.

        Derived ids follow the entry name and get `-2`, `-3`, ... suffixes on
        repeats. Explicit ids are reserved first so a derived id never steals one.
        """
        explicit = [spec.id for spec in specs if spec.id is not None]
        duplicates = sorted({unit_id for unit_id in explicit if explicit.count(unit_id) > 1})
        if duplicates:
            raise DuplicateUnit(f"Unit ids must be unique: {', '.join(duplicates)}")

        used: set[str] = set(explicit)
        units: list[GraphUnit] = []
        for spec in specs:
            entry = self._resolver.resolve_module(spec.namespace, spec.name)
            if spec.id is not None:
                units.append(self.build_unit(spec, entry=entry))
                continue

            base = self._derive_unit_id(entry)
            candidate = base
            counter = 2
            while candidate in used:
                candidate = f"{base}-{counter}"
                counter += 1
            used.add(candidate)
            units.append(self.build_unit(spec, unit_id=candidate, entry=entry))
        return units

    def build_controller_patch(self, mappings: Sequence[ControllerMapping], midi_channel: int) -> PatchDocument:
        """Lay out one column per mapping that turns a MIDI CC into a bus value.

        Each column reads: label, ctlin CC CH, / 127, optional pow 3 for
        exponential curves, * (max - min), + min, send bus.
        """
        document = PatchDocument()

        def add(node: GraphNode) -> int:
            document.nodes.append(node)
            return len(document.nodes) - 1

        def wire(source: int, target: int) -> None:
            document.connections.append(GraphConnection(source=source, outlet=0, target=target, inlet=0))

        add(GraphNode(kind=NodeKind.TEXT, args=[CONTROLLER_TITLE], x=50, y=10))

        for column, mapping in enumerate(mappings):
            control = mapping.control
            parameter = mapping.parameter
            if control.cc is None:
                logger.debug("Skipping control '%s': no CC number", control.name)
                continue

            x = 50 + column * CONTROLLER_COLUMN_WIDTH
            y = 40
            add(GraphNode(kind=NodeKind.TEXT, args=[control.name, "->", parameter.label or parameter.name], x=x, y=y))
            y += CONTROLLER_LABEL_SPACING

            ctlin = add(GraphNode(kind=NodeKind.OBJ, name="ctlin", args=[control.cc, midi_channel], x=x, y=y))
            y += CONTROLLER_ROW_SPACING

            normalize = add(GraphNode(kind=NodeKind.OBJ, name="/", args=[MIDI_CC_MAX], x=x, y=y))
            wire(ctlin, normalize)
            y += CONTROLLER_ROW_SPACING
            last = normalize

            if parameter.curve == Curve.EXPONENTIAL:
                curve = add(GraphNode(kind=NodeKind.OBJ, name="pow", args=[EXPONENTIAL_CURVE_POWER], x=x, y=y))
                wire(last, curve)
                last = curve
                y += CONTROLLER_ROW_SPACING

            low, high = parameter.value_range
            scale = add(GraphNode(kind=NodeKind.OBJ, name="*", args=[high - low], x=x, y=y))
            wire(last, scale)
            y += CONTROLLER_ROW_SPACING

            offset = add(GraphNode(kind=NodeKind.OBJ, name="+", args=[low], x=x, y=y))
            wire(scale, offset)
            y += CONTROLLER_ROW_SPACING

            send = add(GraphNode(kind=NodeKind.OBJ, name="send", args=[mapping.bus_name], x=x, y=y))
            wire(offset, send)

        return document

    @staticmethod
    def _derive_unit_id(entry: RegistryEntry) -> str:
        return _UNIT_ID_SANITIZER.sub("_", entry.name).strip("_").lower() or "unit"
