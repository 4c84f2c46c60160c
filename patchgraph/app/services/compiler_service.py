from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from patchgraph.app.core.config import Settings
from patchgraph.app.models.compile import PdCompileRequest, RackCompileRequest, UnitSpec
from patchgraph.app.models.controller import ControllerMapping
from patchgraph.app.models.graph import GraphUnit, PatchDocument
from patchgraph.app.models.registry import TargetFormat
from patchgraph.app.services.composer import Composer
from patchgraph.app.services.controller_injector import ControllerInjector
from patchgraph.app.services.controller_mapper import ControllerMapper
from patchgraph.app.services.device_service import DeviceService
from patchgraph.app.services.graph_builder import GraphBuilder
from patchgraph.app.services.k2_deck_config import K2_DEVICE_NAME, build_k2_deck_config
from patchgraph.app.services.pd_serializer import PdSerializer
from patchgraph.app.services.rack_serializer import IdGenerator, RackSerializer

logger = logging.getLogger(__name__)

PD_EXTENSION = ".pd"


@dataclass(slots=True)
class PdCompileArtifact:
    rack: str
    units: dict[str, str]
    controller: str | None = None
    mappings: list[ControllerMapping] = field(default_factory=list)
    node_offsets: dict[str, int] = field(default_factory=dict)
    k2_config: dict[str, Any] | None = None


@dataclass(slots=True)
class RackCompileArtifact:
    document: dict[str, Any]
    text: str


class CompilerService:
    """Runs the build, compose, inject and serialize stages for one request."""

    def __init__(
        self,
        settings: Settings,
        graph_builder: GraphBuilder,
        composer: Composer,
        device_service: DeviceService,
        controller_mapper: ControllerMapper,
        controller_injector: ControllerInjector,
        pd_serializer: PdSerializer,
        rack_serializer: RackSerializer,
    ) -> None:
        self._settings = settings
        self._graph_builder = graph_builder
        self._composer = composer
        self._device_service = device_service
        self._controller_mapper = controller_mapper
        self._controller_injector = controller_injector
        self._pd_serializer = pd_serializer
        self._rack_serializer = rack_serializer

    def compile_pd(self, request: PdCompileRequest) -> PdCompileArtifact:
        units = self._graph_builder.build_units(request.units)
        graph = self._composer.compose(units, request.wiring, target=TargetFormat.PD)

        controller_text: str | None = None
        mappings: list[ControllerMapping] = []
        k2_config: dict[str, Any] | None = None
        if request.controller is not None:
            device = self._device_service.get_device(request.controller.device)
            midi_channel = request.controller.midi_channel or device.midi_channel
            mappings = self._controller_mapper.auto_map(units, device, request.controller.mappings)
            controller_patch = self._graph_builder.build_controller_patch(mappings, midi_channel)
            controller_text = self._pd_serializer.serialize(controller_patch)
            graph = self._controller_injector.inject(graph, mappings)
            if device.name == K2_DEVICE_NAME and mappings:
                k2_config = build_k2_deck_config(mappings, midi_channel)

        filenames = self._unit_filenames(request.units, units)
        unit_files = {
            filename: self._pd_serializer.serialize(
                PatchDocument(nodes=list(unit.nodes), connections=list(unit.connections))
            )
            for filename, unit in zip(filenames, units)
        }

        logger.info(
            "Compiled Pd patch: %d units, %d nodes, %d connections, %d controller mappings",
            len(units),
            len(graph.nodes),
            len(graph.connections),
            len(mappings),
        )
        return PdCompileArtifact(
            rack=self._pd_serializer.serialize(graph),
            units=unit_files,
            controller=controller_text,
            mappings=mappings,
            node_offsets=dict(graph.node_offsets),
            k2_config=k2_config,
        )

    def compile_rack(self, request: RackCompileRequest) -> RackCompileArtifact:
        units = self._graph_builder.build_units(request.units)
        graph = self._composer.compose(units, request.wiring, target=TargetFormat.RACK)

        document = self._rack_serializer.build_document(graph, self._id_generator())
        logger.info(
            "Compiled rack patch: %d modules, %d cables",
            len(document["modules"]),
            len(document["cables"]),
        )
        return RackCompileArtifact(document=document, text=self._rack_serializer.serialize(document))

    def _id_generator(self) -> IdGenerator:
        if self._settings.id_seed is not None:
            return IdGenerator.seeded(self._settings.id_seed)
        return IdGenerator()

    @staticmethod
    def _unit_filenames(specs: Sequence[UnitSpec], units: Sequence[GraphUnit]) -> list[str]:
        """Explicit filenames are reserved first; derived ones take `-2`, `-3`, ... on collision."""
        explicit = [_with_extension(spec.filename) if spec.filename else None for spec in specs]
        used = {name for name in explicit if name is not None}

        filenames: list[str] = []
        for name, unit in zip(explicit, units):
            if name is None:
                name = _with_extension(unit.id)
                counter = 2
                while name in used:
                    name = _with_extension(f"{unit.id}-{counter}")
                    counter += 1
                used.add(name)
            filenames.append(name)
        return filenames


def _with_extension(filename: str) -> str:
    return filename if filename.endswith(PD_EXTENSION) else filename + PD_EXTENSION
