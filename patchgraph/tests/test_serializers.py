from __future__ import annotations

import json
import random

import pytest

from patchgraph.app.core.config import Settings
from patchgraph.app.core.errors import MalformedGraph
from patchgraph.app.models.compile import UnitSpec, WireSpec
from patchgraph.app.models.graph import GraphConnection, GraphNode, PatchDocument
from patchgraph.app.models.registry import NodeKind, TargetFormat
from patchgraph.app.services.composer import Composer
from patchgraph.app.services.graph_builder import GraphBuilder
from patchgraph.app.services.pd_serializer import PdSerializer, format_atom
from patchgraph.app.services.rack_serializer import IdGenerator, RackSerializer


def test_format_atom() -> None:
    assert format_atom(3) == "3"
    assert format_atom(440.0) == "440"
    assert format_atom(0.3) == "0.3"
    assert format_atom(1 / 3) == "0.333333"
    assert format_atom("a;b,c$1") == r"a\;b\,c\$1"


def test_pd_document_lines(settings: Settings) -> None:
    document = PatchDocument(
        nodes=[
            GraphNode(kind=NodeKind.TEXT, args=["hello", "world"], x=10, y=10),
            GraphNode(kind=NodeKind.OBJ, name="osc~", args=[220.0], x=10.4, y=40.6),
            GraphNode(kind=NodeKind.MSG, args=[1, 10], x=10, y=80),
            GraphNode(kind=NodeKind.FLOATATOM, args=[5, 0, 127, 0, "-", "-", "-"], x=10, y=110),
        ],
        connections=[GraphConnection(source=3, outlet=0, target=1, inlet=0)],
    )

    text = PdSerializer(settings).serialize(document)

    assert text.splitlines() == [
        "#N canvas 0 50 1000 600 12;",
        "#X text 10 10 hello world;",
        "#X obj 10 41 osc~ 220;",
        "#X msg 10 80 1 10;",
        "#X floatatom 10 110 5 0 127 0 - - -;",
        "#X connect 3 0 1 0;",
    ]
    assert text.endswith(";\n")


def test_pd_rejects_out_of_range_connections(settings: Settings) -> None:
    document = PatchDocument(
        nodes=[GraphNode(kind=NodeKind.OBJ, name="dac~")],
        connections=[GraphConnection(source=0, outlet=0, target=1, inlet=0)],
    )

    with pytest.raises(MalformedGraph):
        PdSerializer(settings).serialize(document)


def test_pd_rejects_rack_modules(settings: Settings) -> None:
    with pytest.raises(MalformedGraph):
        PdSerializer(settings).serialize(PatchDocument(nodes=[GraphNode(kind=NodeKind.MODULE, name="VCO")]))


def test_id_generator_stays_within_53_bits() -> None:
    generator = IdGenerator(random.Random(7))
    ids = [generator() for _ in range(200)]

    assert all(0 <= value < 2**53 for value in ids)
    assert len(set(ids)) == len(ids)
    assert IdGenerator.seeded(7)() == ids[0]


def test_rack_document_layout(
    settings: Settings, builder: GraphBuilder, composer: Composer, id_generator: IdGenerator
) -> None:
    units = builder.build_units(
        [
            UnitSpec(namespace="Rack", name="Wide", id="w", params={"Level": 0.25}),
            UnitSpec(namespace="Rack", name="Narrow", id="n"),
        ]
    )
    wiring = [
        WireSpec(from_unit="w", output="Out", to_unit="n", input="In"),
        WireSpec(from_unit="n", output="Out", to_unit="w", input="CV", color="#123456"),
    ]
    graph = composer.compose(units, wiring, target=TargetFormat.RACK)

    serializer = RackSerializer(settings)
    document = serializer.build_document(graph, id_generator)

    assert document["version"] == "2.6.6"
    wide, narrow = document["modules"]
    assert wide["plugin"] == "Rack"
    assert wide["model"] == "Wide"
    assert wide["version"] == "2.0.0"
    assert wide["params"] == [{"id": 1, "value": 0.25}, {"id": 2, "value": 0}]
    assert wide["pos"] == [0, 0]
    assert narrow["pos"] == [10, 0]
    assert wide["leftModuleId"] is None
    assert wide["rightModuleId"] == narrow["id"]
    assert narrow["leftModuleId"] == wide["id"]

    first, second = document["cables"]
    assert first["outputModuleId"] == wide["id"]
    assert first["inputModuleId"] == narrow["id"]
    assert first["inputId"] == 0
    assert first["color"] == "#c91847"
    assert second["inputId"] == 1
    assert second["color"] == "#123456"

    assert json.loads(serializer.serialize(document)) == document


def test_rack_rejects_duplicate_inputs_in_a_hand_edited_graph(
    settings: Settings, builder: GraphBuilder, composer: Composer, id_generator: IdGenerator
) -> None:
    units = builder.build_units([UnitSpec(namespace="Rack", name="Wide"), UnitSpec(namespace="Rack", name="Mid")])
    graph = composer.compose(units, target=TargetFormat.RACK)
    graph.connections.extend(
        [
            GraphConnection(source=0, outlet=0, target=1, inlet=0),
            GraphConnection(source=0, outlet=0, target=1, inlet=0),
        ]
    )

    with pytest.raises(MalformedGraph):
        RackSerializer(settings).build_document(graph, id_generator)


def test_pd_refuses_non_finite_atoms(settings: Settings) -> None:
    document = PatchDocument(nodes=[GraphNode(kind=NodeKind.OBJ, name="osc~", args=[float("nan")])])

    with pytest.raises(MalformedGraph):
        PdSerializer(settings).serialize(document)


def test_rack_refuses_non_finite_parameters(
    settings: Settings, builder: GraphBuilder, composer: Composer, id_generator: IdGenerator
) -> None:
    units = builder.build_units([UnitSpec(namespace="Rack", name="Wide")])
    units[0].params[1] = float("inf")
    graph = composer.compose(units, target=TargetFormat.RACK)

    with pytest.raises(MalformedGraph):
        RackSerializer(settings).build_document(graph, id_generator)
