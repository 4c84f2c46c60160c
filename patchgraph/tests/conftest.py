from __future__ import annotations

import random

import pytest

from patchgraph.app.core.config import Settings
from patchgraph.app.models.registry import (
    ConnectionBlueprint,
    Curve,
    NodeBlueprint,
    ParameterCategory,
    ParameterSpec,
    PortDirection,
    PortSpec,
    RegistryEntry,
)
from patchgraph.app.services.composer import Composer
from patchgraph.app.services.graph_builder import GraphBuilder
from patchgraph.app.services.rack_serializer import IdGenerator
from patchgraph.app.services.registry_service import Registry
from patchgraph.app.services.resolver_service import ReferenceResolver


def _template_a() -> RegistryEntry:
    return RegistryEntry(
        namespace="fx",
        name="A",
        width=100,
        nodes=(
            NodeBlueprint(name="inlet~"),
            NodeBlueprint(name="osc~", args=(440,), y=40),
            NodeBlueprint(name="*~", args=(0.5,), y=70),
        ),
        connections=(ConnectionBlueprint(source=0, target=1), ConnectionBlueprint(source=1, target=2)),
        ports=(
            PortSpec(id=0, name="in1", label="Input", direction=PortDirection.INPUT, node_index=0),
            PortSpec(id=0, name="out1", label="Tone", direction=PortDirection.OUTPUT, node_index=1),
            PortSpec(id=0, name="out2", label="Scaled", direction=PortDirection.OUTPUT, node_index=2),
        ),
        parameters=(
            ParameterSpec(
                id=0,
                name="frequency",
                label="Frequency",
                default=440,
                min=20,
                max=20000,
                curve=Curve.EXPONENTIAL,
                category=ParameterCategory.FILTER,
                node_index=1,
                inlet=0,
                arg_index=0,
            ),
            ParameterSpec(
                id=1,
                name="gain",
                label="Gain",
                default=0.5,
                category=ParameterCategory.AMPLITUDE,
                node_index=2,
                inlet=1,
                arg_index=0,
            ),
        ),
    )


def _template_b() -> RegistryEntry:
    return RegistryEntry(
        namespace="fx",
        name="B",
        width=60,
        nodes=(
            NodeBlueprint(name="lop~", args=(1000,)),
            NodeBlueprint(name="dac~", y=40),
        ),
        connections=(ConnectionBlueprint(source=0, target=1),),
        ports=(
            PortSpec(id=0, name="in1", label="Audio", direction=PortDirection.INPUT, node_index=0),
            PortSpec(id=1, name="cutoff", label="Cutoff", direction=PortDirection.INPUT, node_index=0),
        ),
        parameters=(
            ParameterSpec(id=0, name="cutoff", label="Cutoff", default=1000, min=20, max=20000, node_index=0, inlet=1, arg_index=0),
        ),
    )


def _table_template() -> RegistryEntry:
    return RegistryEntry(
        namespace="fx",
        name="Wave",
        width=80,
        nodes=(
            NodeBlueprint(name="table", args=("wave", 512)),
            NodeBlueprint(name="tabread4~", args=("wave",), y=40),
        ),
        ports=(PortSpec(id=0, name="out", direction=PortDirection.OUTPUT, node_index=1),),
    )


def _module(name: str, width: float) -> RegistryEntry:
    return RegistryEntry(
        namespace="Rack",
        name=name,
        version="2.0.0",
        width=width,
        ports=(
            PortSpec(id=0, name="IN_INPUT", label="In", direction=PortDirection.INPUT),
            PortSpec(id=1, name="CV_INPUT", label="CV", direction=PortDirection.INPUT),
            PortSpec(id=0, name="OUT_OUTPUT", label="Out", direction=PortDirection.OUTPUT),
        ),
        parameters=(
            ParameterSpec(id=0, name="MODE_PARAM", label="Mode", removed=True),
            ParameterSpec(id=1, name="LEVEL_PARAM", label="Level", default=0.5, min=0, max=1),
            ParameterSpec(id=2, name="FREQ_PARAM", label="Frequency", default=0, min=-54, max=54),
        ),
    )


@pytest.fixture
def registry() -> Registry:
    return Registry(
        [_template_a(), _template_b(), _table_template(), _module("Wide", 10), _module("Narrow", 4), _module("Mid", 8)],
        namespace_aliases={"effects": "fx"},
    )


@pytest.fixture
def resolver(registry: Registry) -> ReferenceResolver:
    return ReferenceResolver(registry)


@pytest.fixture
def builder(resolver: ReferenceResolver) -> GraphBuilder:
    return GraphBuilder(resolver)


@pytest.fixture
def composer(resolver: ReferenceResolver) -> Composer:
    return Composer(resolver)


@pytest.fixture
def id_generator() -> IdGenerator:
    return IdGenerator(random.Random(1234))


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, id_seed=1234)
