from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from patchgraph.app.core.config import Settings
from patchgraph.app.core.errors import UnknownEntry, UnknownUnit
from patchgraph.app.models.compile import PdCompileRequest, RackCompileRequest
from patchgraph.app.registry.builtin import load_builtin_registry
from patchgraph.app.registry.devices import DEVICE_ALIASES, load_builtin_devices
from patchgraph.app.services.compiler_service import CompilerService
from patchgraph.app.services.composer import Composer
from patchgraph.app.services.controller_injector import ControllerInjector
from patchgraph.app.services.controller_mapper import ControllerMapper
from patchgraph.app.services.device_service import DeviceService
from patchgraph.app.services.graph_builder import GraphBuilder
from patchgraph.app.services.pd_serializer import PdSerializer
from patchgraph.app.services.rack_serializer import RackSerializer
from patchgraph.app.services.resolver_service import ReferenceResolver


def _service(settings: Settings) -> CompilerService:
    resolver = ReferenceResolver(load_builtin_registry())
    return CompilerService(
        settings=settings,
        graph_builder=GraphBuilder(resolver),
        composer=Composer(resolver),
        device_service=DeviceService(load_builtin_devices(), aliases=DEVICE_ALIASES),
        controller_mapper=ControllerMapper(),
        controller_injector=ControllerInjector(),
        pd_serializer=PdSerializer(settings),
        rack_serializer=RackSerializer(settings),
    )


def _synth_request(**extra) -> PdCompileRequest:
    return PdCompileRequest.model_validate(
        {
            "units": [
                {"namespace": "pd", "name": "oscillator", "params": {"frequency": 220}},
                {"namespace": "pd", "name": "filter", "params": {"Filter Cutoff": 800}},
                {"namespace": "pd", "name": "output"},
            ],
            "wiring": [
                {"from_unit": "oscillator", "output": "audio", "to_unit": "filter", "input": "audio_in"},
                {"from_unit": "filter", "output": "Audio out", "to_unit": "output", "input": "audio_in"},
            ],
            **extra,
        }
    )


def test_compile_pd_writes_rack_and_unit_files(settings: Settings, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="patchgraph.app.services.compiler_service"):
        artifact = _service(settings).compile_pd(_synth_request())

    assert sorted(artifact.units) == ["filter.pd", "oscillator.pd", "output.pd"]
    assert artifact.node_offsets == {"oscillator": 0, "filter": 5, "output": 8}
    assert artifact.controller is None
    assert artifact.rack.startswith("#N canvas 0 50 1000 600 12;\n")
    assert "#X obj 50 100 osc~ 220;" in artifact.rack
    assert "#X obj 250 40 lop~ 800;" in artifact.rack
    # oscillator *~ (4) -> filter lop~ (6), filter *~ (7) -> output *~ (9)
    assert "#X connect 4 0 6 0;" in artifact.rack
    assert "#X connect 7 0 9 0;" in artifact.rack
    assert artifact.units["filter.pd"].count("#X obj") == 2
    assert "Compiled Pd patch" in caplog.text


def test_compile_pd_with_controller(settings: Settings) -> None:
    artifact = _service(settings).compile_pd(
        _synth_request(controller={"device": "k2", "midi_channel": 3})
    )

    assert artifact.controller is not None
    assert "#X obj 50 60 ctlin 16 3;" in artifact.controller
    buses = {mapping.bus_name for mapping in artifact.mappings}
    assert "filter__p__cutoff" in buses
    assert "#X obj 50 10 receive filter__p__cutoff;" in artifact.rack
    for bus in buses:
        assert f"send {bus};" in artifact.controller


def test_compile_pd_uses_requested_filenames(settings: Settings) -> None:
    request = PdCompileRequest.model_validate(
        {"units": [{"namespace": "pd", "name": "clock", "filename": "tempo"}, {"namespace": "pd", "name": "clock"}]}
    )

    artifact = _service(settings).compile_pd(request)

    assert sorted(artifact.units) == ["clock-2.pd", "tempo.pd"]


def test_compile_pd_unknown_unit_propagates(settings: Settings) -> None:
    request = _synth_request()
    request.wiring[0].to_unit = "nowhere"

    with pytest.raises(UnknownUnit):
        _service(settings).compile_pd(request)


def test_compile_rack_is_reproducible_with_seed(settings: Settings) -> None:
    request = RackCompileRequest.model_validate(
        {
            "units": [
                {"namespace": "vcv", "name": "VCO", "params": {"Frequency": 12}},
                {"namespace": "vcv", "name": "VCF"},
                {"namespace": "Core", "name": "AudioInterface2"},
            ],
            "wiring": [
                {"from_unit": "vco", "output": "Sawtooth", "to_unit": "vcf", "input": "Audio"},
                {"from_unit": "vcf", "output": "LPF_OUTPUT", "to_unit": "audiointerface2", "input": "Audio 1"},
            ],
        }
    )

    first = _service(settings).compile_rack(request)
    second = _service(settings).compile_rack(request)

    assert first.text == second.text
    assert json.loads(first.text) == first.document
    assert [module["pos"] for module in first.document["modules"]] == [[0, 0], [10, 0], [18, 0]]
    vco = first.document["modules"][0]
    assert {"id": 2, "value": 12} in vco["params"]
    assert len(first.document["cables"]) == 2


def test_compile_rack_unknown_module(settings: Settings) -> None:
    request = RackCompileRequest.model_validate({"units": [{"namespace": "vcv", "name": "Nope"}]})

    with pytest.raises(UnknownEntry):
        _service(settings).compile_rack(request)


def test_explicit_filename_never_displaces_a_derived_one(settings: Settings) -> None:
    request = PdCompileRequest.model_validate(
        {
            "units": [
                {"namespace": "pd", "name": "oscillator", "filename": "filter.pd"},
                {"namespace": "pd", "name": "filter"},
                {"namespace": "pd", "name": "filter", "filename": "filter-2"},
            ]
        }
    )

    artifact = _service(settings).compile_pd(request)

    assert sorted(artifact.units) == ["filter-2.pd", "filter-3.pd", "filter.pd"]
    assert "osc~" in artifact.units["filter.pd"]
    assert "lop~" in artifact.units["filter-3.pd"]


def test_non_finite_overrides_are_rejected_before_compiling() -> None:
    with pytest.raises(ValidationError):
        RackCompileRequest.model_validate_json(
            '{"units": [{"namespace": "Fundamental", "name": "VCO", "params": {"FREQ_PARAM": NaN}}]}'
        )
    with pytest.raises(ValidationError):
        PdCompileRequest.model_validate(
            {"units": [{"namespace": "pd", "name": "oscillator", "params": {"frequency": float("inf")}}]}
        )


def test_k2_controller_adds_deck_config(settings: Settings) -> None:
    artifact = _service(settings).compile_pd(_synth_request(controller={"device": "k2"}))

    assert artifact.k2_config is not None
    assert artifact.k2_config["midi_channel"] == 16
    assert artifact.k2_config["mappings"]["cc_absolute"]["4"] == {
        "name": "filter: Filter Cutoff",
        "action": "noop",
    }
    json.dumps(artifact.k2_config, allow_nan=False)


def test_deck_config_absent_without_controller(settings: Settings) -> None:
    assert _service(settings).compile_pd(_synth_request()).k2_config is None
