from __future__ import annotations

from patchgraph.app.models.registry import (
    ConnectionBlueprint,
    Curve,
    NodeBlueprint,
    NodeKind,
    ParameterCategory,
    ParameterSpec,
    PortDirection,
    PortSpec,
    RegistryEntry,
    SignalType,
)

PD_NAMESPACE = "pd"
MIXER_CHANNELS = 4
SPACING = 30


def _obj(name: str, *args: str | int | float, x: float = 50, y: float = 10) -> NodeBlueprint:
    return NodeBlueprint(kind=NodeKind.OBJ, name=name, args=args, x=x, y=y)


def _text(*words: str, x: float = 50, y: float = 10) -> NodeBlueprint:
    return NodeBlueprint(kind=NodeKind.TEXT, args=words, x=x, y=y)


def _msg(*args: str | int | float, x: float = 50, y: float = 10) -> NodeBlueprint:
    return NodeBlueprint(kind=NodeKind.MSG, args=args, x=x, y=y)


def _note_atom(x: float = 50, y: float = 10) -> NodeBlueprint:
    return NodeBlueprint(kind=NodeKind.FLOATATOM, args=(5, 0, 127, 0, "-", "-", "-"), x=x, y=y)


def _wire(source: int, target: int, outlet: int = 0, inlet: int = 0) -> ConnectionBlueprint:
    return ConnectionBlueprint(source=source, outlet=outlet, target=target, inlet=inlet)


def _port(
    name: str,
    label: str,
    direction: PortDirection,
    node_index: int,
    slot: int = 0,
    signal_type: SignalType = SignalType.AUDIO,
) -> PortSpec:
    return PortSpec(
        id=slot,
        name=name,
        label=label,
        direction=direction,
        signal_type=signal_type,
        node_index=node_index,
    )


def _oscillator() -> RegistryEntry:
    return RegistryEntry(
        namespace=PD_NAMESPACE,
        name="oscillator",
        width=200,
        description="MIDI-driven sine oscillator with output gain.",
        tags=("source", "audio"),
        nodes=(
            _text("Oscillator"),
            _note_atom(y=40),
            _obj("mtof", y=40 + SPACING),
            _obj("osc~", 440, y=40 + SPACING * 2),
            _obj("*~", 0.3, y=40 + SPACING * 3),
        ),
        connections=(_wire(1, 2), _wire(2, 3), _wire(3, 4)),
        ports=(
            _port("note", "MIDI note", PortDirection.INPUT, 1, signal_type=SignalType.CONTROL),
            _port("frequency", "Frequency", PortDirection.INPUT, 3, signal_type=SignalType.CONTROL),
            _port("audio", "Audio out", PortDirection.OUTPUT, 4),
        ),
        parameters=(
            ParameterSpec(
                id=0,
                name="frequency",
                label="Frequency",
                default=440,
                min=20,
                max=20_000,
                unit="Hz",
                curve=Curve.EXPONENTIAL,
                category=ParameterCategory.OSCILLATOR,
                node_index=3,
                inlet=0,
                arg_index=0,
            ),
            ParameterSpec(
                id=1,
                name="amplitude",
                label="Amplitude",
                default=0.3,
                min=0,
                max=1,
                category=ParameterCategory.AMPLITUDE,
                node_index=4,
                inlet=1,
                arg_index=0,
            ),
        ),
    )


def _wavetable() -> RegistryEntry:
    return RegistryEntry(
        namespace=PD_NAMESPACE,
        name="wavetable",
        width=200,
        description="Phasor-scanned wavetable voice reading a 512-point table.",
        tags=("source", "audio"),
        nodes=(
            _text("Wavetable"),
            _obj("table", "wave", 512, x=150, y=10),
            _note_atom(y=40),
            _obj("mtof", y=40 + SPACING),
            _obj("phasor~", 220, y=40 + SPACING * 2),
            _obj("*~", 512, y=40 + SPACING * 3),
            _obj("tabread4~", "wave", y=40 + SPACING * 4),
            _obj("*~", 0.3, y=40 + SPACING * 5),
        ),
        connections=(_wire(2, 3), _wire(3, 4), _wire(4, 5), _wire(5, 6), _wire(6, 7)),
        ports=(
            _port("note", "MIDI note", PortDirection.INPUT, 2, signal_type=SignalType.CONTROL),
            _port("audio", "Audio out", PortDirection.OUTPUT, 7),
        ),
        parameters=(
            ParameterSpec(
                id=0,
                name="frequency",
                label="Frequency",
                default=220,
                min=20,
                max=5_000,
                unit="Hz",
                curve=Curve.EXPONENTIAL,
                category=ParameterCategory.OSCILLATOR,
                node_index=4,
                inlet=0,
                arg_index=0,
            ),
            ParameterSpec(
                id=1,
                name="amplitude",
                label="Amplitude",
                default=0.3,
                min=0,
                max=1,
                category=ParameterCategory.AMPLITUDE,
                node_index=7,
                inlet=1,
                arg_index=0,
            ),
        ),
    )


def _filter() -> RegistryEntry:
    return RegistryEntry(
        namespace=PD_NAMESPACE,
        name="filter",
        width=200,
        description="One-pole lowpass filter with makeup gain.",
        tags=("effect", "audio"),
        nodes=(
            _text("Filter"),
            _obj("lop~", 1000, y=40),
            _obj("*~", 1, y=40 + SPACING),
        ),
        connections=(_wire(1, 2),),
        ports=(
            _port("audio_in", "Audio in", PortDirection.INPUT, 1),
            _port("cutoff_in", "Cutoff", PortDirection.INPUT, 1, slot=1, signal_type=SignalType.CONTROL),
            _port("audio", "Audio out", PortDirection.OUTPUT, 2),
        ),
        parameters=(
            ParameterSpec(
                id=0,
                name="cutoff",
                label="Filter Cutoff",
                default=1000,
                min=20,
                max=20_000,
                unit="Hz",
                curve=Curve.EXPONENTIAL,
                category=ParameterCategory.FILTER,
                node_index=1,
                inlet=1,
                arg_index=0,
            ),
            ParameterSpec(
                id=1,
                name="gain",
                label="Gain",
                default=1,
                min=0,
                max=2,
                category=ParameterCategory.AMPLITUDE,
                node_index=2,
                inlet=1,
                arg_index=0,
            ),
        ),
    )


def _envelope() -> RegistryEntry:
    # sel 0: right outlet fires on note-on, left outlet on note-off.
    return RegistryEntry(
        namespace=PD_NAMESPACE,
        name="envelope",
        width=250,
        description="Gate-driven attack/release envelope applied to an audio signal.",
        tags=("modulation", "audio"),
        nodes=(
            _text("Envelope"),
            _obj("sel", 0, y=40),
            _msg(1, 10, x=120, y=40 + SPACING),
            _msg(0, 300, y=40 + SPACING),
            _obj("vline~", y=40 + SPACING * 2),
            _obj("*~", y=40 + SPACING * 3),
        ),
        connections=(
            _wire(1, 3),
            _wire(1, 2, outlet=1),
            _wire(2, 4),
            _wire(3, 4),
            _wire(4, 5, inlet=1),
        ),
        ports=(
            _port("gate", "Gate", PortDirection.INPUT, 1, signal_type=SignalType.CONTROL),
            _port("audio_in", "Audio in", PortDirection.INPUT, 5),
            _port("audio", "Audio out", PortDirection.OUTPUT, 5),
        ),
        parameters=(
            ParameterSpec(
                id=0,
                name="attack",
                label="Attack",
                default=10,
                min=1,
                max=2_000,
                unit="ms",
                curve=Curve.EXPONENTIAL,
                node_index=2,
                arg_index=1,
                mappable=False,
            ),
            ParameterSpec(
                id=1,
                name="release",
                label="Release",
                default=300,
                min=1,
                max=5_000,
                unit="ms",
                curve=Curve.EXPONENTIAL,
                node_index=3,
                arg_index=1,
                mappable=False,
            ),
        ),
    )


def _clock() -> RegistryEntry:
    return RegistryEntry(
        namespace=PD_NAMESPACE,
        name="clock",
        width=200,
        description="Self-starting metronome emitting a bang per beat.",
        tags=("transport", "control"),
        nodes=(
            _text("Clock"),
            _obj("loadbang", y=40),
            _msg(1, y=40 + SPACING),
            _obj("metro", 500, y=40 + SPACING * 2),
            _obj("t", "b", y=40 + SPACING * 3),
        ),
        connections=(_wire(1, 2), _wire(2, 3), _wire(3, 4)),
        ports=(
            _port("run", "Run", PortDirection.INPUT, 3, signal_type=SignalType.CONTROL),
            _port("beat", "Beat", PortDirection.OUTPUT, 4, signal_type=SignalType.CONTROL),
        ),
        parameters=(
            ParameterSpec(
                id=0,
                name="interval",
                label="Beat Interval",
                default=500,
                min=10,
                max=2_000,
                unit="ms",
                category=ParameterCategory.TRANSPORT,
                node_index=3,
                inlet=1,
                arg_index=0,
            ),
        ),
    )


def _mixer() -> RegistryEntry:
    nodes = [_text(f"{MIXER_CHANNELS}-channel mixer")]
    ports: list[PortSpec] = []
    parameters: list[ParameterSpec] = []
    for channel in range(1, MIXER_CHANNELS + 1):
        node_index = len(nodes)
        nodes.append(_obj("*~", 0.8, x=50 + (channel - 1) * 80, y=40))
        ports.append(_port(f"ch{channel}", f"Channel {channel}", PortDirection.INPUT, node_index))
        parameters.append(
            ParameterSpec(
                id=channel - 1,
                name=f"volume_ch{channel}",
                label=f"Channel {channel} Volume",
                default=0.8,
                min=0,
                max=1,
                category=ParameterCategory.AMPLITUDE,
                node_index=node_index,
                inlet=1,
                arg_index=0,
            )
        )

    # Chained +~: first sums ch1 and ch2, each later stage adds one channel.
    connections: list[ConnectionBlueprint] = []
    previous = 1
    for channel in range(2, MIXER_CHANNELS + 1):
        sum_index = len(nodes)
        nodes.append(_obj("+~", y=40 + SPACING * (channel - 1)))
        connections.append(_wire(previous, sum_index))
        connections.append(_wire(channel, sum_index, inlet=1))
        previous = sum_index

    ports.append(_port("audio", "Audio out", PortDirection.OUTPUT, previous))
    return RegistryEntry(
        namespace=PD_NAMESPACE,
        name="mixer",
        width=400,
        description="Four-channel mono mixer with per-channel volume.",
        tags=("mixer", "audio"),
        nodes=tuple(nodes),
        connections=tuple(connections),
        ports=tuple(ports),
        parameters=tuple(parameters),
    )


def _output() -> RegistryEntry:
    return RegistryEntry(
        namespace=PD_NAMESPACE,
        name="output",
        width=150,
        description="Master gain feeding both DAC channels.",
        tags=("sink", "audio"),
        nodes=(
            _text("Output"),
            _obj("*~", 0.5, y=40),
            _obj("dac~", y=40 + SPACING),
        ),
        connections=(_wire(1, 2), _wire(1, 2, inlet=1)),
        ports=(_port("audio_in", "Audio in", PortDirection.INPUT, 1),),
        parameters=(
            ParameterSpec(
                id=0,
                name="master",
                label="Master Volume",
                default=0.5,
                min=0,
                max=1,
                category=ParameterCategory.AMPLITUDE,
                node_index=1,
                inlet=1,
                arg_index=0,
            ),
        ),
    )


def load_pd_templates() -> list[RegistryEntry]:
    return [
        _oscillator(),
        _wavetable(),
        _filter(),
        _envelope(),
        _clock(),
        _mixer(),
        _output(),
    ]
