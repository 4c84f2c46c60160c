from __future__ import annotations

from patchgraph.app.models.controller import ControlCategory, ControlType, DeviceControl, DeviceProfile


def _fader(index: int, cc: int) -> DeviceControl:
    return DeviceControl(name=f"fader{index}", type=ControlType.FADER, cc=cc, category=ControlCategory.AMPLITUDE)


def _pot(index: int, cc: int, category: ControlCategory) -> DeviceControl:
    return DeviceControl(name=f"pot{index}", type=ControlType.POT, cc=cc, category=category)


def xone_k2_profile() -> DeviceProfile:
    """Allen & Heath Xone:K2 absolute controls: 4 faders and 12 pots.

    The first pot row carries filter/frequency duties; the other two rows are
    general purpose.
    """
    faders = [_fader(index, 15 + index) for index in range(1, 5)]
    pots = [
        _pot(index, 3 + index, ControlCategory.FREQUENCY if index <= 4 else ControlCategory.GENERAL)
        for index in range(1, 13)
    ]
    return DeviceProfile(
        name="xone-k2",
        label="Allen & Heath Xone:K2",
        midi_channel=16,
        controls=tuple([*faders, *pots]),
    )


DEVICE_ALIASES: dict[str, str] = {
    "k2": "xone-k2",
}


def load_builtin_devices() -> list[DeviceProfile]:
    return [xone_k2_profile()]
