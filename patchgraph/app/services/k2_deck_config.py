from __future__ import annotations

from typing import Any, Sequence

from patchgraph.app.models.controller import ControllerMapping

K2_DEVICE_NAME = "xone-k2"
PROFILE_NAME = "pd_rack"
DEFAULT_LED_COLOR = "amber"

LED_COLOR_BY_CATEGORY: dict[str, str] = {
    "amplitude": "green",
    "filter": "red",
    "oscillator": "red",
    "frequency": "red",
    "effect": "amber",
    "transport": "amber",
    "general": "amber",
}

# Button row A, one note per column.
ROW_A_NOTES = (36, 37, 38, 39)
FADER_CCS = range(16, 20)
POT_CCS = range(4, 16)


def cc_to_column(cc: int) -> int | None:
    """Faders CC16-19 sit in columns 0-3; pot rows CC4-15 repeat across the same columns."""
    if cc in FADER_CCS:
        return cc - FADER_CCS.start
    if cc in POT_CCS:
        return (cc - POT_CCS.start) % len(ROW_A_NOTES)
    return None


def build_k2_deck_config(mappings: Sequence[ControllerMapping], midi_channel: int) -> dict[str, Any]:
    """Describe the mapped controls for the K2 Deck companion app.

    Every action is `noop`: MIDI routing happens in the controller patch,
    the deck only labels controls and lights one row A button per used column.
    """
    cc_absolute: dict[str, dict[str, str]] = {}
    column_categories: dict[int, str] = {}

    for mapping in mappings:
        cc = mapping.control.cc
        if cc is None:
            continue

        parameter = mapping.parameter
        cc_absolute[str(cc)] = {
            "name": f"{mapping.unit_id}: {parameter.label or parameter.name}",
            "action": "noop",
        }
        column = cc_to_column(cc)
        if column is not None:
            category = parameter.category or mapping.control.category
            column_categories.setdefault(column, str(category))

    on_start = [
        {"note": ROW_A_NOTES[column], "color": LED_COLOR_BY_CATEGORY.get(category, DEFAULT_LED_COLOR)}
        for column, category in column_categories.items()
    ]

    return {
        "profile_name": PROFILE_NAME,
        "midi_channel": midi_channel,
        "midi_device": "XONE:K2",
        "led_color_offsets": {"red": 0, "amber": 36, "green": 72},
        "throttle": {"cc_max_hz": 30, "cc_volume_max_hz": 20},
        "mappings": {"cc_absolute": cc_absolute},
        "led_defaults": {
            "on_start": on_start,
            "on_connect": "all_off",
            "startup_animation": False,
        },
    }
